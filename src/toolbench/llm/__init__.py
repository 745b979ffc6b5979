"""Provider access for toolbench.

Provides the httpx provider client, the per-provider wire adapters, and
the provider error hierarchy.
"""

from toolbench.llm.adapters import (
    ADAPTERS,
    GeminiAdapter,
    GenerationOptions,
    OpenAIChatAdapter,
    PreparedRequest,
    ProviderAdapter,
    get_adapter,
)
from toolbench.llm.client import ProviderClient
from toolbench.llm.errors import (
    EmptyHistoryError,
    MissingCredentialError,
    ProviderError,
    ProviderHTTPStatusError,
    ProviderMalformedError,
    ProviderNetworkError,
)

__all__ = [
    "ADAPTERS",
    "GeminiAdapter",
    "GenerationOptions",
    "OpenAIChatAdapter",
    "PreparedRequest",
    "ProviderAdapter",
    "get_adapter",
    "ProviderClient",
    "EmptyHistoryError",
    "MissingCredentialError",
    "ProviderError",
    "ProviderHTTPStatusError",
    "ProviderMalformedError",
    "ProviderNetworkError",
]
