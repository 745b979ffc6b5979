"""toolbench: benchmark LLM providers on tool-using conversations.

Send the same prompts to several chat providers, let each model request a
shell command or a web search with a textual directive, run it, feed the
result back, and keep every turn in a SQLite session store.
"""

from toolbench._version import __version__

# Conversation loop
from toolbench.conversation import (
    BenchmarkResult,
    ConversationLoop,
    LoopConfig,
    LoopState,
    RunContext,
    TurnResult,
    TurnStatus,
    open_run_context,
    run_benchmark,
)

# Configuration
from toolbench.models.config import (
    PROVIDER_PRESETS,
    BenchSettings,
    ProviderConfig,
    ProviderKind,
)

# Messages and sessions
from toolbench.models.message import AgentReply, Conversation, Message, Role
from toolbench.models.session import Session, SessionSummary

# Providers
from toolbench.llm import ProviderClient

# Tools
from toolbench.toolkit import (
    RunCommand,
    Search,
    ToolDirective,
    ToolExecutor,
    ToolKind,
    ToolResult,
    WebSearch,
    parse_directive,
)

# Storage
from toolbench.storage import SessionStore

# Exceptions
from toolbench.exceptions import (
    BenchError,
    ConfigError,
    ConversationError,
    SessionNotFoundError,
    StoreError,
    ToolError,
)
from toolbench.llm.errors import (
    EmptyHistoryError,
    MissingCredentialError,
    ProviderError,
    ProviderHTTPStatusError,
    ProviderMalformedError,
    ProviderNetworkError,
)

__all__ = [
    "__version__",
    # Conversation loop
    "BenchmarkResult",
    "ConversationLoop",
    "LoopConfig",
    "LoopState",
    "RunContext",
    "TurnResult",
    "TurnStatus",
    "open_run_context",
    "run_benchmark",
    # Configuration
    "PROVIDER_PRESETS",
    "BenchSettings",
    "ProviderConfig",
    "ProviderKind",
    # Messages and sessions
    "AgentReply",
    "Conversation",
    "Message",
    "Role",
    "Session",
    "SessionSummary",
    # Providers
    "ProviderClient",
    # Tools
    "RunCommand",
    "Search",
    "ToolDirective",
    "ToolExecutor",
    "ToolKind",
    "ToolResult",
    "WebSearch",
    "parse_directive",
    # Storage
    "SessionStore",
    # Exceptions
    "BenchError",
    "ConfigError",
    "ConversationError",
    "SessionNotFoundError",
    "StoreError",
    "ToolError",
    "EmptyHistoryError",
    "MissingCredentialError",
    "ProviderError",
    "ProviderHTTPStatusError",
    "ProviderMalformedError",
    "ProviderNetworkError",
]
