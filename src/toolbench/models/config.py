"""Configuration models for toolbench.

ProviderKind enumerates the supported providers.
ProviderConfig is the immutable, per-provider connection configuration.
BenchSettings holds run-wide settings (storage, timeouts, output limits).
"""

from __future__ import annotations

import enum
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field, SecretStr

from toolbench.exceptions import ConfigError


class ProviderKind(str, enum.Enum):
    """Supported LLM providers."""

    OPENAI = "openai"
    SAMBANOVA = "sambanova"
    GEMINI = "gemini"


@dataclass(frozen=True)
class ProviderPreset:
    """Built-in defaults for one provider."""

    base_url: str
    model_name: str
    api_key_env: str
    display_name: str


PROVIDER_PRESETS: dict[ProviderKind, ProviderPreset] = {
    ProviderKind.OPENAI: ProviderPreset(
        base_url="https://api.openai.com/v1/chat/completions",
        model_name="gpt-4-turbo",
        api_key_env="OPENAI_API_KEY",
        display_name="OpenAI",
    ),
    ProviderKind.SAMBANOVA: ProviderPreset(
        base_url="https://api.sambanova.ai/v1/chat/completions",
        model_name="Meta-Llama-3.2-1B-Instruct",
        api_key_env="SAMBANOVA_API_KEY",
        display_name="Sambanova",
    ),
    ProviderKind.GEMINI: ProviderPreset(
        base_url="https://generativelanguage.googleapis.com/v1beta/models",
        model_name="gemini-2.0-flash",
        api_key_env="GEMINI_API_KEY",
        display_name="Google Gemini",
    ),
}


class ProviderConfig(BaseModel):
    """Connection settings for one provider.

    Immutable once loaded. The API key is kept as a SecretStr so it never
    shows up in reprs or logs.

    Example::

        config = ProviderConfig.from_env("gemini")
        config.model_name  # "gemini-2.0-flash"
    """

    model_config = {"frozen": True}

    kind: ProviderKind
    base_url: str
    model_name: str
    api_key: SecretStr = SecretStr("")

    @property
    def preset(self) -> ProviderPreset:
        return PROVIDER_PRESETS[self.kind]

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key.get_secret_value().strip())

    @classmethod
    def from_preset(
        cls,
        kind: ProviderKind | str,
        *,
        api_key: str = "",
        base_url: str | None = None,
        model_name: str | None = None,
    ) -> ProviderConfig:
        """Build a config from the built-in preset for *kind*.

        Raises:
            ConfigError: If *kind* is not a supported provider.
        """
        kind = parse_provider_kind(kind)
        preset = PROVIDER_PRESETS[kind]
        return cls(
            kind=kind,
            base_url=base_url or preset.base_url,
            model_name=model_name or preset.model_name,
            api_key=SecretStr(api_key),
        )

    @classmethod
    def from_env(
        cls,
        kind: ProviderKind | str,
        env: Mapping[str, str] | None = None,
    ) -> ProviderConfig:
        """Build a config from the preset plus environment variables.

        Reads the provider's API key variable (e.g. ``OPENAI_API_KEY``)
        and optional ``TOOLBENCH_<KIND>_BASE_URL`` /
        ``TOOLBENCH_<KIND>_MODEL`` overrides. A missing key is not an
        error here: the provider client refuses to send without one.
        """
        env = os.environ if env is None else env
        kind = parse_provider_kind(kind)
        preset = PROVIDER_PRESETS[kind]
        prefix = f"TOOLBENCH_{kind.value.upper()}"
        return cls.from_preset(
            kind,
            api_key=env.get(preset.api_key_env, ""),
            base_url=env.get(f"{prefix}_BASE_URL") or None,
            model_name=env.get(f"{prefix}_MODEL") or None,
        )


def parse_provider_kind(value: ProviderKind | str) -> ProviderKind:
    """Resolve a provider identifier, accepting enum values or names."""
    if isinstance(value, ProviderKind):
        return value
    try:
        return ProviderKind(str(value).strip().lower())
    except ValueError:
        valid = ", ".join(k.value for k in ProviderKind)
        raise ConfigError(
            f"Unknown provider '{value}'. Expected one of: {valid}"
        ) from None


_SETTINGS_ENV: dict[str, str] = {
    "db_path": "TOOLBENCH_DB",
    "request_timeout": "TOOLBENCH_REQUEST_TIMEOUT",
    "command_timeout": "TOOLBENCH_COMMAND_TIMEOUT",
    "search_timeout": "TOOLBENCH_SEARCH_TIMEOUT",
    "output_limit": "TOOLBENCH_OUTPUT_LIMIT",
    "max_attempts": "TOOLBENCH_MAX_ATTEMPTS",
    "search_url": "TOOLBENCH_SEARCH_URL",
    "workdir": "TOOLBENCH_WORKDIR",
}


class BenchSettings(BaseModel):
    """Run-wide settings.

    Attributes:
        db_path: SQLite database path, or ":memory:".
        request_timeout: Provider HTTP timeout in seconds.
        command_timeout: Shell command timeout in seconds.
        search_timeout: Web search HTTP timeout in seconds.
        output_limit: Maximum characters of tool output kept.
        max_attempts: Provider call attempts per step (1 = no retry).
        search_url: Instant-answer search endpoint.
        workdir: Working directory for commands. None = fresh temp dir.
        temperature: Sampling temperature for OpenAI-compatible providers.
        top_p: Nucleus sampling for OpenAI-compatible providers.
    """

    db_path: str = "chat_sessions.db"
    request_timeout: float = Field(default=90.0, gt=0)
    command_timeout: float = Field(default=10.0, gt=0)
    search_timeout: float = Field(default=15.0, gt=0)
    output_limit: int = Field(default=4096, gt=0)
    max_attempts: int = Field(default=1, ge=1)
    search_url: str = "https://api.duckduckgo.com/"
    workdir: Optional[str] = None
    temperature: float = 0.1
    top_p: float = 0.1

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None, **overrides: object) -> BenchSettings:
        """Load settings from ``TOOLBENCH_*`` variables.

        Explicit keyword overrides win over the environment.

        Raises:
            ConfigError: If a variable cannot be parsed.
        """
        env = os.environ if env is None else env
        values: dict[str, object] = {}
        for field_name, var in _SETTINGS_ENV.items():
            raw = env.get(var)
            if raw:
                values[field_name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return cls(**values)
        except ValueError as exc:
            raise ConfigError(f"Invalid toolbench settings: {exc}") from exc
