"""Domain models for toolbench."""

from toolbench.models.config import (
    PROVIDER_PRESETS,
    BenchSettings,
    ProviderConfig,
    ProviderKind,
    ProviderPreset,
    parse_provider_kind,
)
from toolbench.models.message import AgentReply, Conversation, Message, Role
from toolbench.models.session import Session, SessionSummary

__all__ = [
    "PROVIDER_PRESETS",
    "BenchSettings",
    "ProviderConfig",
    "ProviderKind",
    "ProviderPreset",
    "parse_provider_kind",
    "AgentReply",
    "Conversation",
    "Message",
    "Role",
    "Session",
    "SessionSummary",
]
