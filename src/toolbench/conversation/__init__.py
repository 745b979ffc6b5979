"""Benchmarking conversation loop.

Provides ConversationLoop, its configuration and result types, and the
run context that carries provider, client, executor and store.
"""

from toolbench.conversation.config import LoopConfig, LoopState, TurnStatus
from toolbench.conversation.loop import (
    ConversationLoop,
    RunContext,
    open_run_context,
    run_benchmark,
)
from toolbench.conversation.models import BenchmarkResult, TurnResult

__all__ = [
    "LoopConfig",
    "LoopState",
    "TurnStatus",
    "ConversationLoop",
    "RunContext",
    "open_run_context",
    "run_benchmark",
    "BenchmarkResult",
    "TurnResult",
]
