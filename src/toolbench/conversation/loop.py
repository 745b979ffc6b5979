"""Core conversation loop for benchmarking providers.

Provides the ConversationLoop class that runs one turn at a time:
send the prompt to the provider, scan the reply for a tool directive,
execute it, feed the result back for one follow-up reply, and record the
whole turn.

Everything a run needs (provider config, HTTP client, tool executor,
session store) travels in an explicit RunContext; open_run_context()
acquires and releases those resources for one run.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

import tenacity

from toolbench.conversation.config import LoopConfig, LoopState, TurnStatus
from toolbench.conversation.models import BenchmarkResult, TurnResult
from toolbench.exceptions import ConfigError, StoreError
from toolbench.llm.client import ProviderClient
from toolbench.llm.errors import (
    MissingCredentialError,
    ProviderError,
    ProviderHTTPStatusError,
    ProviderNetworkError,
)
from toolbench.models.message import Conversation, Message, Role
from toolbench.models.session import Session, utcnow
from toolbench.prompts import build_system_prompt, format_tool_message
from toolbench.storage.store import SessionStore
from toolbench.toolkit.directives import parse_directive
from toolbench.toolkit.executor import ToolExecutor
from toolbench.toolkit.models import ToolKind

if TYPE_CHECKING:
    import httpx

    from toolbench.models.config import BenchSettings, ProviderConfig
    from toolbench.models.message import AgentReply
    from toolbench.toolkit.models import ToolDirective

logger = logging.getLogger(__name__)


def _is_retryable(exc: BaseException) -> bool:
    """Check if a provider error is worth another attempt.

    Retryable: connection errors, timeouts, 429, 5xx.
    Not retryable: missing credentials, other 4xx, malformed bodies.
    """
    if isinstance(exc, ProviderNetworkError):
        return True
    if isinstance(exc, ProviderHTTPStatusError):
        return exc.retryable
    return False


@dataclass
class RunContext:
    """Resources for one benchmarking run.

    Attributes:
        provider: Provider to benchmark.
        client: HTTP client used for provider calls.
        executor: Tool executor for directives.
        store: Session store, or None to run without persistence.
        settings: Run-wide settings the resources were built from.
    """

    provider: ProviderConfig
    client: ProviderClient
    executor: ToolExecutor
    store: SessionStore | None
    settings: BenchSettings


@contextmanager
def open_run_context(
    provider: ProviderConfig,
    settings: BenchSettings,
    *,
    store: SessionStore | None = None,
    persist: bool = True,
    transport: httpx.BaseTransport | None = None,
) -> Iterator[RunContext]:
    """Acquire the client, executor and store for a run; release them after.

    A store passed in is borrowed and left open. Otherwise one is opened at
    ``settings.db_path``; if that fails the run continues without
    persistence.
    """
    owned_store: SessionStore | None = None
    if store is None and persist:
        try:
            owned_store = store = SessionStore.open(settings.db_path)
        except StoreError as exc:
            logger.warning("Session store unavailable, continuing without it: %s", exc)

    client = ProviderClient.from_settings(settings, transport=transport)
    executor = ToolExecutor.from_settings(settings)
    try:
        yield RunContext(
            provider=provider,
            client=client,
            executor=executor,
            store=store,
            settings=settings,
        )
    finally:
        executor.close()
        client.close()
        if owned_store is not None:
            owned_store.close()


class ConversationLoop:
    """Runs benchmarking turns against one provider.

    Each turn goes through the LoopState machine. At most one tool
    round-trip happens per turn; a directive in the follow-up reply is
    recorded but not executed. A turn is appended to the conversation and
    the store only once it completes, so a failed or aborted turn leaves
    the session exactly as it was.

    Usage::

        with open_run_context(provider, settings) as ctx:
            with ConversationLoop(ctx) as loop:
                result = loop.run_turn("List the files here")
                print(result.final_text)
    """

    def __init__(
        self,
        context: RunContext,
        config: LoopConfig | None = None,
        *,
        session: Session | None = None,
    ) -> None:
        self._ctx = context
        self._config = config or LoopConfig(max_attempts=context.settings.max_attempts)
        self._session = session
        self._state = LoopState.AWAITING_USER_PROMPT

    @classmethod
    def resume(
        cls,
        context: RunContext,
        session_id: str,
        config: LoopConfig | None = None,
    ) -> ConversationLoop:
        """Continue a stored session.

        Raises:
            ConfigError: If the run context has no store.
            SessionNotFoundError: If the session does not exist.
        """
        if context.store is None:
            raise ConfigError("Cannot resume a session without a session store")
        session = context.store.load_session(session_id)
        if session.provider != context.provider.kind.value:
            logger.warning(
                "Resuming %s session %s with provider %s",
                session.provider,
                session_id,
                context.provider.kind.value,
            )
        return cls(context, config, session=session)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> LoopState:
        """Return the current loop state."""
        return self._state

    @property
    def config(self) -> LoopConfig:
        return self._config

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def conversation(self) -> Conversation:
        return self.start().conversation

    def start(self) -> Session:
        """Create the session (seed message included) if not yet created.

        Raises:
            MissingCredentialError: If the provider has no API key.
        """
        provider = self._ctx.provider
        if not provider.has_credentials:
            raise MissingCredentialError(provider.kind.value, provider.preset.api_key_env)
        if self._session is not None:
            return self._session

        session_id = str(uuid.uuid4())
        seed = Message.system(self._system_prompt())
        session = Session(
            id=session_id,
            provider=provider.kind.value,
            model=provider.model_name,
            conversation=Conversation([seed]),
        )
        if self._ctx.store is not None:
            try:
                self._ctx.store.create_session(
                    session.provider,
                    model=session.model,
                    session_id=session_id,
                    created_at=session.created_at,
                )
            except StoreError as exc:
                logger.warning("Could not store session %s: %s", session_id, exc)
        self._session = session
        self._persist(*session.conversation)
        logger.info("Started session %s with %s", session_id, provider.model_name)
        return session

    def run_turn(self, prompt: str) -> TurnResult:
        """Run one benchmarking turn.

        Args:
            prompt: The user prompt.

        Returns:
            TurnResult. Provider failures and user aborts are reported in
            the result rather than raised.

        Raises:
            MissingCredentialError: Configuration problem; the session
                cannot continue.
            ValueError: If the prompt is blank.
        """
        if not prompt.strip():
            raise ValueError("Prompt must not be empty")
        session = self.start()

        staged: list[Message] = [Message.user(prompt)]
        reply: AgentReply | None = None
        directive: ToolDirective | None = None
        tool_result = None
        final_reply: AgentReply | None = None

        try:
            self._set_state(LoopState.ADAPTER_CALL)
            reply = self._call_provider(staged)

            self._set_state(LoopState.PARSING_REPLY)
            directive = self._parse(reply)
            reply = reply.with_directive(directive)
            staged.append(reply.to_message())

            if directive is not None:
                self._set_state(LoopState.TOOL_EXECUTION)
                if self._config.on_tool_call is not None:
                    self._config.on_tool_call(directive)
                tool_result = self._ctx.executor.execute(directive)
                if self._config.on_tool_result is not None:
                    self._config.on_tool_result(directive, tool_result)
                staged.append(
                    Message(
                        role=Role.TOOL,
                        content=format_tool_message(directive, tool_result),
                        tool_result=tool_result,
                        metadata={"directive": directive.to_marker()},
                    )
                )

                self._set_state(LoopState.FOLLOWUP_ADAPTER_CALL)
                final_reply = self._call_provider(staged)
                staged.append(self._followup_message(final_reply))
        except MissingCredentialError:
            self._set_state(LoopState.AWAITING_USER_PROMPT)
            raise
        except ProviderError as exc:
            logger.warning("Turn failed for session %s: %s", session.id, exc)
            self._record_failure(prompt, exc)
            self._set_state(LoopState.AWAITING_USER_PROMPT)
            return TurnResult(
                status=TurnStatus.FAILED,
                prompt=prompt,
                reply=reply,
                directive=directive,
                tool_result=tool_result,
                error=exc,
            )
        except KeyboardInterrupt:
            logger.info("Turn aborted by user in session %s", session.id)
            self._set_state(LoopState.AWAITING_USER_PROMPT)
            return TurnResult(
                status=TurnStatus.ABORTED,
                prompt=prompt,
                reply=reply,
                directive=directive,
                tool_result=tool_result,
            )

        self._set_state(LoopState.TURN_COMPLETE)
        appended = session.conversation.extend(staged)
        stored = self._persist(*appended)
        self._set_state(LoopState.AWAITING_USER_PROMPT)
        return TurnResult(
            status=TurnStatus.COMPLETED,
            prompt=prompt,
            messages=tuple(appended),
            reply=reply,
            directive=directive,
            tool_result=tool_result,
            final_reply=final_reply,
            stored=stored,
        )

    def close(self) -> None:
        """End the session."""
        if self._session is None or self._session.ended:
            return
        self._session.ended_at = utcnow()
        if self._ctx.store is not None:
            try:
                self._ctx.store.end_session(self._session.id)
            except StoreError as exc:
                logger.warning("Could not mark session %s ended: %s", self._session.id, exc)

    def __enter__(self) -> ConversationLoop:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _set_state(self, state: LoopState) -> None:
        self._state = state
        if self._config.on_state is not None:
            self._config.on_state(state)

    def _system_prompt(self) -> str:
        if self._config.system_prompt is not None:
            return self._config.system_prompt
        return build_system_prompt(
            self._ctx.provider.model_name,
            tools_enabled=self._config.tools_enabled,
            search_enabled=self._config.search_enabled,
        )

    def _directive_kinds(self) -> frozenset[ToolKind]:
        if not self._config.tools_enabled:
            return frozenset()
        if self._config.search_enabled:
            return frozenset(ToolKind)
        return frozenset({ToolKind.RUN_COMMAND})

    def _parse(self, reply: AgentReply) -> ToolDirective | None:
        return parse_directive(reply, kinds=self._directive_kinds())

    def _followup_message(self, final_reply: AgentReply) -> Message:
        message = final_reply.to_message()
        chained = self._parse(final_reply)
        if chained is None:
            return message
        logger.info("Ignoring chained directive %s", chained.to_marker())
        return replace(
            message,
            metadata={**message.metadata, "ignored_directive": chained.to_marker()},
        )

    def _call_provider(self, staged: Sequence[Message]) -> AgentReply:
        """Call the provider with the conversation plus the staged turn."""
        history = self._session.conversation.preview(staged)
        attempts = max(1, self._config.max_attempts)
        if attempts == 1:
            return self._ctx.client.send(self._ctx.provider, history)

        backoff = self._config.retry_backoff
        retryer = tenacity.Retrying(
            retry=tenacity.retry_if_exception(_is_retryable),
            wait=(
                tenacity.wait_exponential(multiplier=backoff, min=backoff, max=30)
                + tenacity.wait_random(0, 2 * backoff)
            ),
            stop=tenacity.stop_after_attempt(attempts),
            before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return retryer(self._ctx.client.send, self._ctx.provider, history)

    def _persist(self, *messages: Message) -> bool:
        store = self._ctx.store
        if store is None or self._session is None:
            return False
        try:
            store.append_turn(self._session.id, *messages)
        except StoreError as exc:
            logger.warning("Could not store turn for session %s: %s", self._session.id, exc)
            return False
        return True

    def _record_failure(self, prompt: str, error: ProviderError) -> None:
        store = self._ctx.store
        if store is None or self._session is None:
            return
        try:
            store.record_failure(self._session.id, prompt, error)
        except StoreError as exc:
            logger.warning("Could not record failure for session %s: %s", self._session.id, exc)


def run_benchmark(
    prompt: str,
    providers: Sequence[ProviderConfig],
    settings: BenchSettings,
    *,
    store: SessionStore | None = None,
    config: LoopConfig | None = None,
    transport: httpx.BaseTransport | None = None,
) -> list[BenchmarkResult]:
    """Send the same prompt to every provider, one after another.

    Each provider gets its own run context, conversation and session. A
    provider without credentials is reported and skipped.
    """
    results: list[BenchmarkResult] = []
    for provider in providers:
        with open_run_context(
            provider, settings, store=store, transport=transport
        ) as ctx:
            loop_config = replace(config) if config else LoopConfig(max_attempts=settings.max_attempts)
            loop = ConversationLoop(ctx, loop_config)
            try:
                with loop:
                    turn = loop.run_turn(prompt)
            except MissingCredentialError as exc:
                logger.warning("Skipping %s: %s", provider.kind.value, exc)
                results.append(
                    BenchmarkResult(
                        provider=provider.kind.value,
                        model=provider.model_name,
                        session_id=None,
                        error=str(exc),
                    )
                )
                continue
            results.append(
                BenchmarkResult(
                    provider=provider.kind.value,
                    model=provider.model_name,
                    session_id=loop.session.id if loop.session else None,
                    turn=turn,
                    error=str(turn.error) if turn.error else "",
                )
            )
    return results
