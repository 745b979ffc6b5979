"""ToolExecutor: runs tool directives and returns structured results.

Provides a single ``execute()`` method that dispatches a directive to the
shell or to web search and returns a ``ToolResult``. Tool failures never
raise: timeouts, spawn failures and search errors become
``ToolResult(success=False)`` so the model can react to them.

Commands run through ``sh -c`` with the invoking user's privileges and
full shell expansion, so a model can do anything the user can. The only
isolation is a private working directory, a separate process group that
is killed on timeout, and a child environment without provider API keys.
Do not point this at a machine you care about.
"""

from __future__ import annotations

import logging
import os
import shutil
import signal
import subprocess
import tempfile
import time
from typing import TYPE_CHECKING

from toolbench.exceptions import ToolError
from toolbench.toolkit.models import RunCommand, Search, ToolKind, ToolResult
from toolbench.toolkit.search import DEFAULT_SEARCH_URL, WebSearch

if TYPE_CHECKING:
    from toolbench.models.config import BenchSettings
    from toolbench.toolkit.models import ToolDirective

logger = logging.getLogger(__name__)

# Seconds to wait for pipes to drain after the process group is killed.
_KILL_GRACE_S = 2.0


def truncate_output(text: str, limit: int) -> tuple[str, bool]:
    """Cut *text* to at most *limit* characters.

    Returns:
        Tuple of (text, was_truncated).
    """
    if limit <= 0 or len(text) <= limit:
        return text, False
    return text[:limit], True


def _child_env() -> dict[str, str]:
    """Environment for spawned commands, minus provider credentials."""
    return {k: v for k, v in os.environ.items() if not k.upper().endswith("_API_KEY")}


def _kill_process_group(proc: subprocess.Popen) -> None:
    if os.name == "posix":
        try:
            os.killpg(proc.pid, signal.SIGKILL)
            return
        except (ProcessLookupError, PermissionError):
            pass
    proc.kill()


class ToolExecutor:
    """Dispatches tool directives and returns structured results.

    Usage::

        with ToolExecutor(command_timeout=10) as executor:
            result = executor.execute(RunCommand("echo hi"))
            if result.success:
                print(result.output)
            else:
                print(result.error)
    """

    def __init__(
        self,
        *,
        command_timeout: float = 10.0,
        output_limit: int = 4096,
        workdir: str | None = None,
        search: WebSearch | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            command_timeout: Seconds before a running command is killed.
            output_limit: Maximum characters of output kept per result.
            workdir: Working directory for commands. When None, a private
                temporary directory is created on first use and removed
                by close().
            search: Web search client. Defaults to DuckDuckGo.

        Raises:
            ValueError: If output_limit or command_timeout is not positive.
        """
        if output_limit < 1:
            raise ValueError(f"output_limit must be at least 1, got {output_limit}")
        if command_timeout <= 0:
            raise ValueError(f"command_timeout must be positive, got {command_timeout}")
        self._command_timeout = command_timeout
        self._output_limit = output_limit
        self._configured_workdir = workdir
        self._temp_workdir: str | None = None
        self._search = search or WebSearch(DEFAULT_SEARCH_URL)

    @classmethod
    def from_settings(cls, settings: BenchSettings, *, search: WebSearch | None = None) -> ToolExecutor:
        """Build an executor from run-wide settings."""
        return cls(
            command_timeout=settings.command_timeout,
            output_limit=settings.output_limit,
            workdir=settings.workdir,
            search=search
            or WebSearch(settings.search_url, timeout=settings.search_timeout),
        )

    @property
    def workdir(self) -> str:
        """Directory commands run in."""
        if self._configured_workdir is not None:
            return self._configured_workdir
        if self._temp_workdir is None:
            self._temp_workdir = tempfile.mkdtemp(prefix="toolbench-")
            logger.debug("Created command workdir %s", self._temp_workdir)
        return self._temp_workdir

    def execute(self, directive: ToolDirective) -> ToolResult:
        """Execute a directive.

        Args:
            directive: RunCommand or Search.

        Returns:
            ToolResult with success/failure status and output/error.
        """
        if isinstance(directive, RunCommand):
            return self.run_command(directive.command)
        if isinstance(directive, Search):
            return self.search(directive.query)
        raise TypeError(f"Expected RunCommand or Search, got {type(directive).__name__}")

    # ------------------------------------------------------------------
    # Shell commands
    # ------------------------------------------------------------------

    def run_command(self, command: str) -> ToolResult:
        """Run *command* through the shell with timeout and output cap."""
        started = time.monotonic()
        logger.info("Running command: %s", command)
        try:
            proc = subprocess.Popen(
                command,
                shell=True,
                cwd=self.workdir,
                env=_child_env(),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                start_new_session=True,
            )
        except OSError as exc:
            logger.debug("Command failed to start: %s", exc, exc_info=True)
            return ToolResult(
                kind=ToolKind.RUN_COMMAND,
                success=False,
                error=f"Failed to start command: {type(exc).__name__}: {exc}",
                duration_s=time.monotonic() - started,
            )

        with proc:
            try:
                raw, _ = proc.communicate(timeout=self._command_timeout)
            except subprocess.TimeoutExpired:
                _kill_process_group(proc)
                try:
                    raw, _ = proc.communicate(timeout=_KILL_GRACE_S)
                except subprocess.TimeoutExpired:
                    raw = b""
                output, truncated = self._bound(raw)
                return ToolResult(
                    kind=ToolKind.RUN_COMMAND,
                    success=False,
                    output=output,
                    error=f"Command timed out after {self._command_timeout:g}s",
                    truncated=truncated,
                    duration_s=time.monotonic() - started,
                )
            except BaseException:
                _kill_process_group(proc)
                raise

        output, truncated = self._bound(raw)
        exit_code = proc.returncode
        success = exit_code == 0
        return ToolResult(
            kind=ToolKind.RUN_COMMAND,
            success=success,
            output=output,
            error="" if success else f"Command exited with status {exit_code}",
            exit_code=exit_code,
            truncated=truncated,
            duration_s=time.monotonic() - started,
        )

    def _bound(self, raw: bytes | None) -> tuple[str, bool]:
        text = (raw or b"").decode("utf-8", errors="replace")
        return truncate_output(text, self._output_limit)

    # ------------------------------------------------------------------
    # Web search
    # ------------------------------------------------------------------

    def search(self, query: str) -> ToolResult:
        """Search the web and return the top snippets."""
        started = time.monotonic()
        logger.info("Searching the web for: %s", query)
        try:
            snippets = self._search.query(query)
        except ToolError as exc:
            logger.debug("Search failed: %s", exc)
            return ToolResult(
                kind=ToolKind.SEARCH,
                success=False,
                error=str(exc),
                duration_s=time.monotonic() - started,
            )
        except Exception as exc:
            logger.warning("Search raised unexpectedly: %s", exc, exc_info=True)
            return ToolResult(
                kind=ToolKind.SEARCH,
                success=False,
                error=f"Search failed: {type(exc).__name__}: {exc}",
                duration_s=time.monotonic() - started,
            )

        text = "\n".join(f"- {s}" for s in snippets) if snippets else "No results found."
        output, truncated = truncate_output(text, self._output_limit)
        return ToolResult(
            kind=ToolKind.SEARCH,
            success=True,
            output=output,
            truncated=truncated,
            duration_s=time.monotonic() - started,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the search client and remove the temporary workdir."""
        self._search.close()
        if self._temp_workdir is not None:
            shutil.rmtree(self._temp_workdir, ignore_errors=True)
            self._temp_workdir = None

    def __enter__(self) -> ToolExecutor:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
