"""Tests for ToolExecutor: shell commands, timeouts, output bounds, search."""

from __future__ import annotations

import os
import time

import httpx
import pytest

from tests.conftest import ddg_response, search_transport
from toolbench.models.config import BenchSettings
from toolbench.toolkit.executor import ToolExecutor, truncate_output
from toolbench.toolkit.models import RunCommand, Search, ToolKind
from toolbench.toolkit.search import WebSearch

posix_only = pytest.mark.skipif(os.name != "posix", reason="requires a POSIX shell")


@pytest.fixture
def executor(tmp_path):
    ex = ToolExecutor(
        command_timeout=5,
        workdir=str(tmp_path),
        search=WebSearch(transport=search_transport()),
    )
    yield ex
    ex.close()


class TestTruncateOutput:
    def test_short_text_untouched(self):
        assert truncate_output("abc", 10) == ("abc", False)

    def test_long_text_cut(self):
        assert truncate_output("abcdefghij", 4) == ("abcd", True)

    def test_non_positive_limit_disables(self):
        assert truncate_output("abc", 0) == ("abc", False)


# ---------------------------------------------------------------------------
# Shell commands
# ---------------------------------------------------------------------------


@posix_only
class TestRunCommand:
    def test_echo(self, executor):
        result = executor.execute(RunCommand("echo hi"))
        assert result.kind is ToolKind.RUN_COMMAND
        assert result.success
        assert result.exit_code == 0
        assert "hi" in result.output
        assert result.error == ""

    def test_shell_features(self, executor):
        result = executor.execute(RunCommand("printf 'a\\nb\\nc\\n' | wc -l"))
        assert result.success
        assert result.output.strip() == "3"

    def test_stderr_is_captured(self, executor):
        result = executor.execute(RunCommand("echo oops 1>&2"))
        assert result.success
        assert "oops" in result.output

    def test_non_zero_exit(self, executor):
        result = executor.execute(RunCommand("echo partial; exit 3"))
        assert not result.success
        assert result.exit_code == 3
        assert "status 3" in result.error
        assert "partial" in result.output

    def test_unknown_command(self, executor):
        result = executor.execute(RunCommand("definitely-not-a-real-command-xyz"))
        assert not result.success
        assert result.exit_code == 127

    def test_runs_in_workdir(self, executor, tmp_path):
        result = executor.execute(RunCommand("pwd"))
        assert os.path.realpath(result.output.strip()) == os.path.realpath(str(tmp_path))

    def test_timeout_returns_within_bound(self, tmp_path):
        with ToolExecutor(command_timeout=0.5, workdir=str(tmp_path)) as ex:
            started = time.monotonic()
            result = ex.execute(RunCommand("sleep 5"))
            elapsed = time.monotonic() - started

        assert not result.success
        assert result.exit_code is None
        assert "timed out" in result.error
        assert elapsed < 0.5 + 3

    def test_timeout_kills_background_children(self, tmp_path):
        with ToolExecutor(command_timeout=0.5, workdir=str(tmp_path)) as ex:
            started = time.monotonic()
            result = ex.execute(RunCommand("sleep 5 & sleep 5; wait"))
            elapsed = time.monotonic() - started

        assert not result.success
        assert elapsed < 0.5 + 3

    def test_output_is_truncated(self, tmp_path):
        with ToolExecutor(output_limit=10, workdir=str(tmp_path)) as ex:
            result = ex.execute(RunCommand("printf '%s' 0123456789ABCDEF"))
        assert result.success
        assert result.output == "0123456789"
        assert result.truncated

    def test_spawn_failure_is_a_result(self, tmp_path):
        missing = str(tmp_path / "does-not-exist")
        with ToolExecutor(workdir=missing) as ex:
            result = ex.execute(RunCommand("echo hi"))
        assert not result.success
        assert result.exit_code is None
        assert "Failed to start command" in result.error

    def test_api_keys_not_inherited(self, executor, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-secret")
        monkeypatch.setenv("TOOLBENCH_MARKER", "visible")
        result = executor.execute(
            RunCommand('echo "${OPENAI_API_KEY:-unset} $TOOLBENCH_MARKER"')
        )
        assert result.output.strip() == "unset visible"

    def test_stdin_is_closed(self, executor):
        result = executor.execute(RunCommand("cat"))
        assert result.success
        assert result.output == ""


class TestWorkdir:
    def test_temp_workdir_created_and_removed(self):
        ex = ToolExecutor(search=WebSearch(transport=search_transport()))
        workdir = ex.workdir
        assert os.path.isdir(workdir)
        assert ex.workdir == workdir
        ex.close()
        assert not os.path.exists(workdir)

    def test_configured_workdir_kept(self, tmp_path):
        ex = ToolExecutor(workdir=str(tmp_path), search=WebSearch(transport=search_transport()))
        ex.close()
        assert tmp_path.exists()

    @pytest.mark.parametrize("kwargs", [{"output_limit": 0}, {"command_timeout": 0}])
    def test_non_positive_limits_rejected(self, kwargs):
        with pytest.raises(ValueError):
            ToolExecutor(**kwargs)

    def test_from_settings(self, tmp_path):
        settings = BenchSettings(command_timeout=3, output_limit=100, workdir=str(tmp_path))
        with ToolExecutor.from_settings(settings) as ex:
            assert ex.workdir == str(tmp_path)


# ---------------------------------------------------------------------------
# Web search
# ---------------------------------------------------------------------------


class TestSearch:
    def _executor(self, tmp_path, transport) -> ToolExecutor:
        return ToolExecutor(workdir=str(tmp_path), search=WebSearch(transport=transport))

    def test_snippets_listed(self, tmp_path):
        payload = ddg_response(
            Heading="Rust",
            AbstractText="Rust is a systems programming language.",
            AbstractURL="https://en.wikipedia.org/wiki/Rust_(programming_language)",
        )
        with self._executor(tmp_path, search_transport(payload)) as ex:
            result = ex.execute(Search("rust programming"))

        assert result.kind is ToolKind.SEARCH
        assert result.success
        assert result.output.startswith("- Rust: Rust is a systems programming language.")
        assert result.exit_code is None

    def test_no_results(self, tmp_path):
        with self._executor(tmp_path, search_transport(ddg_response())) as ex:
            result = ex.execute(Search("zzzz"))
        assert result.success
        assert result.output == "No results found."

    def test_http_failure_is_a_result(self, tmp_path):
        with self._executor(tmp_path, search_transport(status=503)) as ex:
            result = ex.execute(Search("anything"))
        assert not result.success
        assert "HTTP 503" in result.error

    def test_network_failure_is_a_result(self, tmp_path):
        def handler(request):
            raise httpx.ConnectError("unreachable")

        with self._executor(tmp_path, httpx.MockTransport(handler)) as ex:
            result = ex.execute(Search("anything"))
        assert not result.success
        assert "ConnectError" in result.error

    def test_non_string_abstract_is_handled(self, tmp_path):
        with self._executor(tmp_path, search_transport({"AbstractText": 42})) as ex:
            result = ex.execute(Search("rust programming"))
        assert result.success
        assert result.output == "No results found."

    def test_unexpected_client_error_is_a_result(self, tmp_path):
        class BrokenSearch(WebSearch):
            def query(self, text):
                raise RuntimeError("decoder exploded")

        with ToolExecutor(workdir=str(tmp_path), search=BrokenSearch()) as ex:
            result = ex.execute(Search("anything"))
        assert not result.success
        assert "RuntimeError: decoder exploded" in result.error


def test_unknown_directive_type(executor):
    with pytest.raises(TypeError):
        executor.execute("[RUN_COMMAND ls]")
