"""Tests for the system prompt and tool result messages."""

from __future__ import annotations

from toolbench.prompts import build_system_prompt, format_tool_message
from toolbench.toolkit.models import RunCommand, Search, ToolKind, ToolResult


class TestSystemPrompt:
    def test_advertises_both_tools(self):
        prompt = build_system_prompt("gpt-4-turbo", year=2026)
        assert "gpt-4-turbo" in prompt
        assert "[RUN_COMMAND <command to run>]" in prompt
        assert "[SEARCH: your query]" in prompt
        assert "Current year: 2026" in prompt

    def test_search_disabled(self):
        prompt = build_system_prompt("gpt-4-turbo", search_enabled=False)
        assert "[RUN_COMMAND" in prompt
        assert "SEARCH" not in prompt

    def test_tools_disabled(self):
        prompt = build_system_prompt("gemini-2.0-flash", tools_enabled=False)
        assert prompt == "You are an AI assistant powered by the gemini-2.0-flash model."


class TestToolMessage:
    def test_command_success(self):
        result = ToolResult(kind=ToolKind.RUN_COMMAND, success=True, output="hi\n", exit_code=0)
        assert format_tool_message(RunCommand("echo hi"), result) == "Command output:\nhi\n"

    def test_command_without_output(self):
        result = ToolResult(kind=ToolKind.RUN_COMMAND, success=True, exit_code=0)
        assert format_tool_message(RunCommand("true"), result) == "Command output:\n(no output)"

    def test_command_non_zero_exit(self):
        result = ToolResult(
            kind=ToolKind.RUN_COMMAND,
            success=False,
            output="ls: cannot access 'x'",
            error="Command exited with status 2",
            exit_code=2,
        )
        text = format_tool_message(RunCommand("ls x"), result)
        assert text.startswith("Command failed (exit status 2). Output:\n")
        assert "cannot access" in text

    def test_command_timeout(self):
        result = ToolResult(
            kind=ToolKind.RUN_COMMAND,
            success=False,
            error="Command timed out after 10s",
        )
        text = format_tool_message(RunCommand("sleep 60"), result)
        assert text == "Command failed: Command timed out after 10s\n(no output)"

    def test_truncation_noted(self):
        result = ToolResult(
            kind=ToolKind.RUN_COMMAND, success=True, output="x" * 10, exit_code=0, truncated=True
        )
        assert format_tool_message(RunCommand("yes"), result).endswith("\n[output truncated]")

    def test_search_success(self):
        result = ToolResult(kind=ToolKind.SEARCH, success=True, output="- Rust is fast.")
        text = format_tool_message(Search("rust"), result)
        assert text == "Web search results for 'rust':\n- Rust is fast."

    def test_search_failure(self):
        result = ToolResult(kind=ToolKind.SEARCH, success=False, error="Search API returned HTTP 503: ")
        text = format_tool_message(Search("rust"), result)
        assert text == "Web search for 'rust' failed: Search API returned HTTP 503: "
