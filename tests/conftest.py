"""
Pytest configuration and fixtures for cchooked tests.

This module provides shared fixtures used across unit, integration,
and security tests.
"""

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from cchooked.context import Context, HookEnvironment
from cchooked.schema import HookInput, ToolInput


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def environment(temp_dir: Path) -> HookEnvironment:
    """An environment pinned to temp_dir with a fixed branch (no git calls)."""
    return HookEnvironment(
        workspace_root=str(temp_dir),
        branch_override="main",
        home=str(temp_dir / "home"),
    )


@pytest.fixture
def bash_input() -> HookInput:
    """A Bash tool call running npm install."""
    return HookInput(
        tool_name="Bash",
        tool_input=ToolInput(command="npm install express"),
    )


@pytest.fixture
def edit_input() -> HookInput:
    """An Edit tool call on a Python file."""
    return HookInput(
        tool_name="Edit",
        tool_input=ToolInput(file_path="/p/src/main.py"),
    )


@pytest.fixture
def sample_context() -> Context:
    """A fully populated context."""
    return Context(
        command="npm test",
        file_path="/p/src/main.py",
        file_dir="/p/src",
        tool_name="Bash",
        branch="main",
        workspace_root="/p",
    )


@pytest.fixture
def sample_config_toml() -> str:
    """A rules file with one rule of each action."""
    return r"""
[rules.no-npm]
event = "PreToolUse"
matcher = "Bash"
action = "block"
message = "use bun instead of: ${command}"
priority = 10
when.command = "^npm\\s"

[rules.npx-to-bunx]
event = "PreToolUse"
matcher = "Bash"
action = "transform"
when.command = ["^npx\\s"]
transform.command = ["^npx", "bunx"]

[rules.format-python]
event = "PostToolUse"
matcher = "Edit|Write"
action = "run"
command = "true ${file_path}"
on_error = "fail"
when.file_path = "\\.py$"

[rules.audit]
event = "PreToolUse"
matcher = ".*"
action = "log"
priority = -10
log_file = "~/.claude/audit.log"
log_format = "json"
"""
