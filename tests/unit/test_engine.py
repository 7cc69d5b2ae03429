"""
Unit tests for the Rule Engine.

Tests cover:
- Event and matcher filtering
- AND across condition categories, OR within
- Priority order and first-match-wins
- Lazy context construction (branch detection only when needed)
"""

from unittest.mock import patch

import pytest

from cchooked.context import Context, HookEnvironment
from cchooked.rules import RuleEngine
from cchooked.rules.compiler import BlockAction
from cchooked.schema import (
    ActionType,
    EventType,
    HookInput,
    HooksConfig,
    RuleConfig,
    ToolInput,
    WhenConfig,
)

PRE = EventType.PRE_TOOL_USE
POST = EventType.POST_TOOL_USE


def make_rule(**overrides) -> RuleConfig:
    fields = {"event": "PreToolUse", "matcher": "Bash", "action": "block"}
    fields.update(overrides)
    return RuleConfig(**fields)


def make_engine(rules: dict[str, RuleConfig], branch: str | None = "main") -> RuleEngine:
    env = HookEnvironment(workspace_root="/p", branch_override=branch)
    return RuleEngine.from_config(HooksConfig(rules=rules), env)


def bash(command: str) -> HookInput:
    return HookInput(tool_name="Bash", tool_input=ToolInput(command=command))


def tool(name: str, file_path: str | None = None, command: str | None = None) -> HookInput:
    return HookInput(tool_name=name, tool_input=ToolInput(command=command, file_path=file_path))


# =============================================================================
# Basic Matching
# =============================================================================


class TestBasicMatching:
    """Tests for event and matcher filtering."""

    def test_no_rules(self) -> None:
        assert make_engine({}).evaluate(PRE, bash("ls")) is None

    def test_match_returns_decision_and_context(self) -> None:
        engine = make_engine({"no-npm": make_rule(message="use bun")})
        result = engine.evaluate(PRE, bash("npm install"))
        assert result is not None
        match, context = result
        assert match.rule_name == "no-npm"
        assert match.kind == ActionType.BLOCK
        assert match.action == BlockAction(message="use bun")
        assert isinstance(context, Context)
        assert context.command == "npm install"
        assert context.branch == "main"
        assert context.workspace_root == "/p"

    def test_event_mismatch(self) -> None:
        engine = make_engine({"post": make_rule(event="PostToolUse")})
        assert engine.evaluate(PRE, bash("ls")) is None
        assert engine.evaluate(POST, bash("ls")) is not None

    def test_matcher_regex(self) -> None:
        engine = make_engine({"edits": make_rule(matcher="Edit|Write")})
        assert engine.evaluate(PRE, tool("Edit")) is not None
        assert engine.evaluate(PRE, tool("Write")) is not None
        assert engine.evaluate(PRE, tool("Bash")) is None

    def test_matcher_unanchored(self) -> None:
        engine = make_engine({"mcp": make_rule(matcher="^mcp__")})
        assert engine.evaluate(PRE, tool("mcp__github__create_issue")) is not None
        assert engine.evaluate(PRE, tool("Read")) is None


# =============================================================================
# Conditions
# =============================================================================


class TestConditions:
    """Tests for when filters."""

    def test_command_condition(self) -> None:
        engine = make_engine({"r": make_rule(when=WhenConfig(command="^npm\\s"))})
        assert engine.evaluate(PRE, bash("npm install express")) is not None
        assert engine.evaluate(PRE, bash("bun install")) is None

    def test_command_condition_without_command(self) -> None:
        """Absent command is matched as ""."""
        engine = make_engine({
            "needs-cmd": make_rule(matcher=".*", when=WhenConfig(command=".")),
            "empty-ok": make_rule(matcher=".*", when=WhenConfig(command="^$")),
        })
        result = engine.evaluate(PRE, tool("Edit", file_path="/a.py"))
        assert result is not None
        assert result[0].rule_name == "empty-ok"

    def test_command_or_logic(self) -> None:
        engine = make_engine({"r": make_rule(when=WhenConfig(command=["^npm\\s", "^yarn\\s"]))})
        assert engine.evaluate(PRE, bash("npm i")) is not None
        assert engine.evaluate(PRE, bash("yarn add")) is not None
        assert engine.evaluate(PRE, bash("pnpm i")) is None

    def test_file_path_or_logic(self) -> None:
        engine = make_engine({
            "r": make_rule(matcher="Edit", when=WhenConfig(file_path=["\\.env$", "secrets/"])),
        })
        assert engine.evaluate(PRE, tool("Edit", file_path="/p/.env")) is not None
        assert engine.evaluate(PRE, tool("Edit", file_path="/p/secrets/key")) is not None
        assert engine.evaluate(PRE, tool("Edit", file_path="/p/main.py")) is None

    def test_command_and_file_path_and_logic(self) -> None:
        engine = make_engine({
            "r": make_rule(when=WhenConfig(command="^rm\\s", file_path="^/p/")),
        })
        assert engine.evaluate(PRE, tool("Bash", command="rm x", file_path="/p/x")) is not None
        assert engine.evaluate(PRE, tool("Bash", command="rm x", file_path="/q/x")) is None
        assert engine.evaluate(PRE, tool("Bash", command="ls", file_path="/p/x")) is None

    def test_all_three_categories(self) -> None:
        rules = {
            "r": make_rule(when=WhenConfig(command="push", file_path="x", branch="^main$")),
        }
        matching = tool("Bash", command="git push", file_path="x")
        assert make_engine(rules, branch="main").evaluate(PRE, matching) is not None
        assert make_engine(rules, branch="dev").evaluate(PRE, matching) is None

    @pytest.mark.parametrize(
        ("branch", "matches"),
        [
            ("feature/new-feature", True),
            ("fix/bug", True),
            ("hotfix/urgent-fix", False),
            ("main", False),
        ],
    )
    def test_branch_or_logic(self, branch: str, matches: bool) -> None:
        rules = {"r": make_rule(when=WhenConfig(branch=["^feature/", "^fix/"]))}
        result = make_engine(rules, branch=branch).evaluate(PRE, bash("ls"))
        assert (result is not None) is matches

    def test_subcommand_rule_matches_compound_command(self) -> None:
        when = WhenConfig(command="^npm\\s", match_subcommands=True)
        engine = make_engine({"no-npm": make_rule(when=when, message="use bun")})

        result = engine.evaluate(PRE, bash("cd app && npm install"))
        assert result is not None
        assert result[0].rule_name == "no-npm"
        assert result[1].command == "cd app && npm install"

        assert engine.evaluate(PRE, bash("curl http://x/#frag && npm install")) is not None
        assert engine.evaluate(PRE, bash("cd app && bun install")) is None

    def test_undeterminable_branch_is_empty(self) -> None:
        rules = {"r": make_rule(when=WhenConfig(branch="^$"))}
        engine = make_engine(rules, branch=None)
        with patch("cchooked.context.subprocess.run", side_effect=FileNotFoundError("git")):
            assert engine.evaluate(PRE, bash("ls")) is not None


# =============================================================================
# Priority and First Match
# =============================================================================


class TestPriority:
    """Tests for priority ordering."""

    def test_higher_priority_wins(self) -> None:
        engine = make_engine({
            "low": make_rule(priority=1, message="low"),
            "high": make_rule(priority=10, message="high"),
        })
        result = engine.evaluate(PRE, bash("npm install"))
        assert result is not None
        assert result[0].rule_name == "high"
        assert result[0].priority == 10

    def test_first_match_not_best_match(self) -> None:
        """A broad high-priority rule shadows a specific low-priority one."""
        engine = make_engine({
            "specific": make_rule(when=WhenConfig(command="^npm install$")),
            "broad": make_rule(priority=5),
        })
        result = engine.evaluate(PRE, bash("npm install"))
        assert result is not None
        assert result[0].rule_name == "broad"

    def test_falls_through_to_lower_priority(self) -> None:
        engine = make_engine({
            "high": make_rule(priority=10, when=WhenConfig(command="^rm")),
            "low": make_rule(priority=1),
        })
        result = engine.evaluate(PRE, bash("ls"))
        assert result is not None
        assert result[0].rule_name == "low"

    def test_equal_priority_uses_file_order(self) -> None:
        engine = make_engine({"a": make_rule(), "b": make_rule()})
        result = engine.evaluate(PRE, bash("ls"))
        assert result is not None
        assert result[0].rule_name == "a"


# =============================================================================
# Lazy Context
# =============================================================================


class TestLazyContext:
    """Branch detection runs only when needed, at most once."""

    def test_no_context_when_nothing_matches(self) -> None:
        engine = make_engine({"r": make_rule(when=WhenConfig(command="^npm"))})
        with patch("cchooked.context.detect_branch") as detect:
            assert engine.evaluate(PRE, bash("ls")) is None
        detect.assert_not_called()

    def test_context_built_once_for_many_branch_rules(self) -> None:
        engine = make_engine({
            "a": make_rule(priority=3, when=WhenConfig(branch="^release/")),
            "b": make_rule(priority=2, when=WhenConfig(branch="^hotfix/")),
            "c": make_rule(priority=1, when=WhenConfig(branch="^main$")),
        })
        with patch("cchooked.context.detect_branch", return_value="main") as detect:
            result = engine.evaluate(PRE, bash("ls"))
        assert result is not None
        assert result[0].rule_name == "c"
        detect.assert_called_once()

    def test_context_built_after_match_without_branch_filter(self) -> None:
        engine = make_engine({"r": make_rule()})
        with patch("cchooked.context.detect_branch", return_value="dev") as detect:
            result = engine.evaluate(PRE, bash("ls"))
        assert result is not None
        assert result[1].branch == "dev"
        detect.assert_called_once()

    def test_branch_not_checked_when_cheaper_filter_fails(self) -> None:
        engine = make_engine({
            "r": make_rule(when=WhenConfig(command="^npm", branch="main")),
        })
        with patch("cchooked.context.detect_branch") as detect:
            assert engine.evaluate(PRE, bash("ls")) is None
        detect.assert_not_called()
