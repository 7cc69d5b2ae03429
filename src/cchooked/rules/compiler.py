"""
Rule compiler for cchooked.

Turns user-authored RuleConfig records into CompiledRule objects whose
patterns are all known-valid. Every error a rule can have is raised here,
before any rule is evaluated, so a broken rules file never half-applies.

Compilation order per rule:
    1. event (PreToolUse / PostToolUse)
    2. action (block / transform / run / log)
    3. matcher regex
    4. when.command, when.file_path, when.branch regexes
    5. transform regex
    6. log rules must name a log_file

This module is pure: it never touches the filesystem or runs commands.
"""

import logging
import re
from dataclasses import dataclass
from typing import ClassVar

from cchooked.errors import (
    InvalidActionTypeError,
    InvalidEventTypeError,
    LogFileMissingError,
    RuleRegexError,
)
from cchooked.parser import commands_to_strings, split_compound_command
from cchooked.schema import (
    ActionType,
    EventType,
    HooksConfig,
    LogFormat,
    OnErrorBehavior,
    RuleConfig,
)

logger = logging.getLogger("cchooked.rules")

VALID_EVENTS = [e.value for e in EventType]
VALID_ACTIONS = [a.value for a in ActionType]


# =============================================================================
# Compiled Conditions
# =============================================================================


def _any_match(patterns: tuple[re.Pattern[str], ...], text: str) -> bool:
    """OR across patterns; an empty pattern list matches unconditionally."""
    if not patterns:
        return True
    return any(pattern.search(text) for pattern in patterns)


@dataclass(frozen=True)
class ConditionSet:
    """
    Compiled ``when`` filters.

    Categories combine with AND, patterns within a category with OR, and an
    empty category is vacuously true.
    """

    command: tuple[re.Pattern[str], ...] = ()
    file_path: tuple[re.Pattern[str], ...] = ()
    branch: tuple[re.Pattern[str], ...] = ()
    match_subcommands: bool = False

    @property
    def needs_branch(self) -> bool:
        """Whether checking these conditions requires git branch detection."""
        return bool(self.branch)

    def matches_command(self, command: str) -> bool:
        if _any_match(self.command, command):
            return True
        if not self.match_subcommands:
            return False
        subcommands = commands_to_strings(split_compound_command(command))
        return any(_any_match(self.command, sub) for sub in subcommands)

    def matches_file_path(self, file_path: str) -> bool:
        return _any_match(self.file_path, file_path)

    def matches_branch(self, branch: str) -> bool:
        return _any_match(self.branch, branch)


# =============================================================================
# Actions
# =============================================================================


@dataclass(frozen=True)
class BlockAction:
    """Deny the tool call, reporting ``message`` to the agent."""

    kind: ClassVar[ActionType] = ActionType.BLOCK

    message: str | None = None


@dataclass(frozen=True)
class TransformAction:
    """Allow the tool call with its command rewritten."""

    kind: ClassVar[ActionType] = ActionType.TRANSFORM

    pattern: re.Pattern[str] | None = None
    replacement: str | None = None

    @property
    def is_complete(self) -> bool:
        return self.pattern is not None and self.replacement is not None


@dataclass(frozen=True)
class RunAction:
    """Run a shell command as a side effect of the tool call."""

    kind: ClassVar[ActionType] = ActionType.RUN

    command: str | None = None
    on_error: OnErrorBehavior = OnErrorBehavior.IGNORE
    working_dir: str | None = None


@dataclass(frozen=True)
class LogAction:
    """Append a record of the tool call to ``log_file``."""

    kind: ClassVar[ActionType] = ActionType.LOG

    log_file: str
    log_format: LogFormat = LogFormat.TEXT


Action = BlockAction | TransformAction | RunAction | LogAction


# =============================================================================
# Compiled Rule
# =============================================================================


@dataclass(frozen=True)
class CompiledRule:
    """
    Validated, ready-to-evaluate counterpart of a RuleConfig.

    Attributes:
        name: The rule's key in the rules file
        event: Event type the rule applies to
        matcher: Compiled tool-name pattern
        priority: Evaluation priority (higher first)
        conditions: Compiled ``when`` filters
        action: What to do when the rule matches
    """

    name: str
    event: EventType
    matcher: re.Pattern[str]
    priority: int
    conditions: ConditionSet
    action: Action


def _compile_pattern(rule_name: str, pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise RuleRegexError(rule_name=rule_name, pattern=pattern, detail=str(e)) from e


def _compile_patterns(rule_name: str, patterns: list[str]) -> tuple[re.Pattern[str], ...]:
    return tuple(_compile_pattern(rule_name, p) for p in patterns)


def _parse_event(rule_name: str, value: str) -> EventType:
    try:
        return EventType(value)
    except ValueError:
        raise InvalidEventTypeError(
            rule_name=rule_name, value=value, valid=VALID_EVENTS
        ) from None


def _parse_action(rule_name: str, value: str) -> ActionType:
    try:
        return ActionType(value)
    except ValueError:
        raise InvalidActionTypeError(
            rule_name=rule_name, value=value, valid=VALID_ACTIONS
        ) from None


def parse_event(value: str) -> EventType:
    """
    Parse an event name given on the command line.

    Raises:
        InvalidEventTypeError: If the value is not a known event
    """
    return _parse_event("", value)


def _build_action(name: str, action_type: ActionType, config: RuleConfig) -> Action:
    if action_type == ActionType.BLOCK:
        return BlockAction(message=config.message)

    if action_type == ActionType.TRANSFORM:
        pattern = replacement = None
        if config.transform is not None and config.transform.command is not None:
            raw_pattern, replacement = config.transform.command
            pattern = _compile_pattern(name, raw_pattern)
        return TransformAction(pattern=pattern, replacement=replacement)

    if action_type == ActionType.RUN:
        return RunAction(
            command=config.command,
            on_error=config.on_error,
            working_dir=config.working_dir,
        )

    # Log
    if not config.log_file:
        raise LogFileMissingError(rule_name=name)
    return LogAction(log_file=config.log_file, log_format=config.log_format)


def compile_rule(name: str, config: RuleConfig) -> CompiledRule:
    """
    Compile a single rule.

    Args:
        name: The rule's key in the rules file (used in error messages)
        config: The rule as loaded from the file

    Returns:
        CompiledRule with every pattern compiled

    Raises:
        InvalidEventTypeError: Unknown event
        InvalidActionTypeError: Unknown action
        RuleRegexError: Any pattern fails to compile
        LogFileMissingError: A log rule without log_file
    """
    event = _parse_event(name, config.event)
    action_type = _parse_action(name, config.action)
    matcher = _compile_pattern(name, config.matcher)

    conditions = ConditionSet()
    if config.when is not None:
        conditions = ConditionSet(
            command=_compile_patterns(name, config.when.command),
            file_path=_compile_patterns(name, config.when.file_path),
            branch=_compile_patterns(name, config.when.branch),
            match_subcommands=config.when.match_subcommands,
        )

    action = _build_action(name, action_type, config)

    return CompiledRule(
        name=name,
        event=event,
        matcher=matcher,
        priority=config.priority,
        conditions=conditions,
        action=action,
    )


def compile_rules(config: HooksConfig) -> list[CompiledRule]:
    """
    Compile every rule and order them for evaluation.

    Rules are sorted by descending priority. The sort is stable, so rules
    with equal priority keep the order they have in the rules file.
    """
    rules = [compile_rule(name, rule) for name, rule in config.rules.items()]
    rules.sort(key=lambda rule: rule.priority, reverse=True)
    logger.debug("Compiled %d rule(s): %s", len(rules), [r.name for r in rules])
    return rules
