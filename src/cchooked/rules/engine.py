"""
Rule Engine for cchooked.

Selects at most one rule for a tool-call event.

How it works:
    1. Engine receives compiled rules, sorted by descending priority
    2. For each rule, in order:
       - skip if the event differs
       - skip if the matcher doesn't match the tool name
       - skip if when.command doesn't match the command
       - skip if when.file_path doesn't match the file path
       - skip if when.branch doesn't match the current branch
    3. The first rule that passes every filter wins (first match, not best
       match) and evaluation stops
    4. Returns (MatchResult, Context), or None when nothing matched

Branch detection may spawn git, so the Context is built lazily: only when a
rule filters on branch, or once a rule has matched. It is built at most once
per evaluation.
"""

import logging
from dataclasses import dataclass

from cchooked.context import Context, ContextBuilder, HookEnvironment
from cchooked.rules.compiler import Action, CompiledRule, compile_rules
from cchooked.schema import ActionType, EventType, HookInput, HooksConfig

logger = logging.getLogger("cchooked.rules")


@dataclass(frozen=True)
class MatchResult:
    """
    The decision produced by a matching rule.

    Attributes:
        rule_name: Name of the rule that matched
        priority: That rule's priority
        action: The action payload to execute
    """

    rule_name: str
    priority: int
    action: Action

    @property
    def kind(self) -> ActionType:
        return self.action.kind


class RuleEngine:
    """
    Central rule evaluator for cchooked.

    Usage:
        engine = RuleEngine(compile_rules(config))
        result = engine.evaluate(EventType.PRE_TOOL_USE, hook_input)
        if result is None:
            # no rule matched, allow silently
        else:
            match, context = result

    Attributes:
        rules: Compiled rules, highest priority first
        environment: Environment inputs for context building
    """

    def __init__(
        self,
        rules: list[CompiledRule],
        environment: HookEnvironment | None = None,
    ) -> None:
        self.rules = rules
        self.environment = environment or HookEnvironment.from_environ()

    @classmethod
    def from_config(
        cls,
        config: HooksConfig,
        environment: HookEnvironment | None = None,
    ) -> "RuleEngine":
        """Compile ``config`` and build an engine over the sorted rules."""
        return cls(compile_rules(config), environment)

    def evaluate(
        self,
        event: EventType,
        hook_input: HookInput,
    ) -> tuple[MatchResult, Context] | None:
        """
        Find the first rule matching this event and input.

        Args:
            event: The event being handled
            hook_input: The tool call reported by the host

        Returns:
            (MatchResult, Context) for the winning rule, or None
        """
        builder = ContextBuilder(hook_input, self.environment)
        command = hook_input.tool_input.command or ""
        file_path = hook_input.tool_input.file_path or ""

        for rule in self.rules:
            if not self._rule_matches(rule, event, hook_input.tool_name, command, file_path, builder):
                continue

            logger.info("Rule '%s' matched (%s)", rule.name, rule.action.kind.value)
            match = MatchResult(
                rule_name=rule.name,
                priority=rule.priority,
                action=rule.action,
            )
            return match, builder.get()

        logger.debug("No rule matched %s for tool %s", event.value, hook_input.tool_name)
        return None

    def _rule_matches(
        self,
        rule: CompiledRule,
        event: EventType,
        tool_name: str,
        command: str,
        file_path: str,
        builder: ContextBuilder,
    ) -> bool:
        """Check one rule's filters, cheapest first."""
        if rule.event != event:
            return False

        if not rule.matcher.search(tool_name):
            logger.debug("Rule '%s' skipped: matcher does not match %r", rule.name, tool_name)
            return False

        conditions = rule.conditions
        if not conditions.matches_command(command):
            logger.debug("Rule '%s' skipped: when.command", rule.name)
            return False

        if not conditions.matches_file_path(file_path):
            logger.debug("Rule '%s' skipped: when.file_path", rule.name)
            return False

        if conditions.needs_branch and not conditions.matches_branch(builder.get().branch):
            logger.debug("Rule '%s' skipped: when.branch", rule.name)
            return False

        return True
