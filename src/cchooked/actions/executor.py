"""
Action executor for cchooked.

Interprets a MatchResult and produces the final Outcome. Each action is
terminal: there is no chaining.

    block      exit 2, expanded message on stderr
    transform  exit 0, rewritten command as JSON on stdout
    run        side-effect command, see cchooked.actions.shell
    log        append a record, see cchooked.actions.log
"""

import logging
import re

from cchooked.actions.base import Outcome
from cchooked.actions.log import write_log
from cchooked.actions.shell import run_command
from cchooked.context import Context, HookEnvironment
from cchooked.rules.compiler import (
    BlockAction,
    LogAction,
    RunAction,
    TransformAction,
)
from cchooked.rules.engine import MatchResult
from cchooked.schema import EventType

logger = logging.getLogger("cchooked.actions")

# $$, ${name}, $name (name = group number or identifier)
_GROUP_REF_RE = re.compile(r"\$(?:(\$)|\{(\w+)\}|(\w+))")


def expand_replacement(match: re.Match[str], replacement: str) -> str:
    """
    Expand group references in a transform replacement.

    Supports ``$1``, ``${1}``, ``$name``, ``${name}`` and ``$$`` for a
    literal dollar sign. References to groups that don't exist or didn't
    participate expand to "". Backslashes are literal.
    """

    def substitute(ref: re.Match[str]) -> str:
        if ref.group(1):
            return "$"
        name = ref.group(2) or ref.group(3)
        key: int | str = int(name) if name.isdigit() else name
        try:
            return match.group(key) or ""
        except IndexError:
            return ""

    return _GROUP_REF_RE.sub(substitute, replacement)


def transform_command(action: TransformAction, command: str) -> str | None:
    """Rewrite the first match in ``command``; None if the action is incomplete."""
    if action.pattern is None or action.replacement is None:
        return None
    replacement = action.replacement
    return action.pattern.sub(lambda m: expand_replacement(m, replacement), command, count=1)


def execute_action(
    match: MatchResult,
    context: Context,
    event: EventType,
    environment: HookEnvironment | None = None,
) -> Outcome:
    """
    Execute the matched rule's action.

    Args:
        match: The winning rule's decision
        context: Context built during evaluation
        event: The event being handled (tags transform output and log lines)
        environment: Environment inputs (home directory for log paths)

    Returns:
        The Outcome the CLI emits
    """
    action = match.action
    logger.debug("Executing %s action of rule '%s'", action.kind.value, match.rule_name)

    if isinstance(action, BlockAction):
        message = context.expand(action.message) if action.message is not None else None
        return Outcome.block(message)

    if isinstance(action, TransformAction):
        transformed = transform_command(action, context.command)
        if transformed is None:
            return Outcome.allow()
        return Outcome.transform(event.value, transformed)

    if isinstance(action, RunAction):
        return run_command(action, context)

    if isinstance(action, LogAction):
        return write_log(action, context, event, environment or HookEnvironment.from_environ())

    raise TypeError(f"Unknown action: {action!r}")
