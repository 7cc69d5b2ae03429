"""
Hook runner for cchooked.

The main orchestration layer for one hook invocation. It coordinates:
- Input parsing: The JSON event from the host
- Config loading: The user's rules file
- Rule Engine: Picks at most one matching rule
- Action executor: Turns the match into an Outcome

Execution Flow:
    1. Parse the event name
    2. Parse the hook input JSON
    3. Load and compile the rules (every rule, before evaluating any)
    4. Evaluate rules against the input
    5. No match: allow silently. Match: execute the rule's action

Errors from steps 1-3 propagate as CchookedError; the caller maps them to
exit codes (a missing config allows, everything else blocks).
"""

from pathlib import Path

from cchooked.actions import Outcome, execute_action
from cchooked.context import HookEnvironment
from cchooked.errors import InputParseError
from cchooked.rules import RuleEngine
from cchooked.rules.compiler import parse_event
from cchooked.schema import load_config, parse_hook_input


def run_hook(
    event_name: str | None,
    raw_input: str,
    config_path: Path | str | None = None,
    environment: HookEnvironment | None = None,
) -> Outcome:
    """
    Run one hook invocation end to end.

    Args:
        event_name: Event given on the command line (PreToolUse/PostToolUse)
        raw_input: The JSON document read from stdin
        config_path: Rules file (defaults to .claude/hooks-rules.toml)
        environment: Environment inputs (defaults to os.environ)

    Returns:
        The Outcome to emit

    Raises:
        InputParseError: Missing event or malformed input
        InvalidEventTypeError: Unknown event name
        ConfigNotFoundError: No rules file
        ConfigParseError: Malformed rules file
        RuleCompileError: A rule failed to compile
    """
    if not event_name:
        raise InputParseError(
            message="Missing event argument. Usage: cchooked <EVENT>",
            detail="missing event",
        )

    environment = environment or HookEnvironment.from_environ()
    event = parse_event(event_name)
    hook_input = parse_hook_input(raw_input)
    config = load_config(config_path)

    engine = RuleEngine.from_config(config, environment)
    result = engine.evaluate(event, hook_input)
    if result is None:
        return Outcome.allow()

    match, context = result
    return execute_action(match, context, event, environment)
