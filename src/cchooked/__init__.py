"""
cchooked - Rule-based hooks engine for Claude Code tool calls.

cchooked runs once per tool-call event. It reads the event from stdin,
matches it against the rules in ``.claude/hooks-rules.toml`` and decides:
- block the call with a message
- transform the call's command
- run a side-effect command
- log the call to a file

Example usage:
    $ echo '{"tool_name":"Bash","tool_input":{"command":"npm install"}}' | cchooked PreToolUse
    $ cchooked PreToolUse --config /path/to/hooks-rules.toml < input.json
    $ cchooked --list-rules
"""

__version__ = "0.1.0"
__author__ = "cchooked Contributors"

__all__ = [
    "__version__",
    "__author__",
]
