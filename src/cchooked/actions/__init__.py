"""
Actions for cchooked.

This module turns a matched rule into the hook's final Outcome.

Available actions:
    - block: Deny the tool call with a message
    - transform: Allow the tool call with its command rewritten
    - run: Run a side-effect shell command
    - log: Append a record of the tool call to a file
"""

from cchooked.actions.base import Outcome
from cchooked.actions.executor import execute_action
from cchooked.actions.shell import resolve_working_dir

__all__ = [
    "Outcome",
    "execute_action",
    "resolve_working_dir",
]
