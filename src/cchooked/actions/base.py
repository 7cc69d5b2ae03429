"""
Outcome of a hook invocation.

Every action, and every "nothing matched" path, ends in an Outcome: the exit
code the process returns to the host plus whatever it writes to stdout and
stderr.

    exit 0  allow (stdout may carry a transform payload)
    exit 2  block (stderr carries the reason shown to the agent)
"""

import json
from dataclasses import dataclass

from cchooked.errors import EXIT_ALLOW, EXIT_BLOCK


@dataclass(frozen=True)
class Outcome:
    """
    Final result handed to the CLI.

    Attributes:
        exit_code: Process exit code (0 allow, 2 block)
        stdout: Text for stdout, written verbatim
        stderr: Text for stderr, written followed by a newline
        warnings: Non-fatal problems to surface as ``Warning:`` lines
    """

    exit_code: int = EXIT_ALLOW
    stdout: str | None = None
    stderr: str | None = None
    warnings: tuple[str, ...] = ()

    @property
    def blocked(self) -> bool:
        return self.exit_code == EXIT_BLOCK

    @classmethod
    def allow(cls, *warnings: str) -> "Outcome":
        """Allow the tool call with no output."""
        return cls(warnings=warnings)

    @classmethod
    def block(cls, message: str | None = None) -> "Outcome":
        """Block the tool call, reporting ``message`` on stderr."""
        return cls(exit_code=EXIT_BLOCK, stderr=message)

    @classmethod
    def transform(cls, event_name: str, updated_command: str) -> "Outcome":
        """Allow the tool call with its command replaced by ``updated_command``."""
        payload = {
            "hookSpecificOutput": {
                "hookEventName": event_name,
                "permissionDecision": "allow",
                "updatedInput": {"command": updated_command},
            },
        }
        return cls(stdout=json.dumps(payload, separators=(",", ":"), ensure_ascii=False))
