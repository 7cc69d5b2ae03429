"""
Run action for cchooked.

Executes a rule's command template through ``sh -c`` as a side effect of a
tool call, e.g. running a formatter after every Edit.

Working directory resolution (resolve_working_dir):
    - No working_dir template: the file's directory, else inherit the CWD
    - Template expands to "": same fallback as no template
    - Absolute expansion: used verbatim
    - Relative expansion: joined onto workspace_root, else onto file_dir,
      else left relative (resolved against the CWD at spawn time)

Failure handling:
    A missing working directory, a command that can't be started, and a
    command that exits non-zero are all failures. ``on_error = "ignore"``
    allows the tool call anyway; ``on_error = "fail"`` blocks it with the
    failure text.

Commands run without a timeout: a hung command blocks the hook.
"""

import logging
import subprocess
from pathlib import Path

from cchooked.actions.base import Outcome
from cchooked.context import Context
from cchooked.rules.compiler import RunAction
from cchooked.schema import OnErrorBehavior

logger = logging.getLogger("cchooked.actions")

SHELL = "sh"


def resolve_working_dir(template: str | None, context: Context) -> str | None:
    """
    Decide where the run command executes.

    Args:
        template: The rule's working_dir template (may be None)
        context: Context used to expand the template

    Returns:
        The directory to run in, or None to inherit the current directory
    """
    fallback = context.file_dir or None
    if template is None:
        return fallback

    expanded = context.expand(template)
    if not expanded:
        return fallback

    path = Path(expanded)
    if path.is_absolute():
        return expanded

    if context.workspace_root:
        return str(Path(context.workspace_root) / path)
    if context.file_dir:
        return str(Path(context.file_dir) / path)
    return expanded


def _check_working_dir(cwd: str) -> str | None:
    """Return an error message if ``cwd`` can't be used, else None."""
    path = Path(cwd)
    if not path.exists():
        return f"Working directory does not exist: {cwd}"
    if not path.is_dir():
        return f"Working directory is not a directory: {cwd}"
    return None


def _on_failure(action: RunAction, message: str) -> Outcome:
    logger.info("Run command failed (on_error=%s): %s", action.on_error.value, message)
    if action.on_error == OnErrorBehavior.FAIL:
        return Outcome.block(message)
    return Outcome.allow()


def run_command(action: RunAction, context: Context) -> Outcome:
    """
    Execute a run action.

    Args:
        action: The matched rule's run action
        context: Context for template expansion

    Returns:
        Outcome.allow() on success or ignored failure, Outcome.block() on a
        failure when on_error is "fail"
    """
    if action.command is None:
        return Outcome.allow()

    command = context.expand(action.command)
    cwd = resolve_working_dir(action.working_dir, context)

    if cwd is not None:
        error = _check_working_dir(cwd)
        if error:
            return _on_failure(action, error)

    logger.info("Running %r in %s", command, cwd or "current directory")
    try:
        result = subprocess.run(
            [SHELL, "-c", command],
            cwd=cwd,
            capture_output=True,
            shell=False,
        )
    except OSError as e:
        return _on_failure(action, f"Failed to run command: {e}")

    if result.returncode == 0:
        return Outcome.allow()

    stderr = result.stderr.decode("utf-8", errors="replace")
    logger.debug("Command exited with %d", result.returncode)
    return _on_failure(action, f"Command failed: {stderr.rstrip()}")
