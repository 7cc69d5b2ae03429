"""
Evaluation context for cchooked.

The Context is the read-only snapshot of facts that rules match on and that
message, command, and working-directory templates expand from:

    ${command}         Command from the tool input ("" if absent)
    ${file_path}       File path from the tool input ("" if absent)
    ${file_dir}        Directory containing file_path ("" if absent)
    ${tool_name}       Name of the tool being invoked
    ${branch}          Current git branch ("" if undeterminable)
    ${workspace_root}  Project root (CLAUDE_PROJECT_DIR, else the CWD)

Environment reads are captured once in HookEnvironment and passed in
explicitly, so tests can build contexts without touching os.environ.
"""

import logging
import os
import re
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import PurePath

from cchooked.schema import HookInput

logger = logging.getLogger("cchooked.context")

WORKSPACE_ROOT_ENV = "CLAUDE_PROJECT_DIR"
BRANCH_OVERRIDE_ENV = "CCHOOKED_BRANCH"
HOME_ENV = "HOME"

TEMPLATE_VARIABLES = (
    "command",
    "file_path",
    "file_dir",
    "tool_name",
    "branch",
    "workspace_root",
)

_PLACEHOLDER_RE = re.compile(r"\$\{(" + "|".join(TEMPLATE_VARIABLES) + r")\}")


@dataclass(frozen=True)
class HookEnvironment:
    """
    The process environment inputs the engine depends on.

    Attributes:
        workspace_root: Workspace root override (non-empty to take effect)
        branch_override: Branch name to report instead of asking git
        home: Home directory used to expand ``~`` in log paths
        cwd: Directory to treat as the process CWD (None = os.getcwd())
    """

    workspace_root: str | None = None
    branch_override: str | None = None
    home: str | None = None
    cwd: str | None = None

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> "HookEnvironment":
        """Capture the relevant variables from ``environ`` (default os.environ)."""
        if environ is None:
            environ = os.environ
        return cls(
            workspace_root=environ.get(WORKSPACE_ROOT_ENV),
            branch_override=environ.get(BRANCH_OVERRIDE_ENV),
            home=environ.get(HOME_ENV),
        )

    def current_dir(self) -> str:
        """The process working directory, or "" if it can't be determined."""
        if self.cwd is not None:
            return self.cwd
        try:
            return os.getcwd()
        except OSError:
            return ""


def detect_branch(environment: HookEnvironment) -> str:
    """
    Determine the current git branch.

    The override wins when it is set at all, even to an empty string.
    Otherwise ``git rev-parse --abbrev-ref HEAD`` is asked. Any failure
    (git missing, not a repository, non-zero exit) yields "".
    """
    if environment.branch_override is not None:
        return environment.branch_override

    try:
        result = subprocess.run(
            ["git", "rev-parse", "--abbrev-ref", "HEAD"],
            cwd=environment.cwd,
            capture_output=True,
            shell=False,
        )
    except OSError as e:
        logger.debug("Branch detection failed: %s", e)
        return ""

    if result.returncode != 0:
        logger.debug("git rev-parse exited with %d", result.returncode)
        return ""

    return result.stdout.decode("utf-8", errors="replace").strip()


def file_dir_of(file_path: str) -> str:
    """
    The directory containing ``file_path``.

    Examples:
        "/p/src/main.py" -> "/p/src"
        "/p/src/" -> "/p"
        "main.py" -> ""
        "/" -> ""
        "" -> ""
    """
    if not file_path:
        return ""
    path = PurePath(file_path)
    parent = path.parent
    if parent == path or str(parent) == ".":
        return ""
    return str(parent)


@dataclass(frozen=True)
class Context:
    """
    Derived facts for one invocation.

    Build with Context.build() (or through a ContextBuilder, which memoizes
    the build for the evaluation that owns it).
    """

    command: str = ""
    file_path: str = ""
    file_dir: str = ""
    tool_name: str = ""
    branch: str = ""
    workspace_root: str = ""

    @classmethod
    def build(cls, hook_input: HookInput, environment: HookEnvironment) -> "Context":
        """Derive the context for ``hook_input``. Runs git branch detection."""
        file_path = hook_input.tool_input.file_path or ""
        workspace_root = environment.workspace_root or environment.current_dir()
        return cls(
            command=hook_input.tool_input.command or "",
            file_path=file_path,
            file_dir=file_dir_of(file_path),
            tool_name=hook_input.tool_name,
            branch=detect_branch(environment),
            workspace_root=workspace_root,
        )

    def variables(self) -> dict[str, str]:
        """Template variable values keyed by placeholder name."""
        return {name: getattr(self, name) for name in TEMPLATE_VARIABLES}

    def expand(self, template: str) -> str:
        """
        Substitute ``${name}`` placeholders in a single pass.

        Substituted values are emitted verbatim: a value that itself contains
        a placeholder is not expanded again. Unknown placeholders are left
        untouched.
        """
        values = self.variables()
        return _PLACEHOLDER_RE.sub(lambda m: values[m.group(1)], template)


class ContextBuilder:
    """
    Builds the Context for one evaluation at most once.

    Branch detection may spawn git, so the evaluator only asks for the
    context when a rule filters on branch, or once a rule has matched.
    """

    def __init__(self, hook_input: HookInput, environment: HookEnvironment) -> None:
        self.hook_input = hook_input
        self.environment = environment
        self._context: Context | None = None

    @property
    def is_built(self) -> bool:
        return self._context is not None

    def get(self) -> Context:
        if self._context is None:
            self._context = Context.build(self.hook_input, self.environment)
            logger.debug("Built context: %s", self._context)
        return self._context
