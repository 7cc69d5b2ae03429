"""
Exception hierarchy for cchooked.

All cchooked exceptions inherit from CchookedError, allowing callers to catch
every setup failure with a single except clause.

Exception Categories:
    - ConfigNotFoundError: No rules file (soft, the hook allows)
    - ConfigParseError: Rules file unreadable or malformed
    - InputParseError: Hook input JSON malformed or event missing
    - RuleCompileError: A rule failed compilation (bad event, action, regex,
      or a log rule without a target)

Exit codes follow the Claude Code hooks protocol:
    - 0: Non-blocking. Only a missing config file maps here, hooks are optional.
    - 2: Blocking. Every other setup error must be fixed by the user.

Exit code 1 is never used: the host treats it as a non-blocking error and
would run the tool with every rule silently disabled.
"""

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================

# Config errors: 1xxx
ERROR_CONFIG_NOT_FOUND = 1001
ERROR_CONFIG_PARSE = 1002

# Input errors: 2xxx
ERROR_INPUT_PARSE = 2001

# Rule errors: 3xxx
ERROR_RULE_INVALID_EVENT = 3001
ERROR_RULE_INVALID_ACTION = 3002
ERROR_RULE_REGEX = 3003
ERROR_RULE_LOG_FILE_MISSING = 3004

EXIT_ALLOW = 0
EXIT_BLOCK = 2


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class CchookedError(Exception):
    """
    Base exception for all cchooked errors.

    Attributes:
        message: Human-readable error description
        code: Numeric error code for programmatic handling
        suggestion: Optional hint for how to resolve the error
        context: Optional dict with additional debugging info
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code}, "
            f"context={self.context!r})"
        )

    @property
    def exit_code(self) -> int:
        """Process exit code for this error (blocking unless a warning)."""
        return EXIT_ALLOW if self.is_warning else EXIT_BLOCK

    @property
    def is_warning(self) -> bool:
        """Whether the error is reported as a warning and the tool proceeds."""
        return False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "suggestion": self.suggestion,
            "context": self.context,
        }


# =============================================================================
# Config Errors
# =============================================================================


@dataclass
class ConfigNotFoundError(CchookedError):
    """Raised when the rules file does not exist. Reported as a warning."""

    path: str = ""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Config file not found: {self.path}"
        if self.code == 0:
            self.code = ERROR_CONFIG_NOT_FOUND
        self.context["path"] = self.path

    @property
    def is_warning(self) -> bool:
        return True


@dataclass
class ConfigParseError(CchookedError):
    """Raised when the rules file cannot be read, parsed, or validated."""

    path: str = ""
    detail: str = ""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Failed to parse config file '{self.path}':\n  {self.detail}"
        if self.code == 0:
            self.code = ERROR_CONFIG_PARSE
        self.context.update({
            "path": self.path,
            "detail": self.detail,
        })


# =============================================================================
# Input Errors
# =============================================================================


@dataclass
class InputParseError(CchookedError):
    """Raised when the hook input is not valid JSON of the expected shape."""

    detail: str = ""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Failed to parse input JSON: {self.detail}"
        if self.code == 0:
            self.code = ERROR_INPUT_PARSE
        self.context["detail"] = self.detail


# =============================================================================
# Rule Errors
# =============================================================================


@dataclass
class RuleCompileError(CchookedError):
    """
    Base class for errors raised while compiling a rule.

    Attributes:
        rule_name: Name of the rule that failed (if known)
    """

    rule_name: str = ""

    def __post_init__(self) -> None:
        self.context["rule_name"] = self.rule_name


@dataclass
class InvalidEventTypeError(RuleCompileError):
    """Raised when a rule or the CLI names an unknown event type."""

    value: str = ""
    valid: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.message:
            self.message = (
                f"Invalid event type '{self.value}'. Valid values: {', '.join(self.valid)}"
            )
        if self.code == 0:
            self.code = ERROR_RULE_INVALID_EVENT
        super().__post_init__()
        self.context.update({
            "value": self.value,
            "valid": self.valid,
        })


@dataclass
class InvalidActionTypeError(RuleCompileError):
    """Raised when a rule names an unknown action type."""

    value: str = ""
    valid: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.message:
            self.message = (
                f"Invalid action type '{self.value}'. Valid values: {', '.join(self.valid)}"
            )
        if self.code == 0:
            self.code = ERROR_RULE_INVALID_ACTION
        super().__post_init__()
        self.context.update({
            "value": self.value,
            "valid": self.valid,
        })


@dataclass
class RuleRegexError(RuleCompileError):
    """Raised when a pattern inside a rule does not compile."""

    pattern: str = ""
    detail: str = ""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = (
                f"Invalid regex in rule '{self.rule_name}': "
                f"pattern '{self.pattern}' - {self.detail}"
            )
        if self.code == 0:
            self.code = ERROR_RULE_REGEX
        super().__post_init__()
        self.context.update({
            "pattern": self.pattern,
            "detail": self.detail,
        })


@dataclass
class LogFileMissingError(RuleCompileError):
    """Raised when a log rule has no log_file."""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = (
                f"Rule '{self.rule_name}' uses log action but log_file is not specified"
            )
        if self.code == 0:
            self.code = ERROR_RULE_LOG_FILE_MISSING
        if not self.suggestion:
            self.suggestion = "Add log_file to the rule, e.g. log_file = \"~/.claude/hooks.log\""
        super().__post_init__()
