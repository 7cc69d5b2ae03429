"""
Schema definitions for cchooked.

This module defines the Pydantic models for everything that crosses the
process boundary:
- HooksConfig/RuleConfig: The user-authored rules file
- HookInput/ToolInput: The JSON event the host writes to stdin

and the loaders that turn raw files and strings into those models.

Design Decisions:
    - Models are immutable (frozen=True)
    - Config models reject unknown keys so typos fail loudly
    - Input models ignore unknown keys; the host sends many fields we never read
    - ``event`` and ``action`` stay plain strings here; the rule compiler
      validates them so its errors can list the valid values
"""

import json
import logging
import tomllib
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from cchooked.errors import ConfigNotFoundError, ConfigParseError, InputParseError

logger = logging.getLogger("cchooked.config")

DEFAULT_CONFIG_PATH = ".claude/hooks-rules.toml"


# =============================================================================
# Enums
# =============================================================================


class EventType(str, Enum):
    """Phase of a tool invocation that triggers evaluation."""

    PRE_TOOL_USE = "PreToolUse"
    POST_TOOL_USE = "PostToolUse"


class ActionType(str, Enum):
    """What a matching rule does."""

    BLOCK = "block"
    TRANSFORM = "transform"
    RUN = "run"
    LOG = "log"


class OnErrorBehavior(str, Enum):
    """How a run action reacts when its command fails."""

    IGNORE = "ignore"
    FAIL = "fail"


class LogFormat(str, Enum):
    """Line format written by a log action."""

    TEXT = "text"
    JSON = "json"


# =============================================================================
# Rule Configuration Models
# =============================================================================


class WhenConfig(BaseModel):
    """
    Conditional filters narrowing when a rule applies.

    Each field accepts a single pattern or a list of patterns. Patterns
    within a field combine with OR, fields combine with AND, and an absent
    field matches everything.

    Attributes:
        command: Regex patterns tested against the tool's command
        file_path: Regex patterns tested against the tool's file path
        branch: Regex patterns tested against the current git branch
        match_subcommands: Also test command patterns against each
            sub-command of a compound command (``a && b``, ``a | b``...)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    command: list[str] = Field(
        default_factory=list,
        description="Patterns matched against the command",
    )
    file_path: list[str] = Field(
        default_factory=list,
        description="Patterns matched against the file path",
    )
    branch: list[str] = Field(
        default_factory=list,
        description="Patterns matched against the current branch",
    )
    match_subcommands: bool = Field(
        default=False,
        description="Match command patterns against each compound sub-command",
    )

    @field_validator("command", "file_path", "branch", mode="before")
    @classmethod
    def coerce_to_list(cls, v: Any) -> Any:
        """Accept a single string wherever a list of patterns is expected."""
        if isinstance(v, str):
            return [v]
        return v


class TransformConfig(BaseModel):
    """
    Rewrite specification for transform actions.

    Attributes:
        command: ``[pattern, replacement]`` applied to the tool's command
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    command: tuple[str, str] | None = Field(
        default=None,
        description="Regex pattern and replacement for the command",
    )


class RuleConfig(BaseModel):
    """
    A single user-authored hook rule.

    Attributes:
        event: Event type (PreToolUse or PostToolUse)
        matcher: Regex matched against the tool name
        action: block, transform, run, or log
        priority: Higher values are evaluated first
        message: Message template for block actions
        when: Optional conditional filters
        transform: Rewrite spec for transform actions
        command: Command template for run actions
        working_dir: Working directory template for run actions
        on_error: What a failing run command does (ignore or fail)
        log_file: Target file for log actions
        log_format: Line format for log actions (text or json)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    event: str = Field(..., description="Event type the rule applies to")
    matcher: str = Field(..., description="Regex matched against the tool name")
    action: str = Field(..., description="Action to perform")
    priority: int = Field(default=0, description="Evaluation priority (higher first)")
    message: str | None = Field(default=None, description="Block message template")
    when: WhenConfig | None = Field(default=None, description="Conditional filters")
    transform: TransformConfig | None = Field(default=None, description="Rewrite spec")
    command: str | None = Field(default=None, description="Command template to run")
    working_dir: str | None = Field(
        default=None,
        description="Working directory template for the run command",
    )
    on_error: OnErrorBehavior = Field(
        default=OnErrorBehavior.IGNORE,
        description="Behavior when the run command fails",
    )
    log_file: str | None = Field(default=None, description="Log target path")
    log_format: LogFormat = Field(default=LogFormat.TEXT, description="Log line format")


class HooksConfig(BaseModel):
    """
    Root of the rules file.

    Rules are keyed by name. Python dicts keep insertion order, so ``rules``
    iterates in the order the rules appear in the file.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    rules: dict[str, RuleConfig] = Field(
        default_factory=dict,
        description="Rules keyed by name",
    )


# =============================================================================
# Hook Input Models
# =============================================================================


class ToolInput(BaseModel):
    """The subset of the tool's arguments that rules can match on."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    command: str | None = None
    file_path: str | None = None


class HookInput(BaseModel):
    """
    The event the host reports for one tool invocation.

    Attributes:
        tool_name: Name of the tool being invoked (e.g. "Bash", "Edit")
        tool_input: The tool's arguments
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    tool_name: str
    tool_input: ToolInput


# =============================================================================
# Loading Helpers
# =============================================================================


def _parse_document(content: str, path: Path) -> Any:
    """Parse raw file content as YAML or TOML depending on the suffix."""
    if path.suffix.lower() in (".yaml", ".yml"):
        return yaml.safe_load(content) or {}
    return tomllib.loads(content)


def load_config(path: Path | str | None = None) -> HooksConfig:
    """
    Load the rules file.

    Args:
        path: Path to the rules file. Defaults to ``.claude/hooks-rules.toml``
            relative to the current directory.

    Returns:
        Validated HooksConfig

    Raises:
        ConfigNotFoundError: If the file doesn't exist
        ConfigParseError: If the file can't be read, parsed, or validated
    """
    path = Path(path if path is not None else DEFAULT_CONFIG_PATH)
    if not path.exists():
        raise ConfigNotFoundError(path=str(path))

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigParseError(path=str(path), detail=str(e)) from e

    logger.debug("Loading rules from %s", path)
    return load_config_from_string(content, path)


def load_config_from_string(content: str, path: Path | str = DEFAULT_CONFIG_PATH) -> HooksConfig:
    """
    Load the rules from a string.

    ``path`` is only used to pick the parser and to label errors.
    """
    path = Path(path)
    try:
        data = _parse_document(content, path)
        return HooksConfig.model_validate(data)
    except (tomllib.TOMLDecodeError, yaml.YAMLError, ValidationError) as e:
        raise ConfigParseError(path=str(path), detail=str(e)) from e


def parse_hook_input(raw: str) -> HookInput:
    """
    Parse the JSON document the host writes to stdin.

    Raises:
        InputParseError: If the JSON is malformed or lacks tool_name/tool_input
    """
    try:
        data = json.loads(raw)
        return HookInput.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as e:
        raise InputParseError(detail=str(e)) from e
