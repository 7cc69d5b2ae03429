"""
Log action for cchooked.

Appends one line per matched tool call to the rule's log_file.

Formats:
    text  [2026-01-02T03:04:05+09:00] PreToolUse Bash: npm install
    json  {"timestamp":"...","event":"PreToolUse","tool":"Bash","command":"npm install","file_path":""}

Writing is best effort. Failing to create the directory or append the line
produces a warning but never changes the decision: log actions always allow.
"""

import json
import logging
from datetime import datetime
from pathlib import Path

from cchooked.actions.base import Outcome
from cchooked.context import Context, HookEnvironment
from cchooked.rules.compiler import LogAction
from cchooked.schema import EventType, LogFormat

logger = logging.getLogger("cchooked.actions")


def log_timestamp(now: datetime | None = None) -> str:
    """Local time, ISO-8601 with seconds and a ``+HH:MM`` offset."""
    if now is None:
        now = datetime.now()
    return now.astimezone().isoformat(timespec="seconds")


def format_log_entry(
    log_format: LogFormat,
    event: EventType,
    context: Context,
    timestamp: str,
) -> str:
    """Build the log line (without trailing newline)."""
    if log_format == LogFormat.JSON:
        record = {
            "timestamp": timestamp,
            "event": event.value,
            "tool": context.tool_name,
            "command": context.command,
            "file_path": context.file_path,
        }
        return json.dumps(record, separators=(",", ":"), ensure_ascii=False)

    content = context.command or context.file_path
    return f"[{timestamp}] {event.value} {context.tool_name}: {content}"


def expand_home(path: str, home: str | None) -> str:
    """Replace a leading ``~`` with ``home`` (left as is when home is unknown)."""
    if path.startswith("~") and home:
        return home + path[1:]
    return path


def append_log_entry(path: str, entry: str) -> list[str]:
    """
    Append ``entry`` to ``path``, creating parent directories.

    Returns:
        Warning messages for anything that failed (empty on success)
    """
    warnings: list[str] = []
    log_path = Path(path)

    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        warnings.append(f"failed to create log directory: {e}")

    try:
        with log_path.open("a", encoding="utf-8") as f:
            f.write(entry + "\n")
    except OSError as e:
        warnings.append(f"failed to write log file '{path}': {e}")

    return warnings


def write_log(
    action: LogAction,
    context: Context,
    event: EventType,
    environment: HookEnvironment,
) -> Outcome:
    """
    Execute a log action.

    Returns:
        Outcome.allow(), carrying warnings if the entry couldn't be written
    """
    entry = format_log_entry(action.log_format, event, context, log_timestamp())
    path = expand_home(action.log_file, environment.home)

    logger.debug("Appending %s entry to %s", action.log_format.value, path)
    warnings = append_log_entry(path, entry)
    return Outcome.allow(*warnings)
