"""
Compound shell command splitting.

Rules that set ``when.match_subcommands`` test their command patterns
against every simple command in a compound command line, so that
``cd app && npm install`` is caught by ``^npm\\s``.

The command line is parsed as bash with bashlex. Every ``command`` node in
the tree becomes one simple command: commands joined by ``&&``, ``||``,
``;``, ``|`` or newlines, commands inside subshells and groups, and
commands inside ``$(...)`` substitutions. Quoted text is never split.
"""

import logging
from typing import Any

import bashlex

logger = logging.getLogger("cchooked.parser")


def _collect_commands(node: Any, commands: list[list[str]]) -> None:
    """Walk a bashlex tree, appending the words of each command node."""
    if isinstance(node, list):
        for child in node:
            _collect_commands(child, commands)
        return

    if getattr(node, "kind", None) == "command":
        words = [part.word for part in node.parts if part.kind == "word"]
        if words:
            commands.append(words)

    if hasattr(node, "parts"):
        _collect_commands(node.parts, commands)
    if hasattr(node, "list"):
        _collect_commands(node.list, commands)
    # $(...) and <(...) carry their body in .command
    if hasattr(node, "command"):
        _collect_commands(node.command, commands)


def split_compound_command(command: str) -> list[list[str]]:
    """
    Split a compound command into its simple commands.

    Examples:
        "git status && git push --force" -> [["git", "status"], ["git", "push", "--force"]]
        "echo 'a && b'" -> [["echo", "a && b"]]
        "ls\\nnpm install" -> [["ls"], ["npm", "install"]]

    Args:
        command: The raw command line

    Returns:
        One word list per simple command, quotes removed. Blank input gives
        an empty list; input bashlex cannot parse (e.g. an unclosed quote)
        comes back whole as a single one-word command.
    """
    if not command.strip():
        return []

    try:
        trees = bashlex.parse(command)
    except Exception as e:
        logger.debug("Could not parse %r as bash: %s", command, e)
        return [[command]]

    commands: list[list[str]] = []
    _collect_commands(trees, commands)
    return commands


def commands_to_strings(commands: list[list[str]]) -> list[str]:
    """Rejoin each simple command's words with single spaces (for matching)."""
    return [" ".join(args) for args in commands]
