"""
CLI entry point for cchooked.

This module provides the Typer-based command-line interface the host calls
for every tool-call event:

    cchooked <EVENT> [--config PATH] < input.json

Output contract:
    stdout  Reserved for hook payloads (transform JSON)
    stderr  Block reasons, warnings, errors
    exit 0  Allow (also when the rules file is missing)
    exit 2  Block (also for every setup error: fail closed)

Architecture Note:
    The CLI is intentionally thin - it parses arguments and delegates to
    cchooked.engine.run_hook. This separation allows the core logic to be
    used programmatically without the CLI.
"""

import logging
import sys
import traceback
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cchooked import __version__
from cchooked.actions import Outcome
from cchooked.context import HookEnvironment
from cchooked.engine import run_hook
from cchooked.errors import EXIT_ALLOW, CchookedError
from cchooked.rules import CompiledRule, compile_rules
from cchooked.rules.compiler import LogAction, RunAction
from cchooked.schema import load_config

app = typer.Typer(
    name="cchooked",
    help="Rule-based hooks engine for Claude Code tool calls.",
    add_completion=False,
)

# Tables go to stdout; diagnostics never touch stdout, which carries payloads
console = Console()
err_console = Console(stderr=True, soft_wrap=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        err_console.print(f"[bold]cchooked[/bold] {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool, debug: bool) -> None:
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def main(
    event: Annotated[
        Optional[str],
        typer.Argument(help="Event type: PreToolUse or PostToolUse."),
    ] = None,
    config_path: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Path to the rules file. Defaults to .claude/hooks-rules.toml.",
        ),
    ] = None,
    list_rules: Annotated[
        bool,
        typer.Option(
            "--list-rules",
            help="Compile the rules file and list rules in evaluation order.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            help="Log rule evaluation to stderr.",
        ),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option(
            "--debug",
            help="Enable debug logging and full error tracebacks.",
        ),
    ] = False,
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    Evaluate hook rules for one tool-call event read from stdin.

    Example:
        $ echo '{"tool_name":"Bash","tool_input":{"command":"npm i"}}' | cchooked PreToolUse
    """
    _configure_logging(verbose, debug)

    if list_rules:
        try:
            rules = compile_rules(load_config(config_path))
        except CchookedError as e:
            _report_error(e, debug)
            raise typer.Exit(code=e.exit_code)
        _display_rules(rules)
        raise typer.Exit(code=EXIT_ALLOW)

    try:
        raw_input = sys.stdin.read() if event else ""
        outcome = run_hook(event, raw_input, config_path, HookEnvironment.from_environ())
    except CchookedError as e:
        _report_error(e, debug)
        raise typer.Exit(code=e.exit_code)

    _emit(outcome)
    raise typer.Exit(code=outcome.exit_code)


def _report_error(error: CchookedError, debug: bool) -> None:
    """Print a setup error (or warning) to stderr."""
    if error.is_warning:
        err_console.print(f"[yellow]Warning:[/yellow] {escape(error.message)}")
        return

    err_console.print(f"[red]Error:[/red] {escape(error.message)}")
    if error.suggestion:
        err_console.print(f"[dim]Suggestion: {escape(error.suggestion)}[/dim]")
    if debug:
        err_console.print(f"[dim]{escape(traceback.format_exc())}[/dim]")


def _emit(outcome: Outcome) -> None:
    """Write the outcome's payloads verbatim, then any warnings."""
    if outcome.stdout is not None:
        typer.echo(outcome.stdout, nl=False)
    if outcome.stderr is not None:
        typer.echo(outcome.stderr, err=True)
    for warning in outcome.warnings:
        err_console.print(f"[yellow]Warning:[/yellow] {escape(warning)}")


def _describe_conditions(rule: CompiledRule) -> str:
    conditions = rule.conditions
    parts = []
    for category in ("command", "file_path", "branch"):
        patterns = getattr(conditions, category)
        if patterns:
            parts.append(f"{category}: " + " | ".join(p.pattern for p in patterns))
    if conditions.match_subcommands:
        parts.append("(subcommands)")
    return "\n".join(parts)


def _describe_action(rule: CompiledRule) -> str:
    action = rule.action
    if isinstance(action, RunAction):
        return f"run (on_error={action.on_error.value})"
    if isinstance(action, LogAction):
        return f"log ({action.log_format.value}) -> {action.log_file}"
    return action.kind.value


def _display_rules(rules: list[CompiledRule]) -> None:
    """Display compiled rules in evaluation order."""
    if not rules:
        console.print("[dim]No rules defined.[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", style="dim", width=3)
    table.add_column("Rule", style="cyan")
    table.add_column("Event")
    table.add_column("Matcher")
    table.add_column("Priority", justify="right")
    table.add_column("Action")
    table.add_column("When")

    for index, rule in enumerate(rules, start=1):
        table.add_row(
            str(index),
            escape(rule.name),
            rule.event.value,
            escape(rule.matcher.pattern),
            str(rule.priority),
            escape(_describe_action(rule)),
            escape(_describe_conditions(rule)),
        )

    console.print(table)
    console.print(f"[dim]Total: {len(rules)} rule(s)[/dim]")


if __name__ == "__main__":
    app()
