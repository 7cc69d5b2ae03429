"""
Rules module for cchooked.

This module compiles user-authored hook rules and selects the one that
applies to a tool call.

Key concepts:
    - CompiledRule: A rule whose patterns are all known-valid
    - RuleEngine: Scans rules by priority; the first full match wins
    - MatchResult: The winning rule's action, handed to the action executor

The rules layer must be:
    - Fail-closed: A rule that doesn't compile aborts the whole run
    - Predictable: Same rules and input always select the same rule
"""

from cchooked.rules.compiler import CompiledRule, compile_rule, compile_rules
from cchooked.rules.engine import MatchResult, RuleEngine

__all__ = [
    "CompiledRule",
    "MatchResult",
    "RuleEngine",
    "compile_rule",
    "compile_rules",
]
