"""Regex-based statement rewrites producing in-memory files."""

import re
from typing import Pattern, Union

from ..core.provider import TokenProvider
from ..core.types import UnsavedFile

# ``while (cond):`` on one line, parentheses wrapping the whole condition
WHILE_PAREN_CONDITION = re.compile(r"^([ \t]*)while[ \t]*\((?P<cond>[^\n]+)\)[ \t]*:", re.MULTILINE)

# C-family ``while (cond)`` header
C_WHILE_HEADER = re.compile(r"while[ \t]*\(([^\n]+)\)")


def rewrite_statements(unit: TokenProvider, pattern: Union[str, Pattern[str]],
                       template: str) -> UnsavedFile:
    """Replace every match of ``pattern`` in the unit's text with ``template``.

    ``template`` uses ``re.sub`` syntax (``\\1``, ``\\g<name>``). The substitution
    is a single pass over the text, so replacements are never rescanned.
    """
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern
    return UnsavedFile(filename=unit.filename, contents=regex.sub(template, unit.source))


def unwrap_while_condition(unit: TokenProvider) -> UnsavedFile:
    """``while (cond):`` -> ``while cond:``.

    Only lines whose parentheses wrap the entire condition are rewritten;
    ``while (a) and (b):`` is left alone.
    """
    def replace(match: "re.Match[str]") -> str:
        condition = match.group("cond")
        if not _balanced(condition):
            return match.group(0)
        return f"{match.group(1)}while {condition.strip()}:"

    return UnsavedFile(filename=unit.filename, contents=WHILE_PAREN_CONDITION.sub(replace, unit.source))


def while_to_for(unit: TokenProvider) -> UnsavedFile:
    """C-family ``while (cond)`` -> ``for (;cond;)``."""
    return rewrite_statements(unit, C_WHILE_HEADER, r"for (;\1;)")


def _balanced(text: str) -> bool:
    depth = 0
    for char in text:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0
