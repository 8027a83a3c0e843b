"""
Identifier rename over a single unit.

A token is renamed when it has the target's spelling AND the resolver maps it
to the target's declaration, so shadowed names, attributes and other
namespaces that share the spelling are left untouched.
"""

import keyword
from typing import List, Optional

from ..core.errors import NoReferenceFound
from ..core.provider import TokenProvider
from ..core.types import EditSpan, Token, TokenKind, UnsavedFile
from ..utils.logging_setup import get_logger
from .edits import apply_edits

logger = get_logger(__name__)


def validate_identifier(name: str) -> None:
    """Raise ``ValueError`` unless ``name`` can be used as an identifier."""
    if not isinstance(name, str) or not name.isidentifier() or keyword.iskeyword(name):
        raise ValueError(f"Not a valid identifier: {name!r}")


def reference_tokens(target: Token, unit: TokenProvider) -> List[Token]:
    """All tokens of ``unit`` referring to the same declaration as ``target``.

    Raises:
        NoReferenceFound: ``target`` does not resolve to a declaration.
    """
    declaration = unit.resolve(target)
    if declaration is None:
        location = target.location
        raise NoReferenceFound(
            f"'{target.spelling}' at {location.file}:{location.line}:{location.column} "
            f"does not refer to a declaration",
            spelling=target.spelling,
            file_path=location.file,
            line_number=location.line,
            column=location.column,
        )

    return [
        token for token in unit.tokens()
        if token.spelling == target.spelling and unit.resolve(token) == declaration
    ]


def rename_identifier(target: Token, unit: TokenProvider, new_name: str) -> UnsavedFile:
    """Rename every reference to ``target``'s declaration to ``new_name``.

    The unit's text is never modified; the result is a new in-memory file.

    Raises:
        ValueError: ``new_name`` is not a valid identifier.
        NoReferenceFound: ``target`` does not resolve to a declaration.
    """
    validate_identifier(new_name)
    references = reference_tokens(target, unit)

    edits = [
        EditSpan(token.span.start_offset, token.span.end_offset, new_name)
        for token in references
    ]
    contents = apply_edits(unit.source, edits)

    logger.info(f"Renamed {len(edits)} occurrences of '{target.spelling}' to '{new_name}' in {unit.filename}")
    return UnsavedFile(filename=unit.filename, contents=contents)


def identifier_at(unit: TokenProvider, line: int, column: int) -> Optional[Token]:
    """Identifier token covering a 1-based ``(line, column)`` position."""
    for token in unit.tokens():
        if token.kind is TokenKind.IDENTIFIER and token.span.contains(line, column):
            return token
    return None


def rename_at(unit: TokenProvider, line: int, column: int, new_name: str) -> UnsavedFile:
    """Rename the identifier found at ``(line, column)``.

    Raises:
        NoReferenceFound: No identifier there, or it is unresolvable.
    """
    target = identifier_at(unit, line, column)
    if target is None:
        raise NoReferenceFound(
            f"No identifier at {unit.filename}:{line}:{column}",
            file_path=unit.filename,
            line_number=line,
            column=column,
        )
    return rename_identifier(target, unit, new_name)
