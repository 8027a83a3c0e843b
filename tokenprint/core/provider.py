"""Token/AST provider protocol consumed by the fingerprint engine and refactorer."""

from __future__ import annotations

from typing import Callable, List, Optional, Protocol, Union, runtime_checkable

from .types import DeclarationId, SourceLocation, SourceSpan, Token, TokenKind


# Tells whether a token should be included or not.
TokenPredicate = Callable[[Token], bool]


@runtime_checkable
class TokenProvider(Protocol):
    """A parsed source unit: its text, its tokens and a reference resolver.

    Token spans and resolver locations are always relative to ``source`` as it
    was when the unit was built.
    """

    filename: str
    source: str

    def tokens(self, predicate: Optional[TokenPredicate] = None) -> List[Token]:
        ...

    def resolve(self, location: Union[SourceLocation, Token]) -> Optional[DeclarationId]:
        ...


def spelling(token: Token) -> str:
    return token.spelling


def span(token: Token) -> SourceSpan:
    return token.span


def exclude_kinds(*kinds: TokenKind) -> TokenPredicate:
    """Build a predicate rejecting tokens of the given kinds."""
    rejected = frozenset(kinds)

    def predicate(token: Token) -> bool:
        return token.kind not in rejected

    return predicate


def include_kinds(*kinds: TokenKind) -> TokenPredicate:
    """Build a predicate keeping only tokens of the given kinds."""
    accepted = frozenset(kinds)

    def predicate(token: Token) -> bool:
        return token.kind in accepted

    return predicate
