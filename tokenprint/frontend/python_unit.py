"""Python source units built on the standard ``tokenize`` and ``ast`` modules."""

from __future__ import annotations

import ast
import bisect
import io
import keyword
import tokenize
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..core.errors import CompilationError
from ..core.provider import TokenPredicate
from ..core.types import DeclarationId, SourceLocation, SourceSpan, Token, TokenKind
from ..utils.logging_setup import get_logger

logger = get_logger(__name__)

LITERAL_TOKEN_TYPES = {
    "NUMBER", "STRING",
    "FSTRING_START", "FSTRING_MIDDLE", "FSTRING_END",
    "TSTRING_START", "TSTRING_MIDDLE", "TSTRING_END",
}

# Newlines, indentation and end markers carry no spelling worth keeping
LAYOUT_TOKEN_TYPES = {
    "NEWLINE", "NL", "INDENT", "DEDENT", "ENDMARKER", "ENCODING", "TYPE_COMMENT", "TYPE_IGNORE",
}

Position = Tuple[int, int]


class PythonUnit:
    """A parsed Python module: text, tokens, AST and reference resolver.

    Token columns are 1-based; offsets index ``source``.
    """

    def __init__(self, source: str, filename: str = "<string>"):
        self.source = source
        self.filename = filename
        self._line_starts = self._compute_line_starts(source)

        try:
            self.tree = ast.parse(source, filename=filename)
        except SyntaxError as e:
            raise CompilationError(
                f"{filename}:{e.lineno}: {e.msg}", file_path=filename, line_number=e.lineno
            ) from e

        self._soft_keywords = self._soft_keyword_positions()
        self._tokens = self._tokenize()
        self._starts = [(t.span.start_line, t.span.start_column) for t in self._tokens]
        self._resolver = None

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "PythonUnit":
        path = Path(path)
        return cls(path.read_text(encoding="utf-8"), str(path))

    @classmethod
    def from_source(cls, source: str, filename: str = "<string>") -> "PythonUnit":
        return cls(source, filename)

    # ------------------------------------------------------------------
    # Positions

    @staticmethod
    def _compute_line_starts(source: str) -> List[int]:
        # Same line splitting as tokenize's readline
        starts = [0]
        for line in io.StringIO(source):
            starts.append(starts[-1] + len(line))
        return starts

    def offset(self, line: int, column: int) -> int:
        """Buffer offset of a 1-based ``(line, column)`` position."""
        return self._line_starts[line - 1] + column - 1

    def _line_text(self, line: int) -> str:
        start = self._line_starts[line - 1]
        end = self._line_starts[line] if line < len(self._line_starts) else len(self.source)
        return self.source[start:end]

    def node_column(self, line: int, byte_col: int) -> int:
        """Convert an AST UTF-8 byte column to a 1-based character column."""
        text = self._line_text(line)
        if text.isascii():
            return byte_col + 1
        return len(text.encode("utf-8")[:byte_col].decode("utf-8", errors="replace")) + 1

    def node_start(self, node: ast.AST) -> Position:
        return node.lineno, self.node_column(node.lineno, node.col_offset)

    def node_end(self, node: ast.AST) -> Position:
        return node.end_lineno, self.node_column(node.end_lineno, node.end_col_offset)

    # ------------------------------------------------------------------
    # Tokens

    def _soft_keyword_positions(self) -> set:
        """Start positions (line, byte col) of ``match``/``type`` used as keywords."""
        positions = set()
        type_alias = getattr(ast, "TypeAlias", None)
        for node in ast.walk(self.tree):
            if isinstance(node, ast.Match) or (type_alias is not None and isinstance(node, type_alias)):
                positions.add((node.lineno, node.col_offset))
        return positions

    def _classify(self, tok: tokenize.TokenInfo) -> Optional[TokenKind]:
        type_name = tokenize.tok_name.get(tok.type, "")
        if type_name in LAYOUT_TOKEN_TYPES:
            return None
        if type_name == "NAME":
            if keyword.iskeyword(tok.string):
                return TokenKind.KEYWORD
            return TokenKind.IDENTIFIER
        if type_name in LITERAL_TOKEN_TYPES:
            return TokenKind.LITERAL
        if type_name == "COMMENT":
            return TokenKind.COMMENT
        if type_name == "OP":
            return TokenKind.PUNCTUATION
        if type_name == "ERRORTOKEN" and not tok.string.strip():
            return None
        return TokenKind.PUNCTUATION

    def _tokenize(self) -> List[Token]:
        tokens: List[Token] = []
        try:
            for tok in tokenize.generate_tokens(io.StringIO(self.source).readline):
                kind = self._classify(tok)
                if kind is None:
                    continue
                (start_line, start_col), (end_line, end_col) = tok.start, tok.end
                tokens.append(Token(kind, tok.string, SourceSpan(
                    file=self.filename,
                    start_line=start_line,
                    start_column=start_col + 1,
                    end_line=end_line,
                    end_column=end_col + 1,
                    start_offset=self._line_starts[start_line - 1] + start_col,
                    end_offset=self._line_starts[end_line - 1] + end_col,
                )))
        except (tokenize.TokenError, SyntaxError) as e:
            raise CompilationError(f"{self.filename}: cannot tokenize: {e}", file_path=self.filename) from e

        return self._mark_soft_keywords(tokens)

    def _mark_soft_keywords(self, tokens: List[Token]) -> List[Token]:
        if not self._soft_keywords:
            return tokens

        keyword_starts = {(line, self.node_column(line, col)) for line, col in self._soft_keywords}
        # ``case`` precedes each pattern, possibly with opening brackets between
        starts = [(t.span.start_line, t.span.start_column) for t in tokens]
        for node in ast.walk(self.tree):
            if isinstance(node, ast.Match):
                for case in node.cases:
                    idx = bisect.bisect_left(starts, self.node_start(case.pattern)) - 1
                    while idx >= 0 and tokens[idx].kind is TokenKind.PUNCTUATION and tokens[idx].spelling in ("(", "["):
                        idx -= 1
                    if idx >= 0 and tokens[idx].spelling == "case":
                        keyword_starts.add(starts[idx])

        return [
            Token(TokenKind.KEYWORD, t.spelling, t.span)
            if t.kind is TokenKind.IDENTIFIER and (t.span.start_line, t.span.start_column) in keyword_starts
            else t
            for t in tokens
        ]

    def tokens(self, predicate: Optional[TokenPredicate] = None) -> List[Token]:
        """All tokens in file order, optionally filtered."""
        if predicate is None:
            return list(self._tokens)
        return [t for t in self._tokens if predicate(t)]

    def tokens_between(self, start: Position, end: Position) -> List[Token]:
        """Tokens starting in ``[start, end)`` (1-based positions)."""
        lo = bisect.bisect_left(self._starts, start)
        hi = bisect.bisect_left(self._starts, end)
        return self._tokens[lo:hi]

    def token_at(self, line: int, column: int) -> Optional[Token]:
        """The token covering a 1-based position, if any."""
        idx = bisect.bisect_right(self._starts, (line, column)) - 1
        if idx < 0:
            return None
        token = self._tokens[idx]
        return token if token.span.contains(line, column) else None

    # ------------------------------------------------------------------
    # References

    @property
    def resolver(self):
        if self._resolver is None:
            from .resolver import ReferenceResolver
            self._resolver = ReferenceResolver(self)
        return self._resolver

    def resolve(self, location: Union[SourceLocation, Token]) -> Optional[DeclarationId]:
        """Declaration referenced by the identifier starting at ``location``."""
        if isinstance(location, Token):
            location = location.location
        return self.resolver.resolve(location.line, location.column)

    def spelling(self, token: Token) -> str:
        return token.spelling

    def span(self, token: Token) -> SourceSpan:
        return token.span

    def __repr__(self) -> str:
        return f"PythonUnit({self.filename!r}, tokens={len(self._tokens)})"
