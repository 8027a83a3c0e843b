"""Tests for the Python front-end unit."""

import pytest

from tokenprint.core.errors import CompilationError
from tokenprint.core.provider import TokenProvider, exclude_kinds, include_kinds
from tokenprint.core.types import TokenKind
from tokenprint.frontend import PythonUnit


SOURCE = '''\
# module comment
import os


def greet(name="world"):
    """Say hello."""
    message = "héllo " + name  # inline
    return message.upper() if name else None
'''


class TestTokens:
    """Test token classification and positions."""

    def test_kinds(self):
        """Test the generic kind of each Python token class."""
        unit = PythonUnit.from_source("x = 1  # hi\nif x: pass\n")
        assert [(str(t.kind), t.spelling) for t in unit.tokens()] == [
            ("identifier", "x"),
            ("punctuation", "="),
            ("literal", "1"),
            ("comment", "# hi"),
            ("keyword", "if"),
            ("identifier", "x"),
            ("punctuation", ":"),
            ("keyword", "pass"),
        ]

    def test_layout_tokens_dropped(self):
        """Test that newlines, indents and end markers are not tokens."""
        unit = PythonUnit.from_source("def f():\n    return 1\n")
        assert [t.spelling for t in unit.tokens()] == ["def", "f", "(", ")", ":", "return", "1"]

    def test_offsets_match_source(self):
        """Test that every span slices its own spelling out of the buffer."""
        unit = PythonUnit.from_source(SOURCE, "greet.py")
        for token in unit.tokens():
            assert unit.source[token.span.start_offset:token.span.end_offset] == token.spelling
            assert token.span.file == "greet.py"

    def test_one_based_positions(self):
        """Test 1-based lines and columns."""
        unit = PythonUnit.from_source("a = b\n")
        first, _, last = unit.tokens()
        assert (first.span.start_line, first.span.start_column) == (1, 1)
        assert (last.span.start_line, last.span.start_column, last.span.end_column) == (1, 5, 6)

    def test_multiline_string_span(self):
        """Test a literal spanning lines."""
        unit = PythonUnit.from_source('x = """a\nb"""\ny = 2\n')
        literal = unit.tokens(include_kinds(TokenKind.LITERAL))[0]
        assert (literal.span.start_line, literal.span.end_line) == (1, 2)
        assert unit.source[literal.span.start_offset:literal.span.end_offset] == '"""a\nb"""'

    def test_predicate(self):
        """Test filtering tokens with a predicate."""
        unit = PythonUnit.from_source(SOURCE)
        without_comments = unit.tokens(exclude_kinds(TokenKind.COMMENT))
        assert len(without_comments) == len(unit.tokens()) - 2
        assert all(t.kind is not TokenKind.COMMENT for t in without_comments)

    def test_soft_keywords(self):
        """Test that match/case are keywords only in a match statement."""
        source = (
            "match = 1\n"
            "match command:\n"
            "    case [first, *rest]:\n"
            "        pass\n"
        )
        unit = PythonUnit.from_source(source)
        kinds = [(t.spelling, t.kind) for t in unit.tokens() if t.spelling in ("match", "case")]
        assert kinds == [
            ("match", TokenKind.IDENTIFIER),
            ("match", TokenKind.KEYWORD),
            ("case", TokenKind.KEYWORD),
        ]

    @pytest.mark.parametrize("pattern", ["(1)", "(1 | 2)", "((1))", "[(a, b)]", "(Point(x=0))"])
    def test_case_before_bracketed_pattern(self, pattern):
        """Test that case stays a keyword when its pattern opens with brackets."""
        unit = PythonUnit.from_source(f"match x:\n    case {pattern}:\n        pass\n")
        case_tokens = [t for t in unit.tokens() if t.spelling == "case"]
        assert len(case_tokens) == 1
        assert case_tokens[0].kind is TokenKind.KEYWORD
        assert case_tokens[0].span.start_line == 2

    def test_token_at(self):
        """Test finding the token covering a position."""
        unit = PythonUnit.from_source("value = other\n")
        assert unit.token_at(1, 1).spelling == "value"
        assert unit.token_at(1, 5).spelling == "value"
        assert unit.token_at(1, 6) is None
        assert unit.token_at(1, 9).spelling == "other"
        assert unit.token_at(3, 1) is None

    def test_empty_source(self):
        """Test that an empty file has no tokens."""
        unit = PythonUnit.from_source("")
        assert unit.tokens() == []


class TestUnit:
    """Test loading units."""

    def test_from_file(self, tmp_path):
        """Test reading a file as UTF-8."""
        path = tmp_path / "greet.py"
        path.write_text(SOURCE, encoding="utf-8")
        unit = PythonUnit.from_file(path)
        assert unit.filename == str(path)
        assert unit.source == SOURCE
        assert unit.tree is not None

    def test_is_token_provider(self):
        """Test that units satisfy the provider protocol."""
        assert isinstance(PythonUnit.from_source("x = 1\n"), TokenProvider)

    def test_syntax_error(self):
        """Test that unparsable source raises CompilationError."""
        with pytest.raises(CompilationError) as exc_info:
            PythonUnit.from_source("def broken(:\n    pass\n", "broken.py")
        assert exc_info.value.file_path == "broken.py"
        assert exc_info.value.line_number == 1

    def test_node_column_non_ascii(self):
        """Test AST byte columns are converted to character columns."""
        unit = PythonUnit.from_source("s = 'é'; t = s\n")
        assignment = unit.tree.body[1]
        assert unit.node_start(assignment.targets[0]) == (1, 10)
        assert unit.token_at(1, 10).spelling == "t"
