"""
Shared fixtures for tokenprint tests.

``StaticUnit`` is a provider built from a tiny C-like token splitter and an
explicit declaration map, so the C examples can be checked without a C
front-end.
"""

import logging
import re
import shutil
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from tokenprint.config import Config
from tokenprint.core.types import DeclarationId, SourceLocation, SourceSpan, Token, TokenKind
from tokenprint.utils.logging_setup import ROOT_LOGGER_NAME

C_KEYWORDS = {
    "int", "void", "char", "struct", "return", "while", "for", "if", "else", "const", "unsigned",
}

C_TOKEN = re.compile(
    r"(?P<space>\s+)"
    r"|(?P<comment>//[^\n]*)"
    r"|(?P<word>[A-Za-z_]\w*)"
    r"|(?P<literal>\d+|\"[^\"\n]*\")"
    r"|(?P<punct>->|[{}()\[\];,.*=&+\-<>!])"
)


def split_c_tokens(source: str, filename: str) -> List[Token]:
    tokens = []
    line, line_start = 1, 0
    for match in C_TOKEN.finditer(source):
        kind_name = match.lastgroup
        text = match.group()
        start, end = match.span()
        if kind_name == "space":
            for offset, char in enumerate(text):
                if char == "\n":
                    line += 1
                    line_start = start + offset + 1
            continue

        if kind_name == "word":
            kind = TokenKind.KEYWORD if text in C_KEYWORDS else TokenKind.IDENTIFIER
        elif kind_name == "comment":
            kind = TokenKind.COMMENT
        elif kind_name == "literal":
            kind = TokenKind.LITERAL
        else:
            kind = TokenKind.PUNCTUATION

        column = start - line_start + 1
        tokens.append(Token(kind, text, SourceSpan(
            file=filename,
            start_line=line,
            start_column=column,
            end_line=line,
            end_column=column + len(text),
            start_offset=start,
            end_offset=end,
        )))
    return tokens


class StaticUnit:
    """In-memory provider with declarations assigned by token index."""

    def __init__(self, source: str, filename: str = "input.c"):
        self.source = source
        self.filename = filename
        self._tokens = split_c_tokens(source, filename)
        self._declarations: Dict[int, DeclarationId] = {}

    def declare(self, declaration: DeclarationId, *indexes: int) -> "StaticUnit":
        for index in indexes:
            self._declarations[self._tokens[index].span.start_offset] = declaration
        return self

    def tokens(self, predicate=None) -> List[Token]:
        if predicate is None:
            return list(self._tokens)
        return [t for t in self._tokens if predicate(t)]

    def resolve(self, location) -> Optional[DeclarationId]:
        if isinstance(location, Token):
            offset = location.span.start_offset
        elif isinstance(location, SourceLocation):
            offset = location.offset
        else:
            raise TypeError(location)
        return self._declarations.get(offset)

    def spelling(self, token: Token) -> str:
        return token.spelling

    def span(self, token: Token) -> SourceSpan:
        return token.span


SHADOWING_SOURCE = '''\
class A:
    pass


class B:
    pass


def main():
    class A:
        def clone(self):
            return A()

    a = 0
    my = A()
    other = B()
    other.A = my
    return a
'''


STRUCT_RENAME_SOURCE = """\
struct A {};
struct B {};
int main(void) {
  struct A {
    int data;
    struct A *next;
  };
  int a;
  a = 0;
  struct A my;
  struct B not;
  return 0;
}
"""


@pytest.fixture
def make_unit():
    """Factory for ``StaticUnit`` providers."""
    return StaticUnit


@pytest.fixture
def struct_unit():
    """The nested struct tag example with clang-style declaration identities.

    Token 1 is the file-scope ``A``; tokens 17, 23 and 37 are the inner
    ``A`` and its two uses.
    """
    unit = StaticUnit(STRUCT_RENAME_SOURCE)
    outer_a = DeclarationId("<file>", "struct A")
    inner_a = DeclarationId("<file>/main", "struct A")
    b = DeclarationId("<file>", "struct B")
    a_var = DeclarationId("<file>/main", "a")
    unit.declare(outer_a, 1)
    unit.declare(b, 6, 41)
    unit.declare(DeclarationId("<file>", "main"), 11)
    unit.declare(inner_a, 17, 23, 37)
    unit.declare(a_var, 30, 32)
    return unit


@pytest.fixture
def temp_dir():
    """Provide a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path)


@pytest.fixture
def memory_config():
    """Config using the in-memory index and small windows."""
    return Config({
        "index": {"backend": "memory"},
        "fingerprint": {"kgram_size": 3, "window_size": 2},
    })


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep TOKENPRINT_* variables from the host out of the tests."""
    for name in ("TOKENPRINT_CONFIG", "TOKENPRINT_KGRAM_SIZE", "TOKENPRINT_WINDOW_SIZE",
                 "TOKENPRINT_INDEX_BACKEND", "TOKENPRINT_DB_PATH", "TOKENPRINT_LOG_LEVEL",
                 "TOKENPRINT_MAX_WORKERS"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def shadowing_source():
    """Module class ``A`` shadowed by a class of the same name inside ``main``."""
    return SHADOWING_SOURCE


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo handlers installed by ``setup_logging`` or the CLI."""
    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
