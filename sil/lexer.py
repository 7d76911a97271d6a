from __future__ import annotations

from pathlib import Path
from typing import List

from lark import Lark
from lark.exceptions import UnexpectedCharacters

from .errors import LexError
from .tokens import KEYWORDS, Located, Token, TokenKind

_GRAMMAR_PATH = Path(__file__).with_name("lexer.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

_LEXER = Lark(
    _GRAMMAR_SRC,
    parser="lalr",
    lexer="basic",
    start="start",
)


def tokenize(source: str) -> List[Token]:
    """Scan `source` into tokens, terminated by a single EOF token."""
    tokens: List[Token] = []
    try:
        for tok in _LEXER.lex(source):
            kind = TokenKind[tok.type]
            if kind is TokenKind.SYMBOL:
                kind = KEYWORDS.get(tok.value, kind)
            tokens.append(
                Token(
                    kind=kind,
                    start=tok.start_pos,
                    end=tok.end_pos,
                    line=tok.line,
                    column=tok.column,
                )
            )
    except UnexpectedCharacters as exc:
        loc = Located(line=exc.line, column=exc.column)
        raise LexError(f"unexpected character {exc.char!r}", loc) from exc
    end = _end_position(source)
    tokens.append(Token(kind=TokenKind.EOF, start=len(source), end=len(source), line=end.line, column=end.column))
    return tokens


def _end_position(source: str) -> Located:
    line = source.count("\n") + 1
    bol = source.rfind("\n")
    return Located(line=line, column=len(source) - bol)
