from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TokenKind(Enum):
    KEYWORD_FN = "'fn'"
    KEYWORD_EXTERN = "'extern'"
    KEYWORD_RET = "'ret'"
    SYMBOL = "symbol"
    NUMBER = "number"
    STRING = "string"
    LPAREN = "'('"
    RPAREN = "')'"
    LBRACE = "'{'"
    RBRACE = "'}'"
    COMMA = "','"
    COLON = "':'"
    SEMICOLON = "';'"
    ARROW = "'->'"
    STAR = "'*'"
    PLUS = "'+'"
    MINUS = "'-'"
    SLASH = "'/'"
    EOF = "end of file"

    def __str__(self) -> str:
        return self.value


KEYWORDS = {
    "fn": TokenKind.KEYWORD_FN,
    "extern": TokenKind.KEYWORD_EXTERN,
    "ret": TokenKind.KEYWORD_RET,
}


@dataclass(frozen=True)
class Located:
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


NOWHERE = Located(line=0, column=0)


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    start: int
    end: int
    line: int
    column: int

    @property
    def loc(self) -> Located:
        return Located(line=self.line, column=self.column)

    def text(self, source: str) -> str:
        return source[self.start : self.end]
