from __future__ import annotations

from typing import Optional

from .tokens import Located


class SilError(Exception):
    """Base class for every diagnostic raised while translating a program."""

    def __init__(self, message: str, loc: Optional[Located] = None) -> None:
        super().__init__(message)
        self.message = message
        self.loc = loc

    def __str__(self) -> str:
        if self.loc is None:
            return self.message
        return f"{self.loc.line}:{self.loc.column}: {self.message}"


class LexError(SilError):
    pass


class ParseError(SilError):
    def __init__(self, expected: str, actual: str, loc: Located) -> None:
        super().__init__(f"expected {expected}, got {actual}", loc)
        self.expected = expected
        self.actual = actual


class UnknownTypeName(SilError):
    def __init__(self, name: str, loc: Optional[Located] = None) -> None:
        super().__init__(f"unknown type name '{name}'", loc)
        self.name = name


class UnsupportedConstruct(SilError):
    pass


class LoweringError(SilError):
    pass


class DuplicateSymbol(LoweringError):
    def __init__(self, name: str, loc: Optional[Located] = None) -> None:
        super().__init__(f"multiple definitions of function '{name}'", loc)
        self.name = name


class UnknownFunction(LoweringError):
    def __init__(self, name: str, loc: Optional[Located] = None) -> None:
        super().__init__(f"call to undefined function '{name}'", loc)
        self.name = name


class ArityMismatch(LoweringError):
    def __init__(self, name: str, expected: int, actual: int, loc: Optional[Located] = None) -> None:
        super().__init__(
            f"function '{name}' takes {expected} argument(s) but {actual} were given",
            loc,
        )
        self.name = name
        self.expected = expected
        self.actual = actual


class MalformedLiteral(LoweringError):
    pass


class TypeMismatch(LoweringError):
    pass


class UnreachableReturn(LoweringError):
    pass
