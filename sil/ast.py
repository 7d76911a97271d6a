from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Union

from .tokens import NOWHERE, Located


class Primitive(Enum):
    VOID = "void"
    UNREACHABLE = "unreachable"
    I8 = "i8"
    U8 = "u8"
    I16 = "i16"
    U16 = "u16"
    I32 = "i32"
    U32 = "u32"
    I64 = "i64"
    U64 = "u64"
    ISIZE = "isize"
    USIZE = "usize"


PRIMITIVES_BY_NAME = {p.value: p for p in Primitive}


class BinaryOp(Enum):
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"


@dataclass
class PrimitiveType:
    kind: Primitive
    loc: Located = field(default=NOWHERE, compare=False)


@dataclass
class PointerType:
    child: "TypeName"
    loc: Located = field(default=NOWHERE, compare=False)


TypeName = Union[PrimitiveType, PointerType]


@dataclass
class Pattern:
    name: str
    type: TypeName
    loc: Located = field(default=NOWHERE, compare=False)


@dataclass
class FunctionCall:
    name: str
    args: List["Expr"]
    loc: Located = field(default=NOWHERE, compare=False)


@dataclass
class StringLiteral:
    # Escaped form, exactly as written between the quotes.
    text: str
    loc: Located = field(default=NOWHERE, compare=False)


@dataclass
class NumberLiteral:
    text: str
    loc: Located = field(default=NOWHERE, compare=False)


@dataclass
class Infix:
    op: BinaryOp
    left: "Expr"
    right: "Expr"
    loc: Located = field(default=NOWHERE, compare=False)


Expr = Union[FunctionCall, StringLiteral, NumberLiteral, Infix]


@dataclass
class ReturnStmt:
    value: Expr
    loc: Located = field(default=NOWHERE, compare=False)


@dataclass
class ExprStmt:
    value: Expr
    loc: Located = field(default=NOWHERE, compare=False)


Stmt = Union[ReturnStmt, ExprStmt]


@dataclass
class Block:
    statements: List[Stmt]
    loc: Located = field(default=NOWHERE, compare=False)


@dataclass
class FnProto:
    name: str
    params: List[Pattern]
    return_type: TypeName
    loc: Located = field(default=NOWHERE, compare=False)


@dataclass
class Fn:
    proto: FnProto
    body: Block
    loc: Located = field(default=NOWHERE, compare=False)


@dataclass
class ExternFn:
    proto: FnProto
    loc: Located = field(default=NOWHERE, compare=False)


Decl = Union[Fn, ExternFn]


@dataclass
class Root:
    functions: List[Decl]
    loc: Located = field(default=NOWHERE, compare=False)


def void_type(loc: Located = NOWHERE) -> PrimitiveType:
    return PrimitiveType(kind=Primitive.VOID, loc=loc)
