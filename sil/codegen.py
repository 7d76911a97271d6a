"""
AST → LLVM IR lowering.

Three passes over one translation unit:
  1. collect every declared function into a SymbolTable (duplicates rejected),
  2. declare every signature in the module and remember its function type,
  3. emit an `entry` block per function body, statement by statement.

Because (1) and (2) finish before any body is emitted, a function may call one
declared later in the file.
"""

from __future__ import annotations

import codecs
import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, NamedTuple, Optional

from llvmlite import ir  # type: ignore

from . import ast
from .errors import (
    ArityMismatch,
    DuplicateSymbol,
    MalformedLiteral,
    TypeMismatch,
    UnknownFunction,
    UnreachableReturn,
    UnsupportedConstruct,
)
from .ir_builder import IrBuilder
from .tokens import Located
from .types import (
    DEFAULT_TARGET,
    TargetConfig,
    format_shape,
    is_unreachable,
    is_void,
    lower_function_type,
    lower_type,
    shape_of,
)

DEFAULT_MODULE_NAME = "SilModule"

_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)
# \xHH and octal \ooo are decoded by the codec; \u, \U and \N{...} are not sil.
_KNOWN_ESCAPES = frozenset("\\\"'abfnrtvx01234567")


@dataclass
class Symbol:
    decl: ast.Decl
    function: Optional[ir.Function] = None
    function_type: Optional[ir.FunctionType] = None

    @property
    def proto(self) -> ast.FnProto:
        return self.decl.proto

    @property
    def name(self) -> str:
        return self.decl.proto.name

    def bind(self, function: ir.Function) -> None:
        if self.function is not None:
            raise RuntimeError(f"signature of '{self.name}' already materialized")
        self.function = function
        self.function_type = function.function_type


class SymbolTable:
    """Declared functions by name, iterated in declaration order."""

    def __init__(self) -> None:
        self._entries: Dict[str, Symbol] = {}

    def declare(self, decl: ast.Decl) -> Symbol:
        name = decl.proto.name
        if name in self._entries:
            raise DuplicateSymbol(name, decl.proto.loc)
        sym = Symbol(decl=decl)
        self._entries[name] = sym
        return sym

    def lookup(self, name: str) -> Optional[Symbol]:
        return self._entries.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


class Typed(NamedTuple):
    value: Optional[ir.Value]
    type: ast.TypeName


def lower(
    root: ast.Root,
    target: Optional[TargetConfig] = None,
    builder: Optional[IrBuilder] = None,
    module_name: str = DEFAULT_MODULE_NAME,
) -> ir.Module:
    target = target or DEFAULT_TARGET
    return Lowering(target, builder or IrBuilder(byte_bits=target.byte_bits)).lower(root, module_name)


def collect_symbols(root: ast.Root) -> SymbolTable:
    symbols = SymbolTable()
    for decl in root.functions:
        if isinstance(decl, (ast.Fn, ast.ExternFn)):
            symbols.declare(decl)
        else:
            raise UnsupportedConstruct(f"unexpected top-level node {type(decl).__name__}")
    return symbols


class Lowering:
    def __init__(self, target: TargetConfig, builder: IrBuilder) -> None:
        self.target = target
        self.builder = builder
        self.symbols = SymbolTable()
        self.module: Optional[ir.Module] = None

    def lower(self, root: ast.Root, module_name: str = DEFAULT_MODULE_NAME) -> ir.Module:
        self.symbols = collect_symbols(root)
        self.module = self.builder.create_module(module_name)
        for sym in self.symbols:
            self._declare(sym)
        for sym in self.symbols:
            if isinstance(sym.decl, ast.Fn):
                self._lower_body(sym, sym.decl.body)
        return self.module

    def _declare(self, sym: Symbol) -> None:
        assert self.module is not None
        for param in sym.proto.params:
            if is_void(param.type):
                raise TypeMismatch(
                    f"parameter '{param.name}' of '{sym.name}' cannot have type '{param.type.kind.value}'",
                    param.loc,
                )
        fn_type = lower_function_type(sym.proto, self.target)
        function = self.builder.declare_function(
            self.module,
            sym.name,
            fn_type.args,
            fn_type.return_type,
            is_external=isinstance(sym.decl, ast.ExternFn),
        )
        sym.bind(function)

    def _lower_body(self, sym: Symbol, body: ast.Block) -> None:
        assert sym.function is not None
        entry = self.builder.append_block(sym.function, "entry")
        self.builder.position_at_end(entry)
        for stmt in body.statements:
            self._lower_stmt(sym, stmt)

    def _lower_stmt(self, sym: Symbol, stmt: ast.Stmt) -> None:
        if isinstance(stmt, ast.ReturnStmt):
            self._lower_return(sym, stmt)
        elif isinstance(stmt, ast.ExprStmt):
            self._lower_expr(stmt.value)
        else:
            raise UnsupportedConstruct(f"unexpected statement {type(stmt).__name__}", getattr(stmt, "loc", None))

    def _lower_return(self, sym: Symbol, stmt: ast.ReturnStmt) -> None:
        declared = sym.proto.return_type
        if is_unreachable(declared):
            raise UnreachableReturn(f"function '{sym.name}' is declared unreachable but returns", stmt.loc)
        result = self._lower_expr(stmt.value)
        self._check_same(declared, result.type, f"return value of '{sym.name}'", stmt.loc)
        if shape_of(declared, self.target) == ("void",):
            self.builder.build_return(None)
        else:
            self.builder.build_return(result.value)

    def _lower_expr(self, expr: ast.Expr) -> Typed:
        if isinstance(expr, ast.FunctionCall):
            return self._lower_call(expr)
        if isinstance(expr, ast.StringLiteral):
            return self._lower_string(expr)
        if isinstance(expr, ast.NumberLiteral):
            return self._lower_number(expr)
        if isinstance(expr, ast.Infix):
            return self._lower_infix(expr)
        raise UnsupportedConstruct(f"unexpected expression {type(expr).__name__}", getattr(expr, "loc", None))

    def _lower_call(self, call: ast.FunctionCall) -> Typed:
        sym = self.symbols.lookup(call.name)
        if sym is None:
            raise UnknownFunction(call.name, call.loc)
        params = sym.proto.params
        if len(call.args) != len(params):
            raise ArityMismatch(call.name, len(params), len(call.args), call.loc)
        args: List[ir.Value] = []
        for param, arg_expr in zip(params, call.args):
            arg = self._lower_expr(arg_expr)
            self._check_same(param.type, arg.type, f"argument '{param.name}' of '{call.name}'", arg_expr.loc)
            args.append(arg.value)
        assert sym.function is not None and sym.function_type is not None
        value = self.builder.build_call(sym.function_type, sym.function, args)
        return Typed(value, sym.proto.return_type)

    def _lower_string(self, lit: ast.StringLiteral) -> Typed:
        data = decode_string(lit)
        global_str = self.builder.build_global_string(data)
        ptr_type = self.target.byte_pointer_type
        value = self.builder.build_pointer_cast(global_str, lower_type(ptr_type, self.target))
        return Typed(value, ptr_type)

    def _lower_number(self, lit: ast.NumberLiteral) -> Typed:
        text = lit.text
        if not text or not (text.isascii() and text.isdigit()):
            raise MalformedLiteral(f"invalid integer literal '{text}'", lit.loc)
        if int(text, 10) > self.target.literal_max:
            raise MalformedLiteral(
                f"integer literal '{text}' does not fit in i{self.target.int_bits}",
                lit.loc,
            )
        lit_type = self.target.literal_type
        value = self.builder.const_int_from_text(lower_type(lit_type, self.target), text, 10)
        return Typed(value, lit_type)

    def _lower_infix(self, expr: ast.Infix) -> Typed:
        # Left-associative chains nest on the left; lower that spine iteratively.
        spine = [expr]
        while isinstance(spine[-1].left, ast.Infix):
            spine.append(spine[-1].left)
        acc = self._lower_expr(spine[-1].left)
        for node in reversed(spine):
            acc = self._combine(node, acc, self._lower_expr(node.right))
        return acc

    def _combine(self, expr: ast.Infix, left: Typed, right: Typed) -> Typed:
        for side in (left, right):
            if shape_of(side.type, self.target)[0] != "int":
                raise TypeMismatch(
                    f"operator '{expr.op.value}' expects integers, got "
                    f"{format_shape(shape_of(side.type, self.target))}",
                    expr.loc,
                )
        self._check_same(left.type, right.type, f"right operand of '{expr.op.value}'", expr.loc)
        value = self.builder.build_binary_op(expr.op, left.value, right.value)
        return Typed(value, left.type)

    def _check_same(self, expected: ast.TypeName, actual: ast.TypeName, what: str, loc: Optional[Located]) -> None:
        want = shape_of(expected, self.target)
        got = shape_of(actual, self.target)
        if want != got:
            raise TypeMismatch(f"{what}: expected {format_shape(want)}, got {format_shape(got)}", loc)


def decode_string(lit: ast.StringLiteral) -> bytes:
    """Resolve backslash escapes of a literal into the bytes it denotes."""
    for m in _ESCAPE_RE.finditer(lit.text):
        if m.group(1) not in _KNOWN_ESCAPES:
            raise MalformedLiteral(f"invalid escape sequence '\\{m.group(1)}' in string literal", lit.loc)
    try:
        return codecs.decode(lit.text.encode("utf-8"), "unicode_escape").encode("latin-1")
    except (UnicodeDecodeError, UnicodeEncodeError) as exc:
        raise MalformedLiteral(f"invalid string literal \"{lit.text}\": {exc.reason}", lit.loc) from exc
