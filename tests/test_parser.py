from __future__ import annotations

import pytest

from sil import ast
from sil.ast import BinaryOp, Primitive
from sil.errors import ParseError, UnknownTypeName
from sil.lexer import tokenize
from sil.parser import parse, parse_source
from sil.tokens import Token, TokenKind


def _prim(kind: Primitive) -> ast.PrimitiveType:
    return ast.PrimitiveType(kind=kind)


def _num(text: str) -> ast.NumberLiteral:
    return ast.NumberLiteral(text=text)


def _main_return(source: str) -> ast.Expr:
    root = parse_source(source)
    fn = root.functions[0]
    assert isinstance(fn, ast.Fn)
    stmt = fn.body.statements[0]
    assert isinstance(stmt, ast.ReturnStmt)
    return stmt.value


def test_parse_extern_and_fn() -> None:
    root = parse_source("extern fn putchar(c: i32) -> i32;\nfn main() -> i32 { ret putchar(65); }")
    assert root == ast.Root(
        functions=[
            ast.ExternFn(
                proto=ast.FnProto(
                    name="putchar",
                    params=[ast.Pattern(name="c", type=_prim(Primitive.I32))],
                    return_type=_prim(Primitive.I32),
                )
            ),
            ast.Fn(
                proto=ast.FnProto(name="main", params=[], return_type=_prim(Primitive.I32)),
                body=ast.Block(
                    statements=[ast.ReturnStmt(value=ast.FunctionCall(name="putchar", args=[_num("65")]))]
                ),
            ),
        ]
    )


def test_return_type_defaults_to_void_for_fn_and_extern() -> None:
    root = parse_source("extern fn exit(code: i32);\nfn main() { exit(0); }")
    extern_fn, fn = root.functions
    assert extern_fn.proto.return_type == _prim(Primitive.VOID)
    assert fn.proto.return_type == _prim(Primitive.VOID)


def test_explicit_void_matches_default() -> None:
    assert parse_source("fn f() -> void {}") == parse_source("fn f() {}")


def test_parameters_and_nested_pointer_types() -> None:
    root = parse_source("extern fn f(a: **u8, b: unreachable, c: usize) -> *i64;")
    proto = root.functions[0].proto
    assert [p.name for p in proto.params] == ["a", "b", "c"]
    assert proto.params[0].type == ast.PointerType(child=ast.PointerType(child=_prim(Primitive.U8)))
    assert proto.params[1].type == _prim(Primitive.UNREACHABLE)
    assert proto.params[2].type == _prim(Primitive.USIZE)
    assert proto.return_type == ast.PointerType(child=_prim(Primitive.I64))


def test_multiplication_binds_tighter_than_addition() -> None:
    value = _main_return("fn main() -> i32 { ret 1 + 2 * 3; }")
    assert value == ast.Infix(
        op=BinaryOp.ADD,
        left=_num("1"),
        right=ast.Infix(op=BinaryOp.MUL, left=_num("2"), right=_num("3")),
    )


def test_operators_are_left_associative() -> None:
    value = _main_return("fn main() -> i32 { ret 8 - 4 - 2 / 2 / 1; }")
    assert value == ast.Infix(
        op=BinaryOp.SUB,
        left=ast.Infix(op=BinaryOp.SUB, left=_num("8"), right=_num("4")),
        right=ast.Infix(
            op=BinaryOp.DIV,
            left=ast.Infix(op=BinaryOp.DIV, left=_num("2"), right=_num("2")),
            right=_num("1"),
        ),
    )


def test_parentheses_override_precedence() -> None:
    value = _main_return("fn main() -> i32 { ret (1 + 2) * 3; }")
    assert value == ast.Infix(
        op=BinaryOp.MUL,
        left=ast.Infix(op=BinaryOp.ADD, left=_num("1"), right=_num("2")),
        right=_num("3"),
    )


def test_call_arguments_and_strings() -> None:
    root = parse_source('fn main() { printf("%d\\n", add(1, 2) * 2); noop(); }')
    stmts = root.functions[0].body.statements
    assert len(stmts) == 2
    first, second = stmts
    assert isinstance(first, ast.ExprStmt)
    call = first.value
    assert isinstance(call, ast.FunctionCall)
    assert call.name == "printf"
    assert call.args[0] == ast.StringLiteral(text="%d\\n")
    assert call.args[1] == ast.Infix(
        op=BinaryOp.MUL,
        left=ast.FunctionCall(name="add", args=[_num("1"), _num("2")]),
        right=_num("2"),
    )
    assert second == ast.ExprStmt(value=ast.FunctionCall(name="noop", args=[]))


def test_nodes_record_source_positions() -> None:
    root = parse_source("fn main() {\n    ret foo();\n}")
    fn = root.functions[0]
    stmt = fn.body.statements[0]
    assert (fn.loc.line, fn.loc.column) == (1, 1)
    assert (stmt.loc.line, stmt.loc.column) == (2, 5)
    assert (stmt.value.loc.line, stmt.value.loc.column) == (2, 9)


def test_parsing_is_deterministic() -> None:
    source = "extern fn f(a: i32) -> i32; fn g() -> i32 { ret f(1 + 2) / 3; }"
    tokens = tokenize(source)
    assert parse(source, tokens) == parse(source, tokens)


def test_parse_hand_built_token_stream() -> None:
    source = "fn f() {}"
    tokens = [
        Token(TokenKind.KEYWORD_FN, 0, 2, 1, 1),
        Token(TokenKind.SYMBOL, 3, 4, 1, 4),
        Token(TokenKind.LPAREN, 4, 5, 1, 5),
        Token(TokenKind.RPAREN, 5, 6, 1, 6),
        Token(TokenKind.LBRACE, 7, 8, 1, 8),
        Token(TokenKind.RBRACE, 8, 9, 1, 9),
        Token(TokenKind.EOF, 9, 9, 1, 10),
    ]
    root = parse(source, tokens)
    assert root == ast.Root(
        functions=[
            ast.Fn(
                proto=ast.FnProto(name="f", params=[], return_type=_prim(Primitive.VOID)),
                body=ast.Block(statements=[]),
            )
        ]
    )


def test_empty_stream_parses_to_empty_root() -> None:
    assert parse("", [Token(TokenKind.EOF, 0, 0, 1, 1)]) == ast.Root(functions=[])


def test_stream_without_eof_is_rejected() -> None:
    with pytest.raises(ValueError):
        parse("fn", [Token(TokenKind.KEYWORD_FN, 0, 2, 1, 1)])


def test_missing_semicolon_reports_expected_and_actual() -> None:
    with pytest.raises(ParseError) as excinfo:
        parse_source("fn main() -> i32 {\n  ret 1\n}")
    err = excinfo.value
    assert err.expected == "';'"
    assert err.actual == "'}'"
    assert (err.loc.line, err.loc.column) == (3, 1)
    assert str(err) == "3:1: expected ';', got '}'"


def test_unterminated_block_hits_eof() -> None:
    with pytest.raises(ParseError) as excinfo:
        parse_source("fn main() { foo();")
    assert excinfo.value.expected == "expression"
    assert excinfo.value.actual == "end of file"


def test_top_level_statement_is_rejected() -> None:
    with pytest.raises(ParseError) as excinfo:
        parse_source("ret 1;")
    assert excinfo.value.expected == "function declaration"
    assert excinfo.value.actual == "'ret'"


def test_extern_requires_semicolon_not_body() -> None:
    with pytest.raises(ParseError) as excinfo:
        parse_source("extern fn f() {}")
    assert excinfo.value.expected == "';'"


def test_trailing_comma_in_parameters_is_rejected() -> None:
    with pytest.raises(ParseError) as excinfo:
        parse_source("fn f(a: i32,) {}")
    assert excinfo.value.expected == "symbol"
    assert excinfo.value.actual == "')'"


def test_missing_comma_between_arguments_is_rejected() -> None:
    with pytest.raises(ParseError) as excinfo:
        parse_source("fn f() { g(1 2); }")
    assert excinfo.value.expected == "')'"
    assert excinfo.value.actual == "number"


def test_call_requires_parentheses() -> None:
    with pytest.raises(ParseError) as excinfo:
        parse_source("fn f() { g; }")
    assert excinfo.value.expected == "'('"


def test_unknown_primitive_type() -> None:
    with pytest.raises(UnknownTypeName) as excinfo:
        parse_source("fn f(x: f64) {}")
    assert excinfo.value.name == "f64"
    assert (excinfo.value.loc.line, excinfo.value.loc.column) == (1, 9)


def test_type_position_requires_symbol() -> None:
    with pytest.raises(ParseError) as excinfo:
        parse_source("fn f(x: 12) {}")
    assert excinfo.value.expected == "symbol"
    assert excinfo.value.actual == "number"


def test_deep_pointer_type_parses() -> None:
    root = parse_source("extern fn f(p: " + "*" * 2000 + "i32);")
    ty = root.functions[0].proto.params[0].type
    depth = 0
    while isinstance(ty, ast.PointerType):
        ty = ty.child
        depth += 1
    assert depth == 2000
    assert ty == _prim(Primitive.I32)


def test_long_sum_nests_on_the_left() -> None:
    value = _main_return("fn main() -> i32 { ret " + " + ".join(["1"] * 2000) + "; }")
    operators = 0
    while isinstance(value, ast.Infix):
        assert value.op is BinaryOp.ADD
        assert value.right == _num("1")
        value = value.left
        operators += 1
    assert operators == 1999
    assert value == _num("1")
