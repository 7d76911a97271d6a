from __future__ import annotations

from typing import List, Sequence, Tuple

from . import ast
from .errors import UnsupportedConstruct
from .parser import PRECEDENCE


def format_type(type_name: ast.TypeName) -> str:
    stars = ""
    while isinstance(type_name, ast.PointerType):
        stars += "*"
        type_name = type_name.child
    if isinstance(type_name, ast.PrimitiveType):
        return stars + type_name.kind.value
    raise UnsupportedConstruct(f"not a type name: {type_name!r}")


def format_expr(expr: ast.Expr) -> str:
    if isinstance(expr, ast.NumberLiteral):
        return expr.text
    if isinstance(expr, ast.StringLiteral):
        return f'"{expr.text}"'
    if isinstance(expr, ast.FunctionCall):
        args = ", ".join(format_expr(arg) for arg in expr.args)
        return f"{expr.name}({args})"
    if isinstance(expr, ast.Infix):
        return _format_infix(expr)
    raise UnsupportedConstruct(f"unexpected expression {type(expr).__name__}")


def _format_infix(expr: ast.Infix) -> str:
    # Unparenthesised left operands are flattened into one chain.
    spine = [expr]
    while isinstance(spine[-1].left, ast.Infix) and not _binds_looser(spine[-1].left, PRECEDENCE[spine[-1].op]):
        spine.append(spine[-1].left)
    innermost = spine[-1]
    text = format_expr(innermost.left)
    if _binds_looser(innermost.left, PRECEDENCE[innermost.op]):
        text = f"({text})"
    for node in reversed(spine):
        right = format_expr(node.right)
        # Operators are left-associative: an equal-precedence right operand
        # was written in parentheses.
        if _binds_looser(node.right, PRECEDENCE[node.op] + 1):
            right = f"({right})"
        text = f"{text} {node.op.value} {right}"
    return text


def _binds_looser(expr: ast.Expr, prec: int) -> bool:
    return isinstance(expr, ast.Infix) and PRECEDENCE[expr.op] < prec


def format_stmt(stmt: ast.Stmt) -> str:
    if isinstance(stmt, ast.ReturnStmt):
        return f"ret {format_expr(stmt.value)};"
    if isinstance(stmt, ast.ExprStmt):
        return f"{format_expr(stmt.value)};"
    raise UnsupportedConstruct(f"unexpected statement {type(stmt).__name__}")


def format_proto(proto: ast.FnProto) -> str:
    params = ", ".join(f"{p.name}: {format_type(p.type)}" for p in proto.params)
    header = f"fn {proto.name}({params})"
    if isinstance(proto.return_type, ast.PrimitiveType) and proto.return_type.kind is ast.Primitive.VOID:
        return header
    return f"{header} -> {format_type(proto.return_type)}"


def format_decl(decl: ast.Decl) -> str:
    if isinstance(decl, ast.ExternFn):
        return f"extern {format_proto(decl.proto)};"
    if isinstance(decl, ast.Fn):
        lines = [f"{format_proto(decl.proto)} {{"]
        lines.extend(f"    {format_stmt(stmt)}" for stmt in decl.body.statements)
        lines.append("}")
        return "\n".join(lines)
    raise UnsupportedConstruct(f"unexpected top-level node {type(decl).__name__}")


def format_program(root: ast.Root) -> str:
    """Render `root` as source text that parses back to an equal tree."""
    return "\n\n".join(format_decl(decl) for decl in root.functions) + "\n"


def dump_ast(root: ast.Root) -> str:
    """Indented debug view of the tree, one node per line."""
    lines: List[str] = ["Root"]
    # Children are pushed in reverse so they pop in source order.
    stack: List[Tuple[object, int]] = [(decl, 1) for decl in reversed(root.functions)]
    while stack:
        node, depth = stack.pop()
        line, children = _describe(node)
        lines.append("  " * depth + line)
        stack.extend((child, depth + 1) for child in reversed(children))
    return "\n".join(lines)


def _describe(node: object) -> Tuple[str, Sequence[object]]:
    if isinstance(node, ast.ExternFn):
        return f"ExternFn {_proto_summary(node.proto)}", ()
    if isinstance(node, ast.Fn):
        return f"Fn {_proto_summary(node.proto)}", node.body.statements
    if isinstance(node, ast.ReturnStmt):
        return "Return", (node.value,)
    if isinstance(node, ast.ExprStmt):
        return "ExprStmt", (node.value,)
    if isinstance(node, ast.FunctionCall):
        return f"Call {node.name}", node.args
    if isinstance(node, ast.Infix):
        return f"Infix {node.op.value}", (node.left, node.right)
    if isinstance(node, ast.StringLiteral):
        return f'String "{node.text}"', ()
    if isinstance(node, ast.NumberLiteral):
        return f"Number {node.text}", ()
    raise UnsupportedConstruct(f"unexpected node {type(node).__name__}")


def _proto_summary(proto: ast.FnProto) -> str:
    params = ", ".join(f"{p.name}: {format_type(p.type)}" for p in proto.params)
    return f"{proto.name}({params}) -> {format_type(proto.return_type)}"
