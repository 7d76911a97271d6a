from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union

from llvmlite import ir  # type: ignore

from . import ast
from .errors import UnsupportedConstruct

_FIXED_WIDTHS = {
    ast.Primitive.I8: 8,
    ast.Primitive.I16: 16,
    ast.Primitive.U16: 16,
    ast.Primitive.I32: 32,
    ast.Primitive.U32: 32,
    ast.Primitive.I64: 64,
    ast.Primitive.U64: 64,
}

_WORD_SIZED = frozenset({ast.Primitive.ISIZE, ast.Primitive.USIZE})
_VOID_LIKE = frozenset({ast.Primitive.VOID, ast.Primitive.UNREACHABLE})

_SIGNED_BY_WIDTH = {
    8: ast.Primitive.I8,
    16: ast.Primitive.I16,
    32: ast.Primitive.I32,
    64: ast.Primitive.I64,
}


@dataclass(frozen=True)
class TargetConfig:
    """Widths the lowering assumes for the target.

    - int_bits  → width of integer literals
    - byte_bits → width of `u8`, the element type of strings and `*void`
    - word_bits → width of `isize`/`usize`
    """

    int_bits: int = 32
    byte_bits: int = 8
    word_bits: int = 64

    def __post_init__(self) -> None:
        if self.int_bits not in _SIGNED_BY_WIDTH:
            raise ValueError(f"unsupported literal width {self.int_bits}")
        for name in ("byte_bits", "word_bits"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")

    @property
    def literal_type(self) -> ast.PrimitiveType:
        return ast.PrimitiveType(kind=_SIGNED_BY_WIDTH[self.int_bits])

    @property
    def byte_pointer_type(self) -> ast.PointerType:
        return ast.PointerType(child=ast.PrimitiveType(kind=ast.Primitive.U8))

    @property
    def literal_max(self) -> int:
        return 2 ** (self.int_bits - 1) - 1


DEFAULT_TARGET = TargetConfig()

# Structural key of a lowered type: ("void",), ("int", bits) or
# ("ptr", depth, bits), with pointer chains flattened to their depth.
Shape = Tuple[Union[str, int], ...]


def is_void(type_name: ast.TypeName) -> bool:
    return isinstance(type_name, ast.PrimitiveType) and type_name.kind in _VOID_LIKE


def is_unreachable(type_name: ast.TypeName) -> bool:
    return isinstance(type_name, ast.PrimitiveType) and type_name.kind is ast.Primitive.UNREACHABLE


def int_width(kind: ast.Primitive, target: TargetConfig = DEFAULT_TARGET) -> int:
    if kind in _FIXED_WIDTHS:
        return _FIXED_WIDTHS[kind]
    if kind is ast.Primitive.U8:
        return target.byte_bits
    if kind in _WORD_SIZED:
        return target.word_bits
    raise UnsupportedConstruct(f"'{kind.value}' has no integer width")


def pointer_depth(type_name: ast.TypeName) -> Tuple[int, ast.PrimitiveType]:
    """Split `type_name` into its number of `*` levels and the primitive underneath."""
    depth = 0
    while isinstance(type_name, ast.PointerType):
        depth += 1
        type_name = type_name.child
    if not isinstance(type_name, ast.PrimitiveType):
        raise UnsupportedConstruct(f"not a type name: {type_name!r}")
    return depth, type_name


def _pointee_width(base: ast.PrimitiveType, target: TargetConfig) -> int:
    # IR has no void*, so pointers to void-like types address bytes.
    if base.kind in _VOID_LIKE:
        return target.byte_bits
    return int_width(base.kind, target)


def shape_of(type_name: ast.TypeName, target: TargetConfig = DEFAULT_TARGET) -> Shape:
    """Return the structural key two types must share to be interchangeable in IR."""
    depth, base = pointer_depth(type_name)
    if depth:
        return ("ptr", depth, _pointee_width(base, target))
    if base.kind in _VOID_LIKE:
        return ("void",)
    return ("int", int_width(base.kind, target))


def format_shape(shape: Shape) -> str:
    if shape[0] == "void":
        return "void"
    if shape[0] == "int":
        return f"i{shape[1]}"
    return "*" * shape[1] + f"i{shape[2]}"  # type: ignore[operator]


def lower_type(type_name: ast.TypeName, target: TargetConfig = DEFAULT_TARGET) -> ir.Type:
    """Map a sil type name to an LLVM type.

    - i8, i16/u16 … → fixed-width ints (IR ints are signless)
    - u8              → target byte-width int
    - isize/usize     → target word-width int
    - void/unreachable→ void
    - *T              → pointer to lowered T, depth preserved; *void → byte pointer
    """
    depth, base = pointer_depth(type_name)
    if depth:
        lowered: ir.Type = ir.IntType(_pointee_width(base, target))
        for _ in range(depth):
            lowered = lowered.as_pointer()
        return lowered
    if base.kind in _VOID_LIKE:
        return ir.VoidType()
    return ir.IntType(int_width(base.kind, target))


def lower_function_type(proto: ast.FnProto, target: TargetConfig = DEFAULT_TARGET) -> ir.FunctionType:
    param_types = [lower_type(p.type, target) for p in proto.params]
    return ir.FunctionType(lower_type(proto.return_type, target), param_types)
