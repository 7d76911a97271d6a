"""
IR builder capability used by lowering, backed by llvmlite's `ir` layer.

The builder is a thin translation of construction requests into llvmlite
objects. It performs no semantic validation: arity, types and symbol
resolution are the caller's responsibility, and a malformed request produces
whatever llvmlite produces for it.
"""

from __future__ import annotations

from typing import Optional, Sequence

from llvmlite import ir  # type: ignore

from .ast import BinaryOp
from .errors import UnsupportedConstruct

EXTERNAL_LINKAGE = "external"
C_CALLING_CONVENTION = "ccc"


class IrBuilder:
    def __init__(self, byte_bits: int = 8) -> None:
        self.byte_type = ir.IntType(byte_bits)
        self.module: Optional[ir.Module] = None
        self._builder = ir.IRBuilder()

    def create_module(self, name: str) -> ir.Module:
        self.module = ir.Module(name=name)
        return self.module

    def declare_function(
        self,
        module: ir.Module,
        name: str,
        param_types: Sequence[ir.Type],
        return_type: ir.Type,
        is_external: bool,
    ) -> ir.Function:
        fn_type = ir.FunctionType(return_type, list(param_types))
        fn = ir.Function(module, fn_type, name=name)
        if is_external:
            fn.linkage = EXTERNAL_LINKAGE
            fn.calling_convention = C_CALLING_CONVENTION
        return fn

    def append_block(self, function: ir.Function, label: str) -> ir.Block:
        return function.append_basic_block(name=label)

    def position_at_end(self, block: ir.Block) -> None:
        self._builder.position_at_end(block)

    def build_call(self, function_type: ir.FunctionType, callee: ir.Function, args: Sequence[ir.Value]) -> ir.Instruction:
        # Void results cannot carry a name in textual IR.
        name = "" if isinstance(function_type.return_type, ir.VoidType) else "call"
        return self._builder.call(callee, list(args), name=name, cconv=callee.calling_convention or None)

    def build_return(self, value: Optional[ir.Value]) -> ir.Instruction:
        if value is None:
            return self._builder.ret_void()
        return self._builder.ret(value)

    def build_binary_op(self, kind: BinaryOp, left: ir.Value, right: ir.Value) -> ir.Instruction:
        if kind is BinaryOp.ADD:
            return self._builder.add(left, right, name="add")
        if kind is BinaryOp.SUB:
            return self._builder.sub(left, right, name="sub")
        if kind is BinaryOp.MUL:
            return self._builder.mul(left, right, name="mul")
        if kind is BinaryOp.DIV:
            return self._builder.sdiv(left, right, name="div")
        raise UnsupportedConstruct(f"unhandled infix operator {kind}")

    def build_global_string(self, text: bytes) -> ir.GlobalVariable:
        """Emit a private, NUL-terminated constant holding `text`."""
        if self.module is None:
            raise RuntimeError("create_module must be called before emitting globals")
        data = bytes(text) + b"\x00"
        arr_ty = ir.ArrayType(self.byte_type, len(data))
        gv = ir.GlobalVariable(self.module, arr_ty, name=self.module.get_unique_name(".str"))
        gv.linkage = "private"
        gv.global_constant = True
        gv.unnamed_addr = True
        if self.byte_type.width == 8:
            gv.initializer = ir.Constant(arr_ty, bytearray(data))
        else:
            gv.initializer = ir.Constant(arr_ty, [ir.Constant(self.byte_type, b) for b in data])
        return gv

    def build_pointer_cast(self, value: ir.Value, target_type: ir.Type) -> ir.Value:
        return self._builder.bitcast(value, target_type, name="cast")

    def const_int_from_text(self, type: ir.IntType, digits: str, base: int) -> ir.Constant:
        return ir.Constant(type, int(digits, base))
