from __future__ import annotations

from typing import Optional

from llvmlite import ir  # type: ignore

from .codegen import DEFAULT_MODULE_NAME, lower
from .lexer import tokenize
from .parser import parse
from .types import TargetConfig


def compile_source(
    source: str,
    target: Optional[TargetConfig] = None,
    module_name: str = DEFAULT_MODULE_NAME,
) -> ir.Module:
    """Run the whole pipeline: lex, parse and lower `source` into an LLVM module."""
    root = parse(source, tokenize(source))
    return lower(root, target=target, module_name=module_name)
