#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .codegen import DEFAULT_MODULE_NAME, lower
from .errors import SilError
from .lexer import tokenize
from .parser import parse
from .printer import dump_ast
from .types import TargetConfig


def compile_file(
    source_path: Path,
    output_path: Path | None,
    emit_ir: bool,
    dump: bool,
    module_name: str,
    target: TargetConfig,
) -> int:
    try:
        source = source_path.read_text()
    except OSError as e:
        print(f"{source_path}:?:?: error: {e.strerror}", file=sys.stderr)
        return 1
    try:
        root = parse(source, tokenize(source))
        if dump:
            print(dump_ast(root))
        module = lower(root, target=target, module_name=module_name)
        ir_text = str(module)
    except SilError as e:
        loc = str(e.loc) if e.loc is not None else "?:?"
        print(f"{source_path}:{loc}: error: {e.message}", file=sys.stderr)
        return 1
    except RecursionError:
        # Parenthesised and call-argument nesting is handled recursively.
        print(f"{source_path}:?:?: error: program nests too deeply to compile", file=sys.stderr)
        return 1
    if emit_ir:
        print(ir_text)
    if output_path is not None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(ir_text)
    return 0


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="silc: sil -> LLVM IR compiler (straight-line subset)")
    ap.add_argument("source", type=Path, help="sil source file")
    ap.add_argument("-o", "--output", type=Path, help="Write the textual LLVM IR (.ll) to this path")
    ap.add_argument("--emit-ir", action="store_true", help="Print the generated LLVM IR to stdout")
    ap.add_argument("--dump-ast", action="store_true", help="Print the parsed AST before lowering")
    ap.add_argument("--module-name", default=DEFAULT_MODULE_NAME, help="Name of the emitted LLVM module")
    ap.add_argument(
        "--int-bits",
        type=int,
        choices=[8, 16, 32, 64],
        default=32,
        help="Width of integer literals (default: 32)",
    )
    ap.add_argument(
        "--word-bits",
        type=int,
        choices=[16, 32, 64],
        default=64,
        help="Width of isize/usize (default: 64)",
    )
    args = ap.parse_args(argv)

    target = TargetConfig(int_bits=args.int_bits, word_bits=args.word_bits)
    return compile_file(
        args.source,
        args.output,
        args.emit_ir,
        args.dump_ast,
        args.module_name,
        target,
    )


if __name__ == "__main__":
    raise SystemExit(main())
