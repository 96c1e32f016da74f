"""Command-line entry point: fill the struct literal at a position in a Go file."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from structfill.config import Settings, indent_unit
from structfill.engine import Engine
from structfill.registry import TypeRegistry


def line_column_to_offset(source: str, line: int, column: int) -> int:
    """Convert a 1-based line and column into a character offset."""
    offset = 0
    for _ in range(line - 1):
        nl = source.find("\n", offset)
        if nl == -1:
            return len(source)
        offset = nl + 1
    return min(offset + max(column - 1, 0), len(source))


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    arg_parser = argparse.ArgumentParser(
        description="Complete and reorder the Go struct literal at a position"
    )
    arg_parser.add_argument(
        "file",
        type=Path,
        help="Go source file containing the literal",
    )
    arg_parser.add_argument(
        "-l", "--line",
        type=int,
        help="Line of the cursor (1-based)",
    )
    arg_parser.add_argument(
        "-c", "--column",
        type=int,
        default=1,
        help="Column of the cursor (1-based, default 1)",
    )
    arg_parser.add_argument(
        "-o", "--offset",
        type=int,
        help="Character offset of the cursor, instead of --line/--column",
    )
    arg_parser.add_argument(
        "-w", "--write",
        action="store_true",
        help="Rewrite the file in place instead of printing it",
    )
    arg_parser.add_argument(
        "--indent",
        type=str,
        help="Indentation unit for emitted fields (a number means that many spaces)",
    )
    arg_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log registry activity to stderr",
    )

    args = arg_parser.parse_args(argv)

    settings = Settings.from_env()
    if args.indent:
        settings = replace(settings, indent=indent_unit(args.indent))
    logging.basicConfig(level=logging.DEBUG if args.verbose else settings.log_level)

    if not args.file.is_file():
        print(f"Error: File not found: {args.file}", file=sys.stderr)
        return 1
    if args.offset is None and args.line is None:
        print("Error: --line or --offset is required", file=sys.stderr)
        return 1

    source = args.file.read_text(encoding="utf-8")
    if args.offset is not None:
        offset = args.offset
    else:
        offset = line_column_to_offset(source, args.line, args.column)

    engine = Engine(TypeRegistry(settings=settings))
    result = engine.fill_at(args.file, source, offset)
    if not result.ok:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1

    patched = result.apply(source)
    if args.write:
        if result.changed:
            args.file.write_text(patched, encoding="utf-8")
    else:
        sys.stdout.write(patched)
    return 0


if __name__ == "__main__":
    sys.exit(main())
