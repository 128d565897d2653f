#!/usr/bin/env python3
"""
Command-line interface for pyjavap - Java class file disassembler.
"""

import argparse
import logging
import sys
from pathlib import Path

from .classreader import read_class_file
from .display import format_class_file, format_code
from .errors import ClassFileError


def _load(source_file: str):
    path = Path(source_file)
    if not path.exists():
        print(f"Error: File not found: {source_file}", file=sys.stderr)
        sys.exit(1)

    try:
        return read_class_file(path)
    except (ClassFileError, OSError) as e:
        print(f"Error reading {source_file}: {e}", file=sys.stderr)
        sys.exit(1)


def dump_command(args):
    """Print the full dump of each class file."""
    for source_file in args.files:
        class_file = _load(source_file)
        print(format_class_file(class_file))


def instructions_command(args):
    """Print the decoded bytecode of the methods of one class file."""
    class_file = _load(args.file)

    methods = class_file.methods
    if args.method:
        methods = [m for m in methods if m.name == args.method]
        if not methods:
            print(f"Error: No method named {args.method} in {class_file.name}", file=sys.stderr)
            sys.exit(1)

    for method in methods:
        print(f"{method.name}{method.type_descriptor}:")
        if method.code is None:
            print("    (no code)")
            continue
        for line in format_code(method.code):
            print(line)


def main():
    """Main entry point for pyjavap CLI."""
    parser = argparse.ArgumentParser(
        prog="pyjavap",
        description="Python Java class file disassembler",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only log errors",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Dump command
    dump_parser = subparsers.add_parser(
        "dump",
        help="Print the contents of class files",
    )
    dump_parser.add_argument(
        "files",
        nargs="+",
        help="Class files to dump",
    )
    dump_parser.set_defaults(func=dump_command)

    # Instructions command
    instructions_parser = subparsers.add_parser(
        "instructions",
        help="Print the decoded bytecode of a class file",
    )
    instructions_parser.add_argument(
        "file",
        help="Class file to disassemble",
    )
    instructions_parser.add_argument(
        "-m", "--method",
        help="Only show the method with this name",
    )
    instructions_parser.set_defaults(func=instructions_command)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    args.func(args)


if __name__ == "__main__":
    main()
