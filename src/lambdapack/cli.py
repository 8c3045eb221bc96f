"""Command-line front-end.

Usage:
    lambdapack list lib/handler.js --path .
    lambdapack package lib/handler.js build/lambda.zip --tsconfig tsconfig.json
"""

from __future__ import annotations

import argparse
import os
import shlex
import sys
from collections.abc import Sequence
from pathlib import Path

from lambdapack.errors import LambdaPackError
from lambdapack.graph import resolve_dependencies
from lambdapack.models import ResolveOptions
from lambdapack.observability import StructuredLogger
from lambdapack.packager import package
from lambdapack.process import spawn


def cmd_list(args: argparse.Namespace, logger: StructuredLogger) -> None:
    cwd = Path.cwd()
    for path in resolve_dependencies(args.entry, _options(args), logger=logger):
        print(os.path.relpath(path, cwd))


def cmd_package(args: argparse.Namespace, logger: StructuredLogger) -> None:
    for command in args.before:
        argv = shlex.split(command)
        if argv:
            spawn(argv[0], argv[1:])
    package(args.entry, args.output, _options(args), logger=logger)
    print(f"Packaged {args.entry} into {args.output}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lambdapack",
        description="Collect the files a Node.js module depends on and zip them for deployment.",
    )
    parser.add_argument("--log", help="Write structured resolution records as JSON lines")
    sub = parser.add_subparsers(dest="command", required=True)

    list_p = sub.add_parser("list", help="Print the files the entry module depends on")
    list_p.add_argument("entry", help="Entry module")
    _add_resolve_arguments(list_p)

    package_p = sub.add_parser("package", help="Write the entry module and its dependencies to a zip")
    package_p.add_argument("entry", help="Entry module")
    package_p.add_argument("output", help="Archive to create")
    package_p.add_argument(
        "--before",
        action="append",
        default=[],
        metavar="COMMAND",
        help="Command to run before packaging, e.g. 'tsc -p .' (repeatable)",
    )
    _add_resolve_arguments(package_p)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logger = StructuredLogger()
    try:
        if args.command == "list":
            cmd_list(args, logger)
        elif args.command == "package":
            cmd_package(args, logger)
    except LambdaPackError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        if args.log:
            logger.to_json_lines(args.log)
    return 0


def _add_resolve_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--ignore-missing",
        action="store_true",
        help="Skip specifiers that cannot be resolved instead of failing",
    )
    parser.add_argument(
        "--path",
        action="append",
        default=[],
        metavar="DIR",
        help="Extra directory to search for modules (repeatable)",
    )
    parser.add_argument("--tsconfig", help="tsconfig.json enabling TypeScript sources and aliases")


def _options(args: argparse.Namespace) -> ResolveOptions:
    return ResolveOptions(
        ignore_missing=args.ignore_missing,
        paths=tuple(Path(item) for item in args.path),
        tsconfig=Path(args.tsconfig) if args.tsconfig else None,
    )
