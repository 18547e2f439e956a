#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Command-line interface for the compiler diagnostics module.
"""
import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import ValidationError

from .compiler import CompilerInvocation, ToolchainCompiler, apply_crash_fallback
from .core_types import BuildResult, CompilerException
from .diagnostic_parser import DiagnosticParser
from .formatter import ConsoleFormatter
from .utils import load_json, save_json

EXIT_OK = 0
EXIT_BUILD_FAILED = 1
EXIT_USAGE_ERROR = 2

# CLI option name -> CompilerInvocation field
INVOCATION_OPTIONS = {
    "compiler": "compiler",
    "main_source": "main_source",
    "output_file": "output_file_name",
    "output_dir": "output_directory",
    "sdk_path": "sdk_path",
    "params": "compiler_parameters",
    "debug_argument": "debug_argument",
    "cwd": "working_directory",
    "timeout": "timeout",
}


def _add_output_options(parser: argparse.ArgumentParser) -> None:
    group = parser.add_argument_group("Output options")
    group.add_argument(
        "--json", action="store_true", help="Print the result as JSON"
    )
    group.add_argument(
        "--report", type=Path, help="Also write the result as JSON to this file"
    )
    group.add_argument(
        "--no-color", action="store_true", help="Disable colorized output"
    )
    group.add_argument(
        "--verbose", "-v", action="count", default=0, help="Increase verbosity"
    )
    group.add_argument(
        "--quiet", "-q", action="store_true", help="Suppress non-error output"
    )


def setup_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="compiler-diagnostics",
        description="Run an SDK compiler and extract structured diagnostics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Compile a project with the SDK compiler
  compiler-diagnostics compile src/Main.as --compiler mxmlc --sdk-path /opt/flex \\
      --output-dir bin --output-file Main.swf --debug \\
      --params="-strict=true -locale en_US"

  # Load the invocation from a JSON file
  compiler-diagnostics compile --config build.json --json

  # Parse output captured earlier
  compiler-diagnostics parse --stdout build.out --stderr build.err --exit-code 1
""",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    compile_parser = subparsers.add_parser("compile", help="Run the compiler")
    compile_parser.add_argument(
        "main_source", nargs="?", help="Main source file of the project"
    )
    compile_parser.add_argument("--compiler", help="Compiler executable name or path")
    compile_parser.add_argument("--sdk-path", type=Path, help="SDK root directory")
    compile_parser.add_argument("--output-dir", help="Output directory")
    compile_parser.add_argument("--output-file", help="Output file name")
    compile_parser.add_argument(
        "--debug", "-g", action="store_true", default=None, help="Build in debug mode"
    )
    compile_parser.add_argument("--debug-argument", help="Argument used for debug mode")
    compile_parser.add_argument(
        "--params",
        help="Extra compiler parameters, split on whitespace. Values starting "
        "with a dash need the --params=VALUE form",
    )
    compile_parser.add_argument("--cwd", type=Path, help="Working directory")
    compile_parser.add_argument("--timeout", type=float, help="Timeout in seconds")
    compile_parser.add_argument(
        "--config", type=Path, help="Load the invocation from a JSON file"
    )
    _add_output_options(compile_parser)

    parse_parser = subparsers.add_parser(
        "parse", help="Parse captured compiler output"
    )
    parse_parser.add_argument("--stdout", type=Path, help="File holding stdout")
    parse_parser.add_argument("--stderr", type=Path, help="File holding stderr")
    parse_parser.add_argument(
        "--exit-code",
        type=int,
        default=0,
        help="Exit code of the run, used for the crash fallback (default: 0)",
    )
    _add_output_options(parse_parser)

    return parser


def configure_logging(verbose: int = 0, quiet: bool = False) -> None:
    """Configure the loguru stderr handler from the verbosity flags."""
    logger.remove()
    if quiet:
        level = "WARNING"
    elif verbose >= 1:
        level = "DEBUG"
    else:
        level = "INFO"
    logger.add(sys.stderr, level=level)


def build_invocation(args: argparse.Namespace) -> CompilerInvocation:
    """Merge the configuration file with explicit command-line options."""
    data: Dict[str, Any] = load_json(args.config) if args.config else {}

    for option, field_name in INVOCATION_OPTIONS.items():
        value = getattr(args, option, None)
        if value is not None:
            data[field_name] = value
    if args.debug:
        data["debug_mode"] = True

    return CompilerInvocation.model_validate(data)


def _read_text(path: Optional[Path]) -> str:
    if path is None:
        return ""
    return path.read_text(encoding="utf-8", errors="replace")


def _emit(result: BuildResult, payload: Dict[str, Any], args: argparse.Namespace) -> None:
    if args.report:
        save_json(args.report, payload)
        logger.info(f"Report written to {args.report}")

    if args.json:
        print(json.dumps(payload, indent=2))
    elif not args.quiet:
        ConsoleFormatter(colorize=not args.no_color).display(result)


def run_compile(args: argparse.Namespace) -> int:
    invocation = build_invocation(args)
    report = ToolchainCompiler(invocation).compile()
    _emit(report.result, report.to_dict(), args)
    return EXIT_OK if report.success else EXIT_BUILD_FAILED


def run_parse(args: argparse.Namespace) -> int:
    stderr = _read_text(args.stderr)
    result = DiagnosticParser().parse_output(_read_text(args.stdout), stderr)
    apply_crash_fallback(result, args.exit_code, stderr)

    payload = {"exit_code": args.exit_code, **result.to_dict()}
    _emit(result, payload, args)
    if args.exit_code != 0 or not result.success:
        return EXIT_BUILD_FAILED
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function for command-line usage.
    """
    parser = setup_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose, args.quiet)

    try:
        if args.command == "compile":
            return run_compile(args)
        return run_parse(args)
    except ValidationError as e:
        logger.error(f"Invalid compiler configuration: {e}")
        return EXIT_USAGE_ERROR
    except (CompilerException, OSError) as e:
        logger.error(f"{e}")
        return EXIT_USAGE_ERROR
