#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Compiler Diagnostics Module

This module runs an external SDK compiler on behalf of a project build and
turns its textual report into structured diagnostics.

Features:
- Synchronous compiler invocation with separately captured stdout and stderr
- Ordered pattern cascade covering positional, file-only, command-line and
  bare diagnostics
- Continuation and noise line filtering with the raw output kept for display
- Crash fallback for failing runs that report nothing recognisable
- Configuration via JSON or command-line
"""

import sys

from loguru import logger

from .api import compile_project, parse_compiler_output
from .compiler import (
    CompilationReport,
    CompilerInvocation,
    ToolchainCompiler,
    apply_crash_fallback,
)
from .core_types import (
    BuildResult,
    CompilerException,
    CompilerLaunchError,
    CompilerNotFoundError,
    CompilerTimeoutError,
    Diagnostic,
    InvalidConfigurationError,
    InvocationOutcome,
    Severity,
)
from .diagnostic_parser import DiagnosticParser, LineKind, LineMatch, classify_line
from .formatter import ConsoleFormatter
from .utils import ConfigurationManager, ProcessManager, load_json, save_json

# Module metadata
__version__ = "0.1.0"

# Configure default logging
logger.remove()  # Remove default handler
logger.add(
    sys.stderr,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    level="INFO",
)


__all__ = [
    # Core types
    "Severity",
    "Diagnostic",
    "BuildResult",
    "InvocationOutcome",
    "CompilerException",
    "CompilerLaunchError",
    "CompilerNotFoundError",
    "CompilerTimeoutError",
    "InvalidConfigurationError",

    # Classes
    "CompilerInvocation",
    "CompilationReport",
    "ToolchainCompiler",
    "DiagnosticParser",
    "LineKind",
    "LineMatch",
    "ConsoleFormatter",
    "ConfigurationManager",
    "ProcessManager",

    # API functions
    "compile_project",
    "parse_compiler_output",
    "classify_line",
    "apply_crash_fallback",
    "load_json",
    "save_json",
]
