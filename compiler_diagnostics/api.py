#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
High-level API for the compiler diagnostics module.
"""
from typing import Any, Optional

from .core_types import BuildResult, PathLike
from .compiler import CompilationReport, CompilerInvocation, ToolchainCompiler
from .diagnostic_parser import DiagnosticParser, TextSource


def compile_project(invocation: Optional[CompilerInvocation] = None,
                    config_file: Optional[PathLike] = None,
                    **overrides: Any) -> CompilationReport:
    """
    Run the compiler for a project and return the extracted diagnostics.

    The invocation is taken from ``invocation`` or loaded from ``config_file``;
    keyword overrides replace individual fields.
    """
    if invocation is None and config_file is not None:
        invocation = CompilerInvocation.from_file(config_file)

    if invocation is None:
        invocation = CompilerInvocation(**overrides)
    elif overrides:
        invocation = CompilerInvocation.model_validate(
            {**invocation.model_dump(), **overrides}
        )

    return ToolchainCompiler(invocation).compile()


def parse_compiler_output(stdout: TextSource, stderr: TextSource = None) -> BuildResult:
    """
    Parse already captured compiler output without running anything.
    """
    return DiagnosticParser().parse_output(stdout, stderr)
