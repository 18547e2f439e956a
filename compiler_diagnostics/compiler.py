#!/usr/bin/env python3
"""
Compiler driver.

Assembles the toolchain invocation from a project configuration, runs the
compiler, extracts diagnostics from its output and applies the crash fallback
for failing runs that produced no recognisable diagnostics.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .core_types import (
    CRASH_MESSAGE,
    BuildResult,
    CompilerNotFoundError,
    PathLike,
)
from .diagnostic_parser import DiagnosticParser
from .utils import ConfigurationManager, ProcessManager, SystemInfo

DEFAULT_DEBUG_ARGUMENT = "-compiler.debug=true"
DEFAULT_OUTPUT_ARGUMENT = "-output"


class CompilerInvocation(BaseModel):
    """Everything needed to run the compiler for one project build."""

    model_config = ConfigDict(
        extra="forbid", validate_assignment=True, str_strip_whitespace=True
    )

    compiler: str = Field(description="Compiler executable name or path")
    main_source: str = Field(description="Main source file passed to the compiler")
    output_file_name: str = Field(description="Name of the file to produce")
    output_directory: str = Field(
        default=".", description="Directory the output file is written to"
    )
    sdk_path: Optional[Path] = Field(
        default=None, description="SDK root; the compiler is looked up in its bin/"
    )
    debug_mode: bool = Field(default=False, description="Build with debug info")
    debug_argument: str = Field(
        default=DEFAULT_DEBUG_ARGUMENT, description="Argument added in debug mode"
    )
    output_argument: str = Field(
        default=DEFAULT_OUTPUT_ARGUMENT, description="Argument naming the output"
    )
    compiler_parameters: str = Field(
        default="", description="Free-form extra compiler parameters"
    )
    working_directory: Optional[Path] = Field(
        default=None, description="Directory the compiler runs in"
    )
    environment: Dict[str, str] = Field(
        default_factory=dict, description="Extra environment variables"
    )
    timeout: Optional[float] = Field(
        default=None, gt=0, description="Compilation timeout in seconds"
    )

    @field_validator("compiler", "main_source", "output_file_name")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("value must not be empty")
        return v

    @property
    def output_path(self) -> str:
        return f"{self.output_directory.rstrip('/')}/{self.output_file_name}"

    def build_argv(self) -> List[str]:
        """
        Assemble the compiler arguments as argv entries.

        Paths are passed through untouched; only the free-form parameters are
        split, on whitespace.
        """
        argv = [self.output_argument, self.output_path]
        if self.debug_mode:
            argv.append(self.debug_argument)
        argv.extend(self.compiler_parameters.split())
        argv.append(self.main_source)
        return argv

    def build_arguments(self) -> str:
        """Assemble the logged argument string; only the output path is quoted."""
        parts = [self.output_argument, f'"{self.output_path}"']
        if self.debug_mode:
            parts.append(self.debug_argument)
        if self.compiler_parameters:
            parts.append(self.compiler_parameters)
        parts.append(self.main_source)
        return " ".join(parts)

    def resolve_executable(self) -> Path:
        """
        Locate the compiler executable.

        With an SDK path the compiler must exist under ``<sdk>/bin``. Without
        one it is looked up on PATH, falling back to the name as given so that
        a missing compiler surfaces as a launch failure.
        """
        if self.sdk_path is not None:
            executable = self.sdk_path / "bin" / self.compiler
            if not executable.is_file():
                raise CompilerNotFoundError(
                    f"Compiler executable not found: {executable}",
                    error_code="COMPILER_NOT_FOUND",
                    compiler_path=str(executable),
                )
            return executable

        found = SystemInfo.find_executable(self.compiler)
        return found if found is not None else Path(self.compiler)

    @classmethod
    def from_file(cls, file_path: PathLike) -> CompilerInvocation:
        """Load an invocation from a JSON configuration file."""
        return ConfigurationManager().load_config_with_model(file_path, cls)


class CompilationReport(BaseModel):
    """Outcome of one compiler run as seen by the caller."""

    model_config = ConfigDict(extra="forbid")

    result: BuildResult
    exit_code: int
    command_line: str = ""
    duration_ms: float = Field(default=0.0, ge=0.0)

    @property
    def success(self) -> bool:
        return self.exit_code == 0 and self.result.success

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "exit_code": self.exit_code,
            "command_line": self.command_line,
            "duration_ms": self.duration_ms,
            **self.result.to_dict(),
        }


def apply_crash_fallback(result: BuildResult, exit_code: int, stderr: str) -> bool:
    """
    Make sure a failing run never ends up without diagnostics.

    When the compiler exits with a non-zero code and nothing was extracted, a
    single error is added carrying stderr verbatim, or a fixed message when
    stderr is empty.

    Returns:
        True if a diagnostic was synthesised
    """
    if exit_code == 0 or result.diagnostics:
        return False

    message = stderr if stderr else CRASH_MESSAGE
    result.add_error(message)
    logger.warning(f"Compiler exited with code {exit_code} without diagnostics")
    return True


class ToolchainCompiler:
    """Runs the external compiler and turns its output into diagnostics."""

    def __init__(
        self,
        invocation: CompilerInvocation,
        process_manager: Optional[ProcessManager] = None,
        parser: Optional[DiagnosticParser] = None,
    ) -> None:
        self.invocation = invocation
        self.process_manager = process_manager or ProcessManager()
        self.parser = parser or DiagnosticParser()

    def compile(self) -> CompilationReport:
        """
        Compile the project synchronously.

        Raises:
            CompilerLaunchError: If the compiler cannot be started
        """
        invocation = self.invocation
        command = invocation.resolve_executable()
        command_line = f"{command} {invocation.build_arguments()}"

        logger.info(command_line)
        start_time = time.time()

        with self.process_manager.run_command(
            command,
            invocation.build_argv(),
            cwd=invocation.working_directory,
            env=invocation.environment or None,
            timeout=invocation.timeout,
        ) as outcome:
            result = self.parser.parse_output(outcome.stdout, outcome.stderr)
            if result.raw_output.strip():
                logger.info(result.raw_output)
            apply_crash_fallback(result, outcome.exit_code, outcome.stderr_text)
            exit_code = outcome.exit_code

        duration_ms = (time.time() - start_time) * 1000.0
        logger.debug(
            f"Compilation finished with exit code {exit_code}: "
            f"{result.error_count} errors, {result.warning_count} warnings"
        )
        return CompilationReport(
            result=result,
            exit_code=exit_code,
            command_line=command_line,
            duration_ms=duration_ms,
        )
