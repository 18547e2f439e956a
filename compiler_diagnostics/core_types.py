#!/usr/bin/env python3
"""
Core types and data models for the compiler diagnostics module.

This module provides the diagnostic record, the aggregated build result, the
transient invocation outcome produced by the process runner and the exception
hierarchy shared by the whole package.
"""

from __future__ import annotations

import io
import time
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any, Dict, List, Optional, TypeAlias, Union

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

PathLike: TypeAlias = Union[str, Path]

NO_LINE = 0
NO_COLUMN = -1
CRASH_MESSAGE = "The compiler appears to have crashed without any error output."


class Severity(StrEnum):
    """Diagnostic severity. Toolchain level tokens collapse onto these two."""

    WARNING = "warning"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value.capitalize()

    @classmethod
    def from_level(cls, level: Optional[str]) -> Severity:
        """
        Map a level token captured from compiler output to a severity.

        Only a case-insensitive "warning" yields WARNING; every other token,
        including unknown ones such as "Note" or "Fatal", is an error.
        """
        if level is not None and level.lower() == cls.WARNING.value:
            return cls.WARNING
        return cls.ERROR


class Diagnostic(BaseModel):
    """A single structured compiler message."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    file_name: str = Field(default="", description="Source file, empty if unknown")
    line: int = Field(default=NO_LINE, description="Line number, 0 if unknown")
    column: int = Field(default=NO_COLUMN, description="Column number, -1 if unknown")
    severity: Severity = Field(default=Severity.ERROR, description="Severity")
    message: str = Field(default="", description="Message text as emitted")

    @property
    def is_warning(self) -> bool:
        return self.severity == Severity.WARNING

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    @property
    def has_location(self) -> bool:
        """Check if the diagnostic points at a specific line of a file."""
        return bool(self.file_name) and self.line != NO_LINE

    def __str__(self) -> str:
        location = self.file_name
        if self.line != NO_LINE:
            position = str(self.line)
            if self.column != NO_COLUMN:
                position += f",{self.column}"
            location += f"({position})"
        prefix = f"{location}: " if location else ""
        return f"{prefix}{self.severity}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert the Diagnostic to a dictionary."""
        return {
            "file_name": self.file_name,
            "line": self.line,
            "column": self.column,
            "severity": self.severity.value,
            "message": self.message,
        }


class BuildResult(BaseModel):
    """
    Aggregate of all diagnostics extracted from one compilation attempt.

    Error and warning counts are derived from the diagnostics list, so they
    always add up to its length.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    diagnostics: List[Diagnostic] = Field(
        default_factory=list, description="Diagnostics in order of appearance"
    )
    raw_output: str = Field(
        default="", description="Every line read from stdout then stderr"
    )

    @property
    def error_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.is_warning)

    @property
    def errors(self) -> List[Diagnostic]:
        """Get all error diagnostics."""
        return [d for d in self.diagnostics if d.is_error]

    @property
    def warnings(self) -> List[Diagnostic]:
        """Get all warning diagnostics."""
        return [d for d in self.diagnostics if d.is_warning]

    @property
    def success(self) -> bool:
        return self.error_count == 0

    def append(self, diagnostic: Diagnostic) -> None:
        """Add a diagnostic at the end of the list."""
        self.diagnostics.append(diagnostic)

    def add_error(self, message: str) -> Diagnostic:
        """Add an error that is not tied to any file."""
        diagnostic = Diagnostic(severity=Severity.ERROR, message=message)
        self.append(diagnostic)
        return diagnostic

    def add_warning(self, message: str) -> Diagnostic:
        """Add a warning that is not tied to any file."""
        diagnostic = Diagnostic(severity=Severity.WARNING, message=message)
        self.append(diagnostic)
        return diagnostic

    def to_dict(self) -> Dict[str, Any]:
        """Convert the BuildResult to a dictionary."""
        return {
            "success": self.success,
            "error_count": self.error_count,
            "warning_count": self.warning_count,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
            "raw_output": self.raw_output,
        }


@dataclass(frozen=True, slots=True)
class InvocationOutcome:
    """
    Exit code and captured output of one compiler run.

    The two buffers belong to the in-flight invocation and are closed by the
    process runner once the caller is done with them.
    """

    exit_code: int
    stdout: io.StringIO = field(default_factory=io.StringIO)
    stderr: io.StringIO = field(default_factory=io.StringIO)
    command: List[str] = field(default_factory=list)
    execution_time: float = 0.0
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        if self.execution_time < 0:
            raise ValueError("execution_time cannot be negative")

    @property
    def failed(self) -> bool:
        return self.exit_code != 0

    @property
    def stdout_text(self) -> str:
        return self.stdout.getvalue()

    @property
    def stderr_text(self) -> str:
        return self.stderr.getvalue()

    @property
    def command_str(self) -> str:
        """Get command as a single string."""
        return " ".join(self.command)

    def close(self) -> None:
        """Release both output buffers."""
        self.stdout.close()
        self.stderr.close()


class CompilerException(Exception):
    """Base exception for compiler-related errors."""

    def __init__(
        self, message: str, *, error_code: Optional[str] = None, **kwargs: Any
    ):
        super().__init__(message)
        self.error_code = error_code
        self.context = kwargs

        logger.bind(error_code=error_code, context=kwargs).error(
            f"{type(self).__name__}: {message}"
        )


class CompilerLaunchError(CompilerException):
    """Exception raised when the compiler process cannot be started."""

    def __init__(
        self,
        message: str,
        command: Optional[List[str]] = None,
        cwd: Optional[PathLike] = None,
        **kwargs: Any,
    ):
        super().__init__(
            message, command=command, cwd=str(cwd) if cwd else None, **kwargs
        )
        self.command = command
        self.cwd = cwd


class CompilerTimeoutError(CompilerLaunchError):
    """Exception raised when the compiler does not finish in time."""

    pass


class CompilerNotFoundError(CompilerLaunchError):
    """Exception raised when the compiler executable does not exist."""

    pass


class InvalidConfigurationError(CompilerException):
    """Exception raised when configuration is invalid."""

    pass
