#!/usr/bin/env python3
"""
Utility functions for the compiler diagnostics module.

This module provides configuration file handling, executable lookup and the
process runner that executes the compiler and captures its output.
"""

from __future__ import annotations

import io
import json
import os
import shutil
import subprocess
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Sequence, TypeVar

from loguru import logger
from pydantic import BaseModel, ValidationError

from .core_types import (
    CompilerLaunchError,
    CompilerTimeoutError,
    InvalidConfigurationError,
    InvocationOutcome,
    PathLike,
)

ModelT = TypeVar("ModelT", bound=BaseModel)


class ConfigurationManager:
    """Configuration file handling with validation."""

    def load_json(self, file_path: PathLike) -> Dict[str, Any]:
        """
        Load and parse a JSON file with error handling.

        Args:
            file_path: Path to the JSON file

        Returns:
            Parsed JSON data as dictionary

        Raises:
            InvalidConfigurationError: If file cannot be read or parsed
        """
        path = Path(file_path)

        if not path.exists():
            raise InvalidConfigurationError(
                f"JSON file not found: {path}",
                error_code="FILE_NOT_FOUND",
                file_path=str(path),
            )

        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidConfigurationError(
                f"Invalid JSON in file {path}: {e}",
                error_code="INVALID_JSON",
                file_path=str(path),
                json_error=str(e),
            ) from e
        except OSError as e:
            raise InvalidConfigurationError(
                f"Failed to read file {path}: {e}",
                error_code="FILE_READ_ERROR",
                file_path=str(path),
                os_error=str(e),
            ) from e

        if not isinstance(data, dict):
            raise InvalidConfigurationError(
                f"Expected a JSON object in {path}",
                error_code="INVALID_JSON",
                file_path=str(path),
            )
        return data

    def save_json(
        self, file_path: PathLike, data: Dict[str, Any], indent: int = 2
    ) -> None:
        """Write a dictionary to a JSON file, creating parent directories."""
        path = Path(file_path)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8") as f:
                json.dump(data, f, indent=indent, ensure_ascii=False)
        except OSError as e:
            raise InvalidConfigurationError(
                f"Failed to save JSON to {path}: {e}",
                error_code="FILE_WRITE_ERROR",
                file_path=str(path),
                os_error=str(e),
            ) from e

        logger.debug(f"JSON written to {path}")

    def load_config_with_model(
        self, file_path: PathLike, model_class: type[ModelT]
    ) -> ModelT:
        """
        Load and validate configuration using a Pydantic model.

        Args:
            file_path: Path to the configuration file
            model_class: Pydantic model class for validation

        Returns:
            Validated configuration object

        Raises:
            InvalidConfigurationError: If file cannot be loaded or is invalid
        """
        data = self.load_json(file_path)

        try:
            return model_class.model_validate(data)
        except ValidationError as e:
            raise InvalidConfigurationError(
                f"Invalid configuration in {file_path}: {e}",
                error_code="INVALID_CONFIGURATION",
                file_path=str(file_path),
                validation_errors=e.errors(),
            ) from e


class SystemInfo:
    """System lookup utilities."""

    @staticmethod
    def find_executable(
        name: PathLike, paths: Optional[List[PathLike]] = None
    ) -> Optional[Path]:
        """
        Find an executable in the given directories or the system PATH.

        Args:
            name: Executable name or path
            paths: Directories searched before PATH

        Returns:
            Path to executable if found, None otherwise
        """
        for directory in paths or []:
            candidate = Path(directory) / name
            if candidate.is_file() and os.access(candidate, os.X_OK):
                return candidate

        result = shutil.which(str(name))
        if result:
            return Path(result)

        return None


class ProcessManager:
    """Synchronous process execution with captured output."""

    @staticmethod
    @contextmanager
    def run_command(
        command: PathLike,
        arguments: Sequence[str] = (),
        cwd: Optional[PathLike] = None,
        env: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Generator[InvocationOutcome, None, None]:
        """
        Run a command to completion and yield its exit code and captured output.

        Standard output and standard error are captured into two separate
        in-memory buffers, which are released when the context exits, even if
        the body raises.

        Args:
            command: Path to the executable
            arguments: Argument list, passed to the process verbatim
            cwd: Working directory for the command
            env: Extra environment variables
            timeout: Command timeout in seconds

        Yields:
            InvocationOutcome holding the exit code and both buffers

        Raises:
            CompilerLaunchError: If the process cannot be started
            CompilerTimeoutError: If the process does not finish in time
        """
        argv = [str(command), *arguments]
        start_time = time.time()

        logger.bind(command=argv, cwd=str(cwd) if cwd else None).debug(
            f"Executing command: {' '.join(argv)}"
        )

        final_env = os.environ.copy()
        if env:
            final_env.update(env)

        try:
            completed = subprocess.run(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                cwd=cwd,
                env=final_env,
                timeout=timeout,
                text=False,
            )
        except subprocess.TimeoutExpired as e:
            raise CompilerTimeoutError(
                f"Command timed out after {timeout}s: {argv[0]}",
                command=argv,
                cwd=cwd,
                error_code="COMPILER_TIMEOUT",
            ) from e
        except OSError as e:
            raise CompilerLaunchError(
                f"Failed to launch {argv[0]}: {e}",
                command=argv,
                cwd=cwd,
                error_code="COMPILER_LAUNCH_FAILED",
            ) from e

        execution_time = time.time() - start_time
        outcome = InvocationOutcome(
            exit_code=completed.returncode,
            stdout=io.StringIO(completed.stdout.decode("utf-8", errors="replace")),
            stderr=io.StringIO(completed.stderr.decode("utf-8", errors="replace")),
            command=argv,
            execution_time=execution_time,
        )

        if outcome.failed:
            logger.debug(
                f"Command exited with code {outcome.exit_code} "
                f"in {execution_time:.2f}s"
            )
        else:
            logger.debug(f"Command completed successfully in {execution_time:.2f}s")

        try:
            yield outcome
        finally:
            outcome.close()


def load_json(file_path: PathLike) -> Dict[str, Any]:
    """Load JSON file using the default configuration manager."""
    return default_config_manager.load_json(file_path)


def save_json(file_path: PathLike, data: Dict[str, Any], indent: int = 2) -> None:
    """Save JSON file using the default configuration manager."""
    default_config_manager.save_json(file_path, data, indent)


default_config_manager = ConfigurationManager()
