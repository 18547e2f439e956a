#!/usr/bin/env python3
"""
Diagnostic parser for compiler output.

Compiler output is read line by line and every line is run through an ordered
cascade of patterns. The first pattern that matches decides how the line is
classified; lines matching none of them are compiler chatter and are dropped.
"""

from __future__ import annotations

import io
import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Dict, Iterator, Optional, TextIO, Tuple, Union

from loguru import logger

from .core_types import NO_COLUMN, NO_LINE, BuildResult, Diagnostic, Severity

TextSource = Union[str, TextIO, None]


class LineKind(StrEnum):
    """Classification of a single line of compiler output."""

    IGNORED = "ignored"
    FULL = "full"
    COMMAND_LINE = "command_line"
    FILE = "file"
    BARE = "bare"
    UNMATCHED = "unmatched"

    @property
    def is_diagnostic(self) -> bool:
        return self not in {LineKind.IGNORED, LineKind.UNMATCHED}


@dataclass(frozen=True, slots=True)
class LinePattern:
    """A single entry of the classification cascade."""

    kind: LineKind
    regex: re.Pattern[str]

    def match(self, text: str) -> Optional[re.Match[str]]:
        return self.regex.match(text)


@dataclass(frozen=True, slots=True)
class LineMatch:
    """Result of classifying one line: its kind plus the captured groups."""

    kind: LineKind
    groups: Dict[str, str] = field(default_factory=dict)

    @property
    def is_diagnostic(self) -> bool:
        return self.kind.is_diagnostic


# Order matters: first match wins.
PATTERNS: Tuple[LinePattern, ...] = (
    LinePattern(
        LineKind.IGNORED,
        re.compile(r"^(Updated|Recompile|Reason|Files changed):.*"),
    ),
    LinePattern(
        LineKind.FULL,
        re.compile(
            r"^(?P<file>.+)\((?P<line>\d+)\):\s(?:col:\s)?(?P<column>\d*)\s?"
            r"(?P<level>\w+):\s(?P<message>.*?)\.?$"
        ),
    ),
    LinePattern(
        LineKind.COMMAND_LINE,
        re.compile(r"^command line: (?P<level>\w+):\s(?P<message>.*?)\.?$"),
    ),
    LinePattern(
        LineKind.FILE,
        re.compile(r"^(?P<file>.+):\s(?P<level>\w+):\s(?P<message>.*?)\.?$"),
    ),
    LinePattern(
        LineKind.BARE,
        re.compile(r"^(?P<level>\w+):\s(?P<message>.*?)\.?$"),
    ),
)


def classify_line(text: str) -> LineMatch:
    """Run a trimmed line through the pattern cascade."""
    for pattern in PATTERNS:
        match = pattern.match(text)
        if match is None:
            continue
        groups = {k: v for k, v in match.groupdict().items() if v is not None}
        return LineMatch(pattern.kind, groups)
    return LineMatch(LineKind.UNMATCHED)


def _parse_number(value: Optional[str], default: int) -> int:
    if not value:
        return default
    try:
        number = int(value)
    except ValueError:
        return default
    return number if number >= 0 else default


def diagnostic_from_match(line_match: LineMatch) -> Optional[Diagnostic]:
    """Build a diagnostic from a classified line, or None for non-diagnostics."""
    if not line_match.is_diagnostic:
        return None

    groups = line_match.groups
    return Diagnostic(
        file_name=groups.get("file", ""),
        line=_parse_number(groups.get("line"), NO_LINE),
        column=_parse_number(groups.get("column"), NO_COLUMN),
        severity=Severity.from_level(groups.get("level")),
        message=groups.get("message", ""),
    )


def diagnostic_from_line(text: str) -> Optional[Diagnostic]:
    """Classify a single trimmed line and turn it into a diagnostic."""
    return diagnostic_from_match(classify_line(text))


def _iter_lines(source: TextSource) -> Iterator[str]:
    if source is None:
        return iter(())
    if isinstance(source, str):
        source = io.StringIO(source)
    elif source.seekable():
        source.seek(0)
    return (line.rstrip("\r\n") for line in source)


class DiagnosticParser:
    """Turns the captured stdout and stderr of a compiler run into a BuildResult."""

    def parse_output(self, stdout: TextSource, stderr: TextSource) -> BuildResult:
        """
        Parse stdout fully, then stderr fully, into a single result.

        Args:
            stdout: Captured standard output as text or a seekable text stream
            stderr: Captured standard error as text or a seekable text stream

        Returns:
            BuildResult with diagnostics in order of appearance and the raw
            output of both streams
        """
        result = BuildResult()
        raw_output = io.StringIO()

        self._parse_stream(result, raw_output, stdout)
        self._parse_stream(result, raw_output, stderr)

        result.raw_output = raw_output.getvalue()
        logger.debug(
            f"Parsed {len(result.diagnostics)} diagnostics "
            f"({result.error_count} errors, {result.warning_count} warnings)"
        )
        return result

    def _parse_stream(
        self, result: BuildResult, raw_output: io.StringIO, source: TextSource
    ) -> None:
        for line in _iter_lines(source):
            raw_output.write(line)
            raw_output.write("\n")

            # Tab-indented lines are details of the previous diagnostic.
            text = line.strip()
            if not text or line.startswith("\t"):
                continue

            diagnostic = diagnostic_from_line(text)
            if diagnostic is not None:
                result.append(diagnostic)
