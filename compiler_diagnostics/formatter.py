"""
Console formatter.

This module formats build results for console display with colorized output
based on diagnostic severity.
"""

from typing import List

from termcolor import colored

from .core_types import BuildResult, Diagnostic, Severity


class ConsoleFormatter:
    """Formats build results for console display."""

    def __init__(self, colorize: bool = True):
        self.colorize = colorize
        self.color_map = {
            Severity.ERROR: "red",
            Severity.WARNING: "yellow",
        }
        self.prefix_map = {
            Severity.ERROR: "ERROR",
            Severity.WARNING: "WARNING",
        }

    def format_summary(self, result: BuildResult) -> str:
        """Format a summary of a build result."""
        lines = [
            "Build Summary:",
            f"Status: {'succeeded' if result.success else 'failed'}",
            f"Total Diagnostics: {len(result.diagnostics)}",
            f"Errors: {result.error_count}",
            f"Warnings: {result.warning_count}",
        ]
        return "\n".join(lines)

    def format_diagnostic(self, diagnostic: Diagnostic) -> str:
        """Format a single diagnostic, colored when enabled."""
        prefix = self.prefix_map.get(diagnostic.severity, "UNKNOWN")

        location = diagnostic.file_name
        if diagnostic.line:
            location += f":{diagnostic.line}"
            if diagnostic.column >= 0:
                location += f":{diagnostic.column}"

        if location:
            text = f"{prefix}: {location} - {diagnostic.message}"
        else:
            text = f"{prefix}: {diagnostic.message}"

        if not self.colorize:
            return text
        return colored(text, self.color_map.get(diagnostic.severity, "white"))

    def format_result(self, result: BuildResult) -> str:
        """Format the summary followed by every diagnostic."""
        lines: List[str] = [self.format_summary(result)]
        if result.diagnostics:
            lines.append("")
            lines.append("Diagnostics:")
            lines.extend(self.format_diagnostic(d) for d in result.diagnostics)
        return "\n".join(lines)

    def display(self, result: BuildResult) -> None:
        """Print a build result to the console."""
        print(self.format_result(result))
