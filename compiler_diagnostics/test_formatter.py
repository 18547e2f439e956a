from termcolor import colored

from .core_types import BuildResult, Diagnostic, Severity
from .formatter import ConsoleFormatter


def make_result():
    result = BuildResult()
    result.append(
        Diagnostic(file_name="src/Main.as", line=4, column=2, message="Type mismatch")
    )
    result.append(
        Diagnostic(file_name="src/Util.as", severity=Severity.WARNING, message="deprecated")
    )
    result.add_error("command line problem")
    return result


def test_format_summary():
    summary = ConsoleFormatter(colorize=False).format_summary(make_result())
    assert "Status: failed" in summary
    assert "Total Diagnostics: 3" in summary
    assert "Errors: 2" in summary
    assert "Warnings: 1" in summary


def test_format_diagnostic_plain():
    formatter = ConsoleFormatter(colorize=False)
    lines = [formatter.format_diagnostic(d) for d in make_result().diagnostics]
    assert lines == [
        "ERROR: src/Main.as:4:2 - Type mismatch",
        "WARNING: src/Util.as - deprecated",
        "ERROR: command line problem",
    ]


def test_format_diagnostic_line_without_column():
    formatter = ConsoleFormatter(colorize=False)
    text = formatter.format_diagnostic(Diagnostic(file_name="a.as", line=9, message="m"))
    assert text == "ERROR: a.as:9 - m"


def test_format_diagnostic_colored():
    formatter = ConsoleFormatter(colorize=True)
    diagnostic = Diagnostic(severity=Severity.WARNING, message="careful")
    assert formatter.format_diagnostic(diagnostic) == colored("WARNING: careful", "yellow")


def test_format_result_without_diagnostics():
    text = ConsoleFormatter(colorize=False).format_result(BuildResult())
    assert "Status: succeeded" in text
    assert "Diagnostics:" not in text.splitlines()


def test_display_prints(capsys):
    ConsoleFormatter(colorize=False).display(make_result())
    out = capsys.readouterr().out
    assert "Diagnostics:" in out
    assert "ERROR: src/Main.as:4:2 - Type mismatch" in out
