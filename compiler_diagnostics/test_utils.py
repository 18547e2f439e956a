import json
import os
import subprocess
import sys
from unittest.mock import MagicMock

import pytest

from .compiler import CompilerInvocation
from .core_types import (
    CompilerLaunchError,
    CompilerTimeoutError,
    InvalidConfigurationError,
)
from .utils import (
    ConfigurationManager,
    ProcessManager,
    SystemInfo,
    load_json,
    save_json,
)


# --- Fixtures ---


@pytest.fixture
def process_manager():
    """Fixture for a ProcessManager instance."""
    return ProcessManager()


@pytest.fixture
def config_manager():
    """Fixture for a ConfigurationManager instance."""
    return ConfigurationManager()


@pytest.fixture
def mock_subprocess_run(mocker):
    """Fixture to mock subprocess.run."""
    mock_run = mocker.patch("subprocess.run")
    mock_run.return_value = MagicMock(
        returncode=0, stdout=b"mock stdout\n", stderr=b"mock stderr\n"
    )
    return mock_run


# --- Tests for ProcessManager ---


def test_run_command_captures_both_streams(process_manager, mock_subprocess_run):
    with process_manager.run_command(
        "mxmlc", ["-output", "bin/Main.swf", "Main.as"], cwd="/work"
    ) as outcome:
        assert outcome.exit_code == 0
        assert outcome.stdout.read() == "mock stdout\n"
        assert outcome.stderr.read() == "mock stderr\n"
        assert outcome.command == ["mxmlc", "-output", "bin/Main.swf", "Main.as"]

    args, kwargs = mock_subprocess_run.call_args
    assert args[0] == ["mxmlc", "-output", "bin/Main.swf", "Main.as"]
    assert kwargs["stdout"] == subprocess.PIPE
    assert kwargs["stderr"] == subprocess.PIPE
    assert kwargs["cwd"] == "/work"
    assert "shell" not in kwargs


@pytest.mark.parametrize(
    "arguments",
    [
        ["-output", "/home/o'brien/bin/Main.swf", "/home/o'brien/Main.as"],
        ["-output", "C:\\out/Main.swf", "-source-path", "C:\\src\\lib", "src\\Main.as"],
        ["-output", "out dir/Main.swf", "src/Main.as"],
    ],
)
def test_run_command_passes_arguments_verbatim(
    process_manager, mock_subprocess_run, arguments
):
    with process_manager.run_command("mxmlc", arguments):
        pass

    assert mock_subprocess_run.call_args.args[0] == ["mxmlc", *arguments]


def test_run_command_merges_environment(process_manager, mock_subprocess_run):
    with process_manager.run_command("mxmlc", env={"FLEX_HOME": "/opt/flex"}):
        pass

    env = mock_subprocess_run.call_args.kwargs["env"]
    assert env["FLEX_HOME"] == "/opt/flex"
    assert env.get("PATH") == os.environ.get("PATH")


def test_run_command_releases_buffers(process_manager, mock_subprocess_run):
    with process_manager.run_command("mxmlc") as outcome:
        pass
    assert outcome.stdout.closed
    assert outcome.stderr.closed


def test_run_command_releases_buffers_when_body_raises(
    process_manager, mock_subprocess_run
):
    with pytest.raises(RuntimeError):
        with process_manager.run_command("mxmlc") as outcome:
            raise RuntimeError("parser blew up")
    assert outcome.stdout.closed
    assert outcome.stderr.closed


def test_run_command_reports_nonzero_exit(process_manager, mock_subprocess_run):
    mock_subprocess_run.return_value = MagicMock(
        returncode=1, stdout=b"", stderr=b"Error: bad\n"
    )
    with process_manager.run_command("mxmlc") as outcome:
        assert outcome.failed
        assert outcome.exit_code == 1
        assert outcome.stderr_text == "Error: bad\n"


def test_run_command_decodes_invalid_utf8(process_manager, mock_subprocess_run):
    mock_subprocess_run.return_value = MagicMock(
        returncode=0, stdout=b"caf\xe9\n", stderr=b""
    )
    with process_manager.run_command("mxmlc") as outcome:
        assert outcome.stdout_text == "caf\ufffd\n"


@pytest.mark.parametrize("error", [FileNotFoundError, PermissionError])
def test_run_command_launch_failure(process_manager, mock_subprocess_run, error):
    mock_subprocess_run.side_effect = error("cannot start")

    with pytest.raises(CompilerLaunchError) as exc_info:
        with process_manager.run_command("/missing/mxmlc", ["Main.as"]):
            pytest.fail("body must not run")

    assert isinstance(exc_info.value.__cause__, error)
    assert exc_info.value.command == ["/missing/mxmlc", "Main.as"]
    assert exc_info.value.error_code == "COMPILER_LAUNCH_FAILED"


def test_run_command_timeout(process_manager, mock_subprocess_run):
    mock_subprocess_run.side_effect = subprocess.TimeoutExpired(cmd="mxmlc", timeout=5)

    with pytest.raises(CompilerTimeoutError):
        with process_manager.run_command("mxmlc", timeout=5):
            pytest.fail("body must not run")


def test_run_command_real_process(process_manager):
    script = "import sys; print('out'); print('err', file=sys.stderr); sys.exit(3)"
    with process_manager.run_command(sys.executable, ["-c", script]) as outcome:
        assert outcome.exit_code == 3
        assert outcome.stdout_text.strip() == "out"
        assert outcome.stderr_text.strip() == "err"


def test_run_command_missing_executable(process_manager, tmp_path):
    with pytest.raises(CompilerLaunchError):
        with process_manager.run_command(tmp_path / "no-such-compiler"):
            pass


# --- Tests for ConfigurationManager ---


def test_load_json(config_manager, tmp_path):
    path = tmp_path / "build.json"
    path.write_text(json.dumps({"compiler": "mxmlc"}), encoding="utf-8")
    assert config_manager.load_json(path) == {"compiler": "mxmlc"}


def test_load_json_missing_file(config_manager, tmp_path):
    with pytest.raises(InvalidConfigurationError) as exc_info:
        config_manager.load_json(tmp_path / "missing.json")
    assert exc_info.value.error_code == "FILE_NOT_FOUND"


def test_load_json_invalid_content(config_manager, tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(InvalidConfigurationError) as exc_info:
        config_manager.load_json(path)
    assert exc_info.value.error_code == "INVALID_JSON"


def test_load_json_requires_object(config_manager, tmp_path):
    path = tmp_path / "list.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(InvalidConfigurationError):
        config_manager.load_json(path)


def test_save_and_load_json_helpers(tmp_path):
    path = tmp_path / "nested" / "report.json"
    save_json(path, {"errors": 2})
    assert load_json(path) == {"errors": 2}


def test_load_config_with_model(config_manager, tmp_path):
    path = tmp_path / "build.json"
    path.write_text(
        json.dumps(
            {"compiler": "mxmlc", "main_source": "src/Main.as", "output_file_name": "Main.swf"}
        ),
        encoding="utf-8",
    )
    invocation = config_manager.load_config_with_model(path, CompilerInvocation)
    assert invocation.compiler == "mxmlc"
    assert invocation.output_directory == "."


def test_load_config_with_model_invalid(config_manager, tmp_path):
    path = tmp_path / "build.json"
    path.write_text(json.dumps({"compiler": "mxmlc", "bogus": 1}), encoding="utf-8")
    with pytest.raises(InvalidConfigurationError) as exc_info:
        config_manager.load_config_with_model(path, CompilerInvocation)
    assert exc_info.value.error_code == "INVALID_CONFIGURATION"


# --- Tests for SystemInfo ---


def test_find_executable_in_given_paths(tmp_path):
    exe = tmp_path / "mxmlc"
    exe.write_text("#!/bin/sh\n", encoding="utf-8")
    exe.chmod(0o755)
    assert SystemInfo.find_executable("mxmlc", [tmp_path]) == exe


def test_find_executable_not_found(mocker, tmp_path):
    mocker.patch("shutil.which", return_value=None)
    assert SystemInfo.find_executable("mxmlc", [tmp_path]) is None
