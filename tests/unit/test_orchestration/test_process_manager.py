"""
Unit tests for ProcessManager using real child processes.
"""

import signal
import sys
import time
from unittest.mock import patch

import psutil
import pytest

from rebuildwatch.orchestration import ProcessManager
from rebuildwatch.validation import ProcessLaunchError

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="POSIX signal semantics")

SLEEPER = [sys.executable, "-c", "import time; time.sleep(60)"]


def _is_gone(pid: int) -> bool:
    try:
        return psutil.Process(pid).status() == psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return True


def _wait_for(predicate, timeout: float = 10.0) -> bool:
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.05)
    return predicate()


@pytest.fixture
def manager():
    return ProcessManager()


@pytest.fixture
def spawned():
    """Collect started processes and make sure none outlives the test."""
    processes = []
    yield processes
    for process in processes:
        if process.poll() is None:
            process.kill()
            process.wait()


@pytest.mark.unit
class TestStartBuildProcess:

    def test_exit_code_is_reported(self, manager, spawned, temp_dir):
        process = manager.start_build_process([sys.executable, "-c", "import sys; sys.exit(7)"], temp_dir)
        spawned.append(process)

        assert process.wait(timeout=10) == 7

    def test_runs_in_working_directory(self, manager, spawned, temp_dir):
        script = "import os, pathlib; pathlib.Path('cwd.txt').write_text(os.getcwd())"
        process = manager.start_build_process([sys.executable, "-c", script], temp_dir)
        spawned.append(process)
        process.wait(timeout=10)

        assert (temp_dir / "cwd.txt").read_text() == str(temp_dir)

    def test_output_goes_to_inherited_stdout(self, manager, spawned, temp_dir, capfd):
        process = manager.start_build_process([sys.executable, "-c", "print('compiling demo')"], temp_dir)
        spawned.append(process)
        process.wait(timeout=10)

        assert "compiling demo" in capfd.readouterr().out

    def test_string_command_runs_through_shell(self, manager, spawned, temp_dir):
        process = manager.start_build_process("exit 3", temp_dir)
        spawned.append(process)

        assert process.wait(timeout=10) == 3

    def test_missing_toolchain_raises_launch_error(self, manager, temp_dir):
        with pytest.raises(ProcessLaunchError) as exc_info:
            manager.start_build_process(["rebuildwatch-no-such-toolchain", "build"], temp_dir)

        assert "could not launch 'rebuildwatch-no-such-toolchain build'" in str(exc_info.value)
        assert isinstance(exc_info.value.cause, FileNotFoundError)

    def test_missing_working_directory_raises_launch_error(self, manager, temp_dir):
        with pytest.raises(ProcessLaunchError):
            manager.start_build_process(SLEEPER, temp_dir / "missing")


@pytest.mark.unit
class TestRequestTermination:

    def test_sends_sigterm_without_waiting(self, manager, spawned, temp_dir):
        process = manager.start_build_process(SLEEPER, temp_dir)
        spawned.append(process)

        started = time.time()
        manager.request_termination(process, "build #1")

        assert time.time() - started < 2.0
        assert process.wait(timeout=10) == -signal.SIGTERM

    def test_exited_process_is_left_alone(self, manager, spawned, temp_dir):
        process = manager.start_build_process([sys.executable, "-c", "pass"], temp_dir)
        spawned.append(process)
        process.wait(timeout=10)

        with patch("rebuildwatch.orchestration.process_manager.psutil.Process") as process_cls:
            manager.request_termination(process, "build #1")

        process_cls.assert_not_called()

    def test_access_denied_falls_back_to_popen_terminate(self, manager, spawned, temp_dir):
        process = manager.start_build_process(SLEEPER, temp_dir)
        spawned.append(process)

        with patch(
            "rebuildwatch.orchestration.process_manager.psutil.Process",
            side_effect=psutil.AccessDenied(process.pid),
        ):
            manager.request_termination(process, "build #1")

        assert process.wait(timeout=10) == -signal.SIGTERM


@pytest.mark.unit
class TestTerminateProcessTree:

    def test_terminates_parent_and_children(self, manager, spawned, temp_dir):
        pid_file = temp_dir / "child.pid"
        script = (
            "import pathlib, subprocess, sys, time\n"
            "child = subprocess.Popen([sys.executable, '-c', 'import time; time.sleep(60)'])\n"
            f"pathlib.Path({str(pid_file)!r}).write_text(str(child.pid))\n"
            "time.sleep(60)\n"
        )
        process = manager.start_build_process([sys.executable, "-c", script], temp_dir)
        spawned.append(process)
        assert _wait_for(lambda: pid_file.exists() and pid_file.read_text().strip())
        child_pid = int(pid_file.read_text())

        manager.terminate_process_tree(process.pid, "build #1")

        assert process.wait(timeout=10) is not None
        assert _wait_for(lambda: _is_gone(child_pid))

    def test_already_exited_pid_is_ignored(self, manager, spawned, temp_dir):
        process = manager.start_build_process([sys.executable, "-c", "pass"], temp_dir)
        spawned.append(process)
        process.wait(timeout=10)

        manager.terminate_process_tree(process.pid, "build #1")

    @pytest.mark.parametrize("pid", [None, 0, -1])
    def test_invalid_pid_is_skipped(self, manager, pid, caplog):
        manager.terminate_process_tree(pid, "build #1")

        assert "Invalid PID" in caplog.text
