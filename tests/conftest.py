"""
Pytest configuration and shared fixtures for the rebuildwatch test suite.

This module provides common fixtures, fake process collaborators and
configuration helpers for all test modules.
"""

import asyncio
import shutil
import sys
import tempfile
import threading
from pathlib import Path
from typing import Callable, List, Optional
from unittest.mock import Mock

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rebuildwatch.config import manager as config_manager  # noqa: E402
from rebuildwatch.models import BuildConfig, WatchRule  # noqa: E402
from rebuildwatch.reload import CallbackReloadSink  # noqa: E402


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path).resolve()
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def project_dir(temp_dir):
    """
    A small native-module project:

        Cargo.toml, Cargo.lock, README.md
        module/lib.src
        module/nested/deep.src
        module/notes.txt
        target/
    """
    (temp_dir / "module" / "nested").mkdir(parents=True)
    (temp_dir / "target").mkdir()
    (temp_dir / "Cargo.toml").write_text("[package]\nname = \"demo\"\n")
    (temp_dir / "Cargo.lock").write_text("# lock\n")
    (temp_dir / "README.md").write_text("# demo\n")
    (temp_dir / "module" / "lib.src").write_text("fn main() {}\n")
    (temp_dir / "module" / "nested" / "deep.src").write_text("fn deep() {}\n")
    (temp_dir / "module" / "notes.txt").write_text("notes\n")
    return temp_dir


@pytest.fixture
def watch_rule(project_dir):
    """WatchRule for the sample project: *.src under module/, Cargo manifests at the root."""
    return WatchRule(
        project_root=project_dir,
        source_roots=(project_dir / "module",),
        source_patterns=("*.src",),
        manifest_patterns=("Cargo.toml", "Cargo.lock"),
        ignore_patterns=("target/*",),
    )


@pytest.fixture
def build_config():
    """Build configuration with a placeholder command; launches go through a fake manager."""
    return BuildConfig(
        command=["wasm-pack", "build", "--target", "web", "--release"],
        success_code=0,
        waiter_threads=4,
        thread_name_prefix="TestWaiter",
        history_size=20,
    )


@pytest.fixture
def reload_callback():
    """Mock standing in for a dev server's broadcast primitive."""
    return Mock(name="broadcast_reload")


@pytest.fixture
def reload_sink(reload_callback):
    return CallbackReloadSink(reload_callback)


@pytest.fixture
def sample_config_data():
    """Raw configuration shaped like config.toml."""
    return {
        "watch": {
            "project_root": ".",
            "source_roots": ["module"],
            "source_patterns": ["*.src"],
            "manifest_patterns": ["Cargo.toml", "Cargo.lock"],
            "ignore_patterns": ["target/*"],
        },
        "build": {
            "command": ["wasm-pack", "build", "--target", "web", "--release"],
            "success_code": 0,
            "waiter_threads": 2,
            "thread_name_prefix": "BuildWaiter",
            "history_size": 5,
        },
        "reload": {"sink": "log"},
        "logging": {"level": "INFO"},
    }


@pytest.fixture(autouse=True)
def isolated_config_cache(monkeypatch):
    """Keep the configuration singleton from leaking between tests."""
    monkeypatch.setattr(config_manager, "_CONFIG", None)
    monkeypatch.setattr(config_manager, "_CONFIG_FILE_PATH", config_manager._CONFIG_FILE_PATH)
    yield


# ============================================================================
# Fake process collaborators
# ============================================================================


class FakeProcess:
    """
    Stand-in for subprocess.Popen whose exit is controlled by the test.

    wait() blocks the calling thread until exit() is called.
    """

    _next_pid = 41000

    def __init__(self, pid: Optional[int] = None):
        if pid is None:
            FakeProcess._next_pid += 1
            pid = FakeProcess._next_pid
        self.pid = pid
        self.returncode: Optional[int] = None
        self._code: Optional[int] = None
        self._error: Optional[BaseException] = None
        self._exited = threading.Event()

    @property
    def has_exited(self) -> bool:
        return self._exited.is_set()

    def exit(self, code: int) -> None:
        self._code = code
        self._exited.set()

    def fail_wait(self, error: BaseException) -> None:
        """Make the pending wait() raise instead of returning an exit code."""
        self._error = error
        self._exited.set()

    def wait(self, timeout: Optional[float] = None) -> Optional[int]:
        # Bounded so a forgotten exit() cannot hang the suite
        self._exited.wait(timeout if timeout is not None else 10.0)
        if self._error is not None:
            raise self._error
        self.returncode = self._code
        return self._code


class FakeProcessManager:
    """Records launches and termination requests instead of touching real processes."""

    def __init__(self):
        self.processes: List[FakeProcess] = []
        self.launches: List[dict] = []
        self.termination_requests: List[FakeProcess] = []
        self.terminated_trees: List[int] = []
        self.launch_error: Optional[Exception] = None
        self.next_pid: Optional[int] = None

    def start_build_process(self, command, cwd, shell_executable=None):
        if self.launch_error is not None:
            raise self.launch_error
        process = FakeProcess(pid=self.next_pid)
        self.next_pid = None
        self.processes.append(process)
        self.launches.append({"command": command, "cwd": cwd, "shell_executable": shell_executable})
        return process

    def request_termination(self, process, name):
        self.termination_requests.append(process)

    def terminate_process_tree(self, pid, name):
        self.terminated_trees.append(pid)
        for process in self.processes:
            if process.pid == pid and not process.has_exited:
                process.exit(-15)

    def release_all(self, code: int = -9) -> None:
        for process in self.processes:
            if not process.has_exited:
                process.exit(code)


@pytest.fixture
def process_manager():
    manager = FakeProcessManager()
    yield manager
    manager.release_all()


# ============================================================================
# Async helpers
# ============================================================================


async def _wait_until(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.01) -> None:
    """Poll ``predicate`` on the event loop until it is true or fail after ``timeout``."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not met before timeout")
        await asyncio.sleep(interval)


@pytest.fixture
def wait_until():
    """Async polling helper: ``await wait_until(lambda: cond)``."""
    return _wait_until
