"""
Build supervision with cancel-then-restart semantics.

The supervisor owns at most one running toolchain process. Each launch gets
a new generation number. A process's exit is delivered through a one-shot
future bound to the BuildProcess at launch time, and only the exit of the
latest generation may notify the reload sink or report a failure.

Termination of a superseded build is requested but not awaited, so for a
short while two toolchain processes may run side by side and contend for the
same output directory. The newer build's result is the only one reported.
"""

import asyncio
import logging
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Deque, Dict, List, Optional

from ..models.config import BuildConfig
from ..models.runtime import BuildProcess, BuildState
from ..reload import ReloadSink
from ..validation import (
    BuildFailure,
    ErrorSeverity,
    ProcessLaunchError,
    SupersededExit,
    handle_build_error,
)
from .process_manager import ProcessManager
from .shared_state import TimeoutConstants

logger = logging.getLogger(__name__)


class BuildSupervisor:
    """
    Runs the toolchain, supersedes in-flight builds and propagates results.

    All methods must be called from the event loop thread. The supervisor is
    the only component that mutates the current build slot.
    """

    def __init__(
        self,
        build_config: BuildConfig,
        reload_sink: ReloadSink,
        cwd: Path,
        process_manager: Optional[ProcessManager] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        """
        Args:
            build_config: Toolchain command and exit-code settings
            reload_sink: Notified after each successful, current build
            cwd: Working directory for the toolchain
            process_manager: Launches and terminates processes
            executor: Pool used to block on process exit; created on demand if omitted
        """
        self.build_config = build_config
        self.reload_sink = reload_sink
        self.cwd = Path(cwd)
        self.process_manager = process_manager or ProcessManager()

        self._executor = executor
        self._owns_executor = executor is None

        self._current: Optional[BuildProcess] = None
        self._generation = 0
        # Launched builds whose exit has not been observed yet, by generation
        self._live: Dict[int, BuildProcess] = {}
        self._exit_tasks: Dict[int, asyncio.Task] = {}
        self._shut_down = False

        self.history: Deque[BuildProcess] = deque(maxlen=build_config.history_size)

    @property
    def current(self) -> Optional[BuildProcess]:
        """The most recently launched build, until its terminal state is reported."""
        return self._current

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_shut_down(self) -> bool:
        return self._shut_down

    @property
    def live_builds(self) -> List[BuildProcess]:
        """Builds whose process exit has not been observed, oldest first."""
        return [self._live[key] for key in sorted(self._live)]

    async def start(self) -> BuildProcess:
        """Run the initial build without waiting for a change."""
        logger.info("Running initial build...")
        return await self._launch()

    async def on_relevant_change(self) -> BuildProcess:
        """
        Supersede the running build, if any, and launch a new one.

        Returns once the new process has been launched. Its exit is handled
        in the background.

        Raises:
            RuntimeError: If the supervisor has been shut down
        """
        return await self._launch()

    async def wait_for_build(self, build: BuildProcess) -> BuildState:
        """
        Wait until the exit of ``build`` has been handled and return its final state.

        A superseded build is terminal immediately, but this still waits for
        its process to exit so callers can observe that the exit was discarded.
        """
        task = self._exit_tasks.get(build.generation)
        if task is not None:
            await asyncio.shield(task)
        return build.state

    async def shutdown(self) -> None:
        """
        Terminate every live build process and release the waiter pool.

        The current build, if still running, is marked superseded so that
        its exit after termination is neither reported nor notified.
        """
        if self._shut_down:
            return
        self._shut_down = True

        current = self._current
        if current is not None and current.is_running:
            current.mark_superseded()
            self.history.append(current)
        self._current = None

        loop = asyncio.get_running_loop()
        live = self.live_builds
        if live:
            logger.info(f"Stopping {len(live)} running build process(es)")
        for build in live:
            # Default executor: the waiter pool may be fully busy with these very processes
            await loop.run_in_executor(
                None,
                self.process_manager.terminate_process_tree,
                build.pid,
                f"build #{build.generation}",
            )

        pending = list(self._exit_tasks.values())
        if pending:
            _, still_pending = await asyncio.wait(
                pending, timeout=TimeoutConstants.EXIT_HANDLER_DRAIN_TIMEOUT
            )
            for task in still_pending:
                task.cancel()
            if still_pending:
                await asyncio.gather(*still_pending, return_exceptions=True)

        if self._executor is not None and self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

        logger.info("Build supervisor stopped")

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.build_config.waiter_threads,
                thread_name_prefix=self.build_config.thread_name_prefix,
            )
        return self._executor

    async def _launch(self) -> BuildProcess:
        if self._shut_down:
            raise RuntimeError("Build supervisor has been shut down")

        previous = self._current
        self._generation += 1
        build = BuildProcess(generation=self._generation, command=self.build_config.command)
        self._current = build

        if previous is not None and previous.is_running:
            self._supersede(previous, build)

        try:
            process = self.process_manager.start_build_process(
                self.build_config.command,
                self.cwd,
                self.build_config.shell_executable,
            )
        except ProcessLaunchError as e:
            build.mark_failed(None)
            handle_build_error(
                error=e,
                context=f"launching build #{build.generation}",
                severity=ErrorSeverity.ERROR,
                logger=logger,
            )
            self._finish(build)
            return build

        build.mark_running(process)
        self._live[build.generation] = build
        logger.info(f"Build #{build.generation} started (PID {build.pid}): {self.build_config.display_command}")

        loop = asyncio.get_running_loop()
        completion = loop.run_in_executor(self._get_executor(), process.wait)
        self._exit_tasks[build.generation] = asyncio.create_task(
            self._observe_exit(build, completion),
            name=f"build-{build.generation}-exit",
        )
        return build

    def _supersede(self, previous: BuildProcess, replacement: BuildProcess) -> None:
        previous.mark_superseded()
        self.history.append(previous)
        logger.info(f"Build #{previous.generation} superseded by build #{replacement.generation}")
        self.process_manager.request_termination(previous.process, f"build #{previous.generation}")

    async def _observe_exit(self, build: BuildProcess, completion: "asyncio.Future[int]") -> None:
        """Consume the completion future of one build exactly once."""
        try:
            code: Optional[int] = await completion
        except asyncio.CancelledError:
            raise
        except Exception as e:
            handle_build_error(
                error=e,
                context=f"waiting for build #{build.generation}",
                severity=ErrorSeverity.WARNING,
                logger=logger,
            )
            code = None
        finally:
            self._live.pop(build.generation, None)
            self._exit_tasks.pop(build.generation, None)

        self._handle_exit(build, code)

    def _handle_exit(self, build: BuildProcess, code: Optional[int]) -> None:
        try:
            self._ensure_current(build, code)
        except SupersededExit as e:
            build.exit_code_after_supersede = code
            logger.debug(f"Discarded: {e}")
            return

        if code == self.build_config.success_code:
            build.mark_succeeded(code)
            logger.info(f"Build #{build.generation} finished successfully in {build.duration_seconds:.2f}s")
            self._finish(build)
            self._notify_reload()
            return

        build.mark_failed(code)
        if code is None:
            logger.error(f"Build #{build.generation} failed: exit status unavailable")
        else:
            handle_build_error(
                error=BuildFailure(code, build.generation),
                context="result",
                severity=ErrorSeverity.ERROR,
                logger=logger,
            )
        self._finish(build)

    def _ensure_current(self, build: BuildProcess, code: Optional[int]) -> None:
        """Raise SupersededExit unless ``build`` is still the latest running generation."""
        if build.generation != self._generation or build.state is not BuildState.RUNNING:
            raise SupersededExit(build.generation, self._generation, code)

    def _finish(self, build: BuildProcess) -> None:
        self.history.append(build)
        if self._current is build:
            self._current = None

    def _notify_reload(self) -> None:
        try:
            self.reload_sink.broadcast_reload()
        except Exception as e:
            handle_build_error(
                error=e,
                context="broadcasting reload",
                severity=ErrorSeverity.WARNING,
                logger=logger,
            )
