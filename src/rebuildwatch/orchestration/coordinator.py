"""
Rebuild coordination.

RebuildCoordinator is the single coordinating context. Watchdog observer
threads hand raw events to an asyncio queue, and the coordinator takes them
one at a time: classify with the watch source, and for relevant changes let
the build supervisor supersede and launch. The next event is only taken once
the launch has happened.
"""

import asyncio
import logging
from typing import Callable, Optional

from watchdog.events import EVENT_TYPE_MOVED, FileSystemEvent
from watchdog.observers import Observer

from ..models.config import AppConfig
from ..models.runtime import BuildProcess
from ..reload import ReloadSink, create_reload_sink
from ..watching import ChangeEventHandler, WatchSource
from ..watching.watch_source import ChangeInput
from .build_supervisor import BuildSupervisor
from .process_manager import ProcessManager
from .shared_state import TimeoutConstants

logger = logging.getLogger(__name__)

_STOP = object()


class RebuildCoordinator:
    """
    Wires the watch source, the build supervisor and the reload sink together.

    Usage:
        coordinator = RebuildCoordinator(config)
        asyncio.run(coordinator.run())

    ``request_stop`` may be called from any thread, including signal handlers.
    """

    def __init__(
        self,
        config: AppConfig,
        reload_sink: Optional[ReloadSink] = None,
        process_manager: Optional[ProcessManager] = None,
        observer_factory: Callable[[], object] = Observer,
    ):
        self.config = config
        self.watch_source = WatchSource()
        self.reload_sink = reload_sink or create_reload_sink(config.reload)
        self.supervisor = BuildSupervisor(
            build_config=config.build,
            reload_sink=self.reload_sink,
            cwd=config.watch.project_root,
            process_manager=process_manager,
        )
        self._observer_factory = observer_factory
        self._observer = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._queue: Optional[asyncio.Queue] = None
        self._stop_requested = False

        self.events_received = 0
        self.rebuilds_triggered = 0

    @property
    def is_running(self) -> bool:
        return self._queue is not None

    def configure(self) -> None:
        """
        Apply the watch rule.

        Raises:
            ConfigError: If a watch root does not exist
        """
        self.watch_source.configure(self.config.watch)

    async def run(self) -> None:
        """
        Configure, build once, then process filesystem events until stopped.

        Raises:
            ConfigError: If the watch roots are invalid. Nothing is started then.
        """
        self.configure()

        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        if self._stop_requested:
            self._queue.put_nowait(_STOP)

        self._start_observer()
        try:
            await self.supervisor.start()
            await self._process_events()
        finally:
            await self._shutdown()

    def submit(self, event: ChangeInput) -> None:
        """Queue a change for processing. Safe to call from any thread."""
        if self._loop is None or self._queue is None:
            raise RuntimeError("Coordinator is not running")
        self._loop.call_soon_threadsafe(self._queue.put_nowait, event)

    def request_stop(self) -> None:
        """Ask the event loop to stop after the event currently being handled."""
        self._stop_requested = True
        if self._loop is not None and self._queue is not None:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, _STOP)

    async def handle_event(self, event: ChangeInput) -> Optional[BuildProcess]:
        """
        Classify one change and trigger a rebuild if it is relevant.

        Returns:
            The launched build, or None if the change was irrelevant
        """
        self.events_received += 1
        relevance = self.watch_source.classify(event)
        if relevance is None:
            return None

        logger.info(f"{relevance.value.capitalize()} file changed: {_describe(event)}. Recompiling...")
        self.rebuilds_triggered += 1
        return await self.supervisor.on_relevant_change()

    async def _process_events(self) -> None:
        while True:
            event = await self._queue.get()
            if event is _STOP:
                logger.info("Stop requested, leaving the watch loop")
                return
            await self.handle_event(event)

    def _start_observer(self) -> None:
        observer = self._observer_factory()
        handler = ChangeEventHandler(self.submit)
        self.watch_source.schedule(observer, handler)
        observer.start()
        self._observer = observer
        logger.info("Filesystem observer started")

    async def _shutdown(self) -> None:
        observer = self._observer
        self._observer = None
        if observer is not None:
            observer.stop()
            await self._loop.run_in_executor(
                None, lambda: observer.join(TimeoutConstants.OBSERVER_JOIN_TIMEOUT)
            )

        await self.supervisor.shutdown()
        self.reload_sink.close()
        self._queue = None
        logger.info("Rebuild coordinator stopped")


def _describe(event: ChangeInput) -> str:
    if not isinstance(event, FileSystemEvent):
        return str(event)
    if event.event_type == EVENT_TYPE_MOVED:
        return f"{event.src_path} -> {event.dest_path}"
    return str(event.src_path)
