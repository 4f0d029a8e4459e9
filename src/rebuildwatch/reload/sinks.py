"""
Reload notification sinks.

A reload sink tells a live development session to perform a full reload.
The contract is fire-and-forget: no payload beyond the trigger itself and
no acknowledgment.
"""

import logging
import os
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional

from ..models.config import ReloadConfig
from ..validation import ConfigError

logger = logging.getLogger(__name__)


class ReloadSink(ABC):
    """Abstract notification channel for "reload the consuming session now"."""

    @abstractmethod
    def broadcast_reload(self) -> None:
        """Request a full reload of every connected session."""

    def close(self) -> None:
        """Release any resources held by the sink."""


class LoggingReloadSink(ReloadSink):
    """Sink that only logs the reload request. Used when no dev server is attached."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger
        self.reload_count = 0

    def broadcast_reload(self) -> None:
        self.reload_count += 1
        self.log.info("Full reload requested")


class CallbackReloadSink(ReloadSink):
    """
    Sink backed by a zero-argument callable.

    An embedding development server passes its own broadcast primitive here,
    e.g. a function that sends a full-reload message over its websocket.
    """

    def __init__(self, callback: Callable[[], None]):
        if not callable(callback):
            raise TypeError("callback must be callable")
        self.callback = callback

    def broadcast_reload(self) -> None:
        self.callback()


class TouchFileReloadSink(ReloadSink):
    """
    Sink that rewrites a trigger file on every reload.

    Live-reload servers that watch the output directory pick up the change
    and refresh connected pages.
    """

    def __init__(self, touch_file: Path):
        self.touch_file = Path(touch_file)

    def broadcast_reload(self) -> None:
        self.touch_file.parent.mkdir(parents=True, exist_ok=True)
        stamp = time.time()
        # Content changes too, so watchers that compare hashes also fire.
        self.touch_file.write_text(f"{stamp:.6f}\n", encoding="utf-8")
        os.utime(self.touch_file, (stamp, stamp))
        logger.debug(f"Touched reload trigger {self.touch_file}")


def create_reload_sink(reload_config: ReloadConfig) -> ReloadSink:
    """
    Create the sink selected by the `[reload]` configuration section.

    Raises:
        ConfigError: If the configuration names an unknown sink
    """
    if reload_config.sink == "log":
        return LoggingReloadSink()
    if reload_config.sink == "touch":
        if reload_config.touch_file is None:
            raise ConfigError(
                "reload.touch_file must be set when reload.sink is 'touch'",
                field_name="reload.touch_file",
            )
        return TouchFileReloadSink(reload_config.touch_file)
    raise ConfigError(
        f"Unknown reload sink: {reload_config.sink}",
        field_name="reload.sink",
        value=reload_config.sink,
    )
