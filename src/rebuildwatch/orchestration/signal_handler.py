"""
Signal handling for the orchestration module.

SIGINT and SIGTERM ask the coordinator to stop; the coordinator then
terminates any running toolchain process before exiting.
"""

import logging
import signal
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class SignalHandler:
    """
    Installs SIGINT/SIGTERM handlers that call a stop callback once.

    The original handlers are restored by cleanup_signal_handlers().
    """

    def __init__(self, on_stop: Callable[[], None]):
        self.on_stop = on_stop
        self.stop_requested = False
        self._original_sigint_handler: Optional[Any] = None
        self._original_sigterm_handler: Optional[Any] = None
        self._signal_handlers_set = False

    def setup_signal_handlers(self) -> None:
        """Set up signal handlers, remembering the previous ones."""
        try:
            self._original_sigint_handler = signal.signal(signal.SIGINT, self._handle_signal)
            self._original_sigterm_handler = signal.signal(signal.SIGTERM, self._handle_signal)
            self._signal_handlers_set = True
            logger.debug("Signal handlers installed")
        except ValueError as e:
            # Only the main thread may install signal handlers
            logger.warning(f"Failed to set up signal handlers: {e}")

    def cleanup_signal_handlers(self) -> None:
        """Restore original signal handlers."""
        if not self._signal_handlers_set:
            return

        try:
            if self._original_sigint_handler is not None:
                signal.signal(signal.SIGINT, self._original_sigint_handler)
            if self._original_sigterm_handler is not None:
                signal.signal(signal.SIGTERM, self._original_sigterm_handler)
            logger.debug("Signal handlers restored")
        except ValueError as e:
            logger.warning(f"Failed to restore signal handlers: {e}")
        finally:
            self._signal_handlers_set = False

    def _handle_signal(self, signum: int, frame: Any) -> None:
        if self.stop_requested:
            logger.warning("Shutdown already in progress. Please be patient.")
            return

        logger.info(f"Signal {signal.strsignal(signum)} received. Initiating graceful shutdown...")
        self.stop_requested = True
        self.on_stop()

    def __enter__(self) -> "SignalHandler":
        self.setup_signal_handlers()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.cleanup_signal_handlers()
