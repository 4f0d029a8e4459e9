"""
Reload notification sinks for live development sessions.
"""

from .sinks import (
    CallbackReloadSink,
    LoggingReloadSink,
    ReloadSink,
    TouchFileReloadSink,
    create_reload_sink,
)

__all__ = [
    "CallbackReloadSink",
    "LoggingReloadSink",
    "ReloadSink",
    "TouchFileReloadSink",
    "create_reload_sink",
]
