"""
Filesystem watching and change classification.
"""

from .watch_source import ChangeEventHandler, RelevanceClass, WatchSource

__all__ = [
    "ChangeEventHandler",
    "RelevanceClass",
    "WatchSource",
]
