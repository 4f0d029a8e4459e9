"""
Filesystem change classification.

WatchSource decides whether a filesystem event should trigger a rebuild.
It knows two independent relevance classes: source files under the
configured source roots, and build-manifest files (manifests and lockfiles)
relative to the project root. It never starts builds itself.
"""

import dataclasses
import fnmatch
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)

from ..models.config import WatchRule
from ..validation import ConfigError, ValidationError, validate_directory_exists

logger = logging.getLogger(__name__)

# Event kinds that can change what the toolchain would produce.
RELEVANT_EVENT_TYPES = frozenset({EVENT_TYPE_MODIFIED, EVENT_TYPE_CREATED, EVENT_TYPE_MOVED})

ChangeInput = Union[FileSystemEvent, str, "os.PathLike[str]"]


class RelevanceClass(Enum):
    """Why a changed path is relevant to the build."""
    SOURCE = "source"
    MANIFEST = "manifest"


class WatchSource:
    """
    Classifies filesystem events as rebuild-relevant or not.

    Usage:
        source = WatchSource()
        source.configure(rule)
        if source.on_change(event):
            ...
    """

    def __init__(self) -> None:
        self._rule: Optional[WatchRule] = None

    @property
    def rule(self) -> Optional[WatchRule]:
        return self._rule

    @property
    def is_configured(self) -> bool:
        return self._rule is not None

    def configure(self, rule: WatchRule) -> None:
        """
        Register the roots and patterns to observe.

        Args:
            rule: The watch rule to apply

        Raises:
            ConfigError: If a root does not exist or is not a directory
        """
        # Event paths are resolved before matching, so the roots must be too.
        rule = dataclasses.replace(
            rule,
            project_root=rule.project_root.resolve(),
            source_roots=tuple(root.resolve() for root in rule.source_roots),
        )
        for root in rule.roots:
            try:
                validate_directory_exists(root, field_name="Watch root")
            except ValidationError as e:
                raise ConfigError(str(e), field_name="watch.roots", value=str(root)) from e

        self._rule = rule
        logger.info(
            f"Watching {len(rule.source_roots)} source roots for {list(rule.source_patterns)}"
            f" and manifests {list(rule.manifest_patterns)} under {rule.project_root}"
        )

    def on_change(self, event: ChangeInput) -> bool:
        """
        Return True if the changed path should trigger a rebuild.

        Args:
            event: A watchdog event or a changed-file path. Relative paths
                are resolved against the project root.
        """
        return self.classify(event) is not None

    def classify(self, event: ChangeInput) -> Optional[RelevanceClass]:
        """
        Return the relevance class of a change, or None if it is irrelevant.

        Raises:
            RuntimeError: If called before configure()
        """
        if self._rule is None:
            raise RuntimeError("WatchSource.configure() must be called before classifying events")

        path = self._changed_path(event)
        if path is None:
            return None

        return self.classify_path(path)

    def classify_path(self, path: Union[str, "os.PathLike[str]"]) -> Optional[RelevanceClass]:
        """Classify a file path by pattern alone."""
        if self._rule is None:
            raise RuntimeError("WatchSource.configure() must be called before classifying events")

        path = self._absolute(path)
        if self._is_ignored(path):
            return None
        if self._matches_source(path):
            return RelevanceClass.SOURCE
        if self._matches_manifest(path):
            return RelevanceClass.MANIFEST
        return None

    def schedule(self, observer, handler: FileSystemEventHandler) -> List[Tuple[Path, bool]]:
        """
        Register watches for the configured roots on a watchdog observer.

        Source roots are watched recursively. The project root is watched
        non-recursively for manifest files unless it is itself a source root.

        Returns:
            The (path, recursive) pairs that were scheduled
        """
        if self._rule is None:
            raise RuntimeError("WatchSource.configure() must be called before scheduling watches")

        scheduled: List[Tuple[Path, bool]] = []
        for root in self._rule.source_roots:
            scheduled.append((root, True))

        if self._rule.manifest_patterns and self._rule.project_root not in self._rule.source_roots:
            scheduled.append((self._rule.project_root, False))

        for path, recursive in scheduled:
            observer.schedule(handler, str(path), recursive=recursive)
            logger.debug(f"Scheduled watch on {path} (recursive={recursive})")

        return scheduled

    def _changed_path(self, event: ChangeInput) -> Optional[Path]:
        """Extract the path an event refers to, or None if the event kind is ignored."""
        if isinstance(event, FileSystemEvent):
            if event.is_directory:
                return None
            if event.event_type not in RELEVANT_EVENT_TYPES:
                return None
            raw = event.dest_path if event.event_type == EVENT_TYPE_MOVED else event.src_path
            if not raw:
                return None
            path = self._absolute(os.fsdecode(raw))
        else:
            path = self._absolute(event)

        # Deleted files vanish before the event is seen; only reject paths
        # that exist and are not regular files.
        if path.exists() and not path.is_file():
            return None
        return path

    def _absolute(self, path: Union[str, "os.PathLike[str]"]) -> Path:
        candidate = Path(os.fsdecode(path))
        if not candidate.is_absolute():
            candidate = self._rule.project_root / candidate
        return candidate.resolve()

    def _is_ignored(self, path: Path) -> bool:
        if not self._rule.ignore_patterns:
            return False
        relative = _relative_posix(path, self._rule.project_root)
        if relative is None:
            return False
        return any(fnmatch.fnmatch(relative, pattern) for pattern in self._rule.ignore_patterns)

    def _matches_source(self, path: Path) -> bool:
        for root in self._rule.source_roots:
            relative = _relative_posix(path, root)
            if relative is None:
                continue
            for pattern in self._rule.source_patterns:
                if fnmatch.fnmatch(path.name, pattern) or fnmatch.fnmatch(relative, pattern):
                    return True
        return False

    def _matches_manifest(self, path: Path) -> bool:
        relative = _relative_posix(path, self._rule.project_root)
        if relative is None:
            return False
        return any(fnmatch.fnmatch(relative, pattern) for pattern in self._rule.manifest_patterns)


def _relative_posix(path: Path, root: Path) -> Optional[str]:
    if not path.is_relative_to(root):
        return None
    return path.relative_to(root).as_posix()


class ChangeEventHandler(FileSystemEventHandler):
    """
    Forwards every watchdog event to a callback.

    Runs on the observer's thread; the callback must hand the event over
    to the coordinating context without blocking.
    """

    def __init__(self, callback: Callable[[FileSystemEvent], None]):
        super().__init__()
        self.callback = callback

    def on_any_event(self, event: FileSystemEvent) -> None:
        self.callback(event)
