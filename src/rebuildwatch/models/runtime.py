"""
Runtime data models.

BuildProcess tracks a single toolchain invocation from creation to its
terminal state. Only the build supervisor creates and mutates these.
"""

import subprocess
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from ..validation import InvalidTransitionError


class BuildState(Enum):
    """Lifecycle states of a build process."""
    CREATED = "created"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SUPERSEDED = "superseded"

    @property
    def is_terminal(self) -> bool:
        return self in (BuildState.SUCCEEDED, BuildState.FAILED, BuildState.SUPERSEDED)


# Allowed transitions. CREATED -> FAILED only happens when the launch itself fails.
_TRANSITIONS = {
    BuildState.CREATED: {BuildState.RUNNING, BuildState.FAILED},
    BuildState.RUNNING: {BuildState.SUCCEEDED, BuildState.FAILED, BuildState.SUPERSEDED},
    BuildState.SUCCEEDED: set(),
    BuildState.FAILED: set(),
    BuildState.SUPERSEDED: set(),
}


@dataclass(eq=False)
class BuildProcess:
    """
    One external compilation invocation.

    Identity is the generation number, captured when the build is created.
    It never depends on the operating system PID, which may be reused.
    """

    generation: int
    command: Union[str, List[str]]
    state: BuildState = BuildState.CREATED
    process: Optional[subprocess.Popen] = None
    return_code: Optional[int] = None
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    # Exit code observed after this build was superseded, kept for diagnostics only.
    exit_code_after_supersede: Optional[int] = field(default=None, repr=False)

    @property
    def pid(self) -> Optional[int]:
        return self.process.pid if self.process is not None else None

    @property
    def is_running(self) -> bool:
        return self.state is BuildState.RUNNING

    @property
    def duration_seconds(self) -> float:
        if self.start_time is None:
            return 0.0
        end_time = self.end_time or time.time()
        return end_time - self.start_time

    def _transition(self, new_state: BuildState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise InvalidTransitionError(
                f"Build #{self.generation} cannot move from {self.state.value} to {new_state.value}"
            )
        self.state = new_state

    def mark_running(self, process: subprocess.Popen) -> None:
        self._transition(BuildState.RUNNING)
        self.process = process
        self.start_time = time.time()

    def mark_succeeded(self, return_code: int) -> None:
        self._transition(BuildState.SUCCEEDED)
        self.return_code = return_code
        self.end_time = time.time()

    def mark_failed(self, return_code: Optional[int]) -> None:
        """Record a failed build. ``return_code`` is None when the launch failed."""
        self._transition(BuildState.FAILED)
        self.return_code = return_code
        self.end_time = time.time()

    def mark_superseded(self) -> None:
        self._transition(BuildState.SUPERSEDED)
        self.end_time = time.time()
