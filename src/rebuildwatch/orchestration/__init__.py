"""
Orchestration of watched rebuilds.

Components:
- RebuildCoordinator: single coordinating context, drives watching and building
- BuildSupervisor: supersession, launch and result propagation
- ProcessManager: toolchain launch and process-tree termination
- SignalHandler: SIGINT/SIGTERM to coordinator shutdown
"""

from .build_supervisor import BuildSupervisor
from .coordinator import RebuildCoordinator
from .process_manager import ProcessManager
from .shared_state import TimeoutConstants
from .signal_handler import SignalHandler

__all__ = [
    "BuildSupervisor",
    "ProcessManager",
    "RebuildCoordinator",
    "SignalHandler",
    "TimeoutConstants",
]
