"""
Process management for the orchestration module.

This module launches the external toolchain with inherited console streams
and terminates toolchain process trees. Supersession only requests
termination; the escalating, blocking termination is reserved for shutdown.
"""

import logging
import os
import signal
import subprocess
from pathlib import Path
from typing import List, Optional, Union

import psutil

from ..validation import ProcessLaunchError
from .shared_state import TimeoutConstants

logger = logging.getLogger(__name__)


class ProcessManager:
    """
    Toolchain process lifecycle: launch, termination request and forced shutdown.
    """

    # Escalation used by terminate_process_tree; request_termination only sends the first.
    _PHASES = [
        {
            "name": "graceful",
            "signal": "SIGTERM",
            "timeout": TimeoutConstants.TERMINATION_GRACEFUL_TIMEOUT,
            "force": False
        },
        {
            "name": "interrupt",
            "signal": "SIGINT",
            "timeout": TimeoutConstants.TERMINATION_INTERRUPT_TIMEOUT,
            "force": False
        },
        {
            "name": "force_kill",
            "signal": "SIGKILL",
            "timeout": TimeoutConstants.TERMINATION_FORCE_TIMEOUT,
            "force": True
        },
    ]

    def start_build_process(
        self,
        command: Union[str, List[str]],
        cwd: Path,
        shell_executable: Optional[str] = None,
    ) -> subprocess.Popen:
        """
        Start the toolchain with stdout and stderr inherited from this process.

        Args:
            command: Argv list, or a string run through the shell
            cwd: Working directory for the build
            shell_executable: Shell used for string commands, None for the default

        Returns:
            The started subprocess.Popen object

        Raises:
            ProcessLaunchError: If the toolchain cannot be started
        """
        use_shell = isinstance(command, str)
        try:
            process = subprocess.Popen(
                command,
                cwd=cwd,
                env=os.environ.copy(),
                shell=use_shell,
                executable=shell_executable if use_shell else None,
            )
        except (OSError, ValueError) as e:
            raise ProcessLaunchError(command, e) from e

        logger.debug(f"Toolchain process started with PID {process.pid} in {cwd}")
        return process

    def request_termination(self, process: subprocess.Popen, name: str) -> None:
        """
        Send SIGTERM to a process and its descendants without waiting.

        Children are collected before the parent is signalled so that they
        are not lost to re-parenting.
        """
        if process.returncode is not None:
            logger.debug(f"{name} already exited with code {process.returncode}, nothing to terminate")
            return

        try:
            parent = psutil.Process(process.pid)
        except psutil.NoSuchProcess:
            logger.debug(f"{name} (PID {process.pid}) already gone")
            return
        except psutil.AccessDenied:
            logger.warning(f"Access denied to {name} (PID {process.pid}), falling back to Popen.terminate()")
            self._terminate_popen(process, name)
            return

        children = self._get_process_children(parent)
        signalled = self._apply_termination_signal(children + [parent], self._PHASES[0])
        logger.info(f"Requested termination of {name} (PID {process.pid}, {len(signalled)} processes signalled)")

    def terminate_process_tree(self, pid: Optional[int], name: str) -> None:
        """
        Terminate a process and all its children, escalating SIGTERM, SIGINT, SIGKILL.

        Blocks until the tree is gone or every phase has been tried.
        """
        if pid is None or pid <= 0:
            logger.warning(f"Invalid PID {pid} for {name}, skipping termination")
            return

        try:
            parent = psutil.Process(pid)
        except psutil.NoSuchProcess:
            logger.debug(f"Process {name} (PID: {pid}) already terminated")
            return
        except psutil.AccessDenied:
            logger.warning(f"Access denied to process {name} (PID: {pid}), attempting force kill")
            self._force_kill_process(pid)
            return

        logger.info(f"Terminating {name} (PID: {pid}) and its process tree")

        for phase_idx, phase in enumerate(self._PHASES):
            if not self._is_process_alive(parent):
                logger.debug(f"{name} terminated before phase {phase['name']}")
                break

            # Children may change between phases
            children = self._get_process_children(parent)
            all_processes = children + [parent]

            signalled = self._apply_termination_signal(all_processes, phase)
            if not signalled:
                continue

            remaining = self._wait_for_termination(signalled, phase['timeout'])
            if not remaining:
                logger.debug(f"All processes of {name} terminated in phase {phase['name']}")
                break

            logger.warning(f"Phase {phase['name']}: {len(remaining)} processes of {name} still alive")
            if phase_idx == len(self._PHASES) - 1:
                self._handle_stubborn_processes(remaining, name)

    def _is_process_alive(self, process: psutil.Process) -> bool:
        """Safely check if a process is still alive and not a zombie."""
        try:
            if not process.is_running():
                return False
            return process.status() not in [psutil.STATUS_ZOMBIE, psutil.STATUS_DEAD]
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            return False

    def _get_process_children(self, parent: psutil.Process) -> List[psutil.Process]:
        """Safely get all live children of a process, handling race conditions."""
        children = []
        try:
            for child in parent.children(recursive=True):
                if self._is_process_alive(child):
                    children.append(child)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            # Parent or children may have terminated during enumeration
            pass
        return children

    def _apply_termination_signal(self, processes: List[psutil.Process], phase: dict) -> List[psutil.Process]:
        """Apply a phase's signal to a list of processes and return those that were signalled."""
        signalled = []
        signal_name = phase['signal']

        for process in processes:
            try:
                if not self._is_process_alive(process):
                    continue

                if phase['force']:
                    process.kill()
                elif signal_name == "SIGINT":
                    process.send_signal(signal.SIGINT)
                else:
                    process.terminate()

                signalled.append(process)
                logger.debug(f"Sent {signal_name} to PID {process.pid}")

            except psutil.NoSuchProcess:
                continue
            except psutil.AccessDenied:
                logger.warning(f"Access denied sending {signal_name} to PID {process.pid}")
                continue

        return signalled

    def _wait_for_termination(self, processes: List[psutil.Process], timeout: float) -> List[psutil.Process]:
        """Wait for processes to terminate and return any that are still alive."""
        if not processes:
            return []

        _, still_alive = psutil.wait_procs(processes, timeout=timeout)
        return [process for process in still_alive if self._is_process_alive(process)]

    def _handle_stubborn_processes(self, processes: List[psutil.Process], name: str) -> None:
        """Log processes that refuse to terminate even after SIGKILL."""
        logger.error(f"Failed to terminate {len(processes)} stubborn processes for {name}")

        for process in processes:
            try:
                logger.error(f"Stubborn process: PID {process.pid}, name: {process.name()}, "
                             f"status: {process.status()}")
            except (psutil.NoSuchProcess, psutil.AccessDenied) as e:
                logger.error(f"Could not get info for stubborn process PID {process.pid}: {e}")

    def _terminate_popen(self, process: subprocess.Popen, name: str) -> None:
        try:
            process.terminate()
        except ProcessLookupError:
            logger.debug(f"{name} already gone")

    def _force_kill_process(self, pid: int) -> None:
        """Force kill a single process by PID as last resort."""
        try:
            os.kill(pid, signal.SIGKILL if hasattr(signal, "SIGKILL") else signal.SIGTERM)
            logger.warning(f"Force killed process PID {pid}")
        except ProcessLookupError:
            pass
        except PermissionError as e:
            logger.error(f"Failed to force kill PID {pid}: {e}")
