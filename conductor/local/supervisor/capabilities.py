"""
Platform capabilities consumed by the Supervisor.

The Supervisor never talks to the operating system directly; it goes through
a ProcessPlatform so the whole escalation can be exercised against fakes.
"""

import sys
import logging
import subprocess
from pathlib import Path
from typing import Any, List, NamedTuple, Protocol

import psutil

from conductor.local.errors import TerminationError
from conductor.local.supervisor.process_utils import build_command, child_environment, get_popen_creation_flags

log = logging.getLogger(__name__)


class ProcessWindow(NamedTuple):
    """Something owned by a process that can be asked to close."""
    pid: int
    title: str


class ProcessPlatform(Protocol):
    def spawn(self, path: Path, name: str) -> Any: ...

    def is_alive(self, process: Any) -> bool: ...

    def terminate(self, process: Any) -> None: ...

    def list_windows(self, pid: int) -> List[ProcessWindow]: ...

    def request_close(self, window: ProcessWindow) -> None: ...


class PsutilPlatform:
    """
    ProcessPlatform backed by psutil.

    psutil errors never leave this class: they become TerminationError, or a
    conservative answer where one exists.
    """

    def __init__(self, control_root: Path, logs_dir: Path, python_executable: str, kill_timeout: float = 5.0) -> None:
        self.control_root = Path(control_root)
        self.logs_dir = Path(logs_dir)
        self.python_executable = python_executable
        self.kill_timeout = kill_timeout

    def spawn(self, path: Path, name: str) -> psutil.Popen:
        """
        Starts a child detached from the master's console, with its output
        appended to `<logs_dir>/<name>.log`.
        """
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        with (self.logs_dir / f"{name}.log").open("ab") as output:
            return psutil.Popen(
                build_command(path, self.python_executable),
                stdout=output,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
                cwd=str(path.parent),
                env=child_environment(name, self.control_root),
                **get_popen_creation_flags(),
            )

    def is_alive(self, process: psutil.Process) -> bool:
        try:
            if isinstance(process, psutil.Popen):
                # poll() also reaps our own exited children
                return process.poll() is None
            return process.is_running() and process.status() != psutil.STATUS_ZOMBIE
        except psutil.NoSuchProcess:
            return False
        except psutil.AccessDenied:
            # It exists, we just may not look at it
            return True

    def terminate(self, process: psutil.Process) -> None:
        """Kills the process and waits for the OS to confirm it is gone."""
        try:
            process.kill()
            process.wait(timeout=self.kill_timeout)
        except psutil.NoSuchProcess:
            return
        except (psutil.Error, OSError) as e:
            raise TerminationError(f"Could not kill PID {process.pid}: {e}") from e

    def list_windows(self, pid: int) -> List[ProcessWindow]:
        """The process itself and all of its descendants."""
        try:
            proc = psutil.Process(pid)
        except psutil.NoSuchProcess:
            return []
        except psutil.Error as e:
            raise TerminationError(f"Cannot inspect PID {pid}: {e}") from e
        try:
            family = [proc] + proc.children(recursive=True)
        except psutil.NoSuchProcess:
            return []
        except psutil.AccessDenied:
            log.debug(f"Children of PID {pid} are not visible, closing the process alone.")
            family = [proc]
        windows = []
        for member in family:
            try:
                windows.append(ProcessWindow(member.pid, member.name()))
            except psutil.NoSuchProcess:
                continue
            except psutil.AccessDenied:
                windows.append(ProcessWindow(member.pid, "?"))
        return windows

    def request_close(self, window: ProcessWindow) -> None:
        """Politely asks a process to close: taskkill without /F on Windows, SIGTERM elsewhere."""
        log.debug(f"Requesting close of {window.title} (PID {window.pid})")
        if sys.platform == "win32":
            try:
                result = subprocess.run(
                    ["taskkill", "/PID", str(window.pid)], timeout=10, check=False, capture_output=True, text=True
                )
            except (OSError, subprocess.SubprocessError) as e:
                raise TerminationError(f"Close request for PID {window.pid} failed: {e}") from e
            if result.returncode != 0 and psutil.pid_exists(window.pid):
                raise TerminationError(f"Close request for PID {window.pid} refused: {result.stderr.strip()}")
            return
        try:
            psutil.Process(window.pid).terminate()
        except psutil.NoSuchProcess:
            return
        except (psutil.Error, OSError) as e:
            raise TerminationError(f"Close request for PID {window.pid} failed: {e}") from e
