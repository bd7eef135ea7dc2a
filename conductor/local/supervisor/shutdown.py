import logging
from typing import TYPE_CHECKING, Dict, List

from conductor.local.errors import TerminationError

if TYPE_CHECKING:
    from .supervisor import ChildProcessHandle, Supervisor

log = logging.getLogger(__name__)

GRACEFUL = "graceful"
FORCED = "forced"
FAILED = "failed"


def _raise_shutdown_flag(supervisor: "Supervisor") -> None:
    """Creates the shutdown marker so polling children exit on their own."""
    try:
        supervisor.shutdown_channel.request()
    except OSError as e:
        supervisor.notifications.warning(supervisor.source, f"Could not create shutdown marker: {e}")


def _request_close(supervisor: "Supervisor", handles: List["ChildProcessHandle"]) -> None:
    """Asks every window owned by each live child to close."""
    platform = supervisor.platform
    for handle in handles:
        try:
            windows = platform.list_windows(handle.pid)
            log.debug(f"Requesting close of {len(windows)} window(s) of {handle.name} (PID {handle.pid})")
            for window in windows:
                platform.request_close(window)
        except (TerminationError, OSError) as e:
            supervisor.notifications.warning(supervisor.source, f"Failed to signal {handle.name}: {e}")


def _settle(supervisor: "Supervisor", handles: List["ChildProcessHandle"]) -> Dict[str, str]:
    """Force-kills whatever survived the grace period and records every outcome."""
    outcomes: Dict[str, str] = {}
    for handle in handles:
        if not supervisor.platform.is_alive(handle.process):
            supervisor.notifications.info(supervisor.source, f"{handle.name} closed gracefully")
            outcomes[handle.name] = GRACEFUL
            supervisor.handles.pop(handle.name, None)
            continue
        try:
            supervisor.platform.terminate(handle.process)
        except (TerminationError, OSError) as e:
            supervisor.notifications.warning(supervisor.source, f"Failed to terminate {handle.name}: {e}")
            outcomes[handle.name] = FAILED
            continue
        supervisor.notifications.warning(supervisor.source, f"{handle.name} force closed")
        outcomes[handle.name] = FORCED
        supervisor.handles.pop(handle.name, None)
    return outcomes


def graceful_shutdown_sequence(supervisor: "Supervisor") -> Dict[str, str]:
    """
    Runs the full two-phase escalation for every tracked child:
    shutdown marker and close requests, a grace period, forced termination
    of the survivors, a reclaim delay, and finally removal of the marker.

    :param supervisor: The Supervisor whose handles are stopped.
    :return: Outcome per child name.
    """
    _raise_shutdown_flag(supervisor)

    try:
        live = []
        for handle in list(supervisor.handles.values()):
            if supervisor.platform.is_alive(handle.process):
                live.append(handle)
            else:
                log.info(f"{handle.name} had already exited before shutdown.")
                supervisor.handles.pop(handle.name, None)

        log.info(f"Initiating graceful shutdown for {len(live)} children...")
        _request_close(supervisor, live)

        try:
            supervisor.sleep(supervisor.grace_period)
        finally:
            # Survivors are killed even if the grace wait was cut short
            outcomes = _settle(supervisor, live)
        supervisor.sleep(supervisor.reclaim_delay)
    finally:
        supervisor.shutdown_channel.clear()
    log.info("Shutdown sequence completed.")
    return outcomes
