"""
This is a minimal entry point script for a child process.

It registers the child in the control directory, then runs the polling
loop until the master raises the shutdown marker or asks the process to
close. The child's own behavior here is a heartbeat log line while enabled;
real children replace `on_enable` / `on_disable` with their own work.
"""
import os
import sys
import signal
import logging
import argparse
from pathlib import Path

import setproctitle

from conductor import settings as default_settings
from conductor.local.child import ChildRuntime, PeriodicTask
from conductor.local.config import ConductorSettings
from conductor.local.errors import ControlDirectoryError
from conductor.local.services import build_child_services
from conductor.log.setup import setup_logging

log = logging.getLogger(__name__)

HEARTBEAT_INTERVAL = 5.0


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a Conductor child process.")
    parser.add_argument("--name", default=os.getenv(default_settings.CHILD_NAME_ENV, Path(__file__).stem))
    parser.add_argument("--control-dir", default=None, help="Control directory shared with the master.")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setproctitle.setproctitle(f"Conductor - Child {args.name}")
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    settings = ConductorSettings()
    try:
        services = build_child_services(settings, args.name, args.control_dir)
    except ControlDirectoryError as e:
        log.critical(f"{e}")
        return 1

    def on_enable() -> None:
        log.info(f"{args.name}: behavior active.")

    def on_disable() -> None:
        log.info(f"{args.name}: behavior inactive.")

    runtime = ChildRuntime(
        name=args.name,
        exec_path=Path(__file__).resolve(),
        registry=services.registry,
        state_channel=services.state,
        shutdown_channel=services.shutdown,
        notifications=services.notifications,
        on_enable=on_enable,
        on_disable=on_disable,
        shutdown_interval=float(settings.CHILD_SHUTDOWN_POLL_INTERVAL),
        enabled_interval=float(settings.CHILD_ENABLED_POLL_INTERVAL),
    )

    def heartbeat() -> None:
        if runtime.active:
            log.debug(f"{args.name}: heartbeat.")

    runtime.scheduler.add(PeriodicTask("heartbeat", HEARTBEAT_INTERVAL, heartbeat))

    def handle_shutdown_signal(signum, frame):
        log.debug(f"Signal {signum} received, stopping child '{args.name}'.")
        runtime.request_stop()

    signal.signal(signal.SIGTERM, handle_shutdown_signal)
    signal.signal(signal.SIGINT, handle_shutdown_signal)

    return runtime.run()


if __name__ == "__main__":
    sys.exit(main())
