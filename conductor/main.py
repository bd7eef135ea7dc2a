import sys
import logging

# Basic console logger for messages BEFORE full setup is complete.
# This logger will be replaced by the full setup later.
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)-8s - [console] - %(message)s',
    stream=sys.stdout
)
log = logging.getLogger("console")

import setproctitle

import conductor.local.console as console
from conductor.local.config import ConductorSettings
from conductor.local.errors import ControlDirectoryError
from conductor.local.services import build_master_services
from conductor.log.setup import echo_notification, setup_logging


def main() -> int:
    """The main entry point for the master console."""
    setproctitle.setproctitle("Conductor - Master")
    settings = ConductorSettings()
    args = sys.argv[1:]

    if "--verbose" in args:
        settings.VERBOSE_LOGGING = True
        args.remove("--verbose")
    setup_logging(logging.DEBUG if settings.VERBOSE_LOGGING else logging.INFO, settings.LOGS_DIR / "conductor.log")

    try:
        services = build_master_services(settings)
    except ControlDirectoryError as e:
        log.critical(f"{e}. Control plane unavailable, exiting.")
        return 1

    # Non-interactive mode for one-off commands
    if args:
        command, command_args = args[0].lower(), args[1:]
        services.supervisor.start(auto_launch=False)
        console.execute_command(services, command, command_args)
        return 0

    services.notifications.subscribe(echo_notification)

    # Interactive mode
    print("--- Conductor Master Console ---")
    print("Type 'help' for a list of commands.")
    services.supervisor.start(auto_launch=bool(settings.AUTO_LAUNCH))

    while True:
        try:
            command_line = input("> ").strip().split()
            if not command_line:
                continue

            command, command_args = command_line[0].lower(), command_line[1:]
            log.debug(f"Received command: {command}, args: {command_args}")

            if console.execute_command(services, command, command_args):
                break

        except (KeyboardInterrupt, EOFError):
            log.warning("\nExiting console due to interrupt. Shutting down children.")
            services.supervisor.request_shutdown()
            break
        except Exception as e:
            log.error(f"An unexpected error occurred in the console: {e}", exc_info=True)

    return 0


if __name__ == "__main__":
    exit_code = main()
    print("Exiting Conductor. See you next time!")
    sys.exit(exit_code)
