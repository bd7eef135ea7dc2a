import logging
from typing import List

from conductor.local.services import Services
from conductor.local.console.handler import (
    display_status, handle_config_command, handle_export_command, handle_launch_command,
    handle_list_command, handle_notifications_command, handle_register_command,
    handle_set_enabled_command, handle_toggle_command, handle_unregister_command,
    print_help, toggle_verbose_logging,
)

log = logging.getLogger(__name__)


def shutdown_master(services: Services) -> bool:
    """Runs the supervisor's shutdown escalation and reports the outcome."""
    outcomes = services.supervisor.request_shutdown()
    for name, outcome in sorted(outcomes.items()):
        print(f"  - {name:<20} : {outcome}")
    return True


def execute_command(services: Services, command: str, args: List[str]) -> bool:
    """
    Executes a single command from the user.

    Before dispatching, exited children are reaped and notifications written
    by children are pulled into the master's history.

    :param services: The master's components.
    :param command: The main command string (e.g., 'toggle', 'config').
    :param args: A list of arguments for the command.
    :return bool: True if the console should exit, False otherwise.
    """
    log.debug(f"Executing command: {command}, args: {args}")
    services.supervisor.reap()
    services.notifications.sync()

    command_map = {
        "launch": lambda: handle_launch_command(services, args),
        "start": lambda: handle_launch_command(services, args),
        "status": lambda: display_status(services),
        "list": lambda: handle_list_command(services),
        "register": lambda: handle_register_command(services, args),
        "unregister": lambda: handle_unregister_command(services, args),
        "toggle": lambda: handle_toggle_command(services, args),
        "enable": lambda: handle_set_enabled_command(services, args, True),
        "disable": lambda: handle_set_enabled_command(services, args, False),
        "notifications": lambda: handle_notifications_command(services, args),
        "logs": lambda: handle_notifications_command(services, args),
        "export-notifications": lambda: handle_export_command(services, args),
        "config": lambda: handle_config_command(services, args),
        "verbose": lambda: toggle_verbose_logging(services),
        "help": print_help,
        "exit": lambda: shutdown_master(services),
        "shutdown": lambda: shutdown_master(services),  # Foolproof alias
    }

    if command not in command_map:
        log.info(f"Unknown command: '{command}'. Type 'help' for a list of commands.")
        return False

    try:
        return command_map[command]() is True
    except ValueError as e:
        print(f"Error: {e}")
        return False
