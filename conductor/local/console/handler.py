import time
import psutil
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from conductor.local.services import Services
from conductor.log.export import export_notifications_to_excel
from conductor.log.notifications import LEVELS

log = logging.getLogger(__name__)


def _require_name(args: List[str], usage: str) -> Optional[str]:
    if not args:
        print(f"Usage: {usage}")
        return None
    return args[0]


def handle_launch_command(services: Services, args: List[str]) -> None:
    """Launches one registered child, or every registered child when no name is given."""
    supervisor = services.supervisor
    if args:
        supervisor.launch(args[0])
        return
    launched, failed = supervisor.launch_all()
    print(f"Launched {launched} child(ren), {failed} failure(s).")


def handle_list_command(services: Services) -> None:
    descriptors = services.registry.list()
    if not descriptors:
        print("\nNo children registered.\n")
        return
    print("\n--- Registered Children ---")
    for d in descriptors:
        print(f"  - {d.name:<20} : {d.exec_path}  (registered {d.discovered_at:%Y-%m-%d %H:%M:%S})")
    print()


def handle_register_command(services: Services, args: List[str]) -> None:
    if len(args) < 2:
        print("Usage: register <name> <path>")
        return
    name, path = args[0], " ".join(args[1:])
    if services.registry.register(name, Path(path)):
        print(f"Registered '{name}'.")
    else:
        print(f"Could not register '{name}'. Check logs for details.")


def handle_unregister_command(services: Services, args: List[str]) -> None:
    name = _require_name(args, "unregister <name>")
    if name and not services.registry.unregister(name):
        print(f"'{name}' is not registered.")


def handle_toggle_command(services: Services, args: List[str]) -> None:
    name = _require_name(args, "toggle <name>")
    if name:
        state = services.state.toggle(name)
        print(f"{name} is now {'ENABLED' if state else 'DISABLED'}.")


def handle_set_enabled_command(services: Services, args: List[str], enabled: bool) -> None:
    name = _require_name(args, f"{'enable' if enabled else 'disable'} <name>")
    if name and not services.state.set_enabled(name, enabled):
        print(f"{name} is already {'ENABLED' if enabled else 'DISABLED'} or could not be changed.")


def _parse_filters(args: List[str]) -> Tuple[Optional[str], Optional[str]]:
    """Accepts `[level] [source]`; a first argument that is not a level is taken as the source."""
    level = source = None
    remaining = list(args)
    if remaining and remaining[0].lower() in LEVELS + ("warn", "all"):
        level = remaining.pop(0).lower()
        if level == "all":
            level = None
    if remaining:
        source = remaining[0]
    return level, source


def handle_notifications_command(services: Services, args: List[str]) -> None:
    """Prints the most recent matching notifications, newest first."""
    level, source = _parse_filters(args)
    entries = services.notifications.get_filtered(level=level, source=source)
    count = int(services.settings.NOTIFICATION_DISPLAY_COUNT)
    entries = entries[-count:]
    print(f"\n--- Last {len(entries)} notification(s) (level: {level or 'all'}, source: {source or 'all'}) ---")
    text = services.notifications.format(entries)
    print(text if text else "(none)")
    print()


def handle_export_command(services: Services, args: List[str]) -> None:
    output_file = Path(args[0]) if args else Path(services.settings.LOGS_DIR) / "notifications_export.xlsx"
    output_file.parent.mkdir(parents=True, exist_ok=True)
    log.info(f"Exporting notifications to '{output_file}'...")
    export_notifications_to_excel(services.control_dir.notifications_path, output_file)


def display_status(services: Services) -> None:
    """Shows every registered child with its enabled flag and, when tracked, resource usage."""
    supervisor = services.supervisor
    enabled = services.state.enabled_names()
    descriptors = services.registry.list()

    print(f"\n--- Conductor Status ({supervisor.state.value.upper()}) ---")
    print(f"Control directory: {services.control_dir.root}")
    if not descriptors:
        print("  No children registered.")
    total_cpu = 0.0
    total_mem = 0
    for d in descriptors:
        flag = "ENABLED" if d.name in enabled else "DISABLED"
        handle = supervisor.get_handle(d.name)
        if handle is None:
            print(f"  - {d.name:<20} : {flag:<8} | NOT TRACKED")
            continue
        try:
            p = psutil.Process(handle.pid)
            cpu = p.cpu_percent(interval=0.1)
            mem = p.memory_info().rss
            total_cpu += cpu
            total_mem += mem
            uptime = time.strftime('%H:%M:%S', time.gmtime(time.time() - handle.launch_time.timestamp()))
            print(f"  - {d.name:<20} : {flag:<8} | PID {handle.pid:<8} | Status: {p.status().upper()} | CPU: {cpu:.1f}% | MEM: {mem/1024/1024:.1f} MB | Up: {uptime}")
        except psutil.NoSuchProcess:
            print(f"  - {d.name:<20} : {flag:<8} | PID {handle.pid:<8} | Status: STOPPED")
        except psutil.AccessDenied:
            print(f"  - {d.name:<20} : {flag:<8} | PID {handle.pid:<8} | Status: RUNNING (Access Denied)")

    print(f"\nTOTAL CPU: {total_cpu:.1f}%  |  TOTAL MEMORY: {total_mem/1024/1024:.1f} MB")
    if services.shutdown.is_requested():
        print("WARNING: A shutdown marker is present in the control directory.")
    print("-" * 26 + "\n")


def _config_show(services: Services) -> None:
    print("\n--- Current Configuration ---")
    for key, value in services.settings.modifiable().items():
        print(f"  {key} = {value}")
    print("---")
    print("Use 'config set <KEY> <VALUE>' to change a setting.")
    print("Children read their settings at startup; relaunch them to apply changes.")
    print("-----------------------------\n")


def _config_help() -> None:
    print("\nConfig Command Help:")
    print("  config show                - Display all modifiable settings.")
    print("  config set KEY VALUE       - Change and persist a setting.")
    print("  config help                - Show this help message.")


def handle_config_command(services: Services, args: List[str]) -> None:
    sub_command = args[0].lower() if args else "show"

    if sub_command == "show":
        _config_show(services)
    elif sub_command == "set":
        if len(args) < 3:
            print("Usage: config set <SETTING_NAME> <VALUE>")
            return
        _, message = services.settings.update_setting(args[1].upper(), " ".join(args[2:]))
        print(message)
    elif sub_command == "help":
        _config_help()
    else:
        print(f"Unknown config sub-command: '{sub_command}'. Type 'config help' for available commands.")


def toggle_verbose_logging(services: Services) -> None:
    """Toggles verbose (DEBUG level) logging for the console handler."""
    settings = services.settings
    settings.VERBOSE_LOGGING = not settings.VERBOSE_LOGGING
    new_level = logging.DEBUG if settings.VERBOSE_LOGGING else logging.INFO

    root_logger = logging.getLogger()
    found_handler = False
    for handler in root_logger.handlers:
        if type(handler) is logging.StreamHandler:
            handler.setLevel(new_level)
            found_handler = True
            break

    status = "ON" if settings.VERBOSE_LOGGING else "OFF"
    if found_handler:
        print(f"Verbose console logging is now {status}.")
    else:
        print("Could not find console handler to modify level.")


def print_help() -> None:
    """Prints the main help text for the console."""
    print("\nAvailable commands:")
    print("  launch [name]                  - Launch one registered child, or all of them.")
    print("  status                         - Show every child, its flag and its process.")
    print("  list                           - List registered children.")
    print("  register <name> <path>         - Register a child executable.")
    print("  unregister <name>              - Remove a child registration.")
    print("  toggle <name>                  - Flip a child between enabled and disabled.")
    print("  enable <name> / disable <name> - Set a child's enabled flag.")
    print("  notifications [level] [source] - Show recent notifications, newest first.")
    print("  export-notifications [file]    - Export the notification log to an Excel file.")
    print("  config <cmd>                   - Manage configuration. Use 'config help' for details.")
    print("  verbose                        - Toggle detailed DEBUG log output in the console.")
    print("  exit                           - Shut down all children and exit.")
    print()
