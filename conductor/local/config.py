import json
import logging
from pathlib import Path
from typing import Dict, Any, Optional, Tuple

import conductor.settings as default_settings

log = logging.getLogger(__name__)

# Settings that must be strictly positive. Every other numeric setting must not be negative.
POSITIVE_SETTINGS = {
    "CHILD_SHUTDOWN_POLL_INTERVAL", "CHILD_ENABLED_POLL_INTERVAL",
    "NOTIFICATION_HISTORY_SIZE", "NOTIFICATION_DISPLAY_COUNT",
}


def check_bounds(key: str, value: Any) -> None:
    """
    :raises ValueError: If a numeric value is out of range for the setting.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return
    if key in POSITIVE_SETTINGS and value <= 0:
        raise ValueError(f"'{key}' must be greater than 0, got {value}")
    if value < 0:
        raise ValueError(f"'{key}' must not be negative, got {value}")


class ConductorSettings:
    """
    Merges the default settings with JSON overrides.

    This class provides a unified, attribute-based access point for all
    configuration. It follows a clear precedence:
    1. Base values from `settings.py`.
    2. Overrides from the `.env` file (handled by `python-dotenv` in settings.py).
    3. Overrides from `overrides.json` for settings in `MODIFIABLE_SETTINGS`.

    One instance is built at startup and handed to every component that needs it.
    """

    def __init__(self, overrides_path: Optional[Path] = None, **explicit: Any) -> None:
        """
        Initializes the settings object by loading defaults and overrides.

        :param overrides_path: Alternative location of the overrides file.
        :param explicit: Values that win over both defaults and overrides.
        """
        self._load_defaults()
        if overrides_path is not None:
            self.OVERRIDES_JSON_PATH = Path(overrides_path)
        self._load_overrides()
        for key, value in explicit.items():
            setattr(self, key, value)

    def _load_defaults(self) -> None:
        """Loads all uppercase attributes from the settings module as defaults."""
        for key in dir(default_settings):
            if key.isupper():
                setattr(self, key, getattr(default_settings, key))

    def _load_overrides(self) -> None:
        """
        Loads and applies settings from the `overrides.json` file.

        Only keys explicitly listed in `MODIFIABLE_SETTINGS` are applied.
        """
        overrides_path = Path(self.OVERRIDES_JSON_PATH)
        if not overrides_path.exists():
            return

        try:
            overrides = json.loads(overrides_path.read_text())
        except (json.JSONDecodeError, IOError) as e:
            log.error(f"Failed to load or parse overrides file '{overrides_path}': {e}")
            return

        log.info(f"Loading runtime configuration overrides from {overrides_path}")
        for key, value in overrides.items():
            if not hasattr(self, key):
                log.warning(f"Override setting '{key}' not found in default settings. Ignoring.")
                continue
            if key not in self.MODIFIABLE_SETTINGS:
                log.warning(f"Attempted to override non-modifiable setting '{key}'. Ignoring.")
                continue
            try:
                check_bounds(key, value)
            except ValueError as e:
                log.warning(f"Override ignored: {e}")
                continue
            setattr(self, key, value)
            log.debug(f"Overridden setting: {key} = {value}")

    def get(self, key: str, default: Any = None) -> Any:
        """Provides dictionary-like access to settings with a default value."""
        return getattr(self, key, default)

    def modifiable(self) -> Dict[str, Any]:
        """Returns the current values of every modifiable setting."""
        return {key: getattr(self, key, None) for key in sorted(self.MODIFIABLE_SETTINGS)}

    def update_setting(self, key: str, value: Any) -> Tuple[bool, str]:
        """
        Updates a modifiable setting, coercing the value to the type of the
        current one, and persists the overrides file.

        :return: A (success, message) pair suitable for the console.
        """
        if key not in self.MODIFIABLE_SETTINGS:
            message = f"Setting '{key}' is not modifiable."
            log.warning(f"Rejected config update: {message}")
            return False, message

        original_value = getattr(self, key, None)
        try:
            if isinstance(original_value, bool):
                new_value = str(value).lower() in ('true', '1', 't', 'yes', 'y')
            elif original_value is not None:
                new_value = type(original_value)(value)
            else:
                new_value = value
        except (ValueError, TypeError) as e:
            message = f"Could not convert value '{value}' for key '{key}'. Error: {e}"
            log.error(f"Config update failed: {message}")
            return False, message

        try:
            check_bounds(key, new_value)
        except ValueError as e:
            message = f"Invalid value for '{key}': {e}"
            log.error(f"Config update failed: {message}")
            return False, message

        setattr(self, key, new_value)
        self.save_overrides()
        message = f"Setting '{key}' updated to '{new_value}'. Restart required for children to apply."
        log.info(message)
        return True, message

    def save_overrides(self) -> None:
        """Persists the modifiable settings to the overrides JSON file."""
        overrides_path = Path(self.OVERRIDES_JSON_PATH)
        try:
            overrides_path.write_text(json.dumps(self.modifiable(), indent=4))
            log.info(f"Configuration overrides saved to {overrides_path}")
        except IOError as e:
            log.error(f"Failed to write to overrides file '{overrides_path}': {e}")
