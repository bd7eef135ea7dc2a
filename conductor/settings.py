"""
This module contains the default configuration settings for Conductor.
It defines the control directory location, supervisor timings, child polling
cadences and notification history limits.
Values can be overridden through environment variables (or a .env file) and,
for the settings listed in MODIFIABLE_SETTINGS, through overrides.json.
"""

import os
import sys
import pathlib
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv(override=True)

#* --- Core Paths ---
BASE_DIR = pathlib.Path(os.getenv("CONDUCTOR_HOME", pathlib.Path.cwd())).resolve()
CONTROL_DIR = pathlib.Path(os.getenv("CONDUCTOR_CONTROL_DIR", BASE_DIR / "control"))
LOGS_DIR = pathlib.Path(os.getenv("CONDUCTOR_LOGS_DIR", BASE_DIR / "logs"))
OVERRIDES_JSON_PATH = BASE_DIR / "overrides.json"

#* --- Python Executable Configuration ---
# Interpreter used to launch children registered as .py scripts
PYTHON_EXECUTABLE = os.getenv("PYTHON_EXECUTABLE", sys.executable)

#* --- Master/Supervisor Settings ---
AUTO_LAUNCH = os.getenv("CONDUCTOR_AUTO_LAUNCH", "True").lower() in ('true', '1', 't')
SHUTDOWN_GRACE_PERIOD = 3.0  # seconds between close request and force kill
OS_RECLAIM_DELAY = 1.0       # seconds before the shutdown marker is removed

#* --- Child Runtime Settings ---
CHILD_SHUTDOWN_POLL_INTERVAL = 0.5
CHILD_ENABLED_POLL_INTERVAL = 1.0

#* --- Environment passed to launched children ---
CONTROL_DIR_ENV = "CONDUCTOR_CONTROL_DIR"
CHILD_NAME_ENV = "CONDUCTOR_CHILD_NAME"

#* --- Notifications ---
MASTER_SOURCE = "master"
NOTIFICATION_HISTORY_SIZE = 200
NOTIFICATION_DISPLAY_COUNT = 50

#* --- Application variables ---
VERBOSE_LOGGING = False

#* --- MODIFIABLE SETTINGS (Changeable at runtime via 'config' command) ---
MODIFIABLE_SETTINGS = {
    "AUTO_LAUNCH",
    "SHUTDOWN_GRACE_PERIOD", "OS_RECLAIM_DELAY",
    "CHILD_SHUTDOWN_POLL_INTERVAL", "CHILD_ENABLED_POLL_INTERVAL",
    "NOTIFICATION_HISTORY_SIZE", "NOTIFICATION_DISPLAY_COUNT",
}
