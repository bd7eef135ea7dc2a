import os
import sys
import subprocess
from pathlib import Path
from typing import Any, Dict, List

from conductor import settings


#* --- Process Creation ---
def get_popen_creation_flags() -> Dict[str, Any]:
    """
    Returns platform-specific keyword arguments for Popen.

    On Windows the child gets its own process group so a close request aimed
    at it does not reach the master. Elsewhere it gets its own session.
    """
    if sys.platform == "win32":
        return {"creationflags": subprocess.CREATE_NEW_PROCESS_GROUP}
    return {"start_new_session": True}


def build_command(exec_path: Path, python_executable: str) -> List[str]:
    """Returns the argv used to start a child. Python scripts run through the configured interpreter."""
    if exec_path.suffix.lower() in (".py", ".pyw"):
        return [python_executable, str(exec_path)]
    return [str(exec_path)]


def child_environment(name: str, control_root: Path) -> Dict[str, str]:
    """Environment of a launched child: the master's, plus its name and the control root."""
    env = dict(os.environ)
    env[settings.CHILD_NAME_ENV] = name
    env[settings.CONTROL_DIR_ENV] = str(Path(control_root).resolve())
    return env
