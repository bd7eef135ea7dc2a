import logging
from datetime import datetime
from pathlib import Path
from typing import List, NamedTuple, Optional, Union

from conductor.local.control.layout import ControlDirectory, DESCRIPTOR_SUFFIX
from conductor.local.errors import RegistrationError

log = logging.getLogger(__name__)


class ChildDescriptor(NamedTuple):
    name: str
    exec_path: Path
    discovered_at: datetime


def parse_descriptor(text: str) -> dict:
    """Parses the `key=value` lines of a descriptor file."""
    fields = {}
    for line in text.splitlines():
        key, sep, value = line.partition("=")
        if sep:
            fields[key.strip()] = value.strip()
    return fields


class Registry:
    """
    Records and discovers child descriptors stored as `scripts/<name>.info`.

    Registration is best-effort: a failed write is logged and reported as
    False, never raised to the caller.
    """

    def __init__(self, control_dir: ControlDirectory) -> None:
        self.control_dir = control_dir

    def register(self, name: str, exec_path: Union[str, Path]) -> bool:
        """
        Creates or replaces the descriptor for `name`. Last write wins.

        :param name: Unique child name.
        :param exec_path: Path of the child executable. Not validated here.
        :return: True if the descriptor was written.
        """
        try:
            self._write_descriptor(name, Path(exec_path).absolute())
        except (RegistrationError, ValueError) as e:
            log.warning(f"Registration of '{name}' failed: {e}")
            return False
        log.debug(f"Registered child '{name}' -> {exec_path}")
        return True

    def _write_descriptor(self, name: str, exec_path: Path) -> None:
        """Atomically writes the descriptor file through a temporary sibling."""
        target = self.control_dir.descriptor_path(name)
        temp_path = target.with_suffix(".tmp")
        try:
            temp_path.write_text(f"name={name}\npath={exec_path}\n", encoding="utf-8")
            temp_path.replace(target)
        except OSError as e:
            raise RegistrationError(f"Cannot write descriptor '{target}': {e}") from e
        finally:
            temp_path.unlink(missing_ok=True)

    def unregister(self, name: str) -> bool:
        """Removes a descriptor. Used only on explicit request, never automatically."""
        try:
            path = self.control_dir.descriptor_path(name)
            if not path.exists():
                return False
            path.unlink()
            log.info(f"Unregistered child '{name}'.")
            return True
        except (OSError, ValueError) as e:
            log.warning(f"Could not unregister '{name}': {e}")
            return False

    def get(self, name: str) -> Optional[ChildDescriptor]:
        try:
            return self._read_descriptor(self.control_dir.descriptor_path(name))
        except ValueError:
            return None

    def list(self) -> List[ChildDescriptor]:
        """Returns every readable descriptor, sorted by name."""
        if not self.control_dir.scripts_dir.is_dir():
            return []
        descriptors = []
        for path in self.control_dir.scripts_dir.glob(f"*{DESCRIPTOR_SUFFIX}"):
            descriptor = self._read_descriptor(path)
            if descriptor is not None:
                descriptors.append(descriptor)
        return sorted(descriptors, key=lambda d: d.name)

    def _read_descriptor(self, path: Path) -> Optional[ChildDescriptor]:
        try:
            fields = parse_descriptor(path.read_text(encoding="utf-8"))
            discovered_at = datetime.fromtimestamp(path.stat().st_mtime)
        except (OSError, UnicodeDecodeError) as e:
            log.debug(f"Skipping unreadable descriptor {path}: {e}")
            return None
        if "path" not in fields:
            log.debug(f"Skipping malformed descriptor {path}")
            return None
        name = fields.get("name") or path.stem
        return ChildDescriptor(name=name, exec_path=Path(fields["path"]), discovered_at=discovered_at)
