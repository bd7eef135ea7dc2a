"""
The notification manager shared by the master and every child.

Each entry lives in two places: a bounded in-memory ring used for live
filtering, and the durable append-only `notifications.txt`, which is the
source of truth across restarts and the channel through which child
notifications reach the master.
"""

import logging
from collections import deque
from datetime import datetime
from pathlib import Path
from typing import Callable, Deque, Dict, Iterable, List, NamedTuple, Optional, Union

from conductor.local.errors import LogWriteError

log = logging.getLogger(__name__)

LEVELS = ("info", "warning", "error")
LEVEL_ALIASES = {"warn": "warning", "err": "error"}
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class NotificationEntry(NamedTuple):
    timestamp: datetime
    level: str
    source: str
    message: str


Observer = Callable[[NotificationEntry], None]


def normalize_level(level: str) -> str:
    """
    Maps a level name to one of LEVELS, case-insensitively.

    :raises ValueError: If the level is unknown.
    """
    value = str(level).strip().lower()
    value = LEVEL_ALIASES.get(value, value)
    if value not in LEVELS:
        raise ValueError(f"Unknown notification level '{level}'. Expected one of {', '.join(LEVELS)}.")
    return value


def _single_line(text: str) -> str:
    return " ".join(str(text).replace("\t", " ").splitlines())


def render_line(entry: NotificationEntry) -> str:
    """Renders an entry as one durable log line, without the trailing newline."""
    return (
        f"{entry.timestamp.strftime(TIMESTAMP_FORMAT)}\t[{entry.level}]\t"
        f"[{_single_line(entry.source)}]\t{_single_line(entry.message)}"
    )


def parse_line(line: str) -> Optional[NotificationEntry]:
    """Parses a durable log line. Returns None for anything malformed."""
    parts = line.rstrip("\r\n").split("\t", 3)
    if len(parts) != 4:
        return None
    stamp, level, source, message = parts
    if not (level.startswith("[") and level.endswith("]") and source.startswith("[") and source.endswith("]")):
        return None
    try:
        timestamp = datetime.strptime(stamp, TIMESTAMP_FORMAT)
        level = normalize_level(level[1:-1])
    except ValueError:
        return None
    return NotificationEntry(timestamp, level, source[1:-1], message)


class NotificationManager:
    """
    Bounded notification history plus durable append log.

    Construct one per process at startup and pass it to every component that
    emits notifications.
    """

    def __init__(
        self,
        log_path: Optional[Union[str, Path]],
        max_history: int = 200,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """
        :param log_path: The durable log file, or None to keep entries in memory only.
        :param max_history: Capacity of the in-memory ring.
        :param clock: Source of entry timestamps.
        """
        if max_history < 1:
            raise ValueError("max_history must be at least 1")
        self.log_path = Path(log_path) if log_path is not None else None
        self.max_history = max_history
        self.history: Deque[NotificationEntry] = deque(maxlen=max_history)
        self._clock = clock
        self._observers: List[Observer] = []
        # Byte offset of the durable log already ingested. None until the
        # manager starts following the file (master side only).
        self._offset: Optional[int] = None
        # Rendered lines this manager appended but has not read back yet.
        self._pending: Dict[str, Deque[NotificationEntry]] = {}

    def subscribe(self, observer: Observer) -> None:
        """Registers a presentation observer called for every new entry."""
        self._observers.append(observer)

    def log(self, level: str, source: str, message: str) -> NotificationEntry:
        """
        Records a notification in the ring and the durable log, then notifies observers.

        A failed durable append does not block the call or drop the in-memory entry.
        A manager following the durable log reads it back after appending, so
        lines other processes wrote first land before this entry in the ring.
        """
        entry = NotificationEntry(self._clock().replace(microsecond=0), normalize_level(level), source, message)
        try:
            self._append_durable(entry)
        except LogWriteError as e:
            log.debug(f"Notification kept in memory only: {e}")
            self.history.append(entry)
        else:
            if self._offset is None or self.log_path is None:
                self.history.append(entry)
            else:
                self._ingest(notify=True)
        self._notify_observers(entry)
        return entry

    def info(self, source: str, message: str) -> NotificationEntry:
        return self.log("info", source, message)

    def warning(self, source: str, message: str) -> NotificationEntry:
        return self.log("warning", source, message)

    def error(self, source: str, message: str) -> NotificationEntry:
        return self.log("error", source, message)

    def get_filtered(self, level: Optional[str] = None, source: Optional[str] = None) -> List[NotificationEntry]:
        """
        Returns matching entries from the ring, oldest first.
        Both filters are optional and combined with AND.
        """
        wanted_level = normalize_level(level) if level else None
        return [
            entry for entry in self.history
            if (wanted_level is None or entry.level == wanted_level)
            and (source is None or entry.source == source)
        ]

    @staticmethod
    def format(entries: Iterable[NotificationEntry]) -> str:
        """Renders entries newest first, one per line. Pure."""
        return "\n".join(
            f"{e.timestamp.strftime(TIMESTAMP_FORMAT)} [{e.level.upper():<7}] [{e.source}] {e.message}"
            for e in reversed(list(entries))
        )

    def load_history(self) -> int:
        """
        Seeds the ring with the newest entries of the durable log and starts
        following it. Observers are not called for historical entries.

        :return: The number of entries read.
        """
        self.history.clear()
        self._pending.clear()
        self._offset = 0
        count = self._ingest(notify=False)
        log.debug(f"Loaded {count} notifications from {self.log_path}")
        return count

    def sync(self) -> int:
        """
        Ingests entries that other processes appended to the durable log since
        the last call. Lines this manager wrote itself take their place in file
        order without being announced again.

        :return: The number of new foreign entries.
        """
        if self._offset is None:
            self._offset = 0
        return self._ingest(notify=True)

    def _ingest(self, notify: bool) -> int:
        if self.log_path is None or not self.log_path.exists():
            return 0
        count = 0
        try:
            if self.log_path.stat().st_size < self._offset:
                log.warning(f"Notification log {self.log_path} was truncated. Re-reading from start.")
                self._offset = 0
            with self.log_path.open("rb") as f:
                f.seek(self._offset)
                for raw in iter(f.readline, b""):
                    if not raw.endswith(b"\n"):
                        break  # partial line, picked up on the next sync
                    self._offset += len(raw)
                    line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
                    pending = self._pending.get(line)
                    if pending:
                        # Own entry, already announced by log()
                        self.history.append(pending.popleft())
                        if not pending:
                            del self._pending[line]
                        continue
                    entry = parse_line(line)
                    if entry is None:
                        continue
                    self.history.append(entry)
                    count += 1
                    if notify:
                        self._notify_observers(entry)
        except OSError as e:
            log.warning(f"Could not read notification log {self.log_path}: {e}")
        return count

    def _append_durable(self, entry: NotificationEntry) -> None:
        if self.log_path is None:
            return
        line = render_line(entry)
        try:
            with self.log_path.open("a", encoding="utf-8", newline="\n") as f:
                f.write(line + "\n")
        except OSError as e:
            raise LogWriteError(f"Cannot append to {self.log_path}: {e}") from e
        if self._offset is not None:
            self._pending.setdefault(line, deque()).append(entry)

    def _notify_observers(self, entry: NotificationEntry) -> None:
        for observer in self._observers:
            try:
                observer(entry)
            except Exception as e:
                log.error(f"Notification observer {observer!r} failed: {e}", exc_info=True)

    def __len__(self) -> int:
        return len(self.history)
