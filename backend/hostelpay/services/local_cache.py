"""
Local cache - durable, synchronous mirror of every collection.

One JSON file per key under LOCAL_CACHE_DIR (`hostel-students.json`,
`hostel-current-expense-id.json`, ...). Writes go to a temp file that is
renamed over the target, so a crash never leaves half a document behind.
Unreadable files are logged and treated as absent.
"""

import json
import os
from pathlib import Path
from typing import Any, Iterable, Optional

from hostelpay.core.logging_config import logger

STUDENTS_KEY = "students"
EXPENSES_KEY = "expenses"
SETTINGS_KEY = "settings"
NOTIFICATIONS_KEY = "notifications"
ADMINS_KEY = "admins"
SESSIONS_KEY = "admin-sessions"
EXPENSE_COUNTER_KEY = "current-expense-id"
NOTIFICATION_COUNTER_KEY = "current-notification-id"


class LocalCache:

    def __init__(self, directory: Path, prefix: str = "hostel-"):
        self.directory = Path(directory)
        self.prefix = prefix

    def path_for(self, key: str) -> Path:
        return self.directory / f"{self.prefix}{key}.json"

    def load(self, key: str) -> Optional[Any]:
        """Stored value for `key`, or None when missing or unreadable"""
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"[LocalCache] Ignoring unreadable entry {path.name}: {e}")
            return None

    def save(self, key: str, value: Any) -> None:
        """Persist `value`; raises OSError/TypeError when it cannot be written"""
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(value, default=str), encoding="utf-8")
        os.replace(tmp, path)

    def remove(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)

    def get_counter(self, key: str) -> int:
        value = self.load(key)
        if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
            return value
        if value is not None:
            logger.warning(f"[LocalCache] Counter {key} is not a number, restarting from 0")
        return 0

    def next_id(self, key: str, existing_ids: Iterable[str] = ()) -> str:
        """
        Issue the next id from counter `key`.

        The counter never moves backwards and always lands above every
        numeric id already present, so ids from an earlier run are not reused.
        """
        current = self.get_counter(key)
        for record_id in existing_ids:
            if str(record_id).isdigit():
                current = max(current, int(record_id))
        next_value = current + 1
        self.save(key, next_value)
        return str(next_value)

    def clear(self) -> None:
        if not self.directory.exists():
            return
        for path in self.directory.glob(f"{self.prefix}*.json"):
            path.unlink(missing_ok=True)
