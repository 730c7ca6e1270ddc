# modules/db_module.py
# SQLite scan history, one short-lived connection per operation
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, List, Optional, Union

from .applog import get_logger
from .errors import StorageError
from .utils import ensure_dir

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M:%S"

logger = get_logger("db")


@dataclass(frozen=True)
class ScanRecord:
    id: int
    result: str
    scan_date: str  # YYYY-MM-DD
    scan_time: str  # HH:MM:SS


def _as_date_str(value: Union[str, date, datetime]) -> str:
    if isinstance(value, (date, datetime)):
        return value.strftime(DATE_FORMAT)
    return str(value)


class ScanStore:
    """Append-only ScanHistory table."""

    def __init__(self, db_path: str, tz=None, clock: Optional[Callable[[], datetime]] = None):
        self.db_path = db_path
        self.tz = tz
        self.clock = clock or (lambda: datetime.now(self.tz))

    @contextmanager
    def _connect(self):
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open database {self.db_path}: {e}") from e
        try:
            with conn:
                yield conn
        except sqlite3.Error as e:
            raise StorageError(str(e)) from e
        finally:
            conn.close()

    def initialize(self):
        """Create the table, add ScanTime to files created before it existed. Idempotent."""
        folder = os.path.dirname(self.db_path)
        if folder:
            ensure_dir(folder)

        with self._connect() as conn:
            conn.execute(
                "CREATE TABLE IF NOT EXISTS ScanHistory ("
                "ID INTEGER PRIMARY KEY AUTOINCREMENT, Result TEXT, ScanDate TEXT, ScanTime TEXT)"
            )
            columns = {row[1].lower() for row in conn.execute("PRAGMA table_info(ScanHistory)")}
            if "scantime" not in columns:
                conn.execute("ALTER TABLE ScanHistory ADD COLUMN ScanTime TEXT")
                logger.info("[DB] added ScanTime column to existing ScanHistory")
        logger.info(f"[DB] ready: {self.db_path}")

    def insert(self, result: str) -> ScanRecord:
        now = self.clock()
        scan_date, scan_time = now.strftime(DATE_FORMAT), now.strftime(TIME_FORMAT)
        with self._connect() as conn:
            cur = conn.execute(
                "INSERT INTO ScanHistory (Result, ScanDate, ScanTime) VALUES (?, ?, ?)",
                (result, scan_date, scan_time),
            )
            record = ScanRecord(cur.lastrowid, result, scan_date, scan_time)
        logger.info(f"[DB] saved scan #{record.id} at {scan_date} {scan_time}")
        return record

    def fetch_all(self) -> List[ScanRecord]:
        """Whole history, newest first."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT ID, Result, ScanDate, ScanTime FROM ScanHistory ORDER BY ID DESC"
            ).fetchall()
        return [ScanRecord(*row) for row in rows]

    def fetch_between(self, from_date, to_date) -> List[ScanRecord]:
        """Records whose ScanDate lies in [from_date, to_date], oldest first."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT ID, Result, ScanDate, ScanTime FROM ScanHistory "
                "WHERE ScanDate BETWEEN ? AND ? ORDER BY ID ASC",
                (_as_date_str(from_date), _as_date_str(to_date)),
            ).fetchall()
        return [ScanRecord(*row) for row in rows]
