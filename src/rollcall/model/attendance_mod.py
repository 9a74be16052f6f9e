"""Attendance records and associated operations.

Attendance is stored as a mapping from ISO date to a mapping of student ID
to status, e.g. {"2024-01-01": {"4f0c...": "Present"}}. A student with no
entry for a date has not been marked. Dates are never removed, even after
every entry for a date has been deleted.
"""

from collections.abc import Callable, Iterable
import copy
import datetime
import enum
import logging

from rollcall.model import kvstore


logger = logging.getLogger(__name__)

AttendanceRecords = dict[str, dict[str, str]]


class Status(enum.StrEnum):
    """Attendance status for one student on one date."""

    PRESENT = "Present"
    ABSENT = "Absent"
    NOT_MARKED = "Not Marked"


MARKABLE = (Status.PRESENT, Status.ABSENT)


def today_iso() -> str:
    """Today's date on the local calendar, YYYY-MM-DD."""
    return datetime.date.today().isoformat()


def to_iso_date(date: datetime.date | str) -> str:
    """Convert a date to a YYYY-MM-DD string.

    Raises ValueError if date is a string that isn't an ISO date.
    """
    if isinstance(date, datetime.datetime):
        date = date.date()
    if isinstance(date, datetime.date):
        return date.isoformat()
    return datetime.date.fromisoformat(date).isoformat()


class AttendanceStore:
    """Per-date attendance status for every student."""

    _kv: kvstore.KeyValueStore
    _key: str
    _records: AttendanceRecords
    _observers: list[Callable[["AttendanceStore"], None]]

    def __init__(
        self, kv: kvstore.KeyValueStore, key: str = kvstore.ATTENDANCE_KEY
    ) -> None:
        """Load attendance records from the key-value store."""
        self._kv = kv
        self._key = key
        self._observers = []
        self._records = self._load()

    def _load(self) -> AttendanceRecords:
        """Read records, discarding entries that aren't date -> id -> status."""
        raw = self._kv.load_json(self._key, {})
        records: AttendanceRecords = {}
        for date, day in raw.items():
            if not isinstance(day, dict):
                logger.warning("Discarding attendance for %s, not a mapping", date)
                continue
            records[date] = {
                student_id: status
                for student_id, status in day.items()
                if status in MARKABLE
            }
        return records

    def reload(self) -> None:
        """Replace in-memory records with the persisted records."""
        self._records = self._load()

    @property
    def records(self) -> AttendanceRecords:
        """Copy of all attendance records."""
        return copy.deepcopy(self._records)

    def subscribe(self, callback: Callable[["AttendanceStore"], None]) -> None:
        """Call callback with this store after every change."""
        self._observers.append(callback)

    def notify(self) -> None:
        """Call every subscriber with this store."""
        for callback in self._observers:
            callback(self)

    def _save(self, records: AttendanceRecords) -> None:
        """Persist records, then make them current and notify observers.

        Inside a key-value transaction observers are not notified; the caller
        calls notify() once the transaction commits.
        """
        self._kv.save_json(self._key, records)
        self._records = records
        if not self._kv.in_transaction:
            self.notify()

    def mark(
        self, date: datetime.date | str, student_id: str, status: Status | str
    ) -> None:
        """Set a student's status for a date, overwriting any prior status."""
        status = Status(status)
        if status not in MARKABLE:
            raise ValueError(f"Cannot mark a student as {status}.")
        iso_date = to_iso_date(date)
        records = copy.deepcopy(self._records)
        records.setdefault(iso_date, {})[student_id] = status.value
        self._save(records)
        logger.debug("Marked %s %s on %s", student_id, status, iso_date)

    def status_of(self, date: datetime.date | str, student_id: str) -> Status:
        """Get a student's status for a date."""
        status = self._records.get(to_iso_date(date), {}).get(student_id)
        return Status.NOT_MARKED if status is None else Status(status)

    def day(self, date: datetime.date | str) -> dict[str, Status]:
        """All marked statuses for a date, keyed by student ID."""
        return {
            student_id: Status(status)
            for student_id, status in self._records.get(to_iso_date(date), {}).items()
        }

    def dates(self) -> list[str]:
        """Dates with attendance records, in chronological order."""
        return sorted(self._records)

    def cascade_delete(self, student_id: str) -> None:
        """Remove a student's status from every date.

        Dates left with no entries are kept.
        """
        records = {
            date: {sid: status for sid, status in day.items() if sid != student_id}
            for date, day in self._records.items()
        }
        self._save(records)
        logger.debug("Removed attendance for %s", student_id)

    def prune(self, known_ids: Iterable[str]) -> int:
        """Remove entries for students that are not in known_ids.

        Returns:
            Number of entries removed. Nothing is saved if no entries are
            removed.
        """
        known = set(known_ids)
        removed = 0
        records: AttendanceRecords = {}
        for date, day in self._records.items():
            kept = {sid: status for sid, status in day.items() if sid in known}
            removed += len(day) - len(kept)
            records[date] = kept
        if removed:
            self._save(records)
            logger.info("Pruned %d orphaned attendance entries", removed)
        return removed
