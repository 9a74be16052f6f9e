"""Construct the roster and attendance stores."""

import dataclasses
import logging
import pathlib

from rollcall.model import attendance_mod, kvstore, students_mod


logger = logging.getLogger(__name__)


@dataclasses.dataclass
class Tracker:
    """The stores backing one attendance database."""

    kv: kvstore.KeyValueStore
    attendance: attendance_mod.AttendanceStore
    roster: students_mod.RosterStore

    @classmethod
    def open(
        cls,
        db_path: pathlib.Path,
        students_key: str = kvstore.STUDENTS_KEY,
        attendance_key: str = kvstore.ATTENDANCE_KEY,
    ) -> "Tracker":
        """Load both stores from db_path.

        Attendance entries for students that are no longer on the roster are
        removed.
        """
        kv = kvstore.KeyValueStore(db_path)
        attendance = attendance_mod.AttendanceStore(kv, attendance_key)
        roster = students_mod.RosterStore(kv, attendance, students_key)
        attendance.prune(roster.ids())
        logger.debug(
            "Opened %s with %d students and %d dates",
            db_path,
            len(roster),
            len(attendance.dates()),
        )
        return cls(kv, attendance, roster)
