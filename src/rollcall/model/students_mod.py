"""Student roster and associated operations."""

from collections.abc import Callable
import dataclasses
import logging
import re
from typing import ClassVar, Optional
import uuid

from rollcall.model import attendance_mod, kvstore


logger = logging.getLogger(__name__)


class StudentNotFoundError(LookupError):
    """No student has the requested ID."""

    student_id: str

    def __init__(self, student_id: str) -> None:
        super().__init__(f"No student with ID {student_id}.")
        self.student_id = student_id


@dataclasses.dataclass
class Student:
    """A student on the roster."""

    student_id: str
    name: str
    roll: str

    _digits_pattern: ClassVar[re.Pattern] = re.compile(r"(\d+)")
    """Split text into digit and non-digit runs."""

    def __init__(self, student_id: str, name: str, roll: str | int) -> None:
        """Store roll as text.

        Pass an empty string to student_id to auto-generate a unique ID.
        """
        self.student_id = student_id if student_id else self.generate_unique_id()
        self.name = name
        self.roll = str(roll)

    @staticmethod
    def generate_unique_id() -> str:
        """Generate a random 32-character hex ID."""
        return uuid.uuid4().hex

    @classmethod
    def natural_key(cls, text: str) -> tuple[tuple[int, int, str], ...]:
        """Sort key that orders embedded numbers by value, so "9" < "10"."""
        return tuple(
            (0, int(chunk), chunk) if chunk.isdigit() else (1, 0, chunk.casefold())
            for chunk in cls._digits_pattern.split(text)
            if chunk
        )

    @property
    def sort_key(self) -> tuple:
        """Order by name, ignoring case, then by roll number."""
        return (self.name.casefold(), self.name, self.natural_key(self.roll))

    def to_dict(self) -> dict[str, str]:
        """Convert the Student to its stored form."""
        return {"id": self.student_id, "name": self.name, "roll": self.roll}

    @classmethod
    def from_dict(cls, data: dict[str, str]) -> "Student":
        """Create a Student from its stored form.

        Raises ValueError unless id, name and roll are all non-empty strings.
        """
        if not isinstance(data, dict):
            raise ValueError("Stored student is not a mapping.")
        fields = [data.get(field) for field in ("id", "name", "roll")]
        if not all(isinstance(value, str) and value for value in fields):
            raise ValueError("Stored student needs text id, name and roll.")
        return cls(*fields)


def clean_fields(name: str, roll: str | int) -> Optional[tuple[str, str]]:
    """Trim name and roll, returning None if either one is blank."""
    name = name.strip()
    roll = str(roll).strip()
    if not name or not roll:
        return None
    return name, roll


class RosterStore:
    """All students being tracked, in creation order."""

    _kv: kvstore.KeyValueStore
    _key: str
    _attendance: attendance_mod.AttendanceStore
    _students: list[Student]
    _observers: list[Callable[["RosterStore"], None]]

    def __init__(
        self,
        kv: kvstore.KeyValueStore,
        attendance: attendance_mod.AttendanceStore,
        key: str = kvstore.STUDENTS_KEY,
    ) -> None:
        """Load students from the key-value store.

        The attendance store is notified when a student is removed.
        """
        self._kv = kv
        self._key = key
        self._attendance = attendance
        self._observers = []
        self._students = self._load()

    def _load(self) -> list[Student]:
        """Read students, skipping any malformed entries."""
        students = []
        seen: set[str] = set()
        for item in self._kv.load_json(self._key, []):
            try:
                student = Student.from_dict(item)
            except ValueError as err:
                logger.warning("Skipping malformed student %r: %s", item, err)
                continue
            if student.student_id in seen:
                logger.warning("Skipping student with duplicate ID %r", item)
                continue
            seen.add(student.student_id)
            students.append(student)
        return students

    def reload(self) -> None:
        """Replace in-memory students with the persisted students."""
        self._students = self._load()

    def subscribe(self, callback: Callable[["RosterStore"], None]) -> None:
        """Call callback with this store after every change."""
        self._observers.append(callback)

    def _save(self, students: list[Student]) -> None:
        """Persist students, then make them current and notify observers."""
        self._kv.save_json(self._key, [student.to_dict() for student in students])
        self._students = students
        for callback in self._observers:
            callback(self)

    def __len__(self) -> int:
        return len(self._students)

    def __contains__(self, student_id: object) -> bool:
        return any(student.student_id == student_id for student in self._students)

    def ids(self) -> set[str]:
        """IDs of all students on the roster."""
        return {student.student_id for student in self._students}

    def get(self, student_id: str) -> Optional[Student]:
        """Get a copy of the student with student_id, or None."""
        for student in self._students:
            if student.student_id == student_id:
                return dataclasses.replace(student)
        return None

    def add(self, name: str, roll: str | int) -> Optional[Student]:
        """Add a new student to the roster.

        Returns:
            The new student, or None if name or roll is blank. Nothing is
            saved when None is returned.
        """
        fields = clean_fields(name, roll)
        if fields is None:
            return None
        ids = self.ids()
        student = Student("", *fields)
        while student.student_id in ids:
            student = Student("", *fields)
        self._save(self._students + [student])
        logger.debug("Added student %s (%s)", student.student_id, student.name)
        return dataclasses.replace(student)

    def update(self, student_id: str, name: str, roll: str | int) -> Optional[Student]:
        """Change a student's name and roll number.

        Returns:
            The updated student, or None if name or roll is blank.

        Raises:
            StudentNotFoundError: No student has student_id.
        """
        fields = clean_fields(name, roll)
        if fields is None:
            return None
        if student_id not in self:
            raise StudentNotFoundError(student_id)
        updated = Student(student_id, *fields)
        self._save(
            [
                updated if student.student_id == student_id else student
                for student in self._students
            ]
        )
        logger.debug("Updated student %s", student_id)
        return dataclasses.replace(updated)

    def remove(self, student_id: str) -> None:
        """Remove a student and all of the student's attendance records.

        Both changes are committed together. Removing an unknown ID only clears
        any attendance records that reference it.
        """
        remaining = [s for s in self._students if s.student_id != student_id]
        try:
            with self._kv.transaction():
                self._kv.save_json(self._key, [s.to_dict() for s in remaining])
                self._attendance.cascade_delete(student_id)
        except kvstore.PersistenceError:
            self._attendance.reload()
            raise
        self._students = remaining
        self._attendance.notify()
        for callback in self._observers:
            callback(self)
        logger.debug("Removed student %s", student_id)

    def list(self) -> list[Student]:
        """Students sorted by name, then by roll number."""
        return [
            dataclasses.replace(student)
            for student in sorted(self._students, key=lambda s: s.sort_key)
        ]
