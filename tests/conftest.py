"""Pytest fixtures."""

import pathlib
import shutil

import pytest

from rollcall.model import kvstore, tracker


TEST_FOLDER = pathlib.Path(__file__).parent
DATA_FOLDER = TEST_FOLDER / "data"
OUTPUT_FOLDER = TEST_FOLDER / "output"


@pytest.fixture()
def empty_output_folder() -> pathlib.Path:
    """Create an empty output folder prior to each test."""
    if OUTPUT_FOLDER.exists():
        for item in OUTPUT_FOLDER.iterdir():
            if item.is_dir():
                shutil.rmtree(item, ignore_errors=True)
            else:
                item.unlink()
    else:
        OUTPUT_FOLDER.mkdir(parents=True)
    return OUTPUT_FOLDER


@pytest.fixture
def db_path(empty_output_folder: pathlib.Path) -> pathlib.Path:
    """Path to a database file that doesn't exist yet."""
    return empty_output_folder / "testdatabase.db"


@pytest.fixture
def kv(db_path: pathlib.Path) -> kvstore.KeyValueStore:
    """An empty key-value store."""
    return kvstore.KeyValueStore(db_path)


@pytest.fixture
def empty_tracker(db_path: pathlib.Path) -> tracker.Tracker:
    """Stores with no students and no attendance."""
    return tracker.Tracker.open(db_path)


@pytest.fixture
def full_tracker(empty_tracker: tracker.Tracker) -> tracker.Tracker:
    """Stores with three students and two days of attendance."""
    roster = empty_tracker.roster
    attendance = empty_tracker.attendance
    bob9 = roster.add("Bob", "9")
    bob10 = roster.add("Bob", "10")
    amy = roster.add("Amy", "2")
    assert bob9 is not None and bob10 is not None and amy is not None
    attendance.mark("2024-01-01", bob9.student_id, "Present")
    attendance.mark("2024-01-01", amy.student_id, "Absent")
    attendance.mark("2024-01-02", bob9.student_id, "Absent")
    attendance.mark("2024-01-02", bob10.student_id, "Present")
    return empty_tracker
