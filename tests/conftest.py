"""Shared fixtures for typed_relations tests."""

import random

import pytest

from typed_relations import Table, TableNamer, TableStore
from typed_relations.config import StorageConfig
from typed_relations.logging import setup_logging

STUDENTS = [
    (1, "Alice", "12 Elm St", "Freshman"),
    (2, "Bob", "34 Oak Ave", "Senior"),
    (3, "Carol", "56 Pine Rd", "Senior"),
]


@pytest.fixture(autouse=True)
def _quiet_logging():
    setup_logging("WARNING")


@pytest.fixture
def namer():
    """A private name counter, so derived names are predictable."""
    return TableNamer()


@pytest.fixture
def student(namer):
    """Student(id, name, address, status) key (id), filled through insert."""
    table = Table.create(
        "Student",
        "id name address status",
        "Integer String String String",
        "id",
        namer=namer,
    )
    for row in STUDENTS:
        assert table.insert(row)
    return table


@pytest.fixture
def store(tmp_path):
    return TableStore(StorageConfig(data_dir=tmp_path / "store"))


def make_registration(n_students, n_transcripts, seed=42, namer=None):
    """Random Student and Transcript tables.

    Every Transcript.studId is the id of some Student, and the
    (studId, crsCode, semester) keys are unique.
    """
    rng = random.Random(seed)
    student = Table.create(
        "Student",
        "id name address status",
        "Integer String String String",
        "id",
        namer=namer,
    )
    transcript = Table.create(
        "Transcript",
        "studId crsCode semester grade",
        "Integer String String String",
        "studId crsCode semester",
        namer=namer,
    )

    ids = rng.sample(range(1, 1_000_000), n_students)
    for sid in ids:
        student.insert((
            sid,
            f"name{sid}",
            f"{rng.randint(1, 999)} Main St",
            rng.choice(["Freshman", "Sophomore", "Junior", "Senior"]),
        ))
    for i in range(n_transcripts):
        transcript.insert((
            rng.choice(ids),
            f"CS{i % 50:03d}",
            f"F{2000 + i // 50}",
            rng.choice("ABCDF"),
        ))
    return student, transcript


@pytest.fixture
def registration(namer):
    """1000 students and 1000 transcript rows."""
    return make_registration(1000, 1000, namer=namer)
