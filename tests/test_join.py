"""Tests for the join operators."""

import pytest
from structlog.testing import capture_logs

from typed_relations import Table, UnknownAttributeError
from typed_relations.config import TableConfig


@pytest.fixture
def takes(namer):
    """Takes(id, course) key (id course)."""
    table = Table.create("Takes", "id course", "Integer String", "id course", namer=namer)
    for row in [(2, "CS101"), (1, "CS305"), (2, "MAT123"), (7, "EE101")]:
        table.insert(row)
    return table


@pytest.fixture
def transcript(namer):
    table = Table.create(
        "Transcript",
        "studId crsCode semester grade",
        "Integer String String String",
        "studId crsCode semester",
        namer=namer,
    )
    for row in [
        (2, "CS101", "F2000", "A"),
        (1, "CS305", "F2000", "B"),
        (2, "MAT123", "S2001", "C"),
        (9, "EE101", "S2001", "A"),
    ]:
        table.insert(row)
    return table


class TestEquiJoin:
    """Tests for Table.equi_join and Table.non_index_join."""

    def test_join(self, transcript, student):
        """Test joining on a foreign key."""
        result = transcript.equi_join("studId", "id", student)
        assert len(result) == 3
        for row in result:
            assert row[result.col("studId")] == row[result.col("id")]

    def test_schema(self, transcript, student):
        """Test that result attributes are left then right, key concatenated."""
        result = transcript.equi_join("studId", "id", student)
        assert result.attributes == transcript.attributes + student.attributes
        assert result.key == ("studId", "crsCode", "semester", "id")

    def test_order(self, transcript, student):
        """Test that results follow left tuples, then right tuples."""
        result = transcript.equi_join("studId", "id", student)
        assert [(r[0], r[1]) for r in result] == [(2, "CS101"), (1, "CS305"), (2, "MAT123")]

    def test_right_order_within_match(self, namer):
        """Test that several matches keep the right table's order."""
        left = Table.create("L", "k", "Integer", "k", namer=namer)
        right = Table.create("R", "rk tag", "Integer String", "tag", namer=namer)
        left.insert((1,))
        left.insert((2,))
        for row in [(1, "first"), (2, "other"), (1, "second")]:
            right.insert(row)
        result = left.equi_join("k", "rk", right)
        assert result.tuples == [(1, 1, "first"), (1, 1, "second"), (2, 2, "other")]

    def test_clashing_names_renamed(self, student):
        """Test that a self join renames the right-hand attributes."""
        result = student.equi_join("id", "id", student)
        assert result.attributes == (
            "id", "name", "address", "status", "id2", "name2", "address2", "status2",
        )
        assert result.key == ("id", "id2")
        assert len(result) == 3

    def test_rename_suffix_is_configurable(self, namer):
        """Test the configured rename suffix."""
        config = TableConfig(rename_suffix="_r")
        t = Table.create("T", "id v", "Integer String", "id", namer=namer, config=config)
        t.insert((1, "a"))
        result = t.equi_join("id", "id", t)
        assert result.attributes == ("id", "v", "id_r", "v_r")

    def test_value_equality(self, namer):
        """Test that join values match by value, not identity."""
        left = Table.create("L", "k", "String", "k", namer=namer)
        right = Table.create("R", "k", "String", "k", namer=namer)
        left.insert(("".join(["CS", "101"]),))
        right.insert(("CS" + str(101),))
        assert len(left.equi_join("k", "k", right)) == 1

    def test_nan_never_matches(self, namer):
        """Test that a NaN join value matches nothing in any join strategy."""
        readings = Table.create("Reading", "id v", "Integer Double", "id", namer=namer)
        readings.insert((1, float("nan")))
        readings.insert((2, 0.5))
        hashed = readings.equi_join("v", "v", readings)
        nested = readings.non_index_join("v", "v", readings)
        assert hashed.tuples == nested.tuples == [(2, 0.5, 2, 0.5)]

        values = readings.project("v")
        assert [r[0] for r in readings.natural_join(values)] == [2]
        assert [r[0] for r in readings.semi_join(values)] == [2]

    def test_composite_join(self, transcript, namer):
        """Test joining on two attribute pairs."""
        teaching = Table.create(
            "Teaching", "profId crsCode semester", "Integer String String",
            "crsCode semester", namer=namer,
        )
        teaching.insert((100, "CS101", "F2000"))
        teaching.insert((200, "MAT123", "F2000"))
        result = transcript.equi_join("crsCode semester", "crsCode semester", teaching)
        assert result.tuples == [(2, "CS101", "F2000", "A", 100, "CS101", "F2000")]
        assert result.attributes[-2:] == ("crsCode2", "semester2")

    def test_malformed(self, transcript, student):
        """Test that attribute lists of different length give no result."""
        with capture_logs() as logs:
            assert transcript.equi_join("studId crsCode", "id", student) is None
            assert transcript.non_index_join("studId crsCode", "id", student) is None
        assert [e["event"] for e in logs].count("ra.join.malformed") == 2

    def test_unknown_attribute(self, transcript, student):
        """Test that a missing join attribute raises."""
        with pytest.raises(UnknownAttributeError, match="ssn"):
            transcript.equi_join("studId", "ssn", student)
        with pytest.raises(UnknownAttributeError):
            transcript.non_index_join("gpa", "id", student)

    def test_inputs_unchanged(self, transcript, student):
        """Test that joining leaves both operands alone."""
        before = (transcript.tuples, student.tuples)
        transcript.equi_join("studId", "id", student)
        assert (transcript.tuples, student.tuples) == before

    def test_strategies_agree(self, transcript, student):
        """Test that hash and nested-loop joins give identical tables."""
        hashed = transcript.equi_join("studId", "id", student)
        nested = transcript.non_index_join("studId", "id", student)
        assert hashed.tuples == nested.tuples
        assert hashed.schema == nested.schema

    def test_join_dispatch(self, transcript, student, takes):
        """Test that join() picks the equi or natural form."""
        assert (
            transcript.join("studId", "id", student).tuples
            == transcript.equi_join("studId", "id", student).tuples
        )
        assert student.join(takes).tuples == student.natural_join(takes).tuples
        with pytest.raises(TypeError):
            student.join("id")


class TestRegistrationJoin:
    """Joins over a larger random Student and Transcript pair."""

    def test_every_transcript_matches_one_student(self, registration):
        """Test that each transcript row joins its single student."""
        student, transcript = registration
        assert len(student) == 1000
        assert len(transcript) == 1000
        result = transcript.equi_join("studId", "id", student)
        assert len(result) == len(transcript)
        assert len(result) <= len(transcript) * len(student)

    def test_strategies_agree(self, registration):
        """Test that both join strategies agree on the large tables."""
        student, transcript = registration
        hashed = transcript.join("studId", "id", student)
        nested = transcript.non_index_join("studId", "id", student)
        assert hashed.tuples == nested.tuples

    def test_join_then_project(self, registration):
        """Test a typical query: names of students with an A."""
        student, transcript = registration
        a_grades = transcript.select(lambda t: t[transcript.col("grade")] == "A")
        names = a_grades.equi_join("studId", "id", student).project("name")
        assert len(names) == len(a_grades)


class TestNaturalJoin:
    """Tests for Table.natural_join and Table.semi_join."""

    def test_natural_join(self, student, takes):
        """Test that every matching pair is produced once, shared columns once."""
        result = student.natural_join(takes)
        assert result.attributes == ("id", "name", "address", "status", "course")
        assert result.key == ("id", "course")
        assert [(r[0], r[-1]) for r in result] == [(1, "CS305"), (2, "CS101"), (2, "MAT123")]

    def test_natural_join_without_shared_attributes(self, student, namer):
        """Test that no shared attributes means a cross product."""
        rooms = Table.create("Room", "room", "String", "room", namer=namer)
        rooms.insert(("A1",))
        rooms.insert(("B2",))
        result = student.natural_join(rooms)
        assert len(result) == len(student) * len(rooms)
        assert result.key == ("id", "room")

    def test_semi_join(self, student, takes):
        """Test that matching left tuples appear once each."""
        result = student.semi_join(takes)
        assert result.schema == student.schema
        assert [r[0] for r in result] == [1, 2]
