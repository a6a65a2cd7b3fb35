import pandas as pd
import pytest

from models import Course
from requirements import (
    MajorRequirements,
    average_workload,
    calculate_total_credits,
    course_priority,
    feasibility_report,
    find_overlap_courses,
    get_required_courses,
    is_feasible,
    merge_requirements,
    overlap_count,
    suggest_double_major_pairs,
)


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def table():
    return MajorRequirements({
        "X": ["A 100", "C 300"],
        "Y": ["B 200", "C 300"],
    })


@pytest.fixture
def courses():
    return [
        Course("A 100", credits=3, majors=frozenset({"X"})),
        Course("B 200", credits=4, majors=frozenset({"Y"})),
        Course("C 300", credits=5, majors=frozenset({"X", "Y"})),
        Course("D 400", credits=3),
    ]


# ── Tests ──────────────────────────────────────────────────────────────────────

class TestMajorRequirements:
    def test_default_table(self):
        reqs = MajorRequirements()
        assert reqs.majors() == ["CS", "DS", "ECE", "MATH", "STAT"]
        assert reqs.required_courses("CS")[0] == "CS 200"
        assert len(reqs.required_courses("CS")) == 10

    def test_major_id_case_insensitive(self):
        assert MajorRequirements().has_major("cs") is True
        assert get_required_courses("cs") == get_required_courses("CS")

    def test_unknown_major_is_empty(self, table):
        assert table.has_major("ART") is False
        assert table.required_courses("ART") == []
        assert get_required_courses("ART") == []

    def test_codes_deduped_and_stripped(self):
        reqs = MajorRequirements({"cs": ["A 100", " A 100 ", "B 200", ""]})
        assert reqs.required_courses("CS") == ["A 100", "B 200"]

    def test_required_courses_returns_copy(self, table):
        table.required_courses("X").append("Z 999")
        assert table.required_courses("X") == ["A 100", "C 300"]

    def test_from_dataframe_uses_position(self):
        df = pd.DataFrame([
            {"major_id": "cs", "course_code": "B 200", "position": "2"},
            {"major_id": "CS", "course_code": "A 100", "position": "1"},
            {"major_id": "MATH", "course_code": "C 300", "position": "1"},
        ])
        reqs = MajorRequirements.from_dataframe(df)
        assert reqs.required_courses("CS") == ["A 100", "B 200"]
        assert reqs.required_courses("MATH") == ["C 300"]

    def test_from_dataframe_without_position_keeps_file_order(self):
        df = pd.DataFrame([
            {"major_id": "CS", "course_code": "B 200"},
            {"major_id": "CS", "course_code": "A 100"},
        ])
        assert MajorRequirements.from_dataframe(df).required_courses("CS") == ["B 200", "A 100"]

    def test_from_empty_dataframe(self):
        reqs = MajorRequirements.from_dataframe(pd.DataFrame(columns=["major_id", "course_code"]))
        assert reqs.majors() == []


class TestMerge:
    def test_shared_course_appears_once(self, table, courses):
        merged = merge_requirements("X", "Y", courses, table)
        assert merged["required"] == ["A 100", "C 300", "B 200"]
        assert merged["required"].count("C 300") == 1

    def test_overlap_and_shared(self, table, courses):
        merged = merge_requirements("X", "Y", courses, table)
        assert merged["overlap"] == ["C 300"]
        assert merged["shared_required"] == ["C 300"]
        assert merged["courses_saved"] == 1
        assert merged["major1_count"] == 2
        assert merged["major2_count"] == 2

    def test_overlap_from_catalog_membership(self, courses):
        assert [c.course_code for c in find_overlap_courses(courses, "X", "Y")] == ["C 300"]

    def test_unknown_second_major(self, table, courses):
        merged = merge_requirements("X", "ART", courses, table)
        assert merged["required"] == ["A 100", "C 300"]
        assert merged["overlap"] == []


class TestCreditsAndFeasibility:
    def test_total_credits_ignores_unknown_and_duplicates(self, courses):
        assert calculate_total_credits(["A 100", "C 300", "C 300", "Z 999"], courses) == 8

    def test_feasible_at_exact_capacity(self):
        big = [Course("BIG 100", credits=120)]
        assert is_feasible(["BIG 100"], big, 15) is True

    def test_infeasible_above_capacity(self):
        big = [Course("BIG 100", credits=121)]
        assert is_feasible(["BIG 100"], big, 15) is False

    def test_report_when_short(self):
        big = [Course("BIG 100", credits=121)]
        report = feasibility_report(["BIG 100"], big, 15)
        assert report["feasible"] is False
        assert report["max_credits_available"] == 120
        assert report["credits_short"] == 1
        assert report["credits_left"] == 0
        assert report["suggested_credits_per_term"] == 16

    def test_report_when_feasible(self, courses):
        report = feasibility_report(["A 100", "B 200"], courses, 12)
        assert report["feasible"] is True
        assert report["credits_left"] == 96 - 7
        assert report["credits_short"] == 0

    def test_average_workload(self, courses):
        assert average_workload(["A 100", "C 300", "B 200"], courses) == pytest.approx(12 / 8)


class TestPairing:
    def test_overlap_count_default_table(self):
        assert overlap_count("CS", "MATH") == 5

    def test_suggested_pairs_ranked(self):
        pairs = suggest_double_major_pairs("CS")
        assert [p["major_id"] for p in pairs] == ["DS", "MATH", "STAT", "ECE"]
        assert pairs[0]["overlap_count"] == 7

    def test_course_priority(self, courses):
        by_code = {c.course_code: c for c in courses}
        assert course_priority(by_code["C 300"], ["X", "Y"]) == 250
        assert course_priority(by_code["A 100"], ["X", "Y"]) == 100
        assert course_priority(by_code["D 400"], ["X", "Y"]) == 0
