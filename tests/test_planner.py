from dataclasses import replace

import pytest

from models import Course, StudentPreferences, Term
from requirements import MajorRequirements
from balancer import prerequisite_order_ok
from prereq_graph import build_prereq_graph
from planner import (
    calculate_total_study_hours,
    find_overloaded_terms,
    generate_plan,
    meets_graduation_requirements,
    summary_report,
)


# ── Fixtures ──────────────────────────────────────────────────────────────────

def _c(code, name, credits, prereqs, gpa, a_rate, prof, rating, early, relevance, majors):
    return Course(
        code, name, credits, tuple(prereqs), gpa, a_rate, prof, rating,
        early, relevance, frozenset(majors),
    )


@pytest.fixture
def catalog():
    return [
        _c("CS 200", "Programming I", 3, [], 3.2, 0.75, "Prof. Smith", 4.5, False, "both", ["CS"]),
        _c("CS 300", "Programming II", 3, ["CS 200"], 3.0, 0.70, "Prof. Johnson", 4.2, False, "both", ["CS"]),
        _c("CS 400", "Programming III", 3, ["CS 300"], 2.9, 0.65, "Prof. Williams", 4.8, True, "grad_school", ["CS"]),
        _c("CS 500", "Operating Systems", 3, ["CS 400"], 2.8, 0.60, "Prof. Davis", 3.9, False, "industry", ["CS"]),
        _c("CS 354", "Machine Organization", 3, ["CS 300"], 2.7, 0.55, "Prof. Martinez", 4.0, False, "both", ["CS"]),
        _c("CS 577", "Algorithms", 3, ["CS 400"], 2.7, 0.55, "Prof. Brown", 4.1, False, "grad_school", ["CS"]),
        _c("MATH 221", "Calculus I", 5, [], 2.9, 0.55, "Prof. Taylor", 3.8, True, "both", ["CS", "MATH"]),
        _c("MATH 222", "Calculus II", 4, ["MATH 221"], 2.8, 0.50, "Prof. Anderson", 3.5, False, "both", ["CS", "MATH"]),
        _c("MATH 340", "Linear Algebra", 3, ["MATH 222"], 3.1, 0.68, "Prof. Wilson", 4.3, False, "grad_school", ["CS", "MATH"]),
        _c("MATH 234", "Calculus III", 4, ["MATH 222"], 3.0, 0.60, "Prof. Lee", 4.0, False, "both", ["MATH"]),
        _c("MATH 341", "Real Analysis", 3, ["MATH 340"], 2.6, 0.45, "Prof. Garcia", 3.9, False, "grad_school", ["MATH"]),
        _c("MATH 421", "Advanced Analysis", 3, ["MATH 341"], 2.8, 0.50, "Prof. Chen", 4.2, False, "grad_school", ["MATH"]),
        _c("CS 540", "Artificial Intelligence", 3, ["CS 400"], 3.0, 0.65, "Prof. Zhang", 4.6, False, "grad_school", ["CS"]),
    ]


def _warning_codes(result):
    return [w.warning_code for w in result["warnings"]]


def _scheduled(plan):
    return [code for t in plan for code in t.course_codes()]


# ── Tests ──────────────────────────────────────────────────────────────────────

class TestSingleMajor:
    def test_cs_plan(self, catalog):
        result = generate_plan(StudentPreferences(primary_major="CS"), catalog)
        plan = result["plan"]
        assert len(plan) == 8
        assert plan[0].course_codes() == ["CS 200", "MATH 221"]
        assert set(plan[1].course_codes()) == {"CS 300", "MATH 222"}
        assert set(plan[2].course_codes()) == {"CS 400", "CS 354", "MATH 340"}
        assert set(plan[3].course_codes()) == {"CS 500", "CS 577", "CS 540"}
        assert all(t.is_empty() for t in plan[4:])
        assert result["unscheduled"] == []
        assert result["meets_requirements"] is True
        assert result["warnings"] == []

    def test_balance_report_present(self, catalog):
        result = generate_plan(StudentPreferences(primary_major="CS"), catalog)
        assert result["balance"]["stop_reason"] == "balanced"
        assert result["balance"]["swap_count"] == 0

    def test_balance_skipped_when_disabled(self, catalog):
        prefs = StudentPreferences(primary_major="CS", balance_difficulty=False)
        assert generate_plan(prefs, catalog)["balance"] is None

    def test_statistics(self, catalog):
        stats = generate_plan(StudentPreferences(primary_major="CS"), catalog)["statistics"]
        assert stats["total_credits"] == 33
        assert stats["total_courses"] == 10
        assert stats["active_terms"] == 4
        assert stats["average_credits_per_term"] == pytest.approx(33 / 4)
        assert stats["total_study_hours"] == 99
        assert len(stats["terms"]) == 8
        assert stats["terms"][0]["expected_gpa"] == pytest.approx((3.2 + 2.9) / 2)

    def test_completed_courses_skipped(self, catalog):
        prefs = StudentPreferences(primary_major="CS", completed=frozenset({"CS 200"}))
        result = generate_plan(prefs, catalog)
        assert "CS 200" not in _scheduled(result["plan"])
        assert "CS 300" in result["plan"][0].course_codes()
        assert result["meets_requirements"] is True

    def test_deterministic(self, catalog):
        prefs = StudentPreferences(primary_major="CS")
        first = generate_plan(prefs, catalog)
        second = generate_plan(prefs, list(reversed(catalog)))
        assert [t.course_codes() for t in first["plan"]] == [t.course_codes() for t in second["plan"]]


class TestAvoidEarly:
    def test_no_early_course_and_unscheduled_warning(self, catalog):
        prefs = StudentPreferences(primary_major="CS", avoid_early_morning=True)
        result = generate_plan(prefs, catalog)
        scheduled = _scheduled(result["plan"])
        assert "CS 400" not in scheduled
        assert "MATH 221" not in scheduled
        assert result["unscheduled"] == [
            "CS 400", "CS 500", "CS 577", "CS 540", "MATH 221", "MATH 222", "MATH 340",
        ]
        assert "UNSCHEDULED_REQUIREMENTS" in _warning_codes(result)
        assert result["meets_requirements"] is False


class TestDoubleMajor:
    def test_cs_math(self, catalog):
        prefs = StudentPreferences(primary_major="CS", secondary_major="MATH", double_major=True)
        result = generate_plan(prefs, catalog)
        assert result["overlap"] == ["MATH 221", "MATH 222", "MATH 340"]
        assert result["required"].count("MATH 221") == 1
        scheduled = _scheduled(result["plan"])
        assert len(scheduled) == len(set(scheduled))

    def test_missing_catalog_course_warned(self, catalog):
        prefs = StudentPreferences(primary_major="CS", secondary_major="MATH", double_major=True)
        result = generate_plan(prefs, catalog)
        unknown = [w for w in result["warnings"] if w.warning_code == "UNKNOWN_REQUIRED_COURSE"]
        assert len(unknown) == 1
        assert unknown[0].courses == ("MATH 467",)
        assert "MATH 467" in result["unscheduled"]

    def test_secondary_ignored_without_flag(self, catalog):
        prefs = StudentPreferences(primary_major="CS", secondary_major="MATH", double_major=False)
        result = generate_plan(prefs, catalog)
        assert "MATH 341" not in result["required"]
        assert result["overlap"] == []

    def test_summary(self, catalog):
        prefs = StudentPreferences(primary_major="CS", secondary_major="MATH", double_major=True)
        result = generate_plan(prefs, catalog)
        summary = summary_report(result, prefs)
        assert summary["majors"] == "CS + MATH"
        assert summary["all_requirements_scheduled"] is False
        assert summary["warning_count"] == len(result["warnings"])


class TestWarnings:
    def test_unknown_major(self, catalog):
        result = generate_plan(StudentPreferences(primary_major="ART"), catalog)
        assert _warning_codes(result) == ["UNKNOWN_MAJOR"]
        assert result["required"] == []
        assert all(t.is_empty() for t in result["plan"])

    def test_unknown_major_with_injected_table(self, catalog):
        reqs = MajorRequirements({"CS": ["CS 200"]})
        prefs = StudentPreferences(primary_major="CS", secondary_major="MATH", double_major=True)
        result = generate_plan(prefs, catalog, reqs)
        assert "UNKNOWN_MAJOR" in _warning_codes(result)
        assert result["required"] == ["CS 200"]

    def test_cycle_and_missing_prereq(self):
        courses = [
            Course("A 100", prerequisites=("B 100",)),
            Course("B 100", prerequisites=("A 100",)),
            Course("C 100", prerequisites=("Z 999",)),
        ]
        reqs = MajorRequirements({"X": ["A 100", "B 100", "C 100"]})
        result = generate_plan(StudentPreferences(primary_major="X"), courses, reqs)
        codes = _warning_codes(result)
        assert "PREREQUISITE_CYCLE" in codes
        assert "UNKNOWN_PREREQUISITE" in codes
        cycle = next(w for w in result["warnings"] if w.warning_code == "PREREQUISITE_CYCLE")
        assert set(cycle.courses) == {"A 100", "B 100"}
        assert result["unscheduled"] == ["A 100", "B 100", "C 100"]

    def test_infeasible_still_plans(self):
        courses = [Course(f"GEN {100 + i}", credits=3) for i in range(33)]
        reqs = MajorRequirements({"GEN": [c.course_code for c in courses]})
        prefs = StudentPreferences(primary_major="GEN", max_credits_per_term=12)
        result = generate_plan(prefs, courses, reqs)
        assert "REQUIREMENTS_INFEASIBLE" in _warning_codes(result)
        assert result["feasibility"]["credits_short"] == 3
        assert result["unscheduled"] == ["GEN 132"]
        assert all(t.total_credits <= 12 for t in result["plan"])

    def test_low_gpa_term(self):
        courses = [Course("LOW 100", average_gpa=2.0)]
        reqs = MajorRequirements({"LOW": ["LOW 100"]})
        result = generate_plan(StudentPreferences(primary_major="LOW", target_gpa=3.0), courses, reqs)
        low = [w for w in result["warnings"] if w.warning_code == "TERM_BELOW_GPA_TARGET"]
        assert len(low) == 1
        assert low[0].courses == ("LOW 100",)


class TestBalanceSafety:
    @pytest.fixture
    def chained(self):
        courses = [
            Course("P 100", a_rate=0.0, professor_rating=5.0),
            Course("P 200", a_rate=0.0, professor_rating=5.0),
            Course("Q 100", a_rate=1.0, professor_rating=5.0, prerequisites=("P 100",)),
            Course("Q 200", a_rate=1.0, professor_rating=5.0, prerequisites=("P 200",)),
        ]
        reqs = MajorRequirements({"X": ["P 100", "P 200", "Q 100", "Q 200"]})
        prefs = StudentPreferences(primary_major="X", max_credits_per_term=6)
        return courses, reqs, prefs

    def test_checked_by_default(self, chained):
        courses, reqs, prefs = chained
        result = generate_plan(prefs, courses, reqs)
        assert result["balance"]["stop_reason"] == "prerequisite_order"
        assert prerequisite_order_ok(result["plan"], build_prereq_graph(courses)) is True
        assert result["plan"][0].course_codes() == ["P 100", "P 200"]

    def test_unchecked_mode(self, chained):
        courses, reqs, prefs = chained
        result = generate_plan(prefs, courses, reqs, check_prereqs_on_balance=False)
        assert result["balance"]["swap_count"] == 1
        assert prerequisite_order_ok(result["plan"], build_prereq_graph(courses)) is False
        assert sorted(_scheduled(result["plan"])) == ["P 100", "P 200", "Q 100", "Q 200"]


class TestCreditCapAfterBalancing:
    @pytest.fixture
    def mixed_credits(self):
        def course(code, credits, a_rate, prereqs=()):
            return Course(
                code, credits=credits, prerequisites=tuple(prereqs), average_gpa=3.5,
                a_rate=a_rate, professor_rating=5.0,
            )

        # Year 1 Fall: CS 100 (3cr, 0) + CS 110 (5cr, 7); CS 300 waits on the cap.
        # Year 1 Spring: CS 300 (3cr, 63) + CS 310, CS 320 (3cr, 70 each) = 9 credits.
        courses = [
            course("CS 100", 3, 1.0),
            course("CS 110", 5, 0.9),
            course("CS 300", 3, 0.1),
            course("CS 310", 3, 0.0, ["CS 100"]),
            course("CS 320", 3, 0.0, ["CS 100"]),
        ]
        reqs = MajorRequirements({"CS": [c.course_code for c in courses]})
        prefs = StudentPreferences(primary_major="CS", max_credits_per_term=9)
        return courses, reqs, prefs

    def test_allocation_respects_cap(self, mixed_credits):
        courses, reqs, prefs = mixed_credits
        result = generate_plan(replace(prefs, balance_difficulty=False), courses, reqs)
        assert result["plan"][0].course_codes() == ["CS 100", "CS 110"]
        assert result["plan"][1].total_credits == 9
        assert "CREDIT_CAP_EXCEEDED" not in _warning_codes(result)

    def test_swap_pushes_term_over_cap(self, mixed_credits):
        courses, reqs, prefs = mixed_credits
        result = generate_plan(prefs, courses, reqs)
        plan = result["plan"]

        swap = result["balance"]["swaps"][0]
        assert result["balance"]["swap_count"] == 1
        assert swap["moved_to_easy_term"] == "CS 300"
        assert swap["moved_to_hard_term"] == "CS 110"

        assert plan[0].course_codes() == ["CS 100", "CS 300"]
        assert plan[1].course_codes() == ["CS 310", "CS 320", "CS 110"]
        assert plan[1].total_credits == 11 > prefs.max_credits_per_term

        over = [w for w in result["warnings"] if w.warning_code == "CREDIT_CAP_EXCEEDED"]
        assert len(over) == 1
        assert over[0].courses == ("CS 310", "CS 320", "CS 110")
        assert "Year 1 - Spring" in over[0].message


class TestHelpers:
    def test_meets_graduation_requirements(self):
        plan = [Term(1, "Fall", [Course("A 100")])]
        assert meets_graduation_requirements(plan, ["A 100", "B 100"], {"B 100"}) is True
        assert meets_graduation_requirements(plan, ["A 100", "B 100"]) is False

    def test_overloaded_terms(self):
        plan = [
            Term(1, "Fall", [Course("A 100", credits=9), Course("B 100", credits=9)]),
            Term(1, "Spring", [Course("C 100", credits=3)]),
        ]
        assert [t.label for t in find_overloaded_terms(plan, 15)] == ["Year 1 - Fall"]

    def test_study_hours(self):
        plan = [Term(1, "Fall", [Course("A 100", credits=4), Course("B 100", credits=3)])]
        assert calculate_total_study_hours(plan) == 21
