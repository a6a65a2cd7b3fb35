import math

import pandas as pd

from models import Course, TERMS_IN_PLAN

# Built-in requirement table. Deployments override it with
# data/major_requirements.csv (see data_loader.load_data).
DEFAULT_MAJOR_REQUIREMENTS: dict[str, list[str]] = {
    "CS": [
        "CS 200", "CS 300", "CS 400", "CS 500", "CS 354",
        "CS 577", "CS 540", "MATH 221", "MATH 222", "MATH 340",
    ],
    "MATH": [
        "MATH 221", "MATH 222", "MATH 234", "MATH 340",
        "MATH 341", "MATH 421", "MATH 467", "CS 200", "CS 300",
    ],
    "ECE": [
        "ECE 203", "ECE 252", "ECE 330", "ECE 352", "ECE 354", "ECE 420",
        "MATH 221", "MATH 222", "MATH 234", "CS 200", "CS 300",
    ],
    "STAT": [
        "STAT 324", "STAT 371", "STAT 424", "STAT 451",
        "MATH 221", "MATH 222", "MATH 340", "CS 200", "CS 300",
    ],
    "DS": [
        "CS 200", "CS 300", "CS 400", "CS 540",
        "STAT 324", "STAT 371", "MATH 221", "MATH 222", "MATH 340",
    ],
}

# Double-major ranking weights.
PRIORITY_PER_MAJOR = 100
PRIORITY_OVERLAP_BONUS = 50


class MajorRequirements:
    """
    Injected major -> ordered required-course table.

    Unknown major ids resolve to an empty list: a configuration gap, not a
    fault.
    """

    def __init__(self, table: dict[str, list[str]] | None = None):
        source = DEFAULT_MAJOR_REQUIREMENTS if table is None else table
        self._table: dict[str, list[str]] = {}
        for major_id, codes in source.items():
            key = str(major_id or "").strip().upper()
            if not key:
                continue
            merged = self._table.setdefault(key, [])
            for code in codes:
                code = str(code or "").strip()
                if code and code not in merged:
                    merged.append(code)

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> "MajorRequirements":
        """
        Build from rows of (major_id, course_code[, position]).

        Rows are ordered by position within each major when the column is
        present, else by file order.
        """
        if df is None or len(df) == 0:
            return cls({})
        rows = df.copy()
        if "position" in rows.columns:
            rows["_position_sort"] = pd.to_numeric(rows["position"], errors="coerce").fillna(10**9)
        else:
            rows["_position_sort"] = range(len(rows))
        rows = rows.sort_values(["_position_sort"], kind="stable")

        table: dict[str, list[str]] = {}
        for _, row in rows.iterrows():
            major_id = str(row.get("major_id", "") or "").strip().upper()
            code = str(row.get("course_code", "") or "").strip()
            if major_id and code:
                table.setdefault(major_id, []).append(code)
        return cls(table)

    def majors(self) -> list[str]:
        return sorted(self._table)

    def has_major(self, major_id: str) -> bool:
        return str(major_id or "").strip().upper() in self._table

    def required_courses(self, major_id: str) -> list[str]:
        return list(self._table.get(str(major_id or "").strip().upper(), []))

    def to_dict(self) -> dict[str, list[str]]:
        return {m: list(codes) for m, codes in self._table.items()}


DEFAULT_REQUIREMENTS = MajorRequirements()


def _resolve(requirements: MajorRequirements | None) -> MajorRequirements:
    return DEFAULT_REQUIREMENTS if requirements is None else requirements


def get_required_courses(major_id: str, requirements: MajorRequirements | None = None) -> list[str]:
    return _resolve(requirements).required_courses(major_id)


def find_overlap_courses(courses, major1: str, major2: str) -> list[Course]:
    """Catalog courses whose major set contains both ids."""
    return [c for c in courses if c.belongs_to_major(major1) and c.belongs_to_major(major2)]


def merge_requirements(
    major1: str,
    major2: str,
    courses,
    requirements: MajorRequirements | None = None,
) -> dict:
    """
    Union of both majors' required lists plus the overlap analysis.

    required keeps first-seen order (major1 first) with duplicates removed.
    overlap comes from catalog major membership, not from the requirement
    lists; shared_required is the list intersection.
    """
    reqs = _resolve(requirements)
    major1_reqs = reqs.required_courses(major1)
    major2_reqs = reqs.required_courses(major2)
    required = list(dict.fromkeys(major1_reqs + major2_reqs))
    major2_set = set(major2_reqs)
    shared = [c for c in major1_reqs if c in major2_set]
    overlap = [c.course_code for c in find_overlap_courses(courses, major1, major2)]
    return {
        "required": required,
        "overlap": overlap,
        "shared_required": shared,
        "major1_count": len(major1_reqs),
        "major2_count": len(major2_reqs),
        "courses_saved": len(major1_reqs) + len(major2_reqs) - len(required),
    }


def calculate_total_credits(required: list[str], courses) -> int:
    """Sum credits of required courses; codes missing from the catalog add 0."""
    by_code = {c.course_code: c for c in courses}
    return sum(by_code[code].credits for code in dict.fromkeys(required) if code in by_code)


def is_feasible(required: list[str], courses, max_credits_per_term: int) -> bool:
    return calculate_total_credits(required, courses) <= max_credits_per_term * TERMS_IN_PLAN


def feasibility_report(required: list[str], courses, max_credits_per_term: int) -> dict:
    total = calculate_total_credits(required, courses)
    capacity = max_credits_per_term * TERMS_IN_PLAN
    feasible = total <= capacity
    return {
        "feasible": feasible,
        "total_credits_needed": total,
        "max_credits_available": capacity,
        "max_credits_per_term": max_credits_per_term,
        "credits_left": capacity - total if feasible else 0,
        "credits_short": 0 if feasible else total - capacity,
        "suggested_credits_per_term": math.ceil(total / TERMS_IN_PLAN) if total > 0 else 0,
    }


def average_workload(required: list[str], courses) -> float:
    return calculate_total_credits(required, courses) / TERMS_IN_PLAN


def overlap_count(major1: str, major2: str, requirements: MajorRequirements | None = None) -> int:
    reqs = _resolve(requirements)
    return len(set(reqs.required_courses(major1)) & set(reqs.required_courses(major2)))


def suggest_double_major_pairs(
    primary_major: str,
    requirements: MajorRequirements | None = None,
) -> list[dict]:
    """Other configured majors ranked by shared required courses (desc, then id)."""
    reqs = _resolve(requirements)
    primary = str(primary_major or "").strip().upper()
    pairs = [
        {"major_id": other, "overlap_count": overlap_count(primary, other, reqs)}
        for other in reqs.majors()
        if other != primary
    ]
    pairs.sort(key=lambda p: (-p["overlap_count"], p["major_id"]))
    return pairs


def course_priority(course: Course, major_ids: list[str]) -> int:
    priority = sum(PRIORITY_PER_MAJOR for m in major_ids if course.belongs_to_major(m))
    if course.is_overlap_course(major_ids):
        priority += PRIORITY_OVERLAP_BONUS
    return priority
