"""
JSON-safe views of engine results. Nothing here computes planning logic.
"""

from models import Course, PlanWarning, StudentPreferences, Term
from scorer import calculate_difficulty, difficulty_level, score_course
from balancer import calculate_average_difficulty


def course_to_dict(course: Course, prefs: StudentPreferences | None = None) -> dict:
    difficulty = calculate_difficulty(course)
    payload = {
        "course_code": course.course_code,
        "course_name": course.course_name,
        "credits": course.credits,
        "prerequisites": list(course.prerequisites),
        "average_gpa": course.average_gpa,
        "a_rate": course.a_rate,
        "professor": course.professor,
        "professor_rating": course.professor_rating,
        "early_morning": course.early_morning,
        "relevance": course.relevance,
        "majors": sorted(course.majors),
        "difficulty": round(difficulty, 1),
        "difficulty_level": difficulty_level(difficulty),
    }
    if prefs is not None:
        payload["score"] = round(score_course(course, prefs), 1)
    return payload


def term_to_dict(term: Term, prefs: StudentPreferences | None = None) -> dict:
    return {
        "term": term.label,
        "year": term.year,
        "session": term.session,
        "courses": [course_to_dict(c, prefs) for c in term.courses],
        "total_credits": term.total_credits,
        "expected_gpa": round(term.expected_gpa, 2),
        "average_difficulty": round(calculate_average_difficulty(term), 1),
    }


def plan_to_dict(plan: list[Term], prefs: StudentPreferences | None = None) -> list[dict]:
    return [term_to_dict(t, prefs) for t in plan]


def warnings_to_list(warnings: list[PlanWarning]) -> list[dict]:
    return [w.to_dict() for w in warnings]


def preferences_to_dict(prefs: StudentPreferences) -> dict:
    return {
        "primary_major": prefs.primary_major,
        "secondary_major": prefs.secondary_major if prefs.double_major else None,
        "double_major": prefs.double_major,
        "target_gpa": prefs.target_gpa,
        "max_credits_per_term": prefs.max_credits_per_term,
        "avoid_early_morning": prefs.avoid_early_morning,
        "prioritize_gpa": prefs.prioritize_gpa,
        "balance_difficulty": prefs.balance_difficulty,
        "career_track": prefs.career_track,
        "completed": sorted(prefs.completed),
    }


def result_to_dict(result: dict, prefs: StudentPreferences) -> dict:
    """
    Shape a planner.generate_plan result for the /plan response.

    Returns:
      {
        "mode":         "plan",
        "plan":         [term, ...],              # always 8 entries
        "warnings":     [{"warning_code", "message", "courses"}],
        "statistics":   {...},
        "difficulty":   {...},
        "balance":      {...} | None,             # None when balancing is off
        "requirements": {"required", "overlap", "unscheduled", "feasibility", ...},
      }
    """
    return {
        "mode": "plan",
        "preferences": preferences_to_dict(prefs),
        "plan": plan_to_dict(result["plan"], prefs),
        "warnings": warnings_to_list(result["warnings"]),
        "statistics": result["statistics"],
        "difficulty": result["difficulty"],
        "balance": result["balance"],
        "requirements": {
            "required": list(result["required"]),
            "overlap": list(result["overlap"]),
            "unscheduled": list(result["unscheduled"]),
            "feasibility": result["feasibility"],
            "meets_requirements": result["meets_requirements"],
        },
        "skipped": list(result["skipped"]),
    }
