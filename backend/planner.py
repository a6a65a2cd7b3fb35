from models import PlanWarning, StudentPreferences, Term
from prereq_graph import build_prereq_graph
from requirements import (
    DEFAULT_REQUIREMENTS,
    MajorRequirements,
    feasibility_report,
    get_required_courses,
    merge_requirements,
)
from allocator import allocate_terms
from balancer import analyze_difficulty, balance_plan, calculate_average_difficulty, check_balance_quality
from scorer import predict_grade

STUDY_HOURS_PER_CREDIT = 3
GPA_TARGET_TOLERANCE = 0.2


def _dedupe_codes(codes: list[str]) -> list[str]:
    """Return codes in first-seen order without duplicates."""
    return list(dict.fromkeys([c for c in codes if c]))


def _resolve_required(prefs: StudentPreferences, courses, requirements) -> tuple[list[str], list[str], list[PlanWarning]]:
    warnings: list[PlanWarning] = []
    table = DEFAULT_REQUIREMENTS if requirements is None else requirements
    for major_id in prefs.majors:
        if not table.has_major(major_id):
            warnings.append(PlanWarning(
                "UNKNOWN_MAJOR",
                f"No requirement table is configured for major '{major_id}'.",
            ))

    if prefs.double_major and prefs.secondary_major:
        merged = merge_requirements(prefs.primary_major, prefs.secondary_major, courses, requirements)
        return merged["required"], merged["overlap"], warnings
    return get_required_courses(prefs.primary_major, requirements), [], warnings


def meets_graduation_requirements(plan: list[Term], required: list[str], completed=()) -> bool:
    scheduled = {code for t in plan for code in t.course_codes()}
    scheduled.update(completed)
    return all(code in scheduled for code in required)


def find_overloaded_terms(plan: list[Term], threshold: int) -> list[Term]:
    return [t for t in plan if t.total_credits > threshold]


def calculate_total_study_hours(plan: list[Term]) -> int:
    return sum(t.total_credits for t in plan) * STUDY_HOURS_PER_CREDIT


def plan_statistics(plan: list[Term], prefs: StudentPreferences) -> dict:
    """Per-term and whole-plan numbers. Averages count non-empty terms only."""
    terms = []
    total_credits = 0
    total_courses = 0
    gpa_sum = 0.0
    for term in plan:
        predicted = (
            sum(predict_grade(c, prefs) for c in term.courses) / term.course_count
            if term.course_count else 0.0
        )
        terms.append({
            "term": term.label,
            "credits": term.total_credits,
            "course_count": term.course_count,
            "expected_gpa": term.expected_gpa,
            "predicted_gpa": predicted,
            "average_difficulty": calculate_average_difficulty(term),
        })
        if not term.is_empty():
            total_credits += term.total_credits
            total_courses += term.course_count
            gpa_sum += term.expected_gpa

    active_terms = sum(1 for t in plan if not t.is_empty())
    return {
        "terms": terms,
        "total_credits": total_credits,
        "total_courses": total_courses,
        "active_terms": active_terms,
        "average_gpa": gpa_sum / active_terms if active_terms else 0.0,
        "average_credits_per_term": total_credits / active_terms if active_terms else 0.0,
        "total_study_hours": calculate_total_study_hours(plan),
        "balance_quality": check_balance_quality(plan),
    }


def generate_plan(
    prefs: StudentPreferences,
    courses,
    requirements: MajorRequirements | None = None,
    check_prereqs_on_balance: bool = True,
) -> dict:
    """
    Run the whole planning pipeline for one student.

    Data problems never raise: they come back as warnings, and a full
    8-term plan (possibly incomplete) is always returned.
    """
    courses = list(courses)
    warnings: list[PlanWarning] = []

    graph = build_prereq_graph(courses)
    cycle = graph.find_cycle()
    if cycle:
        warnings.append(PlanWarning(
            "PREREQUISITE_CYCLE",
            "Prerequisite graph has circular dependencies: " + " -> ".join(cycle),
            tuple(_dedupe_codes(cycle)),
        ))
    for code, unknown in graph.missing_references().items():
        warnings.append(PlanWarning(
            "UNKNOWN_PREREQUISITE",
            f"{code} lists prerequisite(s) not in the catalog: {', '.join(unknown)}.",
            tuple([code] + unknown),
        ))

    required, overlap, major_warnings = _resolve_required(prefs, courses, requirements)
    warnings.extend(major_warnings)
    missing_required = [code for code in required if code not in graph]
    if missing_required:
        warnings.append(PlanWarning(
            "UNKNOWN_REQUIRED_COURSE",
            f"{len(missing_required)} required course(s) are not in the catalog and cannot be scheduled.",
            tuple(missing_required),
        ))

    feasibility = feasibility_report(required, courses, prefs.max_credits_per_term)
    if not feasibility["feasible"]:
        label = "Double major" if prefs.double_major else "Major"
        warnings.append(PlanWarning(
            "REQUIREMENTS_INFEASIBLE",
            f"{label} may not be feasible in 4 years: short by {feasibility['credits_short']} credits. "
            f"Consider {feasibility['suggested_credits_per_term']} credits per term.",
        ))

    allocation = allocate_terms(prefs, graph, required)
    plan = allocation["plan"]

    balance = None
    if prefs.balance_difficulty:
        balance = balance_plan(plan, graph if check_prereqs_on_balance else None)

    if allocation["unscheduled"]:
        warnings.append(PlanWarning(
            "UNSCHEDULED_REQUIREMENTS",
            "Could not fit all required courses into 8 terms. "
            "Consider more credits per term, summer courses, or a fifth year.",
            tuple(allocation["unscheduled"]),
        ))

    for term in find_overloaded_terms(plan, prefs.max_credits_per_term):
        warnings.append(PlanWarning(
            "CREDIT_CAP_EXCEEDED",
            f"{term.label} carries {term.total_credits} credits after balancing "
            f"(cap {prefs.max_credits_per_term}).",
            tuple(term.course_codes()),
        ))

    for term in plan:
        if not term.is_empty() and term.expected_gpa < prefs.target_gpa - GPA_TARGET_TOLERANCE:
            warnings.append(PlanWarning(
                "TERM_BELOW_GPA_TARGET",
                f"{term.label} expected GPA {term.expected_gpa:.2f} is below target {prefs.target_gpa:.2f}.",
                tuple(term.course_codes()),
            ))

    return {
        "plan": plan,
        "warnings": warnings,
        "required": required,
        "overlap": overlap,
        "unscheduled": allocation["unscheduled"],
        "skipped": allocation["skipped"],
        "feasibility": feasibility,
        "balance": balance,
        "statistics": plan_statistics(plan, prefs),
        "difficulty": analyze_difficulty(plan),
        "meets_requirements": meets_graduation_requirements(plan, required, prefs.completed),
    }


def summary_report(result: dict, prefs: StudentPreferences) -> dict:
    stats = result["statistics"]
    majors = " + ".join(prefs.majors)
    return {
        "majors": majors,
        "gpa_goal": prefs.target_gpa,
        "total_credits": stats["total_credits"],
        "expected_average_gpa": stats["average_gpa"],
        "difficulty_balance": stats["balance_quality"],
        "all_requirements_scheduled": not result["unscheduled"],
        "warning_count": len(result["warnings"]),
    }
