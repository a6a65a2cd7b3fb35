from models import Course, StudentPreferences, Term, create_empty_plan
from prereq_graph import PrerequisiteGraph
from scorer import meets_basic_requirements, score_course

SKIP_NOT_IN_CATALOG = "not_in_catalog"
SKIP_PREFERENCE_FILTER = "preference_filter"
SKIP_CREDIT_CAP = "credit_cap"


def rank_candidates(candidates: list[Course], prefs: StudentPreferences) -> list[Course]:
    """
    Order candidates for greedy selection.

    Keys, in order:
      1) double-major mode only: overlap courses first
      2) score, highest first
      3) course code (keeps repeated runs identical)
    """
    majors = prefs.majors
    use_overlap = prefs.double_major and len(majors) >= 2

    def _key(course: Course):
        overlap_rank = 0 if (use_overlap and course.is_overlap_course(majors)) else 1
        return (overlap_rank, -score_course(course, prefs), course.course_code)

    return sorted(candidates, key=_key)


def fill_term(
    term: Term,
    prefs: StudentPreferences,
    graph: PrerequisiteGraph,
    completed: set[str],
    remaining: dict[str, None],
) -> dict[str, str]:
    """
    Fill one term in place.

    completed and remaining are updated as courses are placed. The frontier
    is computed once, so a course placed here never unlocks another course
    in the same term. The walk stops as soon as the term is full. Returns
    {course_code: skip_reason} for the frontier courses it looked at and did
    not place.
    """
    max_credits = prefs.max_credits_per_term
    skipped: dict[str, str] = {}

    available = graph.get_available_courses(completed, remaining)
    candidates: list[Course] = []
    for code in available:
        course = graph.get_course(code)
        if course is None:
            skipped[code] = SKIP_NOT_IN_CATALOG
            continue
        if not meets_basic_requirements(course, prefs):
            skipped[code] = SKIP_PREFERENCE_FILTER
            continue
        candidates.append(course)

    current_credits = term.total_credits
    for course in rank_candidates(candidates, prefs):
        if current_credits >= max_credits:
            break
        if current_credits + course.credits > max_credits:
            # Overflowing courses stay in remaining for a later term.
            skipped[course.course_code] = SKIP_CREDIT_CAP
            continue
        term.add_course(course)
        current_credits += course.credits
        completed.add(course.course_code)
        remaining.pop(course.course_code, None)

    return skipped


def allocate_terms(
    prefs: StudentPreferences,
    graph: PrerequisiteGraph,
    required: list[str],
) -> dict:
    """
    Greedy single forward pass over the 8 terms.

    A choice made in term t is never revisited. Courses the student already
    completed count as satisfied prerequisites and are not scheduled again.

    Returns:
      {
        "plan":        [Term x 8],
        "unscheduled": ["CS 577", ...],   # required, never placed
        "skipped":     [{"term": "Year 1 - Fall", "course_code": ..., "reason": ...}],
      }
    """
    plan = create_empty_plan()
    completed: set[str] = set(prefs.completed)
    # Insertion-ordered so the frontier is computed in requirement order.
    remaining: dict[str, None] = {
        code: None for code in required if code and code not in completed
    }

    skipped_trace: list[dict] = []
    for term in plan:
        if not remaining:
            break
        skipped = fill_term(term, prefs, graph, completed, remaining)
        for code, reason in skipped.items():
            skipped_trace.append({"term": term.label, "course_code": code, "reason": reason})

    return {
        "plan": plan,
        "unscheduled": list(remaining),
        "skipped": skipped_trace,
    }
