"""
Post-allocation difficulty balancing.

Works on the 8-term plan in place. Only term assignment changes: the set of
scheduled courses is preserved by every swap.
"""

from models import Course, Term
from prereq_graph import PrerequisiteGraph
from scorer import calculate_difficulty, difficulty_level

MAX_BALANCE_ITERATIONS = 10
BALANCED_GAP_THRESHOLD = 15.0
SWAP_IMPROVEMENT_THRESHOLD = 5.0

MAX_AVG_DIFFICULTY = 70.0
MIN_AVG_DIFFICULTY = 30.0
DIFFICULTY_VARIANCE_THRESHOLD = 400.0

_BALANCE_QUALITY = (
    (100.0, "Excellent"),
    (250.0, "Good"),
    (400.0, "Fair"),
)


def calculate_average_difficulty(term: Term) -> float:
    if term.is_empty():
        return 0.0
    return sum(calculate_difficulty(c) for c in term.courses) / term.course_count


def calculate_difficulty_variance(plan: list[Term]) -> float:
    """Population variance of per-term averages over non-empty terms."""
    averages = [calculate_average_difficulty(t) for t in plan if not t.is_empty()]
    if len(averages) < 2:
        return 0.0
    mean = sum(averages) / len(averages)
    return sum((d - mean) ** 2 for d in averages) / len(averages)


def _extreme_terms(plan: list[Term]) -> tuple[int | None, int | None]:
    """Indexes of the hardest and easiest non-empty terms (first wins ties)."""
    hardest = easiest = None
    max_diff = min_diff = 0.0
    for idx, term in enumerate(plan):
        if term.is_empty():
            continue
        diff = calculate_average_difficulty(term)
        if hardest is None or diff > max_diff:
            hardest, max_diff = idx, diff
        if easiest is None or diff < min_diff:
            easiest, min_diff = idx, diff
    return hardest, easiest


def _simulate_swap(term: Term, to_remove: Course, to_add: Course) -> float:
    kept = [calculate_difficulty(c) for c in term.courses if c.course_code != to_remove.course_code]
    kept.append(calculate_difficulty(to_add))
    return sum(kept) / len(kept)


def prerequisite_order_ok(
    plan: list[Term],
    graph: PrerequisiteGraph,
    moves: dict[str, int] | None = None,
) -> bool:
    """
    True when every scheduled course sits strictly after all of its scheduled
    prerequisites. moves overrides the term index of individual courses, so a
    swap can be checked before it is committed. Prerequisites that are not in
    the plan (already completed, or unknown) are not checked.
    """
    position: dict[str, int] = {}
    for idx, term in enumerate(plan):
        for code in term.course_codes():
            position[code] = idx
    if moves:
        position.update(moves)

    for code, idx in position.items():
        for prereq in graph.get_prerequisites(code):
            prereq_idx = position.get(prereq)
            if prereq_idx is not None and prereq_idx >= idx:
                return False
    return True


def _try_swap(
    plan: list[Term],
    hard_idx: int,
    easy_idx: int,
    graph: PrerequisiteGraph | None,
) -> dict:
    """
    Trade the easiest course of the hard term for the hardest course of the
    easy term. First course wins difficulty ties on both sides.
    """
    hard_term = plan[hard_idx]
    easy_term = plan[easy_idx]

    outgoing_hard = min(hard_term.courses, key=calculate_difficulty)
    outgoing_easy = max(easy_term.courses, key=calculate_difficulty)
    current_gap = abs(calculate_average_difficulty(hard_term) - calculate_average_difficulty(easy_term))
    new_hard = _simulate_swap(hard_term, outgoing_hard, outgoing_easy)
    new_easy = _simulate_swap(easy_term, outgoing_easy, outgoing_hard)
    new_gap = abs(new_hard - new_easy)
    if current_gap - new_gap <= SWAP_IMPROVEMENT_THRESHOLD:
        return {"swapped": False, "reason": "insufficient_improvement"}

    if graph is not None:
        moves = {
            outgoing_hard.course_code: easy_idx,
            outgoing_easy.course_code: hard_idx,
        }
        if not prerequisite_order_ok(plan, graph, moves):
            return {
                "swapped": False,
                "reason": "prerequisite_order",
                "blocked": [outgoing_hard.course_code, outgoing_easy.course_code],
            }

    hard_term.remove_course(outgoing_hard.course_code)
    easy_term.remove_course(outgoing_easy.course_code)
    hard_term.add_course(outgoing_easy)
    easy_term.add_course(outgoing_hard)
    return {
        "swapped": True,
        "hard_term": hard_term.label,
        "easy_term": easy_term.label,
        "moved_to_easy_term": outgoing_hard.course_code,
        "moved_to_hard_term": outgoing_easy.course_code,
        "gap_before": current_gap,
        "gap_after": new_gap,
    }


def balance_plan(plan: list[Term], graph: PrerequisiteGraph | None = None) -> dict:
    """
    Swap courses between the hardest and easiest terms, one pair per
    iteration, for at most MAX_BALANCE_ITERATIONS iterations.

    With a graph, swaps that would break prerequisite ordering are refused
    and end the loop. Without one, swaps are not checked. Per-term credit
    totals may change when swapped courses differ in credits.
    """
    variance_before = calculate_difficulty_variance(plan)
    swaps: list[dict] = []
    stop_reason = "max_iterations"
    blocked: list[str] = []

    for _ in range(MAX_BALANCE_ITERATIONS):
        hard_idx, easy_idx = _extreme_terms(plan)
        if hard_idx is None or easy_idx is None:
            stop_reason = "empty_plan"
            break
        gap = calculate_average_difficulty(plan[hard_idx]) - calculate_average_difficulty(plan[easy_idx])
        if gap < BALANCED_GAP_THRESHOLD:
            stop_reason = "balanced"
            break
        outcome = _try_swap(plan, hard_idx, easy_idx, graph)
        if not outcome["swapped"]:
            stop_reason = outcome["reason"]
            blocked = outcome.get("blocked", [])
            break
        swaps.append(outcome)

    return {
        "swaps": swaps,
        "swap_count": len(swaps),
        "stop_reason": stop_reason,
        "blocked_by_prerequisites": blocked,
        "variance_before": variance_before,
        "variance_after": calculate_difficulty_variance(plan),
    }


# ── Analysis ─────────────────────────────────────────────────────────────────

def check_balance_quality(plan: list[Term]) -> str:
    variance = calculate_difficulty_variance(plan)
    for upper, label in _BALANCE_QUALITY:
        if variance < upper:
            return label
    return "Poor"


def get_difficulty_summary(term: Term) -> str:
    if term.is_empty():
        return "Empty"
    diff = calculate_average_difficulty(term)
    return f"{difficulty_level(diff)} ({diff:.1f})"


def label_terms(plan: list[Term]) -> dict[str, str]:
    return {
        t.label: difficulty_level(calculate_average_difficulty(t))
        for t in plan
        if not t.is_empty()
    }


def find_hardest_courses(plan: list[Term], n: int) -> list[Course]:
    courses = [c for t in plan for c in t.courses]
    courses.sort(key=lambda c: (-calculate_difficulty(c), c.course_code))
    return courses[:max(0, n)]


def analyze_difficulty(plan: list[Term]) -> dict:
    terms: list[dict] = []
    total = 0.0
    for term in plan:
        if term.is_empty():
            continue
        avg = calculate_average_difficulty(term)
        total += avg
        terms.append({
            "term": term.label,
            "average_difficulty": avg,
            "level": difficulty_level(avg),
            "too_hard": avg > MAX_AVG_DIFFICULTY,
            "too_easy": avg < MIN_AVG_DIFFICULTY,
            "courses": [
                {"course_code": c.course_code, "difficulty": calculate_difficulty(c)}
                for c in term.courses
            ],
        })

    overall = total / len(terms) if terms else 0.0
    variance = calculate_difficulty_variance(plan)
    hard_idx, easy_idx = _extreme_terms(plan)
    hardest_term = plan[hard_idx].label if hard_idx is not None else None
    easiest_term = plan[easy_idx].label if easy_idx is not None else None
    return {
        "terms": terms,
        "overall_average": overall,
        "overall_level": difficulty_level(overall),
        "variance": variance,
        "balanced": variance <= DIFFICULTY_VARIANCE_THRESHOLD,
        "quality": check_balance_quality(plan),
        "hardest_term": hardest_term,
        "easiest_term": easiest_term,
        "hardest_courses": [c.course_code for c in find_hardest_courses(plan, 3)],
    }
