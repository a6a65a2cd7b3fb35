"""
Pure input-validation helpers for the /plan and /score endpoints.
No Flask or data-loader imports.
"""

from typing import Dict, List, Optional, Set, Tuple

from models import CAREER_TRACKS, RELEVANCE_INDUSTRY, StudentPreferences
from normalizer import normalize_code, normalize_major_id, split_codes

MIN_TARGET_GPA = 0.0
MAX_TARGET_GPA = 4.0
MIN_CREDITS_PER_TERM = 12
MAX_CREDITS_PER_TERM = 21
DEFAULT_TARGET_GPA = 3.0
DEFAULT_MAX_CREDITS = 15

_TRUE_STRINGS = {"true", "1", "yes", "y", "on"}
_FALSE_STRINGS = {"false", "0", "no", "n", "off", ""}


class PreferencesError(ValueError):
    """Malformed request input. error_code is surfaced to the client as-is."""

    def __init__(self, error_code: str, message: str):
        super().__init__(message)
        self.error_code = error_code
        self.message = message

    def to_dict(self) -> dict:
        return {"error_code": self.error_code, "message": self.message}


def _coerce_bool(raw, field: str, default: bool) -> bool:
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)) and raw in (0, 1):
        return bool(raw)
    text = str(raw).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise PreferencesError("INVALID_INPUT", f"'{field}' must be true or false.")


def _coerce_target_gpa(raw) -> float:
    if raw in (None, ""):
        return DEFAULT_TARGET_GPA
    try:
        if isinstance(raw, bool):
            raise ValueError
        value = float(raw)
        if not (MIN_TARGET_GPA <= value <= MAX_TARGET_GPA):
            raise ValueError
    except (TypeError, ValueError):
        raise PreferencesError(
            "INVALID_INPUT",
            f"targetGPA must be a number between {MIN_TARGET_GPA:.1f} and {MAX_TARGET_GPA:.1f}.",
        )
    return value


def _coerce_max_credits(raw) -> int:
    if raw in (None, ""):
        return DEFAULT_MAX_CREDITS
    try:
        if isinstance(raw, bool):
            raise ValueError
        value = float(raw)
        if value != int(value):
            raise ValueError
        value = int(value)
        if not (MIN_CREDITS_PER_TERM <= value <= MAX_CREDITS_PER_TERM):
            raise ValueError
    except (TypeError, ValueError):
        raise PreferencesError(
            "INVALID_INPUT",
            f"maxCredits must be an integer between {MIN_CREDITS_PER_TERM} and {MAX_CREDITS_PER_TERM}.",
        )
    return value


def _coerce_career_track(raw) -> str:
    if raw in (None, ""):
        return RELEVANCE_INDUSTRY
    track = str(raw).strip().lower().replace(" ", "_").replace("-", "_")
    if track not in CAREER_TRACKS:
        raise PreferencesError(
            "INVALID_INPUT",
            f"careerGoal must be one of: {', '.join(CAREER_TRACKS)}.",
        )
    return track


def _resolve_double_major(body: dict) -> bool:
    major_type = body.get("majorType")
    if major_type not in (None, ""):
        text = str(major_type).strip().lower()
        if text not in ("single", "double"):
            raise PreferencesError("INVALID_INPUT", "majorType must be 'single' or 'double'.")
        return text == "double"
    return _coerce_bool(body.get("double_major"), "double_major", False)


def _parse_major(raw, field: str) -> Optional[str]:
    if raw in (None, ""):
        return None
    major_id = normalize_major_id(raw)
    if major_id is None:
        raise PreferencesError("INVALID_INPUT", f"'{field}' value '{raw}' is not a valid major ID.")
    return major_id


def parse_completed_courses(raw) -> List[str]:
    """
    Normalize completed-course input (list, or comma/newline/semicolon string).

    Unparseable tokens are rejected; well-formed codes missing from the
    catalog are kept, since they may still satisfy a prerequisite that
    names them.
    """
    codes: List[str] = []
    invalid: List[str] = []
    for token in split_codes(raw):
        normalized = normalize_code(token)
        if normalized is None:
            invalid.append(token)
        else:
            codes.append(normalized)
    if invalid:
        raise PreferencesError(
            "INVALID_INPUT",
            f"Unrecognized course code(s) in completedCourses: {', '.join(dict.fromkeys(invalid))}.",
        )
    return list(dict.fromkeys(codes))


def parse_preferences(body, requirements=None) -> StudentPreferences:
    """
    Map a request body onto StudentPreferences.

    Keys: major1, major2, majorType ('single'|'double') or double_major,
    targetGPA, maxCredits, avoid8am, prioritizeGPA, balanceDifficulty,
    careerGoal, completedCourses. With a requirements table, majors it does
    not know are rejected.

    Raises PreferencesError.
    """
    if not isinstance(body, dict):
        raise PreferencesError("INVALID_INPUT", "Request body must be a JSON object.")

    primary = _parse_major(body.get("major1"), "major1")
    if primary is None:
        raise PreferencesError("INVALID_INPUT", "major1 is required.")
    secondary = _parse_major(body.get("major2"), "major2")
    double_major = _resolve_double_major(body)

    if double_major:
        if secondary is None:
            raise PreferencesError(
                "SECOND_MAJOR_REQUIRED",
                "A second major is required when majorType is 'double'.",
            )
        if secondary == primary:
            raise PreferencesError("INVALID_INPUT", "major2 must differ from major1.")

    if requirements is not None:
        checked = [primary, secondary] if double_major else [primary]
        for major_id in checked:
            if not requirements.has_major(major_id):
                raise PreferencesError("UNKNOWN_MAJOR", f"Major '{major_id}' is not recognized.")

    return StudentPreferences(
        primary_major=primary,
        secondary_major=secondary,
        double_major=double_major,
        target_gpa=_coerce_target_gpa(body.get("targetGPA")),
        max_credits_per_term=_coerce_max_credits(body.get("maxCredits")),
        avoid_early_morning=_coerce_bool(body.get("avoid8am"), "avoid8am", False),
        prioritize_gpa=_coerce_bool(body.get("prioritizeGPA"), "prioritizeGPA", False),
        balance_difficulty=_coerce_bool(body.get("balanceDifficulty"), "balanceDifficulty", True),
        career_track=_coerce_career_track(body.get("careerGoal")),
        completed=frozenset(parse_completed_courses(body.get("completedCourses"))),
    )


def _transitive_prereqs(course_code: str, prereq_map: Dict[str, List[str]]) -> Set[str]:
    """Every course reachable from course_code through prereq_map, itself excluded."""
    found: Set[str] = set()
    frontier = list(prereq_map.get(course_code, []))
    while frontier:
        code = frontier.pop()
        if not isinstance(code, str) or not code.strip() or code in found:
            continue
        found.add(code)
        frontier.extend(prereq_map.get(code, []))
    found.discard(course_code)
    return found


def imply_completed_prereqs(
    completed: List[str],
    prereq_map: Dict[str, List[str]],
) -> Tuple[List[str], List[dict]]:
    """
    Passing a course implies passing everything it needed, so a student who
    lists CS 400 is never planned into CS 300 again.

    Returns the completed list (deduped, input order) with the implied codes
    appended in sorted order, plus one row per listed course that implied
    something new:

      {"course": "CS 400", "implied": ["CS 200", "CS 300"], "also_listed": []}
    """
    listed = list(dict.fromkeys(completed))
    listed_set = set(listed)
    implied_all: Set[str] = set()
    rows: List[dict] = []

    for code in listed:
        reachable = _transitive_prereqs(code, prereq_map)
        implied = sorted(reachable - listed_set)
        if not implied:
            continue
        rows.append({
            "course": code,
            "implied": implied,
            "also_listed": sorted(reachable & listed_set),
        })
        implied_all.update(implied)

    return listed + sorted(implied_all), rows
