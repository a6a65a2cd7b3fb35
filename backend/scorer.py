from models import Course, StudentPreferences, RELEVANCE_BOTH

# Weights are fixed and must sum to 1.0.
WEIGHT_PROF_RATING = 0.25
WEIGHT_A_RATE = 0.30
WEIGHT_RELEVANCE = 0.25
WEIGHT_TIME_PREF = 0.20
SCORE_WEIGHTS = {
    "professor": WEIGHT_PROF_RATING,
    "a_rate": WEIGHT_A_RATE,
    "relevance": WEIGHT_RELEVANCE,
    "time_preference": WEIGHT_TIME_PREF,
}

RELEVANCE_BOTH_SCORE = 80.0
RELEVANCE_MATCH_SCORE = 100.0
RELEVANCE_MISMATCH_SCORE = 30.0
RELEVANCE_UNTAGGED_SCORE = 50.0

# Difficulty = 70% grade-derived, 30% instructor-derived.
DIFFICULTY_GRADE_WEIGHT = 0.7
DIFFICULTY_PROF_WEIGHT = 0.3

# Hard filter: students aiming this high skip courses with too few A grades.
HIGH_GPA_GOAL = 3.7
MIN_A_RATE_FOR_HIGH_GPA_GOAL = 0.4

CONSERVATIVE_GRADE_FACTOR = 0.9
OPTIMISTIC_GRADE_FACTOR = 1.05
OPTIMISTIC_A_RATE = 0.7
MAX_GRADE_POINT = 4.0

_DIFFICULTY_LEVELS = (
    (30.0, "Very Easy"),
    (45.0, "Easy"),
    (55.0, "Moderate"),
    (70.0, "Hard"),
)


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, float(value)))


def professor_score(course: Course) -> float:
    return _clamp(course.professor_rating / 5.0 * 100.0)


def a_rate_score(course: Course) -> float:
    return _clamp(course.a_rate * 100.0)


def relevance_score(course: Course, prefs: StudentPreferences) -> float:
    tag = str(course.relevance or "").strip().lower()
    if not tag:
        return RELEVANCE_UNTAGGED_SCORE
    if tag == RELEVANCE_BOTH:
        return RELEVANCE_BOTH_SCORE
    if tag == str(prefs.career_track or "").strip().lower():
        return RELEVANCE_MATCH_SCORE
    return RELEVANCE_MISMATCH_SCORE


def time_preference_score(course: Course, prefs: StudentPreferences) -> float:
    if prefs.avoid_early_morning and course.early_morning:
        return 0.0
    return 100.0


def score_course(course: Course, prefs: StudentPreferences) -> float:
    """Desirability in [0, 100] for this student."""
    return (
        professor_score(course) * WEIGHT_PROF_RATING
        + a_rate_score(course) * WEIGHT_A_RATE
        + relevance_score(course, prefs) * WEIGHT_RELEVANCE
        + time_preference_score(course, prefs) * WEIGHT_TIME_PREF
    )


def predict_grade(course: Course, prefs: StudentPreferences) -> float:
    """
    Expected grade points for this student in this course.

    Exactly one branch applies, in order:
      prioritize_gpa      -> conservative (x0.9)
      a_rate above 0.7    -> optimistic (x1.05, capped at 4.0)
      otherwise           -> historical average
    """
    base = course.average_gpa
    if prefs.prioritize_gpa:
        return base * CONSERVATIVE_GRADE_FACTOR
    if course.a_rate > OPTIMISTIC_A_RATE:
        return min(MAX_GRADE_POINT, base * OPTIMISTIC_GRADE_FACTOR)
    return base


def calculate_difficulty(course: Course) -> float:
    """Difficulty in [0, 100]; depends on course data only."""
    from_grades = (1.0 - course.a_rate) * 100.0
    from_prof = (5.0 - course.professor_rating) / 5.0 * 100.0
    return _clamp(from_grades * DIFFICULTY_GRADE_WEIGHT + from_prof * DIFFICULTY_PROF_WEIGHT)


def meets_basic_requirements(course: Course, prefs: StudentPreferences) -> bool:
    """
    Hard filter applied before ranking. A course failing it is never placed,
    whatever its score.
    """
    if prefs.avoid_early_morning and course.early_morning:
        return False
    if prefs.target_gpa >= HIGH_GPA_GOAL and course.a_rate < MIN_A_RATE_FOR_HIGH_GPA_GOAL:
        return False
    return True


def difficulty_level(difficulty: float) -> str:
    for upper, label in _DIFFICULTY_LEVELS:
        if difficulty < upper:
            return label
    return "Very Hard"


def compare_courses(course1: Course, course2: Course, prefs: StudentPreferences) -> int:
    """Negative, zero or positive as course1 scores below, equal to or above course2."""
    s1 = score_course(course1, prefs)
    s2 = score_course(course2, prefs)
    return (s1 > s2) - (s1 < s2)


def score_breakdown(course: Course, prefs: StudentPreferences) -> dict:
    components = {
        "professor": professor_score(course),
        "a_rate": a_rate_score(course),
        "relevance": relevance_score(course, prefs),
        "time_preference": time_preference_score(course, prefs),
    }
    difficulty = calculate_difficulty(course)
    return {
        "course_code": course.course_code,
        "course_name": course.course_name,
        "components": components,
        "weights": dict(SCORE_WEIGHTS),
        "total": score_course(course, prefs),
        "difficulty": difficulty,
        "difficulty_level": difficulty_level(difficulty),
        "predicted_grade": predict_grade(course, prefs),
        "eligible": meets_basic_requirements(course, prefs),
    }
