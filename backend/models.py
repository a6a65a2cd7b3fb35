"""
Core records shared by the planning engine.

Course is read-only for the whole planning run. Term is the only mutable
record and is owned by the allocator, then the balancer.
"""

from dataclasses import dataclass, field

# Career/relevance tags. An empty string means the course is untagged.
RELEVANCE_GRAD_SCHOOL = "grad_school"
RELEVANCE_INDUSTRY = "industry"
RELEVANCE_BOTH = "both"
CAREER_TRACKS = (RELEVANCE_GRAD_SCHOOL, RELEVANCE_INDUSTRY)
RELEVANCE_TAGS = {RELEVANCE_GRAD_SCHOOL, RELEVANCE_INDUSTRY, RELEVANCE_BOTH, ""}

# Four years, two sessions each. Index order is a hard invariant.
YEARS_IN_PLAN = 4
SESSIONS = ("Fall", "Spring")
TERMS_IN_PLAN = YEARS_IN_PLAN * len(SESSIONS)


@dataclass(frozen=True)
class Course:
    """
    One catalog entry.

    prerequisites may reference codes that are not in the catalog; those
    stay unsatisfiable until the catalog defines them.
    """
    course_code: str
    course_name: str = ""
    credits: int = 3
    prerequisites: tuple[str, ...] = ()
    average_gpa: float = 0.0
    a_rate: float = 0.0
    professor: str = ""
    professor_rating: float = 0.0
    early_morning: bool = False
    relevance: str = ""
    majors: frozenset[str] = frozenset()

    def belongs_to_major(self, major_id: str) -> bool:
        return major_id in self.majors

    def is_overlap_course(self, major_ids) -> bool:
        """True when the course counts toward two or more of the given majors."""
        matches = sum(1 for m in set(major_ids) if m and m in self.majors)
        return matches >= 2


@dataclass(frozen=True)
class StudentPreferences:
    primary_major: str
    secondary_major: str | None = None
    double_major: bool = False
    target_gpa: float = 3.0
    max_credits_per_term: int = 15
    avoid_early_morning: bool = False
    prioritize_gpa: bool = False
    balance_difficulty: bool = True
    career_track: str = RELEVANCE_INDUSTRY
    completed: frozenset[str] = frozenset()

    @property
    def majors(self) -> list[str]:
        """Majors used for requirement resolution and overlap ranking."""
        if self.double_major and self.secondary_major:
            return [self.primary_major, self.secondary_major]
        return [self.primary_major]


@dataclass
class Term:
    year: int
    session: str
    courses: list[Course] = field(default_factory=list)

    @property
    def label(self) -> str:
        return f"Year {self.year} - {self.session}"

    @property
    def total_credits(self) -> int:
        return sum(c.credits for c in self.courses)

    @property
    def expected_gpa(self) -> float:
        # Mean historical GPA, derived on every read so add/remove stay in sync.
        if not self.courses:
            return 0.0
        return sum(c.average_gpa for c in self.courses) / len(self.courses)

    @property
    def course_count(self) -> int:
        return len(self.courses)

    def is_empty(self) -> bool:
        return not self.courses

    def course_codes(self) -> list[str]:
        return [c.course_code for c in self.courses]

    def has_course(self, course_code: str) -> bool:
        return any(c.course_code == course_code for c in self.courses)

    def get_course(self, course_code: str) -> Course | None:
        for c in self.courses:
            if c.course_code == course_code:
                return c
        return None

    def can_add_course(self, course: Course, max_credits: int) -> bool:
        return self.total_credits + course.credits <= max_credits

    def add_course(self, course: Course) -> None:
        if course is not None:
            self.courses.append(course)

    def remove_course(self, course_code: str) -> bool:
        for i, c in enumerate(self.courses):
            if c.course_code == course_code:
                del self.courses[i]
                return True
        return False


@dataclass(frozen=True)
class PlanWarning:
    """Non-fatal condition surfaced alongside the plan."""
    warning_code: str
    message: str
    courses: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "warning_code": self.warning_code,
            "message": self.message,
            "courses": list(self.courses),
        }


def create_empty_plan() -> list[Term]:
    """Return the 8 empty terms: Year 1 Fall, Year 1 Spring, Year 2 Fall, ..."""
    return [
        Term(year=year, session=session)
        for year in range(1, YEARS_IN_PLAN + 1)
        for session in SESSIONS
    ]


def term_position(index: int) -> tuple[int, str]:
    """Map a plan index to its (year, session) pair."""
    return index // 2 + 1, SESSIONS[index % 2]
