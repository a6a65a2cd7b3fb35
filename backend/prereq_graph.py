from models import Course

_WHITE = 0
_GRAY = 1
_BLACK = 2


class PrerequisiteGraph:
    """
    Adjacency map of course_code -> direct prerequisite codes.

    Built fresh for every planning run. Codes that were never registered are
    treated as having no prerequisites; prerequisite codes that were never
    registered simply never appear in a completed set.
    """

    def __init__(self):
        self._prereqs: dict[str, list[str]] = {}
        self._courses: dict[str, Course] = {}

    def add_course(self, course: Course) -> None:
        code = course.course_code
        self._courses[code] = course
        self._prereqs[code] = list(dict.fromkeys(p for p in (course.prerequisites or ()) if p))

    def add_courses(self, courses) -> None:
        for course in courses:
            self.add_course(course)

    def __contains__(self, course_code: str) -> bool:
        return course_code in self._courses

    def __len__(self) -> int:
        return len(self._courses)

    def get_course(self, course_code: str) -> Course | None:
        return self._courses.get(course_code)

    def get_prerequisites(self, course_code: str) -> list[str]:
        return list(self._prereqs.get(course_code, []))

    def course_codes(self) -> list[str]:
        return list(self._prereqs)

    def prereq_map(self) -> dict[str, list[str]]:
        return {code: list(prereqs) for code, prereqs in self._prereqs.items()}

    # ── Cycle detection ──────────────────────────────────────────────────────

    def find_cycle(self) -> list[str]:
        """
        Three-color DFS over every node exactly once, on an explicit stack so
        chain length is not bounded by the interpreter's recursion limit.

        Returns the codes on the first cycle found (closing node repeated at
        the end), or [] when the graph is acyclic.
        """
        color: dict[str, int] = {}

        for root in self._prereqs:
            if color.get(root, _WHITE) != _WHITE:
                continue
            color[root] = _GRAY
            path = [root]
            pending = [iter(self._prereqs[root])]
            while pending:
                for prereq in pending[-1]:
                    state = color.get(prereq, _WHITE)
                    if state == _GRAY:
                        # Back-edge: slice the active path from the first visit.
                        return path[path.index(prereq):] + [prereq]
                    if state == _WHITE:
                        color[prereq] = _GRAY
                        path.append(prereq)
                        pending.append(iter(self._prereqs.get(prereq, [])))
                        break
                else:
                    color[path.pop()] = _BLACK
                    pending.pop()
        return []

    def has_cycle(self) -> bool:
        return bool(self.find_cycle())

    # ── Availability ─────────────────────────────────────────────────────────

    def can_take(self, course_code: str, completed) -> bool:
        """True when every listed prerequisite is in completed."""
        prereqs = self._prereqs.get(course_code)
        if not prereqs:
            return True
        return all(p in completed for p in prereqs)

    def get_available_courses(self, completed, remaining) -> list[str]:
        """
        Eligibility frontier: members of remaining whose prerequisites are all
        in completed. Preserves the iteration order of remaining.
        """
        return [code for code in remaining if self.can_take(code, completed)]

    # ── Data-quality + ordering helpers ──────────────────────────────────────

    def missing_references(self) -> dict[str, list[str]]:
        """Map course_code -> prerequisite codes that are not in the graph."""
        missing: dict[str, list[str]] = {}
        for code, prereqs in self._prereqs.items():
            unknown = [p for p in prereqs if p not in self._courses]
            if unknown:
                missing[code] = unknown
        return missing

    def reverse_map(self) -> dict[str, list[str]]:
        """
        For each course, which courses directly list it as a prerequisite.

        Only direct prerequisites (one level deep).
        """
        reverse: dict[str, list[str]] = {}
        for code, prereqs in self._prereqs.items():
            for prereq in prereqs:
                reverse.setdefault(prereq, [])
                if code not in reverse[prereq]:
                    reverse[prereq].append(code)
        return reverse

    def get_direct_unlocks(self, course_code: str, limit: int = 3) -> list[str]:
        return self.reverse_map().get(course_code, [])[:limit]

    def topological_order(self) -> list[str]:
        """
        Registered courses ordered prerequisites-first (Kahn's algorithm).

        Ties break on course code. Courses on or behind a cycle never reach
        in-degree zero and are left out. Unknown prerequisite codes are not
        counted as edges.
        """
        in_degree = {
            code: sum(1 for p in prereqs if p in self._courses)
            for code, prereqs in self._prereqs.items()
        }
        reverse = self.reverse_map()
        ready = sorted(code for code, deg in in_degree.items() if deg == 0)
        order: list[str] = []
        while ready:
            code = ready.pop(0)
            order.append(code)
            released = []
            for dependent in reverse.get(code, []):
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    released.append(dependent)
            if released:
                ready = sorted(ready + released)
        return order


def build_prereq_graph(courses) -> PrerequisiteGraph:
    graph = PrerequisiteGraph()
    graph.add_courses(courses)
    return graph
