import os

import pandas as pd

from models import Course, RELEVANCE_TAGS
from requirements import MajorRequirements

COURSES_FILE = "courses.csv"
REQUIREMENTS_FILE = "major_requirements.csv"

REQUIRED_COURSE_COLUMNS = ["course_code"]
REQUIRED_REQUIREMENT_COLUMNS = ["major_id", "course_code"]

# Neutral values for blank cells.
_NUMERIC_DEFAULTS = {
    "credits": 3,
    "average_gpa": 0.0,
    "a_rate": 0.0,
    "professor_rating": 0.0,
}
_TEXT_COLUMNS = ["course_name", "prerequisites", "professor", "relevance", "majors"]

_BOOL_TRUTHY = {"true", "1", "yes", "y"}


def _safe_bool_col(df: pd.DataFrame, col: str) -> pd.DataFrame:
    """Normalize a boolean column to Python bool regardless of CSV format.

    Handles: Python bool, int/float (1/0), and string variants
    (TRUE/FALSE, true/false, 1/0, yes/no, y/n). NaN → False.
    """
    def _coerce(x):
        if pd.isna(x):
            return False
        if isinstance(x, bool):
            return x
        if isinstance(x, (int, float)):
            return bool(x)
        return str(x).strip().lower() in _BOOL_TRUTHY

    if col in df.columns:
        df[col] = df[col].apply(_coerce)
    else:
        df[col] = False
    return df


def _split_list(raw) -> list[str]:
    """'CS 200; MATH 221' -> ['CS 200', 'MATH 221'] (order kept, duplicates dropped)."""
    if raw is None or (not isinstance(raw, str) and pd.isna(raw)):
        return []
    parts = [p.strip() for p in str(raw).split(";")]
    return list(dict.fromkeys(p for p in parts if p and p.lower() != "none"))


def _require_columns(df: pd.DataFrame, columns: list[str], source: str) -> None:
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise ValueError(f"{source} is missing required column(s): {missing}")


def _normalize_courses_df(courses_df: pd.DataFrame) -> pd.DataFrame:
    courses_df = courses_df.copy()
    courses_df.columns = [str(c).strip() for c in courses_df.columns]

    courses_df["course_code"] = courses_df["course_code"].fillna("").astype(str).str.strip()
    courses_df = courses_df[courses_df["course_code"] != ""]
    courses_df = courses_df.drop_duplicates(subset=["course_code"], keep="first")

    for col in _TEXT_COLUMNS:
        if col not in courses_df.columns:
            courses_df[col] = ""
        courses_df[col] = courses_df[col].fillna("").astype(str).str.strip()
    courses_df["relevance"] = courses_df["relevance"].str.lower()

    for col, default in _NUMERIC_DEFAULTS.items():
        if col not in courses_df.columns:
            courses_df[col] = default
        courses_df[col] = pd.to_numeric(courses_df[col], errors="coerce").fillna(default)
    courses_df["credits"] = courses_df["credits"].astype(int)

    courses_df = _safe_bool_col(courses_df, "early_morning")
    return courses_df.reset_index(drop=True)


def courses_from_df(courses_df: pd.DataFrame) -> list[Course]:
    courses = []
    for _, row in courses_df.iterrows():
        courses.append(Course(
            course_code=row["course_code"],
            course_name=row["course_name"],
            credits=int(row["credits"]),
            prerequisites=tuple(_split_list(row["prerequisites"])),
            average_gpa=float(row["average_gpa"]),
            a_rate=float(row["a_rate"]),
            professor=row["professor"],
            professor_rating=float(row["professor_rating"]),
            early_morning=bool(row["early_morning"]),
            relevance=row["relevance"],
            majors=frozenset(m.upper() for m in _split_list(row["majors"])),
        ))
    return courses


def load_data(data_path: str) -> dict:
    """
    Load the course catalog and requirement table from a data directory.

    Raises FileNotFoundError when courses.csv is absent and ValueError when a
    file lacks its required columns. major_requirements.csv is optional; the
    built-in table is used without it.
    """
    courses_path = os.path.join(data_path, COURSES_FILE)
    if not os.path.isfile(courses_path):
        raise FileNotFoundError(f"Course catalog not found: {courses_path}")

    courses_df = pd.read_csv(courses_path, dtype=str, keep_default_na=True)
    _require_columns(courses_df, REQUIRED_COURSE_COLUMNS, COURSES_FILE)
    courses_df = _normalize_courses_df(courses_df)
    courses = courses_from_df(courses_df)
    catalog_codes = set(courses_df["course_code"].tolist())

    requirements_path = os.path.join(data_path, REQUIREMENTS_FILE)
    if os.path.isfile(requirements_path):
        requirements_df = pd.read_csv(requirements_path, dtype=str)
        _require_columns(requirements_df, REQUIRED_REQUIREMENT_COLUMNS, REQUIREMENTS_FILE)
        requirements = MajorRequirements.from_dataframe(requirements_df)
        _req_source = REQUIREMENTS_FILE
    else:
        requirements = MajorRequirements()
        _req_source = "built-in table"

    print(f"[INFO] Major requirements source: {_req_source} ({len(requirements.majors())} majors)")

    # ── Startup data integrity checks ──────────────────────────────────────
    dangling = sorted({
        p for c in courses for p in c.prerequisites if p not in catalog_codes
    })
    if dangling:
        print(f"[WARN] {len(dangling)} prerequisite code(s) not found in courses.csv: {dangling}")

    required_codes = {code for codes in requirements.to_dict().values() for code in codes}
    orphaned = required_codes - catalog_codes
    if orphaned:
        print(f"[WARN] {len(orphaned)} required course(s) not found in courses.csv: {sorted(orphaned)}")

    bad_tags = sorted({c.course_code for c in courses if c.relevance not in RELEVANCE_TAGS})
    if bad_tags:
        print(f"[WARN] {len(bad_tags)} course(s) have an unrecognized relevance tag: {bad_tags}")

    return {
        "courses_df": courses_df,
        "courses": courses,
        "catalog_codes": catalog_codes,
        "requirements": requirements,
    }
