import re

# Matches: DEPT NNN, DEPT-NNN, DEPTNNN, STAT 4310, MATH 221H, etc.
CANONICAL = re.compile(r'^([A-Za-z]{2,6})\s*[-]?\s*(\d{3,4}[A-Za-z]?)$')

_MAJOR_ID = re.compile(r'^[A-Za-z][A-Za-z0-9_]{0,15}$')


def normalize_code(raw: str) -> str | None:
    """
    Normalizes a course code to canonical 'DEPT NNN' format.
    Handles: 'cs200', 'CS-200', 'cs 200', 'math  221', 'STAT 4310'
    Returns None if the string cannot be parsed as a course code.
    """
    if not raw or not str(raw).strip():
        return None
    m = CANONICAL.match(str(raw).strip())
    if m:
        dept = m.group(1).upper()
        num = m.group(2).upper()
        return f"{dept} {num}"
    return None


def normalize_major_id(raw) -> str | None:
    """'cs' -> 'CS'. None for blanks and anything that is not a short identifier."""
    if raw is None:
        return None
    text = str(raw).strip()
    if not text or not _MAJOR_ID.match(text):
        return None
    return text.upper()


def split_codes(raw) -> list[str]:
    """
    Accept a list of codes or one comma/newline/semicolon-separated string and
    return the raw tokens, stripped, blanks dropped.
    """
    if raw is None:
        return []
    if isinstance(raw, (list, tuple, set, frozenset)):
        return [str(t).strip() for t in raw if t is not None and str(t).strip()]
    return [t.strip() for t in re.split(r'[,\n;]+', str(raw)) if t.strip()]


def normalize_input(raw, catalog_codes: set) -> dict:
    """
    Splits comma/newline/semicolon-separated input (or a list) and normalizes
    each code.

    Returns:
      {
        "valid":          ["CS 200", "MATH 221"],   # normalized + found in catalog
        "invalid":        ["asdfasdf"],             # failed regex
        "not_in_catalog": ["CS 999"]                # valid format but unknown course
      }
    """
    valid = []
    invalid = []
    not_in_catalog = []
    seen: set[str] = set()

    for token in split_codes(raw):
        normalized = normalize_code(token)
        if normalized is None:
            if token not in seen:
                invalid.append(token)
                seen.add(token)
        elif normalized in seen:
            pass  # deduplicate silently
        elif normalized not in catalog_codes:
            not_in_catalog.append(normalized)
            seen.add(normalized)
        else:
            valid.append(normalized)
            seen.add(normalized)

    return {"valid": valid, "invalid": invalid, "not_in_catalog": not_in_catalog}
