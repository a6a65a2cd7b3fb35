import os
import sys
import time
import threading
from dataclasses import replace

# Ensure backend/ is on sys.path so sibling imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException
from dotenv import load_dotenv

from normalizer import normalize_code
from prereq_graph import build_prereq_graph
from requirements import (
    calculate_total_credits,
    get_required_courses,
    merge_requirements,
    suggest_double_major_pairs,
)
from validators import PreferencesError, imply_completed_prereqs, parse_preferences
from data_loader import load_data
from planner import generate_plan, summary_report
from presenter import course_to_dict, result_to_dict
from scorer import score_breakdown

load_dotenv()

app = Flask(__name__)

API_VERSION = "1.0.0"

# ── Paths ─────────────────────────────────────────────────────────────────────
BACKEND_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(BACKEND_DIR)
_DEFAULT_DATA_PATH = os.path.join(PROJECT_ROOT, "data")
_env_data_path = os.environ.get("DATA_PATH")
if not _env_data_path:
    DATA_PATH = _DEFAULT_DATA_PATH
elif not os.path.isabs(_env_data_path):
    DATA_PATH = os.path.join(PROJECT_ROOT, _env_data_path)
else:
    DATA_PATH = _env_data_path
_data_lock = threading.Lock()
_data_mtime = None


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, float(raw))
    except (TypeError, ValueError):
        return default


_SLOW_REQUEST_LOG_MS = _env_float("SLOW_REQUEST_LOG_MS", 750.0, minimum=0.0)


def _data_file_mtime(path: str):
    try:
        if os.path.isdir(path):
            mtimes = [
                os.path.getmtime(os.path.join(path, f))
                for f in os.listdir(path)
                if f.endswith(".csv")
            ]
            return max(mtimes) if mtimes else None
        return os.path.getmtime(path)
    except OSError:
        return None


def _error_response(error_code: str, message: str, status: int):
    return jsonify({
        "mode": "error",
        "error": {"error_code": error_code, "message": message},
    }), status


# ── Startup data load ──────────────────────────────────────────────────────────
try:
    _data = load_data(DATA_PATH)
    _data_mtime = _data_file_mtime(DATA_PATH)
    print(f"[OK] Loaded {len(_data['catalog_codes'])} courses from {DATA_PATH}")
except FileNotFoundError:
    # A stale DATA_PATH falls back to the bundled data directory.
    if DATA_PATH != _DEFAULT_DATA_PATH and os.path.exists(_DEFAULT_DATA_PATH):
        print(
            f"[WARN] DATA_PATH not found ({DATA_PATH}); "
            f"falling back to default data directory ({_DEFAULT_DATA_PATH}).",
            file=sys.stderr,
        )
        DATA_PATH = _DEFAULT_DATA_PATH
        _data = load_data(DATA_PATH)
        _data_mtime = _data_file_mtime(DATA_PATH)
        print(f"[OK] Loaded {len(_data['catalog_codes'])} courses from {DATA_PATH}")
    else:
        print(f"[FATAL] Data directory not found: {DATA_PATH}", file=sys.stderr)
        sys.exit(1)
except Exception as exc:
    print(f"[FATAL] Failed to load data: {exc}", file=sys.stderr)
    sys.exit(1)


def _reload_data_if_changed(force: bool = False) -> bool:
    """
    Hot-reload CSV-backed runtime data when DATA_PATH changes on disk.

    Returns True when a reload occurred, else False.
    """
    global _data, _data_mtime

    candidate_mtime = _data_file_mtime(DATA_PATH)
    if not force:
        if candidate_mtime is None:
            return False
        if _data_mtime is not None and candidate_mtime <= _data_mtime:
            return False

    with _data_lock:
        latest_mtime = _data_file_mtime(DATA_PATH)
        if not force:
            if latest_mtime is None:
                return False
            if _data_mtime is not None and latest_mtime <= _data_mtime:
                return False

        try:
            new_data = load_data(DATA_PATH)
        except Exception as exc:
            print(f"[WARN] Data reload failed; keeping previous dataset: {exc}", file=sys.stderr)
            return False

        _data = new_data
        _data_mtime = latest_mtime if latest_mtime is not None else candidate_mtime
        print(f"[OK] Reloaded {len(new_data['catalog_codes'])} courses from {DATA_PATH}")
        return True


def _refresh_data_if_needed() -> None:
    try:
        _reload_data_if_changed()
    except Exception as exc:
        print(f"[WARN] Data reload check failed: {exc}", file=sys.stderr)


# -- Security headers ------------------------------------------------------
@app.before_request
def _start_request_timer():
    g._request_start_time = time.perf_counter()


@app.after_request
def _add_security_headers(response):
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "same-origin"

    started = getattr(g, "_request_start_time", None)
    if started is not None:
        duration_ms = (time.perf_counter() - started) * 1000.0
        if duration_ms >= _SLOW_REQUEST_LOG_MS:
            endpoint = request.endpoint or "unknown"
            print(
                f"[SLOW] {request.method} {request.path} "
                f"endpoint={endpoint} status={response.status_code} duration_ms={duration_ms:.1f}"
            )
    return response


# ── 500 handler ────────────────────────────────────────────────────────────────
@app.errorhandler(Exception)
def handle_unexpected_error(e):
    if isinstance(e, HTTPException):
        return e
    print(f"[WARN] Unhandled error on {request.method} {request.path}: {e!r}", file=sys.stderr)
    return _error_response("SERVER_ERROR", "An unexpected server error occurred.", 500)


# ── Routes ─────────────────────────────────────────────────────────────────────
@app.route("/health", methods=["GET"])
def health_endpoint():
    return jsonify({
        "status": "ok",
        "version": API_VERSION,
        "course_count": len(_data["catalog_codes"]) if _data else 0,
    })


@app.route("/courses", methods=["GET"])
def get_courses():
    _refresh_data_if_needed()
    if not _data:
        return _error_response("SERVER_ERROR", "Data not loaded.", 500)
    courses = sorted(_data["courses"], key=lambda c: c.course_code)
    return jsonify({"courses": [course_to_dict(c) for c in courses]})


@app.route("/majors", methods=["GET"])
def get_majors():
    """Configured majors with their required-course lists and best pairings."""
    _refresh_data_if_needed()
    if not _data:
        return _error_response("SERVER_ERROR", "Data not loaded.", 500)

    requirements = _data["requirements"]
    majors_payload = []
    for major_id in requirements.majors():
        required = get_required_courses(major_id, requirements)
        majors_payload.append({
            "major_id": major_id,
            "required_courses": required,
            "required_credits": calculate_total_credits(required, _data["courses"]),
            "double_major_pairs": suggest_double_major_pairs(major_id, requirements),
        })
    return jsonify({"majors": majors_payload})


@app.route("/plan", methods=["POST"])
def plan_endpoint():
    _refresh_data_if_needed()
    if not _data:
        return _error_response("SERVER_ERROR", "Data not loaded.", 500)

    body = request.get_json(force=True, silent=True)
    if body is None:
        return _error_response("INVALID_INPUT", "Request body must be valid JSON.", 400)

    requirements = _data["requirements"]
    try:
        prefs = parse_preferences(body, requirements)
    except PreferencesError as exc:
        return _error_response(exc.error_code, exc.message, 400)

    courses = _data["courses"]
    graph = build_prereq_graph(courses)
    expanded, implied_rows = imply_completed_prereqs(sorted(prefs.completed), graph.prereq_map())
    if implied_rows:
        prefs = replace(prefs, completed=frozenset(expanded))

    result = generate_plan(prefs, courses, requirements)
    payload = result_to_dict(result, prefs)
    payload["summary"] = summary_report(result, prefs)
    payload["implied_completed"] = implied_rows
    if prefs.double_major:
        merged = merge_requirements(prefs.primary_major, prefs.secondary_major, courses, requirements)
        payload["requirements"]["shared_required"] = merged["shared_required"]
        payload["requirements"]["courses_saved"] = merged["courses_saved"]
    return jsonify(payload)


@app.route("/score", methods=["POST"])
def score_endpoint():
    """Score breakdown for one course under the given preferences."""
    _refresh_data_if_needed()
    if not _data:
        return _error_response("SERVER_ERROR", "Data not loaded.", 500)

    body = request.get_json(force=True, silent=True)
    if not isinstance(body, dict):
        return _error_response("INVALID_INPUT", "Request body must be valid JSON.", 400)

    course_code = normalize_code(str(body.get("course_code") or ""))
    if course_code is None:
        return _error_response("INVALID_INPUT", "course_code is required (e.g. 'CS 300').", 400)

    try:
        prefs = parse_preferences(body, _data["requirements"])
    except PreferencesError as exc:
        return _error_response(exc.error_code, exc.message, 400)

    course = next((c for c in _data["courses"] if c.course_code == course_code), None)
    if course is None:
        return _error_response("NOT_IN_CATALOG", f"Course '{course_code}' is not in the catalog.", 404)

    payload = score_breakdown(course, prefs)
    payload["mode"] = "score"
    return jsonify(payload)


app.add_url_rule("/api/health", endpoint="api_health", view_func=health_endpoint, methods=["GET"])
app.add_url_rule("/api/courses", endpoint="api_courses", view_func=get_courses, methods=["GET"])
app.add_url_rule("/api/majors", endpoint="api_majors", view_func=get_majors, methods=["GET"])
app.add_url_rule("/api/plan", endpoint="api_plan", view_func=plan_endpoint, methods=["POST"])
app.add_url_rule("/api/score", endpoint="api_score", view_func=score_endpoint, methods=["POST"])


# -- API catch-all (404 for unknown /api/* routes) -------------------
@app.route("/api/<path:rest>", methods=["GET", "POST", "PUT", "DELETE", "PATCH"])
def api_catch_all(rest):
    return jsonify({"error": f"/api/{rest} not found"}), 404


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    debug = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(host="0.0.0.0", port=port, debug=debug)
