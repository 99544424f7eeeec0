import hmac
from functools import wraps
from flask import current_app, jsonify, request

REVIEWER_HEADER = "X-Reviewer-Key"

def reviewer_key_valid() -> bool:
    expected = current_app.config.get("REVIEWER_API_KEY")
    supplied = request.headers.get(REVIEWER_HEADER, "")
    return bool(expected) and hmac.compare_digest(supplied.encode(), expected.encode())

def require_reviewer(fn):
    """
    Usage: @require_reviewer
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if not current_app.config.get("REVIEWER_API_KEY"):
            return jsonify(error="Reviewer access not configured"), 503
        if not reviewer_key_valid():
            return jsonify(error="Forbidden"), 403
        return fn(*args, **kwargs)
    return wrapper
