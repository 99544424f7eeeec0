from flask import Blueprint, request, jsonify

from models import db
from security.rbac import require_reviewer
from services.checks import approve_check, create_check, reject_check
from services.confirmation import CAPACITY_EXCEEDED
from services.errors import CheckNotFound, CheckNotPending, InvalidReference

checks_bp = Blueprint("checks", __name__, url_prefix="/checks")


@checks_bp.post("")
def submit_check():
    data = request.get_json(silent=True) or {}
    try:
        check = create_check(db.session, data)
    except InvalidReference as exc:
        return jsonify(error=str(exc)), 400
    return jsonify(check.to_dict()), 201


@checks_bp.post("/<int:check_id>/approve")
@require_reviewer
def approve(check_id: int):
    data = request.get_json(silent=True) or {}
    reviewer_id = (str(data.get("reviewer_id") or "")).strip() or None
    try:
        result = approve_check(db.session, check_id, reviewer_id=reviewer_id)
    except CheckNotFound:
        return jsonify(error="Check not found"), 404
    except CheckNotPending:
        return jsonify(error="Check is not pending"), 400
    except InvalidReference as exc:
        return jsonify(error=str(exc)), 400

    if not result.accepted:
        if result.reason == CAPACITY_EXCEEDED:
            return jsonify(error=CAPACITY_EXCEEDED, message="No availability for that slot"), 409
        return jsonify(error=result.reason), 400
    return jsonify(ok=True, booking_id=result.booking_id), 200


@checks_bp.post("/<int:check_id>/reject")
@require_reviewer
def reject(check_id: int):
    data = request.get_json(silent=True) or {}
    reviewer_id = (str(data.get("reviewer_id") or "")).strip() or None
    try:
        reject_check(db.session, check_id, reviewer_id=reviewer_id, reason=data.get("reason"))
    except CheckNotFound:
        return jsonify(error="Check not found"), 404
    except CheckNotPending:
        return jsonify(error="Check is not pending"), 400
    return jsonify(ok=True), 200
