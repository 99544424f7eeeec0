from datetime import datetime

from flask import Blueprint, request, jsonify

from models import db
from models.reconciliation import ReconciliationItem, OPEN, RESOLVED
from security.rbac import require_reviewer
from services.settlement import day_summary, mark_paid_out
from utils.audit import log_event

settlements_bp = Blueprint("settlements", __name__)


@settlements_bp.get("/settlements/<facility_id>/<date>")
@require_reviewer
def get_settlement(facility_id: str, date: str):
    summary = day_summary(db.session, facility_id, date)
    if summary is None:
        return jsonify(error="Nothing settled for that day"), 404
    return jsonify(summary), 200


@settlements_bp.post("/settlements/<facility_id>/<date>/mark-paid")
@require_reviewer
def mark_settlement_paid(facility_id: str, date: str):
    data = request.get_json(silent=True) or {}
    reviewer_id = data.get("reviewer_id")
    day = mark_paid_out(db.session, facility_id, date, reviewer_id=reviewer_id)
    if day is None:
        return jsonify(error="Nothing settled for that day"), 404

    log_event("SETTLEMENT_PAID_OUT", actor=reviewer_id, entity="settlement", entity_id=f"{facility_id}/{date}")
    return jsonify(day.to_dict()), 200


@settlements_bp.get("/reconciliation")
@require_reviewer
def list_reconciliation():
    status = (request.args.get("status") or OPEN).strip().upper()
    q = ReconciliationItem.query
    if status != "ALL":
        q = q.filter_by(status=status)
    rows = q.order_by(ReconciliationItem.created_at.desc()).limit(200).all()
    return jsonify([r.to_dict() for r in rows]), 200


@settlements_bp.post("/reconciliation/<int:item_id>/resolve")
@require_reviewer
def resolve_reconciliation(item_id: int):
    data = request.get_json(silent=True) or {}
    note = (data.get("note") or "").strip() or None

    item = db.session.get(ReconciliationItem, item_id)
    if not item:
        return jsonify(error="Item not found"), 404
    if item.status != OPEN:
        return jsonify(error="Item already resolved"), 400

    item.status = RESOLVED
    item.resolution_note = note
    item.resolved_by = data.get("reviewer_id")
    item.resolved_at = datetime.utcnow()
    db.session.commit()

    log_event("RECONCILIATION_RESOLVED", actor=data.get("reviewer_id"), entity="reconciliation",
              entity_id=item.id, metadata={"note": note})
    return jsonify(item.to_dict()), 200
