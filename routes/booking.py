from datetime import datetime
from html import escape

from flask import Blueprint, request, jsonify

from models import db
from models.booking import Booking, CONFIRMED, PROVISIONAL, REJECTED
from models.facility import Facility
from security.rbac import require_reviewer
from services.capacity import slot_filter
from services.errors import InvalidReference
from services.slots import ResourceType, parse_reference
from utils.audit import log_event

booking_bp = Blueprint("booking", __name__)


def _confirmed_by_reference(reference):
    try:
        slot = parse_reference(reference)
    except InvalidReference:
        return None
    return (
        slot_filter(Booking.query, slot)
        .filter(Booking.status == CONFIRMED)
        .order_by(Booking.id.asc())
        .first()
    )


# ---------- APP: look up the confirmed booking behind a checkout reference ----------
@booking_bp.get("/bookings/by-ref")
def booking_by_reference():
    reference = request.args.get("external_reference")
    if not reference:
        return jsonify(error="external_reference required"), 400

    booking = _confirmed_by_reference(reference)
    if not booking:
        return jsonify(error="Booking not found or not confirmed"), 404
    return jsonify(booking.to_dict()), 200


# ---------- REVIEWER: release a provisional hold ----------
@booking_bp.post("/bookings/<int:booking_id>/reject")
@require_reviewer
def reject_booking(booking_id: int):
    data = request.get_json(silent=True) or {}
    reason = (data.get("reason") or "").strip() or "Released by reviewer"

    booking = db.session.get(Booking, booking_id)
    if not booking:
        return jsonify(error="Booking not found"), 404
    if booking.status != PROVISIONAL:
        return jsonify(error="Only provisional bookings can be rejected"), 400

    booking.status = REJECTED
    booking.reject_reason = reason
    booking.updated_at = datetime.utcnow()
    db.session.commit()

    log_event("BOOKING_REJECTED", actor=data.get("reviewer_id"), entity="booking", entity_id=booking.id,
              metadata={"reason": reason})
    return jsonify(message="Rejected"), 200


# ---------- receipts ----------
def _court_label(resource_type):
    try:
        return ResourceType.parse(resource_type).label
    except InvalidReference:
        return resource_type or "-"


def _render_receipt(booking, facility):
    pay = booking.payment or {}
    place = (facility.name if facility and facility.name else None) or booking.facility_id

    rows = [
        ("Status", booking.status),
        ("Date", booking.date),
        ("Time", booking.time),
        ("Court type", _court_label(booking.resource_type)),
        ("Name", booking.full_name or "-"),
    ]
    if booking.phone:
        rows.append(("Phone", booking.phone))
    if booking.email:
        rows.append(("Email", booking.email))
    rows.append(("Payment status", pay.get("status") or "-"))
    total = pay.get("amount_total") if pay.get("amount_total") is not None else pay.get("amount")
    rows.append(("Total paid", f"${total}" if total is not None else "-"))
    if pay.get("amount_base_fraction") is not None:
        rows.append(("Booking amount", f"${pay['amount_base_fraction']}"))
    if pay.get("commission") is not None:
        rows.append(("Service fee", f"${pay['commission']}"))
    if pay.get("payment_id"):
        rows.append(("Payment ID", pay["payment_id"]))
    if pay.get("manual"):
        rows.append(("Manual payment verified", "Yes"))

    body = "\n".join(
        f"      <tr><th style=\"text-align:left\">{escape(str(k))}</th><td>{escape(str(v))}</td></tr>"
        for k, v in rows
    )
    return f"""<!doctype html>
<html>
  <head><title>Booking receipt #{booking.id}</title></head>
  <body style="font-family: system-ui; max-width: 720px; margin: 40px auto;">
    <h1>Booking receipt</h1>
    <p>Facility: {escape(str(place))}<br/>Booking ID: {booking.id}<br/>Issued: {datetime.utcnow().strftime("%Y-%m-%d %H:%M")} UTC</p>
    <table>
{body}
    </table>
    <p style="color: #555; font-size: small;">This receipt certifies the booking was registered as CONFIRMED. Keep it for check-in.</p>
  </body>
</html>
""", 200, {"Content-Type": "text/html; charset=utf-8"}


@booking_bp.get("/receipt/<facility_id>/<int:booking_id>")
def receipt(facility_id: str, booking_id: int):
    booking = db.session.get(Booking, booking_id)
    if not booking or booking.facility_id != facility_id:
        return "Booking not found", 404
    return _render_receipt(booking, db.session.get(Facility, facility_id))


@booking_bp.get("/receipt/by-ref")
def receipt_by_reference():
    reference = request.args.get("external_reference")
    if not reference:
        return "external_reference required", 400
    booking = _confirmed_by_reference(reference)
    if not booking:
        return "Booking not found or not confirmed", 404
    return _render_receipt(booking, db.session.get(Facility, booking.facility_id))
