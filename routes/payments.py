import logging
from datetime import datetime

from flask import Blueprint, request, jsonify, current_app

from models import db
from models.booking import Booking, PROVISIONAL, REJECTED
from services.errors import InvalidReference, PaymentGatewayError
from services.payment_gateway import PaymentGateway, quote_charge
from services.settlement import to_amount, to_flag
from services.slots import build_reference, parse_reference
from utils.audit import log_event

logger = logging.getLogger(__name__)

payments_bp = Blueprint("payments", __name__, url_prefix="/payments")


def _hold_slot(slot, requester_id, payer):
    """Provisional booking created with the checkout; it does not occupy capacity until confirmed."""
    now = datetime.utcnow()
    booking = Booking(
        facility_id=slot.facility_id,
        date=slot.date,
        resource_type=slot.resource_type.key,
        time=slot.time,
        requester_id=requester_id,
        status=PROVISIONAL,
        channel="checkout",
        full_name=payer.get("name"),
        email=payer.get("email"),
        phone=payer.get("phone"),
        created_at=now,
        updated_at=now,
    )
    db.session.add(booking)
    db.session.commit()
    return booking


@payments_bp.post("/intent")
def create_intent():
    data = request.get_json(silent=True) or {}
    payer = data.get("payer") if isinstance(data.get("payer"), dict) else {}
    title = (str(data.get("title") or "")).strip() or "Booking"
    quantity = to_amount(data.get("quantity"), 1) or 1
    unit_price = to_amount(data.get("unit_price"))
    if quantity < 0 or unit_price < 0:
        return jsonify(error="unit_price and quantity must not be negative"), 400
    reference = (str(data.get("external_reference") or "")).strip() or None
    requester_id = (str(data.get("requester_id") or "")).strip() or None
    pay_full = to_flag(data.get("pay_full"))

    quote = quote_charge(
        unit_price,
        pay_full=pay_full,
        deposit_pct=data.get("deposit_pct"),
        commission=current_app.config.get("COMMISSION_FIXED", 0),
        default_pct=current_app.config.get("DEFAULT_DEPOSIT_PCT", 30),
    )

    slot = None
    if reference:
        try:
            slot = parse_reference(reference)
            reference = build_reference(slot)
        except InvalidReference:
            logger.warning("payment.unparsed_reference reference=%s", reference)

    booking = _hold_slot(slot, requester_id, payer) if slot and requester_id else None

    metadata = {
        "pay_full": pay_full,
        "deposit_pct": None if pay_full else quote.pct_applied,
        "base_price": unit_price,
        "base_fraction_amount": quote.base_fraction_amount,
        "commission_fixed": quote.commission_fixed,
        "total": quote.charged_amount,
        "requester_id": requester_id,
        "payer_name": payer.get("name"),
        "payer_email": payer.get("email"),
        "payer_phone": payer.get("phone"),
    }

    gateway = PaymentGateway.from_config(current_app.config)
    try:
        checkout = gateway.create_checkout(title, quantity, quote, reference=reference, payer=payer, metadata=metadata)
    except PaymentGatewayError as exc:
        if booking is not None:
            booking.status = REJECTED
            booking.reject_reason = "checkout_failed"
            db.session.commit()
        return jsonify(error=str(exc), detail=exc.detail), 502

    log_event("PAYMENT_INTENT_CREATED", actor=requester_id, entity="payment", entity_id=checkout["id"],
              metadata={"reference": reference, "charged_amount": quote.charged_amount})
    logger.info("payment.intent_created id=%s reference=%s charged=%s", checkout["id"], reference, quote.charged_amount)

    return jsonify(
        id=checkout["id"],
        checkout_url=checkout["checkout_url"],
        pct_applied=quote.pct_applied,
        charged_amount=quote.charged_amount,
        base_fraction_amount=quote.base_fraction_amount,
        commission_fixed=quote.commission_fixed,
        booking_id=booking.id if booking else None,
    ), 200
