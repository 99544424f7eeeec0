"""Booking transition engine: approval event -> exactly one confirmed booking."""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from models.booking import Booking, CONFIRMED, PROVISIONAL
from models.facility import Facility
from services.capacity import capacity_for, confirmed_count, slot_filter
from services.errors import CapacityExceeded, InvalidReference
from services.transactions import run_in_transaction

logger = logging.getLogger(__name__)

CAPACITY_EXCEEDED = "capacity_exceeded"
NOT_APPROVED = "not_approved"


@dataclass(frozen=True)
class ConfirmationResult:
    accepted: bool
    booking_id: Optional[int] = None
    reason: Optional[str] = None
    replayed: bool = False


def describe_payment(event) -> dict:
    amounts = event.amounts
    return {
        "payment_id": event.approval_id,
        "status": event.outcome,
        "date_approved": event.approved_at or datetime.utcnow().isoformat(),
        "amount": event.amount,
        "amount_base": event.metadata.get("base_price"),
        "amount_base_fraction": amounts.base_fraction,
        "commission": amounts.commission,
        "amount_total": amounts.total_charged,
        "pay_full": amounts.pay_full,
        "deposit_pct": amounts.deposit_pct,
        "manual": amounts.manual,
    }


def _find_provisional(session, slot, requester_id):
    query = slot_filter(session.query(Booking), slot).filter(Booking.status == PROVISIONAL)
    if requester_id:
        own = query.filter(Booking.requester_id == requester_id).order_by(Booking.id.asc()).first()
        if own is not None:
            return own
    return query.order_by(Booking.id.asc()).first()


def confirm(session, event) -> ConfirmationResult:
    """
    Confirm the booking for ``event`` in a single unit of work.

    A booking already carrying the event's approval id makes the call a no-op
    that returns that booking. Otherwise the slot's capacity and confirmed
    occupancy are read inside the unit; a full slot aborts it and yields
    ``accepted=False``. The write confirms a provisional booking for the slot
    when one exists, or creates a confirmed one.
    """
    if not event.approved:
        return ConfirmationResult(accepted=False, reason=NOT_APPROVED)

    slot = event.slot
    if slot is None:
        raise InvalidReference(f"approval {event.approval_id} has no slot")

    def unit(tx):
        existing = tx.query(Booking).filter(Booking.payment_id == event.approval_id).first()
        if existing is not None:
            return ConfirmationResult(accepted=True, booking_id=existing.id, replayed=True)

        # Row lock serializes confirms per facility on databases that support it
        facility = tx.get(Facility, slot.facility_id, with_for_update=True)
        capacity = capacity_for(tx, slot.facility_id, slot.resource_type, facility=facility)
        occupied = confirmed_count(tx, slot)
        if occupied >= capacity:
            raise CapacityExceeded(slot, capacity, occupied)

        now = datetime.utcnow()
        booking = _find_provisional(tx, slot, event.requester_id)
        if booking is None:
            booking = Booking(
                facility_id=slot.facility_id,
                date=slot.date,
                resource_type=slot.resource_type.key,
                time=slot.time,
                requester_id=event.requester_id,
                channel=event.channel,
                created_at=now,
            )
            tx.add(booking)
        elif event.requester_id:
            # the hold may belong to someone else; the payer now owns the slot
            booking.requester_id = event.requester_id
            booking.channel = event.channel

        booking.status = CONFIRMED
        booking.payment_id = event.approval_id
        booking.payment = describe_payment(event)
        booking.full_name = event.payer.get("name") or booking.full_name
        booking.email = event.payer.get("email") or booking.email
        booking.phone = event.payer.get("phone") or booking.phone
        booking.updated_at = now
        tx.flush()
        return ConfirmationResult(accepted=True, booking_id=booking.id)

    try:
        result = run_in_transaction(session, unit)
    except CapacityExceeded as exc:
        logger.warning(
            "booking.capacity_exceeded approval=%s slot=%s capacity=%s occupied=%s",
            event.approval_id, slot, exc.capacity, exc.occupied,
        )
        return ConfirmationResult(accepted=False, reason=CAPACITY_EXCEEDED)

    if result.replayed:
        logger.info("booking.confirm_replayed approval=%s booking_id=%s", event.approval_id, result.booking_id)
    else:
        logger.info("booking.confirmed approval=%s slot=%s booking_id=%s", event.approval_id, slot, result.booking_id)
    return result
