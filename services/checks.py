"""Reviewer workflow for payments made outside the processor."""
import logging
from datetime import datetime

from models.manual_payment import ManualPayment, PENDING, APPROVED, REJECTED
from services.approvals import ApprovalEvent, after_confirmation
from services.confirmation import confirm
from services.errors import CheckNotFound, CheckNotPending, InvalidReference
from services.settlement import to_amount
from services.slots import SlotKey
from utils.audit import log_event

logger = logging.getLogger(__name__)


def create_check(session, data) -> ManualPayment:
    slot = SlotKey.from_parts(data.get("facility_id"), data.get("date"), data.get("resource_type"), data.get("time"))
    amount = to_amount(data.get("amount"))
    if amount <= 0:
        raise InvalidReference("amount must be a positive number")
    if not data.get("user_id"):
        raise InvalidReference("user_id required")

    check = ManualPayment(
        facility_id=slot.facility_id,
        facility_name=data.get("facility_name"),
        date=slot.date,
        resource_type=slot.resource_type.key,
        time=slot.time,
        user_id=str(data["user_id"]),
        amount=amount,
        full_name=data.get("full_name"),
        email=data.get("email"),
        phone=data.get("phone"),
        status=PENDING,
    )
    session.add(check)
    session.commit()
    log_event("CHECK_CREATED", actor=check.user_id, entity="manual_payment", entity_id=check.id, session=session)
    return check


def _pending_check(session, check_id) -> ManualPayment:
    check = session.get(ManualPayment, check_id)
    if check is None:
        raise CheckNotFound(f"manual payment {check_id} not found")
    if check.status != PENDING:
        raise CheckNotPending(f"manual payment {check_id} is {check.status}")
    return check


def approve_check(session, check_id, reviewer_id=None):
    """Confirm the booking behind a manual payment. The check stays pending on a capacity conflict."""
    check = _pending_check(session, check_id)
    event = ApprovalEvent.from_manual_payment(check, reviewer_id=reviewer_id)

    result = confirm(session, event)
    if not result.accepted:
        logger.warning("check.capacity_exceeded check_id=%s slot=%s", check_id, event.slot)
        log_event("BOOKING_CAPACITY_EXCEEDED", actor=reviewer_id, entity="manual_payment", entity_id=check_id,
                  metadata={"slot": str(event.slot)}, session=session)
        return result

    check = session.get(ManualPayment, check_id)
    check.status = APPROVED
    check.booking_id = result.booking_id
    check.reviewed_by = reviewer_id or "reviewer"
    check.reviewed_at = datetime.utcnow()
    session.commit()
    log_event("CHECK_APPROVED", actor=reviewer_id, entity="manual_payment", entity_id=check_id,
              metadata={"booking_id": result.booking_id}, session=session)

    after_confirmation(session, event, result)
    return result


def reject_check(session, check_id, reviewer_id=None, reason=None) -> ManualPayment:
    check = _pending_check(session, check_id)
    check.status = REJECTED
    check.reason = (reason or "").strip() or "Rejected"
    check.reviewed_by = reviewer_id or "reviewer"
    check.reviewed_at = datetime.utcnow()
    session.commit()
    log_event("CHECK_REJECTED", actor=reviewer_id, entity="manual_payment", entity_id=check_id,
              metadata={"reason": check.reason}, session=session)
    return check
