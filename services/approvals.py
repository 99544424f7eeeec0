"""
Payment event source.

Webhook notifications and reviewer approvals both end up as an
``ApprovalEvent``; only approved events reach the booking engine.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from models.booking import Booking
from models.facility import Facility
from models.reconciliation import ReconciliationItem
from services.confirmation import confirm
from services.errors import InvalidReference
from services.notifications import notify_booking_confirmed
from services.payment_gateway import APPROVED
from services.settlement import SettlementAmounts, record_settlement, to_amount
from services.slots import SlotKey, parse_reference
from services.transactions import run_in_transaction
from utils.audit import log_event

logger = logging.getLogger(__name__)

MANUAL_PREFIX = "manual_"


@dataclass(frozen=True)
class ApprovalEvent:
    approval_id: str
    slot: Optional[SlotKey]
    outcome: str
    amount: int = 0
    amounts: SettlementAmounts = field(default_factory=SettlementAmounts)
    payer: dict = field(default_factory=dict)
    requester_id: Optional[str] = None
    channel: str = "checkout"
    approved_at: Optional[str] = None
    actor: Optional[str] = None
    metadata: dict = field(default_factory=dict)

    @property
    def approved(self) -> bool:
        return self.outcome == APPROVED

    @classmethod
    def from_payment_record(cls, record):
        metadata = dict(record.metadata or {})
        return cls(
            approval_id=str(record.id),
            slot=parse_reference(record.reference),
            outcome=record.status,
            amount=record.amount,
            amounts=SettlementAmounts.from_metadata(metadata, record.amount, status=record.status),
            payer={
                "name": metadata.get("payer_name") or None,
                "email": metadata.get("payer_email") or None,
                "phone": metadata.get("payer_phone") or None,
            },
            requester_id=metadata.get("requester_id") or None,
            channel="checkout",
            approved_at=record.approved_at,
            metadata=metadata,
        )

    @classmethod
    def from_manual_payment(cls, check, reviewer_id=None):
        amount = to_amount(check.amount)
        if not check.user_id or not check.facility_id or not check.date or not check.time or amount <= 0:
            raise InvalidReference(f"manual payment {check.id} is incomplete")
        slot = SlotKey.from_parts(check.facility_id, check.date, check.resource_type, check.time)
        return cls(
            approval_id=f"{MANUAL_PREFIX}{check.id}",
            slot=slot,
            outcome=APPROVED,
            amount=amount,
            amounts=SettlementAmounts(
                total_charged=amount,
                commission=0,
                base_fraction=amount,
                pay_full=False,
                deposit_pct=None,
                manual=True,
            ),
            payer={"name": check.full_name, "email": check.email, "phone": check.phone},
            requester_id=check.user_id,
            channel="check",
            approved_at=datetime.utcnow().isoformat(),
            actor=reviewer_id,
            metadata={"base_price": amount, "manual_amount": amount},
        )


def after_confirmation(session, event, result):
    """Settlement, audit and notifications for an accepted confirmation.

    Settlement runs on replays too: it is idempotent and a replay is how a
    crash between the booking commit and the ledger commit gets healed.
    """
    slot = event.slot
    recorded = record_settlement(session, slot.facility_id, slot.date, event.approval_id, event.amounts)
    if recorded:
        log_event("SETTLEMENT_RECORDED", actor=event.actor, entity="settlement",
                  entity_id=f"{slot.facility_id}/{slot.date}",
                  metadata={"payment_id": event.approval_id, "total": event.amounts.total_charged},
                  session=session)
    if result.replayed:
        return

    log_event("BOOKING_CONFIRMED", actor=event.actor, entity="booking", entity_id=result.booking_id,
              metadata={"payment_id": event.approval_id, "channel": event.channel}, session=session)
    facility = session.get(Facility, slot.facility_id)
    booking = session.get(Booking, result.booking_id)
    notify_booking_confirmed(facility, booking, event)


def open_reconciliation(session, event, reason):
    """Durable record of money taken for a slot that could not be confirmed."""
    slot = event.slot

    def unit(tx):
        existing = tx.query(ReconciliationItem).filter_by(payment_id=event.approval_id).first()
        if existing is not None:
            return existing, False
        item = ReconciliationItem(
            payment_id=event.approval_id,
            facility_id=slot.facility_id,
            date=slot.date,
            resource_type=slot.resource_type.key,
            time=slot.time,
            amount=event.amounts.total_charged,
            reason=reason,
        )
        tx.add(item)
        tx.flush()
        return item, True

    item, created = run_in_transaction(session, unit)
    if created:
        logger.warning(
            "reconciliation.opened payment=%s slot=%s amount=%s reason=%s",
            event.approval_id, slot, event.amounts.total_charged, reason,
        )
        log_event("RECONCILIATION_OPENED", entity="reconciliation", entity_id=item.id,
                  metadata={"payment_id": event.approval_id, "reason": reason}, session=session)
    return item


def process_payment_notification(session, gateway, payment_id):
    """Fetch the authoritative payment and confirm its booking when it is approved."""
    record = gateway.fetch_payment(payment_id)
    logger.info(
        "payment.fetched id=%s status=%s reference=%s amount=%s",
        record.id, record.status, record.reference, record.amount,
    )
    if record.status != APPROVED:
        logger.info("payment.ignored id=%s status=%s", record.id, record.status)
        return None

    event = ApprovalEvent.from_payment_record(record)
    result = confirm(session, event)
    if not result.accepted:
        # payment already captured, so it goes to reconciliation
        open_reconciliation(session, event, result.reason)
        return result

    after_confirmation(session, event, result)
    return result


def extract_notification(args, body):
    """(kind, payment id) from whichever query/body shape the processor used."""
    args = args or {}
    body = body if isinstance(body, dict) else {}
    data = body.get("data") if isinstance(body.get("data"), dict) else {}
    obj = data.get("object") if isinstance(data.get("object"), dict) else {}

    kind = args.get("type") or args.get("topic") or body.get("type") or body.get("topic")
    payment_id = args.get("data.id") or args.get("id") or data.get("id") or obj.get("id")
    if not payment_id and not data and not body.get("type"):
        payment_id = body.get("id")
    return (str(kind).strip().lower() if kind else None), (str(payment_id) if payment_id else None)


def is_payment_notification(kind) -> bool:
    if not kind:
        return False
    return kind == "payment" or kind.startswith("payment.") or kind.startswith("checkout.session.")
