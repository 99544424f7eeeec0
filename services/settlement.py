"""Per-facility, per-day settlement ledger.

Each payment leaves one immutable line item; its existence is what makes a
replay a no-op. The day row only ever moves forward through SQL increments.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import update

from models.settlement import DailySettlement, SettlementLineItem
from services.transactions import run_in_transaction

logger = logging.getLogger(__name__)

COUNTERS = (
    "count_total",
    "count_full",
    "count_deposit",
    "sum_total_charged",
    "sum_commission",
    "sum_base_fraction",
    "sum_net_to_facility",
)


def to_amount(value, default=0) -> int:
    """Whole currency units from anything a client or the processor sends; junk -> default."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return default


def to_flag(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


@dataclass(frozen=True)
class SettlementAmounts:
    total_charged: int = 0
    commission: int = 0
    base_fraction: int = 0
    pay_full: bool = False
    deposit_pct: Optional[int] = None
    manual: bool = False
    status: str = "approved"

    @property
    def net_to_facility(self) -> int:
        return self.base_fraction

    @classmethod
    def from_metadata(cls, metadata, transaction_amount=None, status="approved"):
        metadata = metadata or {}
        pay_full = to_flag(metadata.get("pay_full"))
        base_fraction = to_amount(metadata.get("base_fraction_amount"), None)
        if base_fraction is None:
            base_fraction = to_amount(metadata.get("manual_amount"))
        total = to_amount(metadata.get("total"), None)
        if total is None:
            total = to_amount(transaction_amount, base_fraction)
        deposit_pct = None if pay_full else (to_amount(metadata.get("deposit_pct")) or None)
        return cls(
            total_charged=total,
            commission=to_amount(metadata.get("commission_fixed")),
            base_fraction=base_fraction,
            pay_full=pay_full,
            deposit_pct=deposit_pct,
            manual=to_flag(metadata.get("manual")),
            status=status,
        )


def record_settlement(session, facility_id, date, payment_id, amounts: SettlementAmounts) -> bool:
    """Count ``payment_id`` into the facility's day once. Returns False when it was already counted."""
    if not facility_id or not date or not payment_id:
        return False

    def unit(tx):
        seen = (
            tx.query(SettlementLineItem.id)
            .filter_by(facility_id=facility_id, date=date, payment_id=payment_id)
            .first()
        )
        if seen is not None:
            return False

        now = datetime.utcnow()
        tx.add(SettlementLineItem(
            facility_id=facility_id,
            date=date,
            payment_id=payment_id,
            status=amounts.status,
            total_charged=amounts.total_charged,
            commission=amounts.commission,
            base_fraction=amounts.base_fraction,
            pay_full=amounts.pay_full,
            deposit_pct=amounts.deposit_pct,
            manual=amounts.manual,
            created_at=now,
        ))

        if tx.get(DailySettlement, (facility_id, date)) is None:
            tx.add(DailySettlement(
                facility_id=facility_id, date=date, created_at=now, updated_at=now,
                **{name: 0 for name in COUNTERS},
            ))
        tx.flush()

        tx.execute(
            update(DailySettlement)
            .where(DailySettlement.facility_id == facility_id, DailySettlement.date == date)
            .values(
                updated_at=now,
                count_total=DailySettlement.count_total + 1,
                count_full=DailySettlement.count_full + (1 if amounts.pay_full else 0),
                count_deposit=DailySettlement.count_deposit + (0 if amounts.pay_full else 1),
                sum_total_charged=DailySettlement.sum_total_charged + amounts.total_charged,
                sum_commission=DailySettlement.sum_commission + amounts.commission,
                sum_base_fraction=DailySettlement.sum_base_fraction + amounts.base_fraction,
                sum_net_to_facility=DailySettlement.sum_net_to_facility + amounts.net_to_facility,
            )
            .execution_options(synchronize_session=False)
        )
        return True

    written = run_in_transaction(session, unit)
    if written:
        logger.info(
            "settlement.recorded facility=%s date=%s payment=%s total=%s",
            facility_id, date, payment_id, amounts.total_charged,
        )
    else:
        logger.info("settlement.duplicate facility=%s date=%s payment=%s", facility_id, date, payment_id)
    return written


def day_summary(session, facility_id, date):
    day = session.get(DailySettlement, (facility_id, date))
    if day is None:
        return None
    items = (
        session.query(SettlementLineItem)
        .filter_by(facility_id=facility_id, date=date)
        .order_by(SettlementLineItem.id.asc())
        .all()
    )
    return {**day.to_dict(), "payments": [i.to_dict() for i in items]}


def mark_paid_out(session, facility_id, date, reviewer_id=None):
    """Flag a day as paid out to the facility. Returns the day, or None if nothing was settled."""

    def unit(tx):
        day = tx.get(DailySettlement, (facility_id, date))
        if day is None:
            return None
        if not day.paid_out:
            day.paid_out = True
            day.paid_out_at = datetime.utcnow()
            day.paid_out_by = reviewer_id
            day.updated_at = day.paid_out_at
        return day

    return run_in_transaction(session, unit)
