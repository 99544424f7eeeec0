from datetime import datetime
from models.db import db

class SettlementLineItem(db.Model):
    __tablename__ = "settlement_line_items"

    id = db.Column(db.Integer, primary_key=True)
    facility_id = db.Column(db.String(64), nullable=False)
    date = db.Column(db.String(10), nullable=False)
    payment_id = db.Column(db.String(128), nullable=False)

    status = db.Column(db.String(20), nullable=True)
    total_charged = db.Column(db.Integer, nullable=False, default=0)
    commission = db.Column(db.Integer, nullable=False, default=0)
    base_fraction = db.Column(db.Integer, nullable=False, default=0)
    pay_full = db.Column(db.Boolean, nullable=False, default=False)
    deposit_pct = db.Column(db.Integer, nullable=True)
    manual = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        # Existence of the row means the payment was already counted
        db.UniqueConstraint("facility_id", "date", "payment_id", name="uq_settlement_payment_once"),
    )

    def to_dict(self):
        return {
            "payment_id": self.payment_id,
            "status": self.status,
            "total_charged": self.total_charged,
            "commission": self.commission,
            "base_fraction": self.base_fraction,
            "pay_full": self.pay_full,
            "deposit_pct": self.deposit_pct,
            "manual": self.manual,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class DailySettlement(db.Model):
    __tablename__ = "daily_settlements"

    facility_id = db.Column(db.String(64), primary_key=True)
    date = db.Column(db.String(10), primary_key=True)

    count_total = db.Column(db.Integer, nullable=False, default=0)
    count_full = db.Column(db.Integer, nullable=False, default=0)
    count_deposit = db.Column(db.Integer, nullable=False, default=0)
    sum_total_charged = db.Column(db.Integer, nullable=False, default=0)
    sum_commission = db.Column(db.Integer, nullable=False, default=0)
    sum_base_fraction = db.Column(db.Integer, nullable=False, default=0)
    sum_net_to_facility = db.Column(db.Integer, nullable=False, default=0)

    paid_out = db.Column(db.Boolean, nullable=False, default=False)
    paid_out_at = db.Column(db.DateTime, nullable=True)
    paid_out_by = db.Column(db.String(128), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "facility_id": self.facility_id,
            "date": self.date,
            "count_total": self.count_total,
            "count_full": self.count_full,
            "count_deposit": self.count_deposit,
            "sum_total_charged": self.sum_total_charged,
            "sum_commission": self.sum_commission,
            "sum_base_fraction": self.sum_base_fraction,
            "sum_net_to_facility": self.sum_net_to_facility,
            "paid_out": self.paid_out,
            "paid_out_at": self.paid_out_at.isoformat() if self.paid_out_at else None,
        }
