from datetime import datetime
from models.db import db

OPEN = "OPEN"
RESOLVED = "RESOLVED"

class ReconciliationItem(db.Model):
    """Money captured by the processor that could not be turned into a confirmed booking."""

    __tablename__ = "reconciliation_items"

    id = db.Column(db.Integer, primary_key=True)
    payment_id = db.Column(db.String(128), nullable=False, unique=True)

    facility_id = db.Column(db.String(64), nullable=False, index=True)
    date = db.Column(db.String(10), nullable=False)
    resource_type = db.Column(db.String(40), nullable=False)
    time = db.Column(db.String(5), nullable=False)
    amount = db.Column(db.Integer, nullable=False, default=0)

    reason = db.Column(db.String(40), nullable=False)  # e.g. capacity_exceeded
    status = db.Column(db.String(20), nullable=False, default=OPEN)
    resolution_note = db.Column(db.String(255), nullable=True)
    resolved_by = db.Column(db.String(128), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    resolved_at = db.Column(db.DateTime, nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "payment_id": self.payment_id,
            "facility_id": self.facility_id,
            "date": self.date,
            "resource_type": self.resource_type,
            "time": self.time,
            "amount": self.amount,
            "reason": self.reason,
            "status": self.status,
            "resolution_note": self.resolution_note,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
        }
