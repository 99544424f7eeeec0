from datetime import datetime
from models.db import db

PENDING = "PENDING"
APPROVED = "APPROVED"
REJECTED = "REJECTED"

class ManualPayment(db.Model):
    """A payment made outside the processor (bank transfer, cash) waiting for a reviewer."""

    __tablename__ = "manual_payments"

    id = db.Column(db.Integer, primary_key=True)

    facility_id = db.Column(db.String(64), nullable=False, index=True)
    facility_name = db.Column(db.String(120), nullable=True)
    date = db.Column(db.String(10), nullable=True)
    resource_type = db.Column(db.String(40), nullable=True)
    time = db.Column(db.String(5), nullable=True)

    user_id = db.Column(db.String(128), nullable=True)
    amount = db.Column(db.Integer, nullable=False, default=0)
    full_name = db.Column(db.String(120), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(30), nullable=True)

    status = db.Column(db.String(20), nullable=False, default=PENDING)
    reason = db.Column(db.String(255), nullable=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=True)

    reviewed_by = db.Column(db.String(128), nullable=True)
    reviewed_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "facility_id": self.facility_id,
            "date": self.date,
            "resource_type": self.resource_type,
            "time": self.time,
            "user_id": self.user_id,
            "amount": self.amount,
            "status": self.status,
            "reason": self.reason,
            "booking_id": self.booking_id,
            "reviewed_by": self.reviewed_by,
            "reviewed_at": self.reviewed_at.isoformat() if self.reviewed_at else None,
        }
