import json
from datetime import datetime
from models.db import db

PROVISIONAL = "PROVISIONAL"
CONFIRMED = "CONFIRMED"
REJECTED = "REJECTED"

class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)

    facility_id = db.Column(db.String(64), nullable=False, index=True)
    date = db.Column(db.String(10), nullable=False)            # YYYY-MM-DD
    resource_type = db.Column(db.String(40), nullable=False)   # canonical key, see services.slots
    time = db.Column(db.String(5), nullable=False)             # HH:MM

    requester_id = db.Column(db.String(128), nullable=True, index=True)
    status = db.Column(db.String(20), nullable=False, default=PROVISIONAL)
    # status values: PROVISIONAL, CONFIRMED, REJECTED
    channel = db.Column(db.String(20), nullable=False, default="checkout")
    # channel values: checkout, check, walk_in

    # Approval id of the payment that confirmed this booking (idempotency marker)
    payment_id = db.Column(db.String(128), nullable=True, unique=True)
    payment_json = db.Column(db.Text, nullable=True)

    full_name = db.Column(db.String(120), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(30), nullable=True)
    reject_reason = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.Index("ix_bookings_slot_status", "facility_id", "date", "resource_type", "time", "status"),
    )

    @property
    def payment(self):
        return json.loads(self.payment_json) if self.payment_json else None

    @payment.setter
    def payment(self, value):
        self.payment_json = json.dumps(value) if value is not None else None

    def to_dict(self):
        return {
            "id": self.id,
            "facility_id": self.facility_id,
            "date": self.date,
            "resource_type": self.resource_type,
            "time": self.time,
            "requester_id": self.requester_id,
            "status": self.status,
            "channel": self.channel,
            "payment": self.payment,
            "full_name": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
