import json
from datetime import datetime
from models.db import db

class Facility(db.Model):
    __tablename__ = "facilities"

    id = db.Column(db.String(64), primary_key=True)  # opaque id shared with the app
    name = db.Column(db.String(120), nullable=True)

    # {"5": 2, "7": 1, "padel": 3} -> concurrent bookings allowed per resource type
    capacities_json = db.Column(db.Text, nullable=False, default="{}")
    admin_emails_json = db.Column(db.Text, nullable=False, default="[]")

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    @property
    def capacities(self):
        return json.loads(self.capacities_json or "{}")

    @capacities.setter
    def capacities(self, value):
        self.capacities_json = json.dumps(value or {})

    @property
    def admin_emails(self):
        return json.loads(self.admin_emails_json or "[]")

    @admin_emails.setter
    def admin_emails(self, value):
        self.admin_emails_json = json.dumps(list(value or []))
