from types import SimpleNamespace

import pytest
import stripe

from app import create_app
from models import db
from models.facility import Facility
from services.approvals import ApprovalEvent
from services.settlement import SettlementAmounts
from services.slots import SlotKey

REVIEWER_KEY = "test-reviewer-key"

BASE_CONFIG = {
    "TESTING": True,
    "STRIPE_SECRET_KEY": "sk_test_dummy",
    "REVIEWER_API_KEY": REVIEWER_KEY,
    "PUBLIC_URL": "https://api.example.test",
    "COMMISSION_FIXED": 1000,
    "DEFAULT_DEPOSIT_PCT": 30,
    "SMTP_HOST": None,
    "TX_RETRY_BACKOFF_SECONDS": 0,
}


@pytest.fixture
def app():
    app = create_app({**BASE_CONFIG, "SQLALCHEMY_DATABASE_URI": "sqlite://"})
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


@pytest.fixture
def session(app):
    return db.session


@pytest.fixture
def reviewer_headers():
    return {"X-Reviewer-Key": REVIEWER_KEY}


@pytest.fixture
def make_facility(session):
    def _make(facility_id="F", capacities=None, admin_emails=None, name=None):
        facility = Facility(id=facility_id, name=name)
        facility.capacities = capacities or {}
        facility.admin_emails = admin_emails or []
        session.add(facility)
        session.commit()
        return facility
    return _make


def approval(approval_id, facility_id="F", date="2024-05-01", resource_type="7", time="18:00",
             outcome="approved", total=4000, pay_full=False, requester_id=None, email=None):
    return ApprovalEvent(
        approval_id=approval_id,
        slot=SlotKey.from_parts(facility_id, date, resource_type, time),
        outcome=outcome,
        amount=total,
        amounts=SettlementAmounts(
            total_charged=total,
            commission=1000,
            base_fraction=total - 1000,
            pay_full=pay_full,
            deposit_pct=None if pay_full else 30,
        ),
        payer={"name": "Ana", "email": email, "phone": None},
        requester_id=requester_id,
    )


@pytest.fixture
def make_event():
    return approval


class FakeCheckout:
    """Stands in for stripe.checkout.Session: remembers created sessions and serves them back."""

    def __init__(self):
        self.sessions = {}
        self.created = []
        self.retrieved = []
        self.create_error = None
        self.retrieve_error = None

    def add(self, session_id, reference, payment_status="paid", status="complete", amount=4000, metadata=None):
        self.sessions[session_id] = SimpleNamespace(
            id=session_id,
            url=f"https://checkout.example.test/{session_id}",
            payment_status=payment_status,
            status=status,
            amount_total=amount * 100,
            client_reference_id=reference,
            metadata=metadata if metadata is not None else {
                "pay_full": "False",
                "deposit_pct": "30",
                "base_price": "10000",
                "base_fraction_amount": str(amount - 1000),
                "commission_fixed": "1000",
                "total": str(amount),
            },
        )
        return self.sessions[session_id]

    def create(self, api_key=None, **params):
        if self.create_error is not None:
            raise self.create_error
        self.created.append(params)
        session_id = f"cs_test_{len(self.created)}"
        return self.add(session_id, params.get("client_reference_id"), payment_status="unpaid", status="open")

    def retrieve(self, session_id, api_key=None):
        self.retrieved.append(session_id)
        if self.retrieve_error is not None:
            raise self.retrieve_error
        if session_id not in self.sessions:
            raise stripe.InvalidRequestError(f"No such checkout.session: {session_id}", "id")
        return self.sessions[session_id]


@pytest.fixture
def fake_checkout(monkeypatch):
    fake = FakeCheckout()
    monkeypatch.setattr(stripe.checkout.Session, "create", fake.create)
    monkeypatch.setattr(stripe.checkout.Session, "retrieve", fake.retrieve)
    return fake
