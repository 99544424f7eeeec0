"""Stripe Checkout wrapper: create the checkout for a slot and read back the truth."""
import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

import stripe

from services.errors import PaymentGatewayError
from services.settlement import to_amount, to_flag

logger = logging.getLogger(__name__)

APPROVED = "approved"
REJECTED = "rejected"
PENDING = "pending"


@dataclass(frozen=True)
class Quote:
    pct_applied: int
    base_fraction_amount: int
    commission_fixed: int
    charged_amount: int


def quote_charge(base_amount, pay_full=False, deposit_pct=None, commission=0, default_pct=30) -> Quote:
    base = to_amount(base_amount)
    pct = to_amount(deposit_pct) or default_pct
    pct = min(max(pct, 1), 100)
    applied = 100 if to_flag(pay_full) else pct
    fraction = (Decimal(base) * applied / 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    commission = to_amount(commission)
    return Quote(
        pct_applied=applied,
        base_fraction_amount=int(fraction),
        commission_fixed=commission,
        charged_amount=int(fraction) + commission,
    )


@dataclass(frozen=True)
class PaymentRecord:
    id: str
    status: str
    amount: int
    reference: Optional[str]
    metadata: dict = field(default_factory=dict)
    approved_at: Optional[str] = None


def _plain(obj) -> dict:
    if obj is None:
        return {}
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if isinstance(obj, dict):
        return dict(obj)
    return dict(vars(obj))


def _status_of(session) -> str:
    if getattr(session, "payment_status", None) in ("paid", "no_payment_required"):
        return APPROVED
    if getattr(session, "status", None) == "expired":
        return REJECTED
    return PENDING


class PaymentGateway:
    def __init__(self, api_key, currency="ars", success_url=None, cancel_url=None):
        self.api_key = api_key
        self.currency = currency
        self.success_url = success_url
        self.cancel_url = cancel_url

    @classmethod
    def from_config(cls, config):
        public_url = (config.get("PUBLIC_URL") or "").rstrip("/")
        return cls(
            api_key=config.get("STRIPE_SECRET_KEY"),
            currency=config.get("PAYMENT_CURRENCY", "ars"),
            success_url=config.get("PAYMENT_SUCCESS_URL") or f"{public_url}/pay/success",
            cancel_url=config.get("PAYMENT_FAILURE_URL") or f"{public_url}/pay/failure",
        )

    def _require_key(self):
        if not self.api_key:
            raise PaymentGatewayError("Payment processor key missing (STRIPE_SECRET_KEY)")

    def create_checkout(self, title, quantity, quote: Quote, reference=None, payer=None, metadata=None):
        self._require_key()
        payer = payer or {}
        # Stripe metadata only carries strings
        meta = {k: "" if v is None else str(v) for k, v in (metadata or {}).items()}
        if reference:
            meta["external_reference"] = reference

        params = dict(
            mode="payment",
            line_items=[{
                "price_data": {
                    "currency": self.currency,
                    "product_data": {"name": title},
                    "unit_amount": quote.charged_amount * 100,
                },
                "quantity": quantity,
            }],
            success_url=self.success_url,
            cancel_url=self.cancel_url,
            metadata=meta,
        )
        if reference:
            params["client_reference_id"] = reference
        if payer.get("email"):
            params["customer_email"] = payer["email"]

        try:
            session = stripe.checkout.Session.create(api_key=self.api_key, **params)
        except stripe.StripeError as exc:
            logger.error("payment.checkout_failed reference=%s error=%s", reference, exc)
            raise PaymentGatewayError("Payment processor rejected the checkout", detail=getattr(exc, "json_body", None) or str(exc))

        return {"id": session.id, "checkout_url": session.url}

    def fetch_payment(self, payment_id) -> PaymentRecord:
        self._require_key()
        try:
            session = stripe.checkout.Session.retrieve(str(payment_id), api_key=self.api_key)
        except stripe.StripeError as exc:
            raise PaymentGatewayError(f"Could not fetch payment {payment_id}", detail=str(exc))

        metadata = _plain(getattr(session, "metadata", None))
        amount_total = getattr(session, "amount_total", None)
        return PaymentRecord(
            id=session.id,
            status=_status_of(session),
            amount=to_amount(amount_total) // 100 if amount_total is not None else 0,
            reference=getattr(session, "client_reference_id", None) or metadata.get("external_reference"),
            metadata=metadata,
        )
