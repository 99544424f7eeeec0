import logging

from flask import Blueprint, request, jsonify, current_app

from models import db
from services.approvals import extract_notification, is_payment_notification, process_payment_notification
from services.errors import InvalidReference, PaymentGatewayError
from services.payment_gateway import PaymentGateway

logger = logging.getLogger(__name__)

webhook_bp = Blueprint("webhook", __name__, url_prefix="/webhooks")


@webhook_bp.post("/payments")
def payment_webhook():
    # Acknowledged whatever the outcome; a redelivered payment id is a no-op.
    body = request.get_json(silent=True)
    kind, payment_id = extract_notification(request.args, body)
    logger.info("webhook.received kind=%s payment=%s", kind, payment_id)

    if not is_payment_notification(kind) or not payment_id:
        return jsonify(received=True), 200

    gateway = PaymentGateway.from_config(current_app.config)
    try:
        process_payment_notification(db.session, gateway, payment_id)
    except InvalidReference as exc:
        logger.warning("webhook.discarded payment=%s reason=%s", payment_id, exc)
    except PaymentGatewayError as exc:
        logger.warning("webhook.fetch_failed payment=%s reason=%s", payment_id, exc)
    except Exception:
        db.session.rollback()
        logger.exception("webhook.error payment=%s", payment_id)

    return jsonify(received=True), 200
