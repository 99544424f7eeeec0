import smtplib
from email.message import EmailMessage
from email.utils import formataddr

from flask import current_app


def _sender(config):
    address = config.get("SMTP_FROM_EMAIL") or config.get("SMTP_USERNAME")
    if not address:
        return None
    name = config.get("SMTP_FROM_NAME")
    return formataddr((name, address)) if name else address


def build_message(sender: str, to_email: str, subject: str, body: str) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body)
    return msg


def send_email(to_email: str, subject: str, body: str):
    """Returns (delivered, error). Never raises for SMTP or socket failures."""
    config = current_app.config
    host = config.get("SMTP_HOST")
    sender = _sender(config)

    if not host or not sender:
        return False, "Email not configured"
    if not to_email:
        return False, "No recipient"

    msg = build_message(sender, to_email, subject, body)
    username = config.get("SMTP_USERNAME")
    password = config.get("SMTP_PASSWORD")

    try:
        with smtplib.SMTP(host, config.get("SMTP_PORT", 587), timeout=config.get("SMTP_TIMEOUT", 10)) as server:
            if config.get("SMTP_USE_TLS", True):
                server.starttls()
            if username and password:
                server.login(username, password)
            server.send_message(msg)
        return True, None
    except (smtplib.SMTPException, OSError) as exc:
        return False, str(exc)
