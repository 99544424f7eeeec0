"""Best-effort fan-out once a booking is confirmed. Nothing here may fail the confirmation."""
import logging

from utils.emailer import send_email

logger = logging.getLogger(__name__)


def recipients_for(facility, booking):
    candidates = list(facility.admin_emails) if facility is not None else []
    if booking is not None and booking.email:
        candidates.append(booking.email)

    recipients, seen = [], set()
    for address in candidates:
        if address and address.lower() not in seen:
            seen.add(address.lower())
            recipients.append(address)
    return recipients


def notify_booking_confirmed(facility, booking, event) -> int:
    """Email every recipient; returns how many deliveries succeeded."""
    recipients = recipients_for(facility, booking)
    if not recipients:
        return 0

    place = (facility.name if facility is not None and facility.name else None) or booking.facility_id
    subject = f"Booking confirmed: {place} {booking.date} {booking.time}"
    body = (
        f"Booking #{booking.id} is confirmed.\n"
        f"Facility: {place}\n"
        f"Date: {booking.date}  Time: {booking.time}  Type: {booking.resource_type}\n"
        f"Payment: {event.approval_id} ({event.amounts.total_charged})\n"
    )

    delivered = 0
    for to_email in recipients:
        try:
            ok, error = send_email(to_email, subject, body)
        except Exception:
            logger.exception("notify.failed booking_id=%s to=%s", booking.id, to_email)
            continue
        if ok:
            delivered += 1
        else:
            logger.warning("notify.undelivered booking_id=%s to=%s error=%s", booking.id, to_email, error)
    return delivered
