"""Capacity oracle and occupancy counter.

Both take the session explicitly so the booking engine can call them inside
the same unit of work as the write that follows.
"""
from sqlalchemy import func

from models.booking import Booking, CONFIRMED
from models.facility import Facility
from services.slots import normalize_resource_type

DEFAULT_CAPACITY = 1


def capacity_for(session, facility_id, resource_type, facility=None) -> int:
    """Concurrent bookings allowed for ``resource_type`` at a facility (never below 1)."""
    if facility is None:
        facility = session.get(Facility, str(facility_id))
    if facility is None:
        return DEFAULT_CAPACITY

    wanted = normalize_resource_type(resource_type)
    for raw_key, raw_value in facility.capacities.items():
        try:
            key = normalize_resource_type(raw_key)
        except ValueError:
            continue
        if key != wanted:
            continue
        try:
            capacity = int(raw_value)
        except (TypeError, ValueError):
            return DEFAULT_CAPACITY
        return capacity if capacity > 0 else DEFAULT_CAPACITY
    return DEFAULT_CAPACITY


def slot_filter(query, slot):
    return query.filter(
        Booking.facility_id == slot.facility_id,
        Booking.date == slot.date,
        Booking.resource_type == slot.resource_type.key,
        Booking.time == slot.time,
    )


def confirmed_count(session, slot) -> int:
    query = slot_filter(session.query(func.count(func.distinct(Booking.id))), slot)
    return query.filter(Booking.status == CONFIRMED).scalar() or 0
