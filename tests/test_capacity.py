from datetime import datetime

from models.booking import Booking, CONFIRMED, PROVISIONAL, REJECTED
from services.capacity import capacity_for, confirmed_count
from services.slots import SlotKey


def _booking(session, status, resource_type="5", time="18:00", date="2024-05-01", facility_id="F"):
    b = Booking(facility_id=facility_id, date=date, resource_type=resource_type, time=time,
                status=status, created_at=datetime.utcnow(), updated_at=datetime.utcnow())
    session.add(b)
    session.commit()
    return b


def test_unknown_facility_has_single_slot_capacity(session):
    assert capacity_for(session, "missing", "5") == 1


def test_capacity_lookup_ignores_type_representation(session, make_facility):
    make_facility("F", capacities={"7": 3, "05": 2, "Padel": 4})
    assert capacity_for(session, "F", 7) == 3
    assert capacity_for(session, "F", "7") == 3
    assert capacity_for(session, "F", 5) == 2
    assert capacity_for(session, "F", "padel") == 4


def test_missing_or_invalid_capacity_falls_back_to_one(session, make_facility):
    make_facility("F", capacities={"5": 0, "6": -2, "8": "lots"})
    assert capacity_for(session, "F", "5") == 1
    assert capacity_for(session, "F", "6") == 1
    assert capacity_for(session, "F", "8") == 1
    assert capacity_for(session, "F", "11") == 1


def test_confirmed_count_same_for_numeric_and_textual_type(session):
    _booking(session, CONFIRMED)
    _booking(session, CONFIRMED)
    numeric = SlotKey.from_parts("F", "2024-05-01", 5, "18:00")
    textual = SlotKey.from_parts("F", "2024-05-01", "5", "18:00")
    assert confirmed_count(session, numeric) == 2
    assert confirmed_count(session, textual) == 2


def test_confirmed_count_only_counts_confirmed_bookings_in_the_slot(session):
    _booking(session, CONFIRMED)
    _booking(session, PROVISIONAL)
    _booking(session, REJECTED)
    _booking(session, CONFIRMED, time="19:00")
    _booking(session, CONFIRMED, resource_type="7")
    _booking(session, CONFIRMED, facility_id="G")
    assert confirmed_count(session, SlotKey.from_parts("F", "2024-05-01", 5, "18:00")) == 1
