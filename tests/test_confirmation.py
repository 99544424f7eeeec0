from datetime import datetime

import pytest

from models.booking import Booking, CONFIRMED, PROVISIONAL
from services.capacity import confirmed_count
from services.confirmation import CAPACITY_EXCEEDED, NOT_APPROVED, confirm
from services.errors import InvalidReference
from services.slots import SlotKey

def _provisional(session, requester_id=None, resource_type="7"):
    now = datetime.utcnow()
    b = Booking(facility_id="F", date="2024-05-01", resource_type=resource_type, time="18:00",
                requester_id=requester_id, status=PROVISIONAL, created_at=now, updated_at=now)
    session.add(b)
    session.commit()
    return b.id

def _slot():
    return SlotKey.from_parts("F", "2024-05-01", "7", "18:00")

def test_confirm_creates_confirmed_booking_when_no_hold_exists(session, make_event):
    result = confirm(session, make_event("P1"))

    assert result.accepted
    booking = session.get(Booking, result.booking_id)
    assert booking.status == CONFIRMED
    assert booking.payment_id == "P1"
    assert booking.payment["amount_total"] == 4000
    assert booking.payment["commission"] == 1000
    assert booking.resource_type == "7"

def test_confirm_flips_provisional_booking(session, make_event):
    hold_id = _provisional(session)

    result = confirm(session, make_event("P1"))

    assert result.booking_id == hold_id
    assert session.get(Booking, hold_id).status == CONFIRMED
    assert session.query(Booking).count() == 1

def test_confirm_prefers_the_requesters_own_hold(session, make_event, make_facility):
    make_facility("F", capacities={"7": 2})
    _provisional(session, requester_id="someone-else")
    mine = _provisional(session, requester_id="u-1")

    result = confirm(session, make_event("P1", requester_id="u-1"))

    assert result.booking_id == mine

def test_confirm_on_another_requesters_hold_transfers_ownership(session, make_event, make_facility):
    make_facility("F", capacities={"7": 1})
    hold = _provisional(session, requester_id="u-A")

    result = confirm(session, make_event("P1", requester_id="u-B", email="b@example.test"))

    booking = session.get(Booking, result.booking_id)
    assert booking.id == hold
    assert booking.requester_id == "u-B"
    assert booking.email == "b@example.test"
    assert booking.payment_id == "P1"

def test_scenario_b_second_fits_third_is_rejected(session, make_event, make_facility):
    make_facility("F", capacities={"7": 2})
    assert confirm(session, make_event("P0")).accepted

    second = confirm(session, make_event("P1"))
    assert second.accepted
    assert confirmed_count(session, _slot()) == 2

    third = confirm(session, make_event("P2"))
    assert not third.accepted
    assert third.reason == CAPACITY_EXCEEDED
    assert third.booking_id is None
    assert confirmed_count(session, _slot()) == 2

def test_capacity_rejection_leaves_holds_untouched(session, make_event):
    assert confirm(session, make_event("P1")).accepted
    hold_id = _provisional(session)

    result = confirm(session, make_event("P2"))

    assert result.reason == CAPACITY_EXCEEDED
    hold = session.get(Booking, hold_id)
    assert hold.status == PROVISIONAL
    assert hold.payment_id is None

def test_same_approval_twice_confirms_once(session, make_event):
    first = confirm(session, make_event("P1"))
    stamp = session.get(Booking, first.booking_id).updated_at

    second = confirm(session, make_event("P1"))

    assert second.accepted
    assert second.replayed
    assert second.booking_id == first.booking_id
    assert session.query(Booking).count() == 1
    assert session.get(Booking, first.booking_id).updated_at == stamp

def test_replay_on_a_full_slot_is_not_a_capacity_conflict(session, make_event):
    first = confirm(session, make_event("P1"))
    replay = confirm(session, make_event("P1"))
    assert replay.accepted
    assert replay.booking_id == first.booking_id

def test_numeric_and_textual_type_compete_for_the_same_capacity(session, make_event):
    assert confirm(session, make_event("P1", resource_type=7)).accepted
    assert confirm(session, make_event("P2", resource_type="7")).reason == CAPACITY_EXCEEDED

@pytest.mark.parametrize("outcome", ["rejected", "pending"])
def test_non_approved_event_never_touches_bookings(session, make_event, outcome):
    hold_id = _provisional(session)

    result = confirm(session, make_event("P1", outcome=outcome))

    assert not result.accepted
    assert result.reason == NOT_APPROVED
    assert session.query(Booking).count() == 1
    assert session.get(Booking, hold_id).status == PROVISIONAL

def test_event_without_slot_is_rejected_permanently(session, make_event):
    event = make_event("P1")
    broken = type(event)(approval_id="P1", slot=None, outcome="approved")
    with pytest.raises(InvalidReference):
        confirm(session, broken)
    assert session.query(Booking).count() == 0
