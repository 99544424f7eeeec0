import pytest

from models.booking import Booking, CONFIRMED, PROVISIONAL
from models.manual_payment import ManualPayment
from models.settlement import DailySettlement, SettlementLineItem
from services.approvals import ApprovalEvent
from services.errors import InvalidReference

CHECK = {
    "facility_id": "F",
    "facility_name": "Club F",
    "date": "2024-05-01",
    "resource_type": 7,
    "time": "18:00",
    "user_id": "u-1",
    "amount": 2500,
    "full_name": "Ana",
    "email": "ana@example.test",
}


def _submit(client, **overrides):
    return client.post("/checks", json={**CHECK, **overrides})


def test_submit_check_creates_pending_record(client, session):
    resp = _submit(client)
    assert resp.status_code == 201
    check = session.get(ManualPayment, resp.get_json()["id"])
    assert check.status == "PENDING"
    assert check.resource_type == "7"


@pytest.mark.parametrize("overrides", [{"amount": 0}, {"amount": "abc"}, {"date": "yesterday"}, {"user_id": None}])
def test_submit_invalid_check(client, overrides):
    assert _submit(client, **overrides).status_code == 400


def test_approve_confirms_booking_and_settles_without_commission(client, session, reviewer_headers):
    check_id = _submit(client).get_json()["id"]

    resp = client.post(f"/checks/{check_id}/approve", json={"reviewer_id": "rev-1"}, headers=reviewer_headers)

    assert resp.status_code == 200
    booking = session.get(Booking, resp.get_json()["booking_id"])
    assert booking.status == CONFIRMED
    assert booking.channel == "check"
    assert booking.payment_id == f"manual_{check_id}"
    assert booking.payment["manual"] is True

    check = session.get(ManualPayment, check_id)
    assert check.status == "APPROVED"
    assert check.booking_id == booking.id
    assert check.reviewed_by == "rev-1"

    item = session.query(SettlementLineItem).one()
    assert item.manual is True
    assert item.commission == 0
    day = session.get(DailySettlement, ("F", "2024-05-01"))
    assert (day.count_total, day.count_deposit, day.sum_total_charged, day.sum_net_to_facility) == (1, 1, 2500, 2500)


def test_approve_flips_the_users_hold(client, session, reviewer_headers):
    hold = Booking(facility_id="F", date="2024-05-01", resource_type="7", time="18:00",
                   requester_id="u-1", status=PROVISIONAL)
    session.add(hold)
    session.commit()
    check_id = _submit(client).get_json()["id"]

    resp = client.post(f"/checks/{check_id}/approve", headers=reviewer_headers)

    assert resp.get_json()["booking_id"] == hold.id


def test_approve_on_full_slot_is_a_conflict(client, session, reviewer_headers):
    first = _submit(client).get_json()["id"]
    second = _submit(client, user_id="u-2").get_json()["id"]
    client.post(f"/checks/{first}/approve", headers=reviewer_headers)

    resp = client.post(f"/checks/{second}/approve", headers=reviewer_headers)

    assert resp.status_code == 409
    assert resp.get_json()["error"] == "capacity_exceeded"
    assert session.get(ManualPayment, second).status == "PENDING"
    assert session.query(Booking).filter_by(status=CONFIRMED).count() == 1


def test_approve_twice_is_rejected_as_not_pending(client, reviewer_headers):
    check_id = _submit(client).get_json()["id"]
    client.post(f"/checks/{check_id}/approve", headers=reviewer_headers)
    resp = client.post(f"/checks/{check_id}/approve", headers=reviewer_headers)
    assert resp.status_code == 400


def test_approve_unknown_check(client, reviewer_headers):
    assert client.post("/checks/999/approve", headers=reviewer_headers).status_code == 404


def test_reviewer_key_is_required(app, client):
    check_id = _submit(client).get_json()["id"]
    assert client.post(f"/checks/{check_id}/approve").status_code == 403
    assert client.post(f"/checks/{check_id}/approve", headers={"X-Reviewer-Key": "wrong"}).status_code == 403

    app.config["REVIEWER_API_KEY"] = None
    assert client.post(f"/checks/{check_id}/approve").status_code == 503


def test_reject_check_leaves_bookings_alone(client, session, reviewer_headers):
    check_id = _submit(client).get_json()["id"]

    resp = client.post(f"/checks/{check_id}/reject", json={"reason": "Transfer not received"},
                       headers=reviewer_headers)

    assert resp.status_code == 200
    check = session.get(ManualPayment, check_id)
    assert check.status == "REJECTED"
    assert check.reason == "Transfer not received"
    assert session.query(Booking).count() == 0
    assert client.post(f"/checks/{check_id}/reject", headers=reviewer_headers).status_code == 400


def test_reject_defaults_reason(client, session, reviewer_headers):
    check_id = _submit(client).get_json()["id"]
    client.post(f"/checks/{check_id}/reject", headers=reviewer_headers)
    assert session.get(ManualPayment, check_id).reason == "Rejected"


def test_incomplete_manual_record_cannot_become_an_event(session):
    check = ManualPayment(id=5, facility_id="F", date="2024-05-01", resource_type="7", time="18:00",
                          user_id=None, amount=2500)
    with pytest.raises(InvalidReference):
        ApprovalEvent.from_manual_payment(check)


def test_exponent_resource_type_is_kept_as_text(client, session):
    resp = _submit(client, resource_type="1e5000")
    assert resp.status_code == 201
    assert session.get(ManualPayment, resp.get_json()["id"]).resource_type == "1e5000"


def test_overlong_resource_type_is_a_bad_request(client):
    assert _submit(client, resource_type="9" * 5000).status_code == 400


def test_approving_over_another_users_checkout_hold(client, session, reviewer_headers, fake_checkout):
    hold_id = client.post("/payments/intent", json={
        "unit_price": 10000, "external_reference": "F|2024-05-01|7|18:00", "requester_id": "u-A",
    }).get_json()["booking_id"]
    check_id = _submit(client, user_id="u-B", email="b@example.test").get_json()["id"]

    resp = client.post(f"/checks/{check_id}/approve", headers=reviewer_headers)

    assert resp.status_code == 200
    booking = session.get(Booking, resp.get_json()["booking_id"])
    assert booking.id == hold_id
    assert (booking.requester_id, booking.channel, booking.email) == ("u-B", "check", "b@example.test")
