from models.reconciliation import ReconciliationItem
from services.settlement import SettlementAmounts, record_settlement


def _settle(session, payment_id="P1"):
    record_settlement(session, "F", "2024-05-01", payment_id,
                      SettlementAmounts(total_charged=4000, commission=1000, base_fraction=3000))


def test_settlement_day_view(client, session, reviewer_headers):
    _settle(session)

    resp = client.get("/settlements/F/2024-05-01", headers=reviewer_headers)

    assert resp.status_code == 200
    data = resp.get_json()
    assert data["count_total"] == 1
    assert data["sum_net_to_facility"] == 3000
    assert data["payments"][0]["payment_id"] == "P1"
    assert client.get("/settlements/F/2030-01-01", headers=reviewer_headers).status_code == 404
    assert client.get("/settlements/F/2024-05-01").status_code == 403


def test_mark_paid(client, session, reviewer_headers):
    _settle(session)

    resp = client.post("/settlements/F/2024-05-01/mark-paid", json={"reviewer_id": "rev-1"},
                       headers=reviewer_headers)

    assert resp.status_code == 200
    assert resp.get_json()["paid_out"] is True
    assert client.post("/settlements/F/2030-01-01/mark-paid", headers=reviewer_headers).status_code == 404


def test_reconciliation_queue(client, session, reviewer_headers):
    item = ReconciliationItem(payment_id="P2", facility_id="F", date="2024-05-01", resource_type="7",
                              time="18:00", amount=4000, reason="capacity_exceeded")
    session.add(item)
    session.commit()

    listed = client.get("/reconciliation", headers=reviewer_headers).get_json()
    assert [i["payment_id"] for i in listed] == ["P2"]

    resp = client.post(f"/reconciliation/{item.id}/resolve", json={"note": "refunded", "reviewer_id": "rev-1"},
                       headers=reviewer_headers)
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "RESOLVED"

    assert client.get("/reconciliation", headers=reviewer_headers).get_json() == []
    assert len(client.get("/reconciliation?status=all", headers=reviewer_headers).get_json()) == 1
    assert client.post(f"/reconciliation/{item.id}/resolve", headers=reviewer_headers).status_code == 400
