import re

import pytest


@pytest.fixture
def cause_id(client, admin_headers):
    res = client.post(
        "/causes",
        json={"name": "Clean Yamuna", "organization_name": "River Trust", "cause_type": "ngo", "goal_amount": 100000, "raised_amount": 25000},
        headers=admin_headers,
    )
    assert res.status_code == 201, res.text
    return res.json()["id"]


def test_create_cause_is_admin_only(client, user_headers):
    res = client.post("/causes", json={"name": "Nope"}, headers=user_headers)
    assert res.status_code == 403


def test_list_causes_with_progress(client, cause_id):
    causes = client.get("/causes").json()
    assert [c["id"] for c in causes] == [cause_id]
    assert causes[0]["progress"] == 25
    assert client.get(f"/causes/{cause_id}").json()["name"] == "Clean Yamuna"


@pytest.mark.parametrize(
    "payload, detail",
    [
        ({"payment_method": "upi"}, "Please fill in all required fields"),
        ({"amount": 100}, "Please fill in all required fields"),
        ({"amount": 5, "payment_method": "upi"}, "Minimum donation amount is ₹10"),
    ],
)
def test_donation_validation(client, user_headers, cause_id, payload, detail):
    res = client.post("/donations", json={"cause_id": cause_id, **payload}, headers=user_headers)
    assert res.status_code == 400
    assert res.json()["detail"] == detail


def test_donation_to_unknown_cause(client, user_headers):
    res = client.post(
        "/donations",
        json={"cause_id": "64b7f0c2a1b2c3d4e5f60718", "amount": 100, "payment_method": "card"},
        headers=user_headers,
    )
    assert res.status_code == 404


def test_donation_to_ended_campaign(client, db, user_headers, admin_headers):
    res = client.post("/causes", json={"name": "Old drive", "is_active": False}, headers=admin_headers)
    res = client.post("/donations", json={"cause_id": res.json()["id"], "amount": 100, "payment_method": "upi"}, headers=user_headers)
    assert res.status_code == 400
    assert res.json()["detail"] == "Campaign Ended"


def test_donation_completes(client, user_headers, cause_id):
    res = client.post("/donations", json={"cause_id": cause_id, "amount": 500, "payment_method": "upi"}, headers=user_headers)
    assert res.status_code == 201
    donation = res.json()
    assert donation["status"] == "completed"
    assert donation["cause_name"] == "Clean Yamuna"
    assert donation["donor_email"] == "citizen@example.com"
    assert donation["donor_name"] == "Asha Citizen"
    assert re.fullmatch(r"TXN_\d+_[0-9a-z]{9}", donation["transaction_id"])

    # the cause totals are not touched by a donation
    assert client.get(f"/causes/{cause_id}").json()["raised_amount"] == 25000


def test_donation_history_and_stats(client, user_headers, make_user, cause_id):
    for amount in (500, 1000):
        client.post("/donations", json={"cause_id": cause_id, "amount": amount, "payment_method": "card"}, headers=user_headers)
    other = make_user("other@example.com")
    client.post("/donations", json={"cause_id": cause_id, "amount": 50, "payment_method": "wallet"}, headers=other)

    mine = client.get("/donations", headers=user_headers).json()
    assert sorted(d["amount"] for d in mine) == [500, 1000]
    assert client.get("/donations", params={"search": "nothing"}, headers=user_headers).json() == []

    stats = client.get("/donations/stats", headers=user_headers).json()
    assert stats == {"totalDonated": 1500, "donationCount": 2, "uniqueCauses": 1}
