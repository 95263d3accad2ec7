"""API integration tests for fee plans and the simulator."""

from __future__ import annotations

from decimal import Decimal


def test_list_standard_plans(client):
    r = client.get("/api/v1/plans")

    assert r.status_code == 200
    plans = {p["plan"]: p for p in r.json()}
    assert set(plans) == {"basic", "intermediario", "top"}
    # 2 card groups x (debit + 18 credit) + 2 PIX rows
    assert len(plans["basic"]["rates"]) == 40


def test_standard_plan_rates(client):
    r = client.get("/api/v1/plans/basic/rates")

    assert r.status_code == 200
    rows = r.json()["rates"]
    credit = [x for x in rows if x["brand_group"] == "VISA_MASTER" and x["payment_type"] == "credit"]
    assert [x["installments"] for x in credit] == list(range(1, 19))
    assert Decimal(credit[0]["rate"]) == Decimal("4.76")


def test_create_custom_plan_and_simulate(client, admin_profile):
    r = client.post(
        "/api/v1/plans",
        json={
            "admin_id": str(admin_profile.id),
            "name": "Partner",
            "rates": [
                {"brand_group": "VISA_MASTER", "payment_type": "debit", "rate": "2.00"},
                {"brand_group": "PIX", "payment_type": "pix_conta", "rate": "0.00"},
            ],
        },
    )
    assert r.status_code == 201, r.text
    plan_id = r.json()["id"]
    assert len(r.json()["rates"]) == 2

    r = client.post(
        f"/api/v1/plans/{plan_id}/simulate/sale",
        json={"gross_value": "250.00", "brand": "visa_master", "payment_type": "debit"},
    )
    assert r.status_code == 200, r.text
    assert Decimal(r.json()["net_value"]) == Decimal("245.00")

    r = client.post(
        f"/api/v1/plans/{plan_id}/simulate/charge",
        json={"desired_net": "98.00", "brand": "visa_master", "payment_type": "debit"},
    )
    assert r.status_code == 200
    assert Decimal(r.json()["charge_amount"]) == Decimal("100.00")

    ids = [p["plan"] for p in client.get("/api/v1/plans").json()]
    assert plan_id in ids


def test_custom_plan_validation_error(client, admin_profile):
    r = client.post(
        "/api/v1/plans",
        json={
            "admin_id": str(admin_profile.id),
            "name": "Broken",
            "rates": [{"brand_group": "VISA_MASTER", "payment_type": "credit", "rate": "2.00"}],
        },
    )

    assert r.status_code == 422
    assert r.json()["kind"] == "validation_error"


def test_simulate_impossible_classification(client):
    r = client.post(
        "/api/v1/plans/basic/simulate/sale",
        json={"gross_value": "10.00", "brand": "pix", "payment_type": "credit"},
    )

    assert r.status_code == 422
    assert r.json()["kind"] == "validation_error"


def test_unknown_plan_rates(client):
    r = client.get("/api/v1/plans/nope/rates")

    assert r.status_code == 422
    assert r.json()["kind"] == "rate_not_found"
