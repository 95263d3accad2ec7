"""API integration tests for the withdrawal endpoints."""

from __future__ import annotations

from decimal import Decimal

PIX = {
    "method": "pix",
    "pix_key": "ana@example.com",
    "pix_key_type": "email",
    "pix_owner_name": "Ana Souza",
}


def _request(client, client_id, amount="100.00", destination=None):
    return client.post(
        "/api/v1/withdrawals",
        json={
            "client_id": str(client_id),
            "amount": amount,
            "destination": destination or PIX,
        },
    )


def test_request_pay_flow(client, client_profile, admin_profile, fund):
    fund(client_profile, "300.00")

    r = _request(client, client_profile.id)
    assert r.status_code == 201, r.text
    wd = r.json()
    assert wd["status"] == "pending"
    assert wd["pix_key"] == "ana@example.com"

    queue = client.get("/api/v1/withdrawals/pending").json()
    assert [w["id"] for w in queue] == [wd["id"]]

    r = client.post(
        f"/api/v1/withdrawals/{wd['id']}/pay",
        json={"admin_id": str(admin_profile.id), "proof_url": "proofs/1.pdf"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "paid"
    assert r.json()["admin_proof_url"] == "proofs/1.pdf"

    balances = client.get(f"/api/v1/clients/{client_profile.id}/balances").json()
    assert Decimal(balances["withdrawn"]) == Decimal("100.00")
    assert Decimal(balances["available"]) == Decimal("200.00")


def test_bank_destination(client, client_profile, fund):
    fund(client_profile, "50.00")

    r = _request(
        client,
        client_profile.id,
        amount="50.00",
        destination={
            "method": "bank",
            "bank_name": "Itaú",
            "bank_agency": "1234",
            "bank_account": "98765-0",
        },
    )

    assert r.status_code == 201, r.text
    assert r.json()["method"] == "bank"
    assert r.json()["pix_key"] is None


def test_destination_fields_must_match_method(client, client_profile, fund):
    """A pix payload with bank fields is a schema error."""
    fund(client_profile, "50.00")

    r = _request(client, client_profile.id, destination={**PIX, "bank_name": "Itaú"})

    assert r.status_code == 422


def test_overdraw_is_insufficient_balance(client, client_profile, fund):
    fund(client_profile, "99.99")

    r = _request(client, client_profile.id, amount="100.00")

    assert r.status_code == 409
    assert r.json()["kind"] == "insufficient_balance"
    assert client.get(
        "/api/v1/withdrawals", params={"client_id": str(client_profile.id)}
    ).json() == []


def test_cancel_by_owner(client, client_profile, fund):
    fund(client_profile, "100.00")
    wd_id = _request(client, client_profile.id).json()["id"]

    r = client.post(
        f"/api/v1/withdrawals/{wd_id}/cancel",
        json={"actor_id": str(client_profile.id), "reason": "Typo in key"},
    )

    assert r.status_code == 200
    assert r.json()["status"] == "cancelled"
    assert r.json()["cancel_reason"] == "Typo in key"

    r = client.post(
        f"/api/v1/withdrawals/{wd_id}/cancel", json={"actor_id": str(client_profile.id)}
    )
    assert r.status_code == 409
