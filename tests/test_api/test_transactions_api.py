"""API integration tests for the transaction endpoints."""

from __future__ import annotations

import uuid
from decimal import Decimal


def _create(client, client_id, **overrides):
    body = {
        "client_id": str(client_id),
        "gross_value": "1000.00",
        "brand": "visa_master",
        "payment_type": "debit",
        "installments": 1,
    }
    body.update(overrides)
    return client.post("/api/v1/transactions", json=body)


def test_create_transaction_returns_fee_breakdown(client, client_profile):
    """POST /api/v1/transactions prices the sale with the client's plan."""
    response = _create(client, client_profile.id)

    assert response.status_code == 201, response.text
    data = response.json()
    assert data["status"] == "pending_receipt"
    assert Decimal(data["fee_percentage"]) == Decimal("3.30")
    assert Decimal(data["net_value"]) == Decimal("967.00")
    assert "rejection_reason" not in data
    assert "verified_at" not in data


def test_full_review_flow(client, client_profile, admin_profile, emitter):
    """receipt -> verify -> chargeback request -> approval, all over HTTP."""
    txn_id = _create(client, client_profile.id).json()["id"]

    r = client.post(
        f"/api/v1/transactions/{txn_id}/receipt",
        json={"client_id": str(client_profile.id), "receipt_url": "receipts/1.jpg"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "pending_verification"

    r = client.post(
        f"/api/v1/transactions/{txn_id}/verify", json={"admin_id": str(admin_profile.id)}
    )
    assert r.status_code == 200, r.text
    assert r.json()["verified_by"] == str(admin_profile.id)

    r = client.post(
        f"/api/v1/transactions/{txn_id}/chargeback",
        json={"client_id": str(client_profile.id), "reason": "Customer disputed"},
    )
    assert r.status_code == 200
    assert r.json()["status"] == "verified"

    pending = client.get("/api/v1/transactions/chargebacks/pending").json()
    assert [t["id"] for t in pending] == [txn_id]

    r = client.post(
        f"/api/v1/transactions/{txn_id}/chargeback/approve",
        json={"admin_id": str(admin_profile.id)},
    )
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["status"] == "chargeback"
    assert data["is_chargeback"] is True
    assert data["chargeback_reason"] == "Customer disputed"
    assert len(emitter.events) == 5


def test_reject_requires_reason(client, client_profile, admin_profile):
    """An empty rejection reason is a validation_error and changes nothing."""
    txn_id = _create(client, client_profile.id, receipt_url="receipts/1.jpg").json()["id"]

    r = client.post(
        f"/api/v1/transactions/{txn_id}/reject",
        json={"admin_id": str(admin_profile.id), "reason": " "},
    )

    assert r.status_code == 422
    assert r.json()["kind"] == "validation_error"
    assert client.get(f"/api/v1/transactions/{txn_id}").json()["status"] == "pending_verification"


def test_rejected_variant_carries_reason(client, client_profile, admin_profile):
    txn_id = _create(client, client_profile.id, receipt_url="receipts/1.jpg").json()["id"]

    r = client.post(
        f"/api/v1/transactions/{txn_id}/reject",
        json={"admin_id": str(admin_profile.id), "reason": "Illegible receipt"},
    )

    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "rejected"
    assert data["rejection_reason"] == "Illegible receipt"
    assert data["rejected_by"] == str(admin_profile.id)


def test_list_transactions_by_status(client, client_profile):
    _create(client, client_profile.id)
    _create(client, client_profile.id, receipt_url="receipts/2.jpg")

    r = client.get(
        "/api/v1/transactions",
        params={"client_id": str(client_profile.id), "status": "pending_verification"},
    )

    assert r.status_code == 200
    assert [t["status"] for t in r.json()] == ["pending_verification"]


def test_unknown_transaction_is_404(client):
    r = client.get(f"/api/v1/transactions/{uuid.uuid4()}")

    assert r.status_code == 404
    assert r.json()["kind"] == "not_found"


def test_invalid_transition_is_409(client, client_profile, admin_profile):
    txn_id = _create(client, client_profile.id).json()["id"]

    r = client.post(
        f"/api/v1/transactions/{txn_id}/verify", json={"admin_id": str(admin_profile.id)}
    )

    assert r.status_code == 409
    assert r.json()["kind"] == "invalid_transition"


def test_missing_rate_is_rate_not_found(client, five_percent_client):
    r = _create(client, five_percent_client.id, payment_type="credit", installments=4)

    assert r.status_code == 422
    assert r.json()["kind"] == "rate_not_found"


def test_client_cannot_verify(client, client_profile):
    txn_id = _create(client, client_profile.id, receipt_url="receipts/1.jpg").json()["id"]

    r = client.post(
        f"/api/v1/transactions/{txn_id}/verify", json={"admin_id": str(client_profile.id)}
    )

    assert r.status_code == 403
    assert r.json()["kind"] == "permission_denied"


def test_malformed_body_stays_fastapi_422(client, client_profile):
    """Schema violations never reach the ledger."""
    r = _create(client, client_profile.id, gross_value="-5")

    assert r.status_code == 422
    assert "kind" not in r.json()
