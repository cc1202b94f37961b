"""Mobile-money and card payment intent tests."""

from decimal import Decimal

from safecircle.models.payment import PaymentLedgerEntry


def _ledger(db, transaction_id):
    db.expire_all()
    return db.get(PaymentLedgerEntry, transaction_id)


def test_request_payment_creates_pending_ledger_row(client, db, money_unify):
    """A successful request returns the transaction id and leaves a PENDING row."""
    r = client.post("/requestMobileMoneyPayment", json={"phone": "260965502028", "amount": 100})

    assert r.status_code == 200
    assert r.json() == {"status": "success", "transaction_id": "tx-100"}
    assert money_unify.requests == [("260965502028", "100")]

    row = _ledger(db, "tx-100")
    assert row is not None
    assert row.status == "PENDING"
    assert row.provider == "MobileMoney"
    assert row.phone == "260965502028"
    assert row.amount == Decimal("100")
    assert row.raw_response["transaction_id"] == "tx-100"
    assert row.verification_response is None
    assert row.webhook_payload is None


def test_request_payment_accepts_string_amount(client, db, money_unify):
    r = client.post("/requestMobileMoneyPayment", json={"phone": "260965502028", "amount": "25.50"})
    assert r.status_code == 200
    assert money_unify.requests == [("260965502028", "25.50")]


def test_request_payment_requires_phone(client, db, money_unify):
    """Empty phone is rejected with 400 and nothing is written or sent."""
    r = client.post("/requestMobileMoneyPayment", json={"phone": "", "amount": 100})

    assert r.status_code == 400
    assert r.json() == {"status": "error", "message": "phone and amount required"}
    assert money_unify.requests == []
    assert db.query(PaymentLedgerEntry).count() == 0


def test_request_payment_requires_amount(client, db, money_unify):
    r = client.post("/requestMobileMoneyPayment", json={"phone": "260965502028"})
    assert r.status_code == 400
    assert r.json()["message"] == "phone and amount required"
    assert db.query(PaymentLedgerEntry).count() == 0


def test_request_payment_rejects_non_numeric_amount(client, db, money_unify):
    r = client.post("/requestMobileMoneyPayment", json={"phone": "260965502028", "amount": "lots"})
    assert r.status_code == 400
    assert r.json()["status"] == "error"
    assert money_unify.requests == []


def test_request_payment_provider_failure_returns_500(client, db, money_unify):
    money_unify.fail = True
    r = client.post("/requestMobileMoneyPayment", json={"phone": "260965502028", "amount": 100})

    assert r.status_code == 500
    assert r.json() == {"status": "error", "message": "Payment initiation failed"}
    assert db.query(PaymentLedgerEntry).count() == 0


def test_verify_overwrites_status_and_keeps_raw_payload(client, db, money_unify):
    client.post("/requestMobileMoneyPayment", json={"phone": "260965502028", "amount": 100})
    money_unify.verify_body = {"status": "SUCCESSFUL", "amount": "100", "reference": "abc"}

    r = client.post("/verifyMobileMoneyPayment", json={"transaction_id": "tx-100"})

    assert r.status_code == 200
    assert r.json() == {"status": "success", "data": {"status": "SUCCESSFUL", "amount": "100", "reference": "abc"}}
    row = _ledger(db, "tx-100")
    assert row.status == "SUCCESSFUL"
    assert row.verification_response == {"status": "SUCCESSFUL", "amount": "100", "reference": "abc"}
    assert row.raw_response["transaction_id"] == "tx-100"


def test_verify_defaults_status_to_unknown(client, db, money_unify):
    client.post("/requestMobileMoneyPayment", json={"phone": "260965502028", "amount": 100})
    money_unify.verify_body = {"message": "no status here"}

    r = client.post("/verifyMobileMoneyPayment", json={"transaction_id": "tx-100"})

    assert r.status_code == 200
    assert _ledger(db, "tx-100").status == "UNKNOWN"


def test_verify_requires_transaction_id(client, db, money_unify):
    r = client.post("/verifyMobileMoneyPayment", json={})
    assert r.status_code == 400
    assert r.json() == {"status": "error", "message": "transaction_id required"}
    assert money_unify.verifications == []


def test_verify_provider_failure_returns_500_and_leaves_row(client, db, money_unify):
    client.post("/requestMobileMoneyPayment", json={"phone": "260965502028", "amount": 100})
    money_unify.fail = True

    r = client.post("/verifyMobileMoneyPayment", json={"transaction_id": "tx-100"})

    assert r.status_code == 500
    assert r.json()["message"] == "Verification failed"
    assert _ledger(db, "tx-100").status == "PENDING"


def test_updated_at_never_goes_backwards(client, db, money_unify):
    client.post("/requestMobileMoneyPayment", json={"phone": "260965502028", "amount": 100})
    first = _ledger(db, "tx-100").updated_at
    client.post("/verifyMobileMoneyPayment", json={"transaction_id": "tx-100"})
    second = _ledger(db, "tx-100")
    assert second.updated_at >= first
    assert second.updated_at >= second.created_at


def test_create_card_intent_returns_client_secret(client, db, card_gateway):
    r = client.post("/createPaymentIntent", json={"amount": "49.99"})

    assert r.status_code == 200
    assert r.json() == {"status": "success", "clientSecret": "pi_1_secret", "transaction_id": "pi_1"}
    assert card_gateway.intents == [(Decimal("49.99"), "usd")]

    row = _ledger(db, "pi_1")
    assert row.provider == "Card"
    assert row.status == "PENDING"
    assert "client_secret" not in row.raw_response


def test_create_card_intent_requires_amount(client, db, card_gateway):
    r = client.post("/createPaymentIntent", json={"currency": "zmw"})
    assert r.status_code == 400
    assert card_gateway.intents == []


def test_create_card_intent_gateway_failure(client, db, card_gateway):
    card_gateway.fail = True
    r = client.post("/createPaymentIntent", json={"amount": 10})
    assert r.status_code == 500
    assert r.json()["status"] == "error"
