import importlib
import logging

from jose import jwt

import main
from config.settings import settings
from core.errors import PaymentGatewayError
from infrastructure.payments.stub_provider import StubPaymentProvider
from tests.conftest import register, auth_headers


class FailingGateway(StubPaymentProvider):
    def create_order(self, amount_minor, currency, receipt):
        raise PaymentGatewayError("gateway down")


def test_register_returns_token_and_name(client):
    resp = register(client)

    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["user"] == {"name": "Alice"}
    claims = jwt.decode(body["token"], settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    assert claims["sub"] == "1"
    assert claims["userId"] == 1


def test_register_twice_is_conflict(client):
    register(client)
    resp = register(client, name="Other")

    assert resp.status_code == 409
    assert resp.json() == {"success": False, "message": "User already exists"}


def test_register_missing_fields(client):
    resp = client.post("/api/user/register", json={"email": "a@example.com"})

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "Missing details"}


def test_register_invalid_email_is_400_envelope(client):
    resp = register(client, email="not-an-email")

    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_login(client):
    register(client)
    resp = client.post("/api/user/login", json={"email": "alice@example.com", "password": "s3cret-pass"})

    assert resp.status_code == 200
    assert resp.json()["user"] == {"name": "Alice"}
    assert resp.json()["token"]


def test_login_wrong_password(client):
    register(client)
    resp = client.post("/api/user/login", json={"email": "alice@example.com", "password": "nope"})

    assert resp.status_code == 401
    assert resp.json() == {"success": False, "message": "Invalid credentials"}


def test_login_unknown_user(client):
    resp = client.post("/api/user/login", json={"email": "ghost@example.com", "password": "pw"})
    assert resp.status_code == 404


def test_credits_use_token_identity(client, alice):
    resp = client.get("/api/user/credits", headers=alice)

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "credits": settings.DEFAULT_CREDIT_BALANCE, "user": {"name": "Alice"}}


def test_credits_post_with_matching_user_id(client, alice):
    resp = client.post("/api/user/credits", json={"userId": 1}, headers=alice)
    assert resp.status_code == 200


def test_credits_post_with_foreign_user_id_is_forbidden(client, alice):
    register(client, name="Bob", email="bob@example.com")
    resp = client.post("/api/user/credits", json={"userId": 2}, headers=alice)

    assert resp.status_code == 403
    assert resp.json()["success"] is False


def test_credits_require_token(client):
    resp = client.get("/api/user/credits")

    assert resp.status_code == 401
    assert resp.json() == {"success": False, "message": "Not authenticated"}


def test_bad_token_rejected(client):
    resp = client.get("/api/user/credits", headers=auth_headers("garbage"))
    assert resp.status_code == 401


def test_token_for_deleted_user_rejected(client, alice, conn):
    conn.execute("DELETE FROM users")
    conn.commit()

    resp = client.get("/api/user/credits", headers=alice)
    assert resp.status_code == 401


def test_unknown_plan(client, alice, conn):
    resp = client.post("/api/user/pay-razor", json={"planId": "Gold"}, headers=alice)

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "Plan not found"}
    assert conn.execute("SELECT COUNT(*) FROM transactions").fetchone()[0] == 0


def test_pay_for_someone_else_is_forbidden(client, alice, conn):
    register(client, name="Bob", email="bob@example.com")
    resp = client.post("/api/user/pay-razor", json={"userId": 2, "planId": "Basic"}, headers=alice)

    assert resp.status_code == 403
    assert conn.execute("SELECT COUNT(*) FROM transactions").fetchone()[0] == 0


def test_purchase_flow(client, alice, gateway):
    resp = client.post("/api/user/pay-razor", json={"planId": "Basic"}, headers=alice)
    assert resp.status_code == 200
    order = resp.json()["order"]
    assert order["amount"] == 1000
    assert order["currency"] == settings.CURRENCY

    # заказ ещё не оплачен
    resp = client.post("/api/user/verify-razor", json={"razorpay_order_id": order["id"]}, headers=alice)
    assert resp.status_code == 400

    gateway.mark_paid(order["id"])
    resp = client.post("/api/user/verify-razor", json={"razorpay_order_id": order["id"]}, headers=alice)
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "Credits Added"}

    resp = client.post("/api/user/verify-razor", json={"razorpay_order_id": order["id"]}, headers=alice)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Payment already processed or failed"

    credits = client.get("/api/user/credits", headers=alice).json()["credits"]
    assert credits == settings.DEFAULT_CREDIT_BALANCE + 100

    txs = client.get("/api/user/transactions", headers=alice).json()["transactions"]
    assert [(t["plan"], t["paid"]) for t in txs] == [("Basic", True)]


def test_verify_requires_order_id(client, alice):
    resp = client.post("/api/user/verify-razor", json={}, headers=alice)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Missing details"


def test_me(client, alice):
    body = client.get("/api/user/me", headers=alice).json()
    assert body["user"]["email"] == "alice@example.com"
    assert body["user"]["credits"] == settings.DEFAULT_CREDIT_BALANCE


def test_root(client):
    assert client.get("/").json()["success"] is True


def test_register_blank_name_or_email_is_missing_details(client, conn):
    for kwargs in ({"name": "   "}, {"email": ""}, {"email": "   "}):
        resp = register(client, **kwargs)
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "message": "Missing details"}
    assert conn.execute("SELECT COUNT(*) FROM users").fetchone()[0] == 0


def test_login_record_without_hash_is_500(client, conn):
    conn.execute(
        "INSERT INTO users (name, email, password_hash, credit_balance, created_at) VALUES (?, ?, NULL, 0, ?)",
        ("Broken", "broken@example.com", "2024-01-01T00:00:00+00:00"),
    )
    conn.commit()

    resp = client.post("/api/user/login", json={"email": "broken@example.com", "password": "pw"})

    assert resp.status_code == 500
    assert resp.json() == {"success": False, "message": "No password found for this user"}


def test_gateway_failure_is_502_and_keeps_pending_transaction(client, alice, conn):
    client.app.state.payment_provider = FailingGateway()

    resp = client.post("/api/user/pay-razor", json={"planId": "Basic"}, headers=alice)

    assert resp.status_code == 502
    assert resp.json() == {"success": False, "message": "Payment initiation failed"}
    rows = conn.execute("SELECT plan, paid FROM transactions").fetchall()
    assert [(r["plan"], r["paid"]) for r in rows] == [("Basic", 0)]


def test_importing_app_does_not_configure_logging(monkeypatch):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.append(kw))

    module = importlib.reload(main)
    assert calls == []

    module.configure_logging()
    assert len(calls) == 1
