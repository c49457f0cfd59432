import stripe


def test_verify_card_session(client, stripe_client, make_session):
    stripe_client.checkout.sessions.retrieve.return_value = make_session(method="card")

    r = client.get("/api/v1/stripe/verify-session", params={"session_id": "cs_test_123"})

    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["verificationMethod"] == "card_payment"
    assert body["subscription"]["planName"] == "Professional"


def test_verify_bank_transfer_session_while_unpaid(client, stripe_client, make_session):
    stripe_client.checkout.sessions.retrieve.return_value = make_session(method="us_bank_account", payment_status="unpaid")

    r = client.get("/api/v1/stripe/verify-session", params={"session_id": "cs_test_123"})

    assert r.status_code == 200
    assert r.json()["verificationMethod"] == "ach_subscription"
    assert r.json()["paymentMethodType"] == "us_bank_account"


def test_verify_requires_session_id(client, stripe_client):
    r = client.get("/api/v1/stripe/verify-session")
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "Missing required parameter: session_id"}
    stripe_client.checkout.sessions.retrieve.assert_not_called()


def test_verify_rejects_bad_prefix(client, stripe_client):
    r = client.get("/api/v1/stripe/verify-session", params={"session_id": "sub_123"})
    assert r.status_code == 400
    stripe_client.checkout.sessions.retrieve.assert_not_called()


def test_verify_expired_session_is_404(client, stripe_client):
    stripe_client.checkout.sessions.retrieve.side_effect = stripe.InvalidRequestError(
        "No such checkout.session: 'cs_test_old'", "session", code="resource_missing"
    )
    r = client.get("/api/v1/stripe/verify-session", params={"session_id": "cs_test_old"})
    assert r.status_code == 404
    assert r.json()["error"] == "Session not found or expired"


def test_verify_unpaid_card_session_is_400(client, stripe_client, make_session):
    stripe_client.checkout.sessions.retrieve.return_value = make_session(method="card", payment_status="unpaid")
    r = client.get("/api/v1/stripe/verify-session", params={"session_id": "cs_test_123"})
    assert r.status_code == 400
    assert r.json()["error"] == "Payment not completed"


def test_session_details(client, stripe_client, make_session):
    stripe_client.checkout.sessions.retrieve.return_value = make_session()
    r = client.get("/api/v1/stripe/session", params={"session_id": "cs_test_123"})
    assert r.status_code == 200
    assert r.json()["session"]["customer"]["id"] == "cus_123"


def test_recent_sessions_hidden_without_debug_routes(app, client, portal):
    portal.settings = portal.settings.model_copy(update={"debug_routes_enabled": False})
    r = client.get("/api/v1/stripe/sessions/recent")
    assert r.status_code == 404


def test_verify_post_is_405(client):
    r = client.post("/api/v1/stripe/verify-session")
    assert r.status_code == 405
    assert "Use GET to verify a session." in r.json()["error"]
