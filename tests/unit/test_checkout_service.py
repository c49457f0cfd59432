import pytest
import stripe

from payment_portal.checkout import service as checkout_service
from payment_portal.errors import ApiError

PROFESSIONAL_MONTHLY = "price_1Rsbj73knPyAFyt5qcAlh8Lw"


def _params(**kwargs):
    kwargs.setdefault("price_id", PROFESSIONAL_MONTHLY)
    kwargs.setdefault("base_url", "https://portal.example.test")
    return checkout_service.build_session_params(**kwargs)


def test_card_preference_never_offers_bank_transfer():
    params = _params(preference="card")
    assert params["payment_method_types"] == ["card"]
    assert "payment_method_collection" not in params
    assert "payment_method_options" not in params
    assert params["subscription_data"]["metadata"]["ach_enabled"] == "false"


def test_ach_preference_never_offers_card():
    params = _params(preference="ach")
    assert params["payment_method_types"] == ["us_bank_account"]
    assert params["payment_method_collection"] == "if_required"
    assert params["payment_method_options"] == {"us_bank_account": {"verification_method": "automatic"}}
    assert "authorize" in params["custom_text"]["submit"]["message"]
    assert params["subscription_data"]["metadata"]["ach_enabled"] == "true"


def test_default_preference_offers_both():
    params = _params()
    assert params["payment_method_types"] == ["card", "us_bank_account"]
    assert params["metadata"]["payment_method_type"] == "both"


def test_session_urls_and_subscription_mode():
    params = _params()
    assert params["mode"] == "subscription"
    assert params["line_items"] == [{"price": PROFESSIONAL_MONTHLY, "quantity": 1}]
    assert params["success_url"] == "https://portal.example.test/success?session_id={CHECKOUT_SESSION_ID}"
    assert params["cancel_url"] == "https://portal.example.test/pricing"
    assert params["billing_address_collection"] == "required"
    assert params["allow_promotion_codes"] is True


def test_customer_id_takes_precedence_over_email():
    params = _params(customer_id="cus_1", customer_email="a@b.test")
    assert params["customer"] == "cus_1"
    assert "customer_email" not in params

    params = _params(customer_email="a@b.test")
    assert params["customer_email"] == "a@b.test"
    assert "customer" not in params


def test_caller_metadata_is_kept_but_cannot_override_tracking_fields():
    params = _params(metadata={"practice": "north", "payment_method_type": "spoofed"}, preference="card")
    assert params["metadata"]["practice"] == "north"
    assert params["metadata"]["payment_method_type"] == "card"
    assert params["subscription_data"]["metadata"]["practice"] == "north"


def test_resolve_price_from_tier_and_cycle():
    price_id, tier = checkout_service.resolve_price(None, "professional", "monthly")
    assert price_id == PROFESSIONAL_MONTHLY
    assert tier.id == "professional"


def test_price_id_without_prefix_is_treated_as_tier():
    price_id, tier = checkout_service.resolve_price("enterprise", None, "monthly")
    assert price_id == "price_1RsbjW3knPyAFyt5uFXrBBw1"
    assert tier.id == "enterprise"


def test_raw_price_id_is_used_as_is():
    price_id, tier = checkout_service.resolve_price("price_custom", None, "monthly")
    assert price_id == "price_custom"
    assert tier is None


@pytest.mark.parametrize(
    "price_id, tier_id, cycle",
    [
        (None, None, "monthly"),
        (None, "platinum", "monthly"),
        (None, "basic", "yearly"),
    ],
)
def test_resolve_price_rejects_unknown_or_unpriced(price_id, tier_id, cycle):
    with pytest.raises(ApiError) as exc_info:
        checkout_service.resolve_price(price_id, tier_id, cycle)
    assert exc_info.value.status_code == 400


def test_scenario_professional_monthly_offers_card_and_bank(portal, stripe_client):
    stripe_client.checkout.sessions.create.return_value = {"id": "cs_test_abc", "url": "https://checkout.stripe.test/c/abc"}

    result = checkout_service.create_checkout_session(portal, tier_id="professional", billing_cycle="monthly")

    assert result == {"url": "https://checkout.stripe.test/c/abc", "sessionId": "cs_test_abc"}
    params = stripe_client.checkout.sessions.create.call_args.kwargs["params"]
    assert params["payment_method_types"] == ["card", "us_bank_account"]
    assert params["line_items"][0]["price"] == PROFESSIONAL_MONTHLY
    assert params["metadata"]["tier_id"] == "professional"


def test_invalid_customer_id_fails_before_gateway(portal, stripe_client):
    with pytest.raises(ApiError) as exc_info:
        checkout_service.create_checkout_session(portal, tier_id="basic", customer_id="user_42")
    assert exc_info.value.status_code == 400
    stripe_client.checkout.sessions.create.assert_not_called()


def test_gateway_error_becomes_sanitized_500(portal, stripe_client):
    stripe_client.checkout.sessions.create.side_effect = stripe.AuthenticationError("Invalid API Key provided: sk_live_****")

    with pytest.raises(ApiError) as exc_info:
        checkout_service.create_checkout_session(portal, tier_id="basic")

    err = exc_info.value
    assert err.status_code == 500
    assert err.error == "Failed to create checkout session"
    assert "sk_live" not in err.details
    assert stripe_client.checkout.sessions.create.call_count == 1


def test_session_without_url_is_a_failure(portal, stripe_client):
    stripe_client.checkout.sessions.create.return_value = {"id": "cs_test_abc", "url": None}
    with pytest.raises(ApiError) as exc_info:
        checkout_service.create_checkout_session(portal, tier_id="basic")
    assert exc_info.value.status_code == 500
