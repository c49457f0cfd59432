import pytest

from payment_portal.sessions.strategies import (
    BankTransferVerification,
    CardPaymentVerification,
    classify,
    strategy_for,
)


def test_card_session_is_classified_from_payment_intent(make_session):
    pm, strategy = classify(make_session(method="card"))
    assert pm["type"] == "card"
    assert isinstance(strategy, CardPaymentVerification)


def test_bank_session_is_classified_from_setup_intent(make_session):
    pm, strategy = classify(make_session(method="us_bank_account"))
    assert pm["type"] == "us_bank_account"
    assert strategy.verification_method == "ach_subscription"


def test_payment_intent_is_inspected_before_setup_intent(make_session, make_payment_method):
    session = make_session(method="card")
    session["setup_intent"] = {"id": "seti_1", "payment_method": make_payment_method("us_bank_account")}
    pm, strategy = classify(session)
    assert pm["type"] == "card"


def test_subscription_default_method_is_last_resort(make_session, make_subscription, make_payment_method):
    sub = make_subscription(default_payment_method=make_payment_method("us_bank_account"))
    pm, strategy = classify(make_session(method=None, subscription=sub))
    assert isinstance(strategy, BankTransferVerification)


def test_unexpanded_payment_method_is_not_detected(make_session):
    session = make_session(method=None)
    session["payment_intent"] = {"id": "pi_1", "payment_method": "pm_only_an_id"}
    pm, strategy = classify(session)
    assert pm is None
    assert isinstance(strategy, CardPaymentVerification)


@pytest.mark.parametrize("kind", [None, "card", "link", "sepa_debit"])
def test_unknown_kinds_fall_back_to_card_strategy(kind):
    assert isinstance(strategy_for(kind), CardPaymentVerification)


def test_card_requires_paid_even_with_active_subscription(make_session, make_subscription):
    strategy = CardPaymentVerification()
    assert strategy.failure(make_session(payment_status="paid"), make_subscription("active")) is None
    failure = strategy.failure(make_session(payment_status="unpaid"), make_subscription("active"))
    assert failure == ("Payment not completed", "Payment status: unpaid")


@pytest.mark.parametrize("status", ["active", "trialing", "past_due"])
def test_bank_transfer_accepts_settling_subscriptions(make_session, make_subscription, status):
    strategy = BankTransferVerification()
    assert strategy.failure(make_session(payment_status="unpaid"), make_subscription(status)) is None


@pytest.mark.parametrize("status", ["canceled", "incomplete", "incomplete_expired", "unpaid"])
def test_bank_transfer_rejects_other_subscription_statuses(make_session, make_subscription, status):
    strategy = BankTransferVerification()
    assert strategy.failure(make_session(payment_status="paid"), make_subscription(status)) is not None
