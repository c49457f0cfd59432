import os

# Pas de Redis en tests: le rate limiting reste inactif sauf fallback mémoire explicite
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import pytest
from typing import Any, Dict, Generator, List, Optional
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from payment_portal.app_setup.factory import create_app
from payment_portal.config import Settings
from payment_portal.infra.context import PortalContext, get_portal
from payment_portal.infra.parameter_store import SecretResolver
from payment_portal.infra.stripe_gateway import GatewayClients

PROFESSIONAL_MONTHLY = "price_1Rsbj73knPyAFyt5qcAlh8Lw"


# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "/tests/unit/" in nodeid or nodeid.startswith("tests/unit/"):
            item.add_marker(pytest.mark.unit)
        elif "/tests/integration/" in nodeid or nodeid.startswith("tests/integration/"):
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        deployment_env="staging",
        deployment_env_explicit=True,
        app_mode="production",
        stripe_publishable_key="pk_test_123",
        app_base_url="https://portal.example.test",
        debug_routes_enabled=True,
    )


@pytest.fixture
def stripe_client() -> MagicMock:
    """StripeClient simulé: chaque service (checkout.sessions, customers, ...) est un MagicMock."""
    return MagicMock(name="StripeClient")


@pytest.fixture
def portal(settings, stripe_client) -> PortalContext:
    resolver = SecretResolver(settings, ssm_client=MagicMock(name="ssm"))
    gateway = MagicMock(spec=GatewayClients)
    gateway.server_client.return_value = stripe_client
    gateway.browser_client.side_effect = lambda: GatewayClients(settings, resolver).browser_client()
    return PortalContext(settings=settings, secrets=resolver, gateway=gateway)


@pytest.fixture
def app(settings, portal):
    fastapi_app = create_app(settings)
    fastapi_app.state.portal = portal
    fastapi_app.dependency_overrides[get_portal] = lambda: portal
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c


# --- Objets Stripe simulés (dicts: mêmes clés que l'API) ---

@pytest.fixture
def make_payment_method():
    def _make(pm_type: str = "card", pm_id: str = "pm_123", customer: Optional[str] = "cus_123", **extra) -> Dict[str, Any]:
        pm: Dict[str, Any] = {
            "id": pm_id,
            "object": "payment_method",
            "type": pm_type,
            "customer": customer,
            "created": 1735689600,
            "billing_details": {"name": "Dr. Jane Doe", "email": "jane@clinic.test", "phone": None, "address": {}},
        }
        if pm_type == "card":
            pm["card"] = {"brand": "visa", "last4": "4242", "exp_month": 12, "exp_year": 2030, "funding": "credit", "country": "US"}
        elif pm_type == "us_bank_account":
            pm["us_bank_account"] = {
                "bank_name": "STRIPE TEST BANK",
                "last4": "6789",
                "routing_number": "110000000",
                "account_type": "checking",
                "account_holder_type": "company",
            }
        pm.update(extra)
        return pm
    return _make


@pytest.fixture
def make_subscription():
    def _make(status: str = "active", price_id: str = PROFESSIONAL_MONTHLY, current_period_end: Optional[int] = 1738368000, **extra) -> Dict[str, Any]:
        sub: Dict[str, Any] = {
            "id": "sub_123",
            "object": "subscription",
            "status": status,
            "current_period_start": 1735689600,
            "current_period_end": current_period_end,
            "cancel_at_period_end": False,
            "items": {
                "object": "list",
                "data": [
                    {
                        "id": "si_123",
                        "price": {
                            "id": price_id,
                            "unit_amount": 7900,
                            "currency": "usd",
                            "recurring": {"interval": "month", "interval_count": 1},
                        },
                    }
                ],
            },
        }
        sub.update(extra)
        return sub
    return _make


@pytest.fixture
def make_session(make_payment_method, make_subscription):
    """
    Session Checkout terminée.
    - method="card": payment_intent développé avec une carte
    - method="us_bank_account": setup_intent développé avec un compte bancaire (pas de payment_intent)
    """
    def _make(
        method: Optional[str] = "card",
        status: str = "complete",
        payment_status: str = "paid",
        subscription: Optional[Dict[str, Any]] = None,
        with_subscription: bool = True,
    ) -> Dict[str, Any]:
        session: Dict[str, Any] = {
            "id": "cs_test_123",
            "object": "checkout.session",
            "status": status,
            "payment_status": payment_status,
            "customer": {"id": "cus_123", "email": "jane@clinic.test", "name": "Dr. Jane Doe"},
            "customer_email": None,
            "amount_total": 7900,
            "currency": "usd",
            "metadata": {"payment_method_type": "both"},
            "payment_intent": None,
            "setup_intent": None,
            "subscription": (subscription or make_subscription()) if with_subscription else None,
        }
        if method == "card":
            session["payment_intent"] = {"id": "pi_123", "payment_method": make_payment_method("card")}
        elif method == "us_bank_account":
            session["setup_intent"] = {"id": "seti_123", "payment_method": make_payment_method("us_bank_account")}
        return session
    return _make


def list_object(items: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"object": "list", "data": items, "has_more": False}


@pytest.fixture
def stripe_list():
    return list_object
