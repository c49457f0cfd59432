"""
Cas d'usage 'checkout': construit et crée une session Checkout Stripe (mode abonnement).
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from payment_portal.ach.mandate import CHECKOUT_SUBMIT_MESSAGE
from payment_portal.catalog import repository as catalog
from payment_portal.catalog.models import PricingTier
from payment_portal.errors import ApiError, bad_request, translate_gateway_error
from payment_portal.infra.context import PortalContext
from payment_portal.utils.gateway_objects import field
from payment_portal.utils.validators import CUSTOMER_PREFIX, PRICE_PREFIX, has_prefix, require_id

logger = logging.getLogger(__name__)

CHECKOUT_FAILED = "Failed to create checkout session"

# Préférence client -> types de moyens de paiement proposés par Stripe
PAYMENT_METHOD_TYPES: Dict[str, List[str]] = {
    "card": ["card"],
    "ach": ["us_bank_account"],
    "both": ["card", "us_bank_account"],
}
DEFAULT_PREFERENCE = "both"


def payment_method_types_for(preference: Optional[str]) -> List[str]:
    return list(PAYMENT_METHOD_TYPES.get(preference or DEFAULT_PREFERENCE, PAYMENT_METHOD_TYPES[DEFAULT_PREFERENCE]))


def bank_transfer_offered(types: List[str]) -> bool:
    return "us_bank_account" in types


def resolve_price(
    price_id: Optional[str],
    tier_id: Optional[str],
    billing_cycle: str,
) -> Tuple[str, Optional[PricingTier]]:
    """
    Détermine le price Stripe à facturer.
    - priceId "price_..." : utilisé tel quel (tier retrouvé si connu du catalogue)
    - sinon priceId/tierId désigne un tier: on prend son price pour le cycle demandé
    Lève 400 si tier inconnu ou sans price pour ce cycle (pas de repli sur le mensuel).
    """
    ref = price_id or tier_id
    if not ref:
        raise bad_request("priceId is required", "Provide either priceId or tierId.")

    if has_prefix(ref, PRICE_PREFIX):
        return ref, catalog.get_tier_by_price_id(ref)

    tier = catalog.get_tier_by_id(ref)
    if not tier:
        raise bad_request(f"Invalid pricing tier: {ref}")
    resolved = tier.price_id_for(billing_cycle)
    if not resolved:
        raise bad_request(f"Stripe price ID not available for {billing_cycle} billing on tier: {ref}")
    return resolved, tier


def build_session_params(
    *,
    price_id: str,
    base_url: str,
    preference: Optional[str] = None,
    customer_id: Optional[str] = None,
    customer_email: Optional[str] = None,
    metadata: Optional[Dict[str, str]] = None,
    tier: Optional[PricingTier] = None,
    billing_cycle: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Paramètres de checkout.sessions.create (aucun appel réseau).
    """
    preference = preference or DEFAULT_PREFERENCE
    types = payment_method_types_for(preference)
    created_at = (now or datetime.now(timezone.utc)).isoformat()

    session_metadata: Dict[str, str] = dict(metadata or {})
    session_metadata["payment_method_type"] = preference
    session_metadata["created_at"] = created_at
    if tier:
        session_metadata["tier_id"] = tier.id
    if tier and billing_cycle:
        session_metadata["billing_cycle"] = billing_cycle

    subscription_metadata = dict(session_metadata)
    subscription_metadata["ach_enabled"] = str(bank_transfer_offered(types)).lower()

    params: Dict[str, Any] = {
        "mode": "subscription",
        "payment_method_types": types,
        "line_items": [{"price": price_id, "quantity": 1}],
        "success_url": f"{base_url}/success?session_id={{CHECKOUT_SESSION_ID}}",
        "cancel_url": f"{base_url}/pricing",
        "billing_address_collection": "required",
        "tax_id_collection": {"enabled": True},
        "allow_promotion_codes": True,
        "subscription_data": {"metadata": subscription_metadata},
        "metadata": session_metadata,
    }

    if bank_transfer_offered(types):
        # Prélèvement différé: le moyen de paiement n'est exigé que si nécessaire
        params["payment_method_collection"] = "if_required"
        params["payment_method_options"] = {"us_bank_account": {"verification_method": "automatic"}}
        params["custom_text"] = {"submit": {"message": CHECKOUT_SUBMIT_MESSAGE}}

    if customer_id:
        params["customer"] = customer_id
    elif customer_email:
        params["customer_email"] = customer_email

    return params


def create_checkout_session(
    portal: PortalContext,
    *,
    price_id: Optional[str] = None,
    tier_id: Optional[str] = None,
    billing_cycle: str = "monthly",
    preference: Optional[str] = None,
    customer_id: Optional[str] = None,
    customer_email: Optional[str] = None,
    metadata: Optional[Dict[str, str]] = None,
) -> Dict[str, str]:
    """
    Crée la session Checkout et renvoie {url, sessionId}.
    - Entrées validées avant tout appel Stripe (400)
    - Erreur Stripe -> 500 "Failed to create checkout session" + détail assaini
    - Pas de retry: le navigateur relance si besoin
    """
    resolved_price, tier = resolve_price(price_id, tier_id, billing_cycle)
    if customer_id:
        require_id(customer_id, CUSTOMER_PREFIX, "customerId")

    params = build_session_params(
        price_id=resolved_price,
        base_url=portal.settings.app_base_url,
        preference=preference,
        customer_id=customer_id,
        customer_email=customer_email,
        metadata=metadata,
        tier=tier,
        billing_cycle=billing_cycle,
    )

    try:
        session = portal.stripe().checkout.sessions.create(params=params)
    except Exception as e:
        logger.exception("checkout.create échec price=%s preference=%s", resolved_price, params["metadata"]["payment_method_type"])
        raise translate_gateway_error(e, failure=CHECKOUT_FAILED)

    url = field(session, "url")
    if not url:
        logger.error("checkout.create session sans url id=%s", field(session, "id"))
        raise ApiError(500, CHECKOUT_FAILED, "Stripe checkout session creation failed: No redirect URL provided")

    logger.info("checkout.create ok session=%s price=%s", field(session, "id"), resolved_price)
    return {"url": url, "sessionId": field(session, "id")}
