"""
Cas d'usage 'billing_portal': ouvre une session du portail de facturation hébergé par Stripe.
"""
import logging
from typing import Any, Dict, Optional

from payment_portal.errors import ApiError, translate_gateway_error
from payment_portal.infra.context import PortalContext
from payment_portal.payment_methods.service import retrieve_customer
from payment_portal.utils.gateway_objects import field
from payment_portal.utils.validators import CUSTOMER_PREFIX, require_id

logger = logging.getLogger(__name__)

PORTAL_FAILED = "Failed to create portal session"


def default_return_url(origin: Optional[str], base_url: str) -> str:
    return f"{(origin or base_url).rstrip('/')}/dashboard"


def create_portal_session(
    portal: PortalContext,
    customer_id: Optional[str],
    return_url: Optional[str] = None,
    origin: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Crée la session du portail client.
    - return_url par défaut: {Origin ou APP_BASE_URL}/dashboard
    - 404 si client inconnu ou supprimé
    """
    require_id(customer_id, CUSTOMER_PREFIX, "customer_id")
    client = portal.stripe()
    retrieve_customer(client, customer_id)

    target = return_url or default_return_url(origin, portal.settings.app_base_url)
    try:
        session = client.billing_portal.sessions.create(params={"customer": customer_id, "return_url": target})
    except Exception as e:
        logger.exception("billing_portal.create échec customer=%s", customer_id)
        raise translate_gateway_error(e, failure=PORTAL_FAILED)

    url = field(session, "url")
    if not url:
        raise ApiError(500, PORTAL_FAILED, "Stripe did not return a portal URL")
    logger.info("billing_portal.create ok customer=%s session=%s", customer_id, field(session, "id"))
    return {"success": True, "portal_url": url, "customer_id": customer_id}
