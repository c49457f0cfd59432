import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from payment_portal.config import STRIPE_SECRET_KEY_NAME, environment_info, validate_required_environment
from payment_portal.errors import ConfigurationError, not_found, translate_gateway_error
from payment_portal.infra.context import PortalContext, get_portal
from payment_portal.utils.gateway_objects import list_data
from payment_portal.utils.rate_limit import rate_limit_health_info

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])
stripe_router = APIRouter(prefix="/api/v1/stripe", tags=["Health"])


@router.get("")
def health_root():
    return {"ok": True}


@router.get("/rate-limit")
def health_rate_limit(request: Request):
    return rate_limit_health_info(request)


@router.get("/secrets", include_in_schema=False)
def health_secrets(portal: PortalContext = Depends(get_portal)) -> Dict[str, Any]:
    """
    Diagnostic de résolution de la clé secrète (jamais la valeur).
    Désactivé si ENABLE_DEBUG_ROUTES est faux.
    """
    if not portal.settings.debug_routes_enabled:
        raise not_found("Not found")
    value = portal.secrets.resolve(STRIPE_SECRET_KEY_NAME)
    return {
        "environment": environment_info(portal.settings),
        "validation": validate_required_environment(),
        "parameter_path": portal.secrets.parameter_path(STRIPE_SECRET_KEY_NAME),
        "secret_found": bool(value),
        "secret_length": len(value) if value else 0,
        "starts_with_sk": bool(value) and value.startswith("sk_"),
        "from_parameter_store": portal.secrets.is_cached(STRIPE_SECRET_KEY_NAME),
    }


@stripe_router.get("/test-connection")
def test_connection(portal: PortalContext = Depends(get_portal)) -> Dict[str, Any]:
    """Sonde Stripe: liste au plus 3 produits."""
    try:
        products = portal.stripe().products.list(params={"limit": 3})
    except Exception as e:
        logger.exception("stripe.test_connection échec")
        raise translate_gateway_error(e, failure="Stripe connection failed")
    return {
        "success": True,
        "message": "Stripe connection successful",
        "account": {"connected": True, "productCount": len(list_data(products))},
    }


@stripe_router.get("/config")
def browser_config(portal: PortalContext = Depends(get_portal)) -> Dict[str, Any]:
    """Configuration publique pour Stripe.js (clé publishable uniquement)."""
    try:
        config = portal.gateway.browser_client()
    except ConfigurationError as e:
        logger.error("stripe.config indisponible: %s", e)
        raise translate_gateway_error(e, failure="Payment configuration unavailable")
    return {"success": True, **config.to_public_dict()}
