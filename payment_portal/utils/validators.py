from typing import Optional

from payment_portal.errors import bad_request

# Préfixes des identifiants Stripe, vérifiés avant tout appel réseau
CHECKOUT_SESSION_PREFIX = "cs_"
CUSTOMER_PREFIX = "cus_"
PAYMENT_METHOD_PREFIX = "pm_"
SETUP_INTENT_PREFIX = "seti_"
PRICE_PREFIX = "price_"


def has_prefix(value: Optional[str], prefix: str) -> bool:
    return isinstance(value, str) and value.startswith(prefix)


def require_id(value: Optional[str], prefix: str, param: str) -> str:
    """
    Vérifie la présence et le préfixe d'un identifiant externe.
    Lève ApiError(400) sinon: aucune requête ne part vers Stripe.
    """
    if not value:
        raise bad_request(f"Missing required parameter: {param}")
    if not has_prefix(value, prefix):
        raise bad_request(f"Invalid {param} format", f"{param} must start with \"{prefix}\"")
    return value
