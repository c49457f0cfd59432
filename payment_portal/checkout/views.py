import logging
from typing import Dict, Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from payment_portal.checkout import service as checkout_service
from payment_portal.infra.context import PortalContext, get_portal
from payment_portal.utils.rate_limit import optional_rate_limit

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/stripe", tags=["Checkout API"])


class CheckoutRequest(BaseModel):
    """
    Corps JSON de POST /checkout.
    - priceId: price Stripe ("price_...") ou identifiant de tier ("professional")
    - tierId: identifiant de tier explicite (alternative à priceId)
    """
    model_config = ConfigDict(populate_by_name=True)

    price_id: Optional[str] = Field(default=None, alias="priceId")
    tier_id: Optional[str] = Field(default=None, alias="tierId")
    billing_cycle: Literal["monthly", "yearly"] = Field(default="monthly", alias="billingCycle")
    customer_id: Optional[str] = Field(default=None, alias="customerId")
    customer_email: Optional[str] = Field(default=None, alias="customerEmail")
    payment_method_type: Literal["card", "ach", "both"] = "both"
    metadata: Optional[Dict[str, str]] = None


# module payment_portal.checkout.views
@router.post("/checkout", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def create_checkout_session(payload: CheckoutRequest, portal: PortalContext = Depends(get_portal)) -> Dict[str, str]:
    """
    Crée une session Checkout Stripe (abonnement) et renvoie {url, sessionId}.
    - Sécurité: rate limit (10 req / 60s)
    - Moyens proposés: card | ach | both (défaut)
    - Erreurs: 400 entrée invalide, 500 échec Stripe (détail assaini)
    """
    return checkout_service.create_checkout_session(
        portal,
        price_id=payload.price_id,
        tier_id=payload.tier_id,
        billing_cycle=payload.billing_cycle,
        preference=payload.payment_method_type,
        customer_id=payload.customer_id,
        customer_email=payload.customer_email,
        metadata=payload.metadata,
    )
