import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from payment_portal.infra.context import PortalContext, get_portal
from payment_portal.payment_methods import service as pm_service
from payment_portal.utils.rate_limit import optional_rate_limit

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/stripe", tags=["Payment Methods API"])


class PaymentMethodRequest(BaseModel):
    customer_id: Optional[str] = None
    payment_method_id: Optional[str] = None


# module payment_portal.payment_methods.views
@router.get("/payment-methods")
def list_payment_methods(
    customer_id: Optional[str] = None,
    type: Optional[str] = "all",
    portal: PortalContext = Depends(get_portal),
) -> Dict[str, Any]:
    """
    Liste les cartes et comptes bancaires d'un client.
    - Query: customer_id=cus_..., type=card|us_bank_account|all
    """
    return pm_service.list_payment_methods(portal, customer_id, type)


@router.post("/payment-methods", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def set_default_payment_method(payload: PaymentMethodRequest, portal: PortalContext = Depends(get_portal)) -> Dict[str, Any]:
    """
    Définit le moyen de paiement par défaut (factures futures).
    - Sécurité: rate limit (10 req / 60s), propriété vérifiée (403)
    """
    return pm_service.set_default_payment_method(portal, payload.customer_id, payload.payment_method_id)


@router.delete("/payment-methods", dependencies=[Depends(optional_rate_limit(times=3, seconds=60))])
def remove_payment_method(payload: PaymentMethodRequest, portal: PortalContext = Depends(get_portal)) -> Dict[str, Any]:
    """
    Supprime (détache) un moyen de paiement.
    - Sécurité: rate limit strict (3 req / 60s)
    - Refus si seul moyen d'un client avec abonnement actif
    """
    return pm_service.remove_payment_method(portal, payload.customer_id, payload.payment_method_id)
