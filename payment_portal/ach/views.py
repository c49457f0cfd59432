from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from payment_portal.ach import service as ach_service
from payment_portal.infra.context import PortalContext, get_portal
from payment_portal.utils.rate_limit import client_ip, optional_rate_limit

router = APIRouter(prefix="/api/v1/stripe/ach", tags=["ACH API"])


class AchSetupRequest(BaseModel):
    customer_id: Optional[str] = None
    verification_method: Optional[Literal["microdeposits", "instant"]] = None
    metadata: Optional[Dict[str, str]] = None


# module payment_portal.ach.views
@router.post("/setup", dependencies=[Depends(optional_rate_limit(times=5, seconds=60))])
def create_ach_setup(
    payload: AchSetupRequest,
    request: Request,
    portal: PortalContext = Depends(get_portal),
) -> Dict[str, Any]:
    """
    Prépare l'ajout d'un compte bancaire US (SetupIntent + texte de mandat).
    - Sécurité: rate limit (5 req / 60s)
    """
    return ach_service.create_ach_setup(
        portal,
        payload.customer_id,
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
        verification_method=payload.verification_method,
        metadata=payload.metadata,
    )


@router.get("/verify")
def verify_ach_setup(setup_intent_id: Optional[str] = None, portal: PortalContext = Depends(get_portal)) -> Dict[str, Any]:
    return ach_service.verify_ach_setup(portal, setup_intent_id)
