from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from payment_portal.billing_portal import service as portal_service
from payment_portal.infra.context import PortalContext, get_portal

router = APIRouter(prefix="/api/v1/stripe", tags=["Billing Portal API"])


class PortalRequest(BaseModel):
    customer_id: Optional[str] = None
    return_url: Optional[str] = None


# module payment_portal.billing_portal.views
@router.post("/portal")
def create_portal_session(
    payload: PortalRequest,
    request: Request,
    portal: PortalContext = Depends(get_portal),
) -> Dict[str, Any]:
    """Ouvre le portail de facturation Stripe et renvoie {portal_url}."""
    return portal_service.create_portal_session(
        portal,
        payload.customer_id,
        return_url=payload.return_url,
        origin=request.headers.get("origin"),
    )
