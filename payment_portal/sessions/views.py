import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

from payment_portal.errors import not_found
from payment_portal.infra.context import PortalContext, get_portal
from payment_portal.sessions import service as sessions_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/stripe", tags=["Sessions API"])


# module payment_portal.sessions.views
@router.get("/verify-session")
def verify_session(session_id: Optional[str] = None, portal: PortalContext = Depends(get_portal)) -> Dict[str, Any]:
    """
    Vérifie une session Checkout terminée (page de succès).
    - Carte: payment_status doit valoir "paid"
    - ACH: statut d'abonnement active/trialing/past_due (session "unpaid" acceptée)
    - Réponse: {success, subscription, paymentMethod, paymentMethodType, verificationMethod}
    - Erreurs: 400 id invalide ou session non conforme, 404 inconnue/expirée, 500 Stripe
    """
    return sessions_service.verify_session(portal, session_id)


@router.get("/session")
def get_session(session_id: Optional[str] = None, portal: PortalContext = Depends(get_portal)) -> Dict[str, Any]:
    """Détail d'une session Checkout (client, montants, abonnement)."""
    return sessions_service.get_session_details(portal, session_id)


@router.get("/sessions/recent", include_in_schema=False)
def list_recent_sessions(portal: PortalContext = Depends(get_portal)) -> Dict[str, Any]:
    """Diagnostic: 5 dernières sessions. Désactivé si ENABLE_DEBUG_ROUTES est faux."""
    if not portal.settings.debug_routes_enabled:
        raise not_found("Not found")
    return sessions_service.list_recent_sessions(portal)
