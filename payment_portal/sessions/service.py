"""
Cas d'usage 'sessions': vérification d'une session Checkout terminée et données dérivées
(plan, montant, prochaine échéance) pour la page de confirmation.
"""
import calendar
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from payment_portal.catalog import repository as catalog
from payment_portal.errors import bad_request, not_found, translate_gateway_error
from payment_portal.infra.context import PortalContext
from payment_portal.payment_methods.formatting import summarize_payment_method
from payment_portal.sessions.strategies import classify
from payment_portal.utils.gateway_objects import expanded, field, list_data, object_id
from payment_portal.utils.validators import CHECKOUT_SESSION_PREFIX, require_id

logger = logging.getLogger(__name__)

VERIFY_FAILED = "Failed to verify session"
SESSION_NOT_FOUND = "Session not found or expired"
SESSION_NOT_FOUND_DETAILS = (
    "This checkout session either doesn't exist, has expired (sessions expire after 24 hours), "
    "or belongs to a different Stripe account. Please try creating a new checkout session."
)
NO_SUCH_SESSION_HINT = "No such checkout.session"

VERIFY_EXPAND = [
    "subscription",
    "subscription.default_payment_method",
    "customer",
    "payment_intent.payment_method",
    "setup_intent.payment_method",
]
DETAILS_EXPAND = ["subscription", "customer", "payment_intent"]
RECENT_SESSIONS_LIMIT = 5


def to_iso(ts: Optional[int]) -> Optional[str]:
    """Timestamp Unix (secondes) -> ISO 8601 UTC suffixé Z."""
    if not ts:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat().replace("+00:00", "Z")


def add_one_month(now: datetime) -> datetime:
    # 31 janvier -> 28/29 février
    year = now.year + (now.month // 12)
    month = now.month % 12 + 1
    day = min(now.day, calendar.monthrange(year, month)[1])
    return now.replace(year=year, month=month, day=day)


def period_end(subscription: Any) -> Optional[int]:
    """
    Fin de période courante: sur l'abonnement, sinon sur le premier item
    (les versions récentes de l'API Stripe l'y ont déplacée).
    """
    value = field(subscription, "current_period_end")
    if value:
        return value
    items = list_data(field(subscription, "items"))
    return field(items[0], "current_period_end") if items else None


def period_start(subscription: Any) -> Optional[int]:
    value = field(subscription, "current_period_start")
    if value:
        return value
    items = list_data(field(subscription, "items"))
    return field(items[0], "current_period_start") if items else None


def next_billing_date(subscription: Any, now: Optional[datetime] = None) -> Tuple[str, bool]:
    """
    Prochaine échéance (ISO) et indicateur "estimée".
    Sans current_period_end, on affiche une estimation à un mois plutôt qu'un champ vide.
    """
    end = period_end(subscription)
    if end:
        return to_iso(end), False
    estimate = add_one_month(now or datetime.now(timezone.utc))
    return estimate.isoformat().replace("+00:00", "Z"), True


def _retrieve_session(portal: PortalContext, session_id: str, expand: List[str], failure: str) -> Any:
    try:
        return portal.stripe().checkout.sessions.retrieve(session_id, params={"expand": expand})
    except Exception as e:
        logger.exception("sessions.retrieve échec session=%s", session_id)
        raise translate_gateway_error(
            e,
            failure=failure,
            not_found_error=SESSION_NOT_FOUND,
            not_found_details=SESSION_NOT_FOUND_DETAILS,
            message_hint=NO_SUCH_SESSION_HINT,
        )


def _customer_contact(session: Any) -> Tuple[str, Optional[str]]:
    customer = expanded(field(session, "customer"))
    details = field(session, "customer_details")
    email = field(customer, "email") or field(details, "email") or field(session, "customer_email", "")
    name = field(customer, "name") or field(details, "name")
    return email, name


def _first_price(subscription: Any) -> Any:
    items = list_data(field(subscription, "items"))
    if not items:
        raise bad_request("No subscription items found")
    return field(items[0], "price")


def verify_session(portal: PortalContext, session_id: Optional[str]) -> Dict[str, Any]:
    """
    Vérifie une session Checkout terminée.
    Étapes:
      1) format de l'identifiant (avant tout appel réseau)
      2) lecture de la session (abonnement, client, intents développés)
      3) session "complete" et abonnement rattaché
      4) classification du moyen de paiement -> stratégie carte / ACH
      5) données dérivées: plan, montant, intervalle, prochaine échéance
    Erreurs: 400 entrée/état, 404 session inconnue ou expirée, 500 Stripe.
    """
    require_id(session_id, CHECKOUT_SESSION_PREFIX, "session_id")
    session = _retrieve_session(portal, session_id, VERIFY_EXPAND, VERIFY_FAILED)

    status = field(session, "status")
    if status != "complete":
        raise bad_request("Checkout session not completed", f"Session status: {status}")

    subscription = expanded(field(session, "subscription"))
    if subscription is None:
        raise bad_request("No subscription found for this session")

    payment_method, strategy = classify(session)
    failure = strategy.failure(session, subscription)
    if failure:
        logger.info(
            "sessions.verify refus session=%s method=%s reason=%s",
            session_id, strategy.verification_method, failure[1],
        )
        raise bad_request(*failure)

    price = _first_price(subscription)
    price_id = object_id(price)
    recurring = field(price, "recurring")
    billing_date, estimated = next_billing_date(subscription)
    email, name = _customer_contact(session)

    result: Dict[str, Any] = {
        "success": True,
        "subscription": {
            "id": field(subscription, "id"),
            "status": field(subscription, "status"),
            "planName": catalog.plan_name_for_price(price_id),
            "amount": (field(price, "unit_amount", 0) or 0) / 100,
            "currency": field(price, "currency", "usd"),
            "interval": field(recurring, "interval", "month"),
            "nextBillingDate": billing_date,
            "nextBillingDateEstimated": estimated,
            "customerEmail": email,
            "customerName": name,
        },
        "paymentMethod": summarize_payment_method(payment_method),
        "paymentMethodType": field(payment_method, "type") or strategy.kind,
        "verificationMethod": strategy.verification_method,
    }
    if strategy.settlement_notice:
        result["settlementNotice"] = strategy.settlement_notice

    logger.info(
        "sessions.verify ok session=%s subscription=%s method=%s",
        session_id, field(subscription, "id"), strategy.verification_method,
    )
    return result


def get_session_details(portal: PortalContext, session_id: Optional[str]) -> Dict[str, Any]:
    """
    Détail d'une session (client, montants, métadonnées, abonnement) pour le tableau de bord.
    """
    require_id(session_id, CHECKOUT_SESSION_PREFIX, "session_id")
    session = _retrieve_session(portal, session_id, DETAILS_EXPAND, "Failed to retrieve session")

    customer = expanded(field(session, "customer"))
    if customer is None:
        raise not_found("No customer found for this session")

    data: Dict[str, Any] = {
        "id": field(session, "id"),
        "paymentStatus": field(session, "payment_status"),
        "paymentIntent": object_id(field(session, "payment_intent")),
        "amountTotal": field(session, "amount_total", 0),
        "currency": field(session, "currency", "usd"),
        "customer": {
            "id": field(customer, "id"),
            "email": field(customer, "email") or field(session, "customer_email", ""),
            "name": field(customer, "name"),
            "phone": field(customer, "phone"),
        },
        "metadata": dict(field(session, "metadata", {}) or {}),
    }

    subscription = expanded(field(session, "subscription"))
    if subscription is not None:
        price = _first_price(subscription)
        tier = catalog.get_tier_by_price_id(object_id(price) or "")
        recurring = field(price, "recurring")
        billing_date, estimated = next_billing_date(subscription)
        data["subscription"] = {
            "id": field(subscription, "id"),
            "status": field(subscription, "status"),
            "planName": tier.name if tier else catalog.UNKNOWN_PLAN_NAME,
            "planId": tier.id if tier else "unknown",
            "amount": (field(price, "unit_amount", 0) or 0) / 100,
            "currency": field(price, "currency", "usd"),
            "interval": field(recurring, "interval", "month"),
            "intervalCount": field(recurring, "interval_count", 1),
            "currentPeriodStart": to_iso(period_start(subscription)),
            "currentPeriodEnd": to_iso(period_end(subscription)),
            "nextBillingDate": billing_date,
            "nextBillingDateEstimated": estimated,
            "cancelAtPeriodEnd": bool(field(subscription, "cancel_at_period_end", False)),
            "trialEnd": to_iso(field(subscription, "trial_end")),
        }

    return {"success": True, "session": data}


def list_recent_sessions(portal: PortalContext, limit: int = RECENT_SESSIONS_LIMIT) -> Dict[str, Any]:
    """Dernières sessions Checkout du compte (diagnostic)."""
    try:
        sessions = portal.stripe().checkout.sessions.list(params={"limit": limit})
    except Exception as e:
        logger.exception("sessions.list échec")
        raise translate_gateway_error(e, failure="Failed to list sessions")

    rows = [
        {
            "id": field(s, "id"),
            "status": field(s, "status"),
            "payment_status": field(s, "payment_status"),
            "created": to_iso(field(s, "created")),
            "customer_email": field(s, "customer_email"),
            "amount_total": field(s, "amount_total"),
            "url": field(s, "url"),
        }
        for s in list_data(sessions)
    ]
    return {"success": True, "message": "Recent checkout sessions", "sessions": rows, "count": len(rows)}
