"""
Stratégies de vérification d'une session Checkout, par type de moyen de paiement.

- Carte: le paiement est immédiat, la session doit être "paid".
- Compte bancaire US (ACH): le premier prélèvement est différé (3-5 jours ouvrés);
  la session reste "unpaid", seul le statut de l'abonnement fait foi.

Ajouter un moyen de paiement = ajouter une stratégie dans STRATEGIES.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from payment_portal.ach.mandate import SETTLEMENT_NOTICE
from payment_portal.payment_methods.formatting import CARD, US_BANK_ACCOUNT
from payment_portal.utils.gateway_objects import expanded, field

# (error, details)
Failure = Tuple[str, str]

BANK_TRANSFER_ACCEPTED_STATUSES = frozenset({"active", "trialing", "past_due"})


@dataclass(frozen=True)
class CardPaymentVerification:
    kind: str = CARD
    verification_method: str = "card_payment"
    settlement_notice: Optional[str] = None

    def failure(self, session: Any, subscription: Any) -> Optional[Failure]:
        status = field(session, "payment_status", "")
        if status != "paid":
            return "Payment not completed", f"Payment status: {status}"
        return None


@dataclass(frozen=True)
class BankTransferVerification:
    kind: str = US_BANK_ACCOUNT
    verification_method: str = "ach_subscription"
    settlement_notice: Optional[str] = SETTLEMENT_NOTICE

    def failure(self, session: Any, subscription: Any) -> Optional[Failure]:
        # payment_status ignoré: "unpaid" est normal pendant la compensation bancaire
        status = field(subscription, "status", "")
        if status not in BANK_TRANSFER_ACCEPTED_STATUSES:
            return "Subscription not active", f"Subscription status: {status}"
        return None


STRATEGIES: Dict[str, Any] = {
    CARD: CardPaymentVerification(),
    US_BANK_ACCOUNT: BankTransferVerification(),
}


def strategy_for(kind: Optional[str]):
    """Type inconnu ou non détecté -> chemin carte (paiement immédiat exigé)."""
    return STRATEGIES.get(kind or CARD, STRATEGIES[CARD])


def detect_payment_method(session: Any) -> Optional[Any]:
    """
    Moyen de paiement utilisé pour la session (objet Stripe développé) ou None.
    Ordre: payment_intent, puis setup_intent (ACH: autorisation sans débit immédiat),
    puis moyen par défaut de l'abonnement.
    """
    candidates = (
        ("payment_intent", "payment_method"),
        ("setup_intent", "payment_method"),
        ("subscription", "default_payment_method"),
    )
    for holder, key in candidates:
        container = expanded(field(session, holder))
        pm = expanded(field(container, key))
        if pm is not None and field(pm, "type"):
            return pm
    return None


def classify(session: Any) -> Tuple[Optional[Any], Any]:
    """Retourne (moyen de paiement détecté ou None, stratégie à appliquer)."""
    pm = detect_payment_method(session)
    return pm, strategy_for(field(pm, "type") if pm is not None else None)
