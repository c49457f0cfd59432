"""
Mise en forme des moyens de paiement Stripe pour l'API (carte ou compte bancaire US).
Aucune donnée sensible complète: uniquement marque, 4 derniers chiffres, banque.
"""
from typing import Any, Dict, Optional

from payment_portal.utils.gateway_objects import field

CARD = "card"
US_BANK_ACCOUNT = "us_bank_account"
PAYMENT_METHOD_KINDS = (CARD, US_BANK_ACCOUNT)

# Statut Stripe -> statut de vérification ACH exposé
BANK_VERIFICATION_STATUS = {
    "verified": "verified",
    "pending": "pending",
    "unverified": "requires_action",
    "unavailable": "failed",
}


def bank_verification_status(raw: Optional[str]) -> str:
    # Stripe n'expose pas toujours le statut: un compte rattaché est considéré vérifié
    if not raw:
        return "verified"
    return BANK_VERIFICATION_STATUS.get(raw, "pending")


def card_details(pm: Any) -> Optional[Dict[str, Any]]:
    card = field(pm, "card")
    if not card:
        return None
    return {
        "brand": field(card, "brand", ""),
        "last4": field(card, "last4", ""),
        "exp_month": field(card, "exp_month"),
        "exp_year": field(card, "exp_year"),
        "funding": field(card, "funding", ""),
        "country": field(card, "country", ""),
    }


def bank_account_details(pm: Any) -> Optional[Dict[str, Any]]:
    bank = field(pm, "us_bank_account")
    if not bank:
        return None
    return {
        "account_holder_type": field(bank, "account_holder_type", "individual"),
        "account_type": field(bank, "account_type", "checking"),
        "bank_name": field(bank, "bank_name", ""),
        "last4": field(bank, "last4", ""),
        "routing_number": field(bank, "routing_number", ""),
        "verification_status": bank_verification_status(field(bank, "verification_status")),
    }


def billing_details(pm: Any) -> Dict[str, Any]:
    details = field(pm, "billing_details", {})
    address = field(details, "address", {})
    return {
        "name": field(details, "name"),
        "email": field(details, "email"),
        "phone": field(details, "phone"),
        "address": {
            key: field(address, key)
            for key in ("city", "country", "line1", "line2", "postal_code", "state")
        },
    }


def format_payment_method(pm: Any, default_payment_method_id: Optional[str] = None) -> Dict[str, Any]:
    """Représentation API d'un PaymentMethod Stripe, avec le drapeau is_default."""
    kind = field(pm, "type")
    data: Dict[str, Any] = {
        "id": field(pm, "id"),
        "type": kind,
        "created": field(pm, "created"),
        "is_default": bool(default_payment_method_id) and field(pm, "id") == default_payment_method_id,
        "billing_details": billing_details(pm),
    }
    if kind == CARD and field(pm, "card"):
        data["card"] = card_details(pm)
    if kind == US_BANK_ACCOUNT and field(pm, "us_bank_account"):
        data["us_bank_account"] = bank_account_details(pm)
    return data


def summarize_payment_method(pm: Any) -> Optional[Dict[str, Any]]:
    """Résumé court (vérification de session): type + carte ou compte bancaire."""
    if not pm:
        return None
    kind = field(pm, "type")
    summary: Dict[str, Any] = {"id": field(pm, "id"), "type": kind}
    if kind == CARD:
        summary["card"] = card_details(pm)
    elif kind == US_BANK_ACCOUNT:
        summary["bankAccount"] = bank_account_details(pm)
    return summary
