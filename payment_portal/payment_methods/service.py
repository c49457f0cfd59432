"""
Cas d'usage 'payment_methods': lister, définir par défaut, supprimer les moyens de paiement
enregistrés d'un client Stripe. Aucun état local: Stripe fait autorité.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Sequence

from payment_portal.errors import ApiError, bad_request, not_found, translate_gateway_error
from payment_portal.infra.context import PortalContext
from payment_portal.payment_methods.formatting import (
    CARD,
    PAYMENT_METHOD_KINDS,
    US_BANK_ACCOUNT,
    format_payment_method,
)
from payment_portal.utils.gateway_objects import field, list_data, object_id
from payment_portal.utils.validators import CUSTOMER_PREFIX, PAYMENT_METHOD_PREFIX, require_id

logger = logging.getLogger(__name__)

LIST_FILTERS = ("all",) + PAYMENT_METHOD_KINDS


def retrieve_customer(client: Any, customer_id: str) -> Any:
    """Client Stripe existant et non supprimé, sinon 404."""
    try:
        customer = client.customers.retrieve(customer_id)
    except Exception as e:
        logger.exception("customers.retrieve échec customer=%s", customer_id)
        raise translate_gateway_error(
            e,
            failure="Failed to retrieve customer",
            not_found_error="Customer not found",
            message_hint="No such customer",
        )
    if field(customer, "deleted", False):
        raise not_found("Customer has been deleted")
    return customer


def default_payment_method_id(customer: Any) -> Optional[str]:
    return object_id(field(field(customer, "invoice_settings"), "default_payment_method"))


def retrieve_owned_payment_method(client: Any, customer_id: str, payment_method_id: str) -> Any:
    """Moyen de paiement existant et rattaché au client (404 / 403 sinon)."""
    try:
        pm = client.payment_methods.retrieve(payment_method_id)
    except Exception as e:
        logger.exception("payment_methods.retrieve échec pm=%s", payment_method_id)
        raise translate_gateway_error(
            e,
            failure="Failed to retrieve payment method",
            not_found_error="Payment method not found",
            message_hint="No such PaymentMethod",
        )
    if object_id(field(pm, "customer")) != customer_id:
        raise ApiError(403, "Payment method does not belong to the specified customer")
    return pm


def list_by_kind(client: Any, customer_id: str, kinds: Sequence[str]) -> List[Any]:
    """
    Liste les moyens de paiement par type; plusieurs types -> appels en parallèle,
    résultats concaténés dans l'ordre des types demandés.
    """
    def _list(kind: str) -> List[Any]:
        return list_data(client.payment_methods.list(params={"customer": customer_id, "type": kind}))

    if len(kinds) == 1:
        return _list(kinds[0])
    with ThreadPoolExecutor(max_workers=len(kinds)) as executor:
        results = list(executor.map(_list, kinds))
    return [pm for chunk in results for pm in chunk]


def list_payment_methods(portal: PortalContext, customer_id: Optional[str], kind: Optional[str] = "all") -> Dict[str, Any]:
    """
    Moyens de paiement d'un client avec drapeau is_default et compteurs par type.
    """
    require_id(customer_id, CUSTOMER_PREFIX, "customer_id")
    kind = kind or "all"
    if kind not in LIST_FILTERS:
        raise bad_request("Invalid type parameter", f"type must be one of: {', '.join(LIST_FILTERS)}")

    client = portal.stripe()
    customer = retrieve_customer(client, customer_id)
    default_id = default_payment_method_id(customer)

    kinds = PAYMENT_METHOD_KINDS if kind == "all" else (kind,)
    try:
        methods = list_by_kind(client, customer_id, kinds)
    except Exception as e:
        logger.exception("payment_methods.list échec customer=%s", customer_id)
        raise translate_gateway_error(e, failure="Failed to retrieve payment methods")

    formatted = [format_payment_method(pm, default_id) for pm in methods]
    counts = {k: sum(1 for pm in formatted if pm["type"] == k) for k in PAYMENT_METHOD_KINDS}
    logger.info("payment_methods.list customer=%s total=%s", customer_id, len(formatted))
    return {
        "success": True,
        "payment_methods": formatted,
        "customer_id": customer_id,
        "default_payment_method": default_id,
        "has_card": counts[CARD] > 0,
        "has_bank_account": counts[US_BANK_ACCOUNT] > 0,
        "total_count": len(formatted),
        "counts": counts,
    }


def set_default_payment_method(portal: PortalContext, customer_id: Optional[str], payment_method_id: Optional[str]) -> Dict[str, Any]:
    require_id(customer_id, CUSTOMER_PREFIX, "customer_id")
    require_id(payment_method_id, PAYMENT_METHOD_PREFIX, "payment_method_id")

    client = portal.stripe()
    retrieve_customer(client, customer_id)
    retrieve_owned_payment_method(client, customer_id, payment_method_id)

    try:
        client.customers.update(
            customer_id,
            params={"invoice_settings": {"default_payment_method": payment_method_id}},
        )
    except Exception as e:
        logger.exception("customers.update échec customer=%s", customer_id)
        raise translate_gateway_error(e, failure="Failed to set default payment method")

    logger.info("payment_methods.default customer=%s pm=%s", customer_id, payment_method_id)
    return {
        "success": True,
        "payment_method_id": payment_method_id,
        "customer_id": customer_id,
        "message": "Default payment method updated successfully",
    }


def would_strand_subscription(client: Any, customer_id: str) -> bool:
    """
    Vrai si le client a un abonnement actif et un seul moyen de paiement (tous types).
    Les erreurs Stripe remontent: sans certitude, pas de suppression.
    """
    active = list_data(client.subscriptions.list(params={"customer": customer_id, "status": "active", "limit": 1}))
    if not active:
        return False
    return len(list_by_kind(client, customer_id, PAYMENT_METHOD_KINDS)) <= 1


def remove_payment_method(portal: PortalContext, customer_id: Optional[str], payment_method_id: Optional[str]) -> Dict[str, Any]:
    """
    Détache un moyen de paiement.
    - Refus (400) si c'est le seul moyen d'un client ayant un abonnement actif
    - Réinitialise le moyen par défaut du client si c'était celui-ci
    """
    require_id(customer_id, CUSTOMER_PREFIX, "customer_id")
    require_id(payment_method_id, PAYMENT_METHOD_PREFIX, "payment_method_id")

    client = portal.stripe()
    customer = retrieve_customer(client, customer_id)
    was_default = default_payment_method_id(customer) == payment_method_id
    retrieve_owned_payment_method(client, customer_id, payment_method_id)

    try:
        stranded = would_strand_subscription(client, customer_id)
    except Exception as e:
        logger.exception("payment_methods.remove contrôle abonnements échec customer=%s", customer_id)
        raise translate_gateway_error(e, failure="Failed to remove payment method")
    if stranded:
        raise bad_request(
            "Cannot remove the only payment method for a customer with active subscriptions",
            "Please add another payment method before removing this one, or cancel your subscription first.",
        )

    try:
        client.payment_methods.detach(payment_method_id)
        if was_default:
            client.customers.update(customer_id, params={"invoice_settings": {"default_payment_method": ""}})
    except Exception as e:
        logger.exception("payment_methods.detach échec pm=%s", payment_method_id)
        raise translate_gateway_error(e, failure="Failed to remove payment method")

    logger.info("payment_methods.remove customer=%s pm=%s default_cleared=%s", customer_id, payment_method_id, was_default)
    message = (
        "Payment method removed successfully. Default payment method has been cleared."
        if was_default
        else "Payment method removed successfully"
    )
    return {
        "success": True,
        "payment_method_id": payment_method_id,
        "customer_id": customer_id,
        "message": message,
    }
