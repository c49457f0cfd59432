"""
Cas d'usage 'ach': mise en place d'un compte bancaire US (SetupIntent hors session)
et vérification une fois le SetupIntent confirmé côté navigateur.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from payment_portal.ach.mandate import ACH_MANDATE_TEXT
from payment_portal.errors import ApiError, bad_request, translate_gateway_error
from payment_portal.infra.context import PortalContext
from payment_portal.payment_methods.formatting import US_BANK_ACCOUNT
from payment_portal.sessions.service import to_iso
from payment_portal.utils.gateway_objects import expanded, field, object_id
from payment_portal.utils.validators import CUSTOMER_PREFIX, SETUP_INTENT_PREFIX, require_id

logger = logging.getLogger(__name__)

SETUP_FAILED = "Failed to create ACH SetupIntent"
VERIFY_FAILED = "Failed to verify ACH payment method"
DEFAULT_VERIFICATION_METHOD = "microdeposits"


def build_setup_intent_params(
    *,
    customer_id: str,
    ip_address: Optional[str],
    user_agent: Optional[str],
    verification_method: Optional[str] = None,
    metadata: Optional[Dict[str, str]] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    intent_metadata = {
        "purpose": "ach_setup_healthcare_subscription",
        "payment_type": "ach_subscription",
        "created_at": (now or datetime.now(timezone.utc)).isoformat(),
    }
    intent_metadata.update(metadata or {})
    return {
        "customer": customer_id,
        "payment_method_types": [US_BANK_ACCOUNT],
        "usage": "off_session",
        "payment_method_options": {
            US_BANK_ACCOUNT: {"verification_method": verification_method or DEFAULT_VERIFICATION_METHOD},
        },
        "mandate_data": {
            "customer_acceptance": {
                "type": "online",
                "online": {
                    "ip_address": ip_address or "127.0.0.1",
                    "user_agent": user_agent or "Unknown",
                },
            },
        },
        "metadata": intent_metadata,
        "description": "Setup ACH payment method for healthcare subscription billing",
    }


def create_ach_setup(
    portal: PortalContext,
    customer_id: Optional[str],
    *,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    verification_method: Optional[str] = None,
    metadata: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """
    Crée le SetupIntent ACH (mandat en ligne: IP + user agent du client).
    Retour: {client_secret, setup_intent_id, mandate_text}
    """
    require_id(customer_id, CUSTOMER_PREFIX, "customer_id")
    params = build_setup_intent_params(
        customer_id=customer_id,
        ip_address=ip_address,
        user_agent=user_agent,
        verification_method=verification_method,
        metadata=metadata,
    )
    try:
        intent = portal.stripe().setup_intents.create(params=params)
    except Exception as e:
        logger.exception("ach.setup échec customer=%s", customer_id)
        raise translate_gateway_error(e, failure=SETUP_FAILED)

    client_secret = field(intent, "client_secret")
    if not client_secret:
        raise ApiError(500, SETUP_FAILED, "No client_secret returned")

    logger.info("ach.setup ok customer=%s intent=%s", customer_id, field(intent, "id"))
    return {
        "client_secret": client_secret,
        "setup_intent_id": field(intent, "id"),
        "mandate_text": ACH_MANDATE_TEXT,
    }


def verify_ach_setup(portal: PortalContext, setup_intent_id: Optional[str]) -> Dict[str, Any]:
    """
    Vérifie un SetupIntent ACH confirmé.
    - statut "succeeded", moyen us_bank_account, client rattaché (400 sinon)
    - 404 si SetupIntent inconnu ou expiré
    """
    require_id(setup_intent_id, SETUP_INTENT_PREFIX, "setup_intent_id")
    try:
        intent = portal.stripe().setup_intents.retrieve(
            setup_intent_id, params={"expand": ["payment_method", "customer"]}
        )
    except Exception as e:
        logger.exception("ach.verify échec intent=%s", setup_intent_id)
        raise translate_gateway_error(
            e,
            failure=VERIFY_FAILED,
            not_found_error="SetupIntent not found or expired",
            not_found_details=(
                "This SetupIntent either doesn't exist, has expired, or belongs to a different "
                "Stripe account. Please try creating a new SetupIntent."
            ),
            message_hint="No such setupintent",
        )

    status = field(intent, "status")
    if status != "succeeded":
        raise bad_request("SetupIntent not completed", f"SetupIntent status: {status}")

    pm = expanded(field(intent, "payment_method"))
    if pm is None:
        raise bad_request("No payment method found for this SetupIntent")
    if field(pm, "type") != US_BANK_ACCOUNT:
        raise bad_request("Payment method is not a US bank account")
    bank = field(pm, US_BANK_ACCOUNT)
    if not bank:
        raise bad_request("No US bank account details found")

    customer_id = object_id(field(intent, "customer"))
    if not customer_id:
        raise bad_request("No customer associated with this SetupIntent")

    logger.info("ach.verify ok customer=%s pm=%s", customer_id, field(pm, "id"))
    return {
        "success": True,
        "paymentMethod": {
            "id": field(pm, "id"),
            "type": US_BANK_ACCOUNT,
            "verificationStatus": "verified",
            "bankAccount": {
                "last4": field(bank, "last4", ""),
                "bankName": field(bank, "bank_name"),
                "accountType": field(bank, "account_type"),
                "accountHolderType": field(bank, "account_holder_type"),
                "routingNumber": field(bank, "routing_number"),
                "fingerprint": field(bank, "fingerprint"),
            },
            "customerId": customer_id,
            "setupIntentId": field(intent, "id"),
            "createdAt": to_iso(field(pm, "created")),
        },
    }
