"""
Erreurs applicatives et traduction des erreurs Stripe.

- ApiError: HTTPException portant {error, details} rendue en {"success": false, ...}
- ConfigurationError: configuration fatale (clé secrète introuvable)
- describe_gateway_error: message sûr pour l'utilisateur, selon la classe d'erreur Stripe
- translate_gateway_error: point unique de conversion exception Stripe -> ApiError
"""
from typing import Any, Dict, Optional

import stripe
from fastapi import HTTPException


class ApiError(HTTPException):
    def __init__(self, status_code: int, error: str, details: Optional[str] = None):
        super().__init__(status_code=status_code, detail=error)
        self.error = error
        self.details = details

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "error": self.error}
        if self.details:
            body["details"] = self.details
        return body


class ConfigurationError(RuntimeError):
    """Configuration manquante ou invalide, non récupérable sans redémarrage."""


def bad_request(error: str, details: Optional[str] = None) -> ApiError:
    return ApiError(400, error, details)


def not_found(error: str, details: Optional[str] = None) -> ApiError:
    return ApiError(404, error, details)


def describe_gateway_error(exc: Exception) -> str:
    """
    Message présentable à l'utilisateur.
    Seules les erreurs "invalid request" laissent passer le message brut de Stripe.
    """
    if isinstance(exc, stripe.InvalidRequestError):
        return getattr(exc, "user_message", None) or str(exc) or "Invalid parameters were supplied to Stripe's API."
    if isinstance(exc, stripe.CardError):
        return "Your card was declined."
    if isinstance(exc, stripe.RateLimitError):
        return "Too many requests made to the API too quickly."
    if isinstance(exc, stripe.AuthenticationError):
        return "You probably used an incorrect API key."
    if isinstance(exc, stripe.IdempotencyError):
        return "Idempotency key already used."
    if isinstance(exc, stripe.APIConnectionError):
        return "Could not connect to the payment processor."
    if isinstance(exc, stripe.APIError):
        return "An error occurred internally with Stripe's API."
    if isinstance(exc, stripe.StripeError):
        return "An unexpected payment processor error occurred."
    return "An unexpected error occurred."


def is_resource_missing(exc: Exception, message_hint: Optional[str] = None) -> bool:
    """
    Détecte "ressource inexistante".
    1) code structuré Stripe (resource_missing) sur InvalidRequestError
    2) en dernier recours, recherche du message "No such ..." fourni par l'appelant
    """
    if not isinstance(exc, stripe.InvalidRequestError):
        return False
    if getattr(exc, "code", None) == "resource_missing":
        return True
    if message_hint:
        return message_hint in (getattr(exc, "user_message", None) or str(exc))
    return False


def translate_gateway_error(
    exc: Exception,
    *,
    failure: str,
    not_found_error: Optional[str] = None,
    not_found_details: Optional[str] = None,
    message_hint: Optional[str] = None,
) -> ApiError:
    """
    Convertit une exception levée pendant un appel Stripe en ApiError.
    - not_found_error: si fourni et que la ressource est absente -> 404
    - sinon 500 avec le message sûr de describe_gateway_error
    """
    if isinstance(exc, ApiError):
        return exc
    if not_found_error and is_resource_missing(exc, message_hint):
        return not_found(not_found_error, not_found_details)
    if isinstance(exc, ConfigurationError):
        return ApiError(500, failure, "Payment processor is not configured.")
    return ApiError(500, failure, describe_gateway_error(exc))
