"""
Gestionnaires d'exceptions: toute erreur est rendue en {"success": false, "error": ..., "details"?: ...}.
- ApiError: erreurs métier/Stripe déjà traduites par les services
- RequestValidationError: corps/paramètres invalides -> 400 (aucun appel Stripe)
- 405: message explicite par route (verbe attendu)
- ConfigurationError: clé Stripe introuvable -> 500 générique
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from payment_portal.errors import ApiError, ConfigurationError

logger = logging.getLogger(__name__)

# Route -> verbe(s) attendu(s), pour les réponses 405
METHOD_HINTS: Dict[str, str] = {
    "/api/v1/stripe/checkout": "Use POST to create a checkout session.",
    "/api/v1/stripe/verify-session": "Use GET to verify a session.",
    "/api/v1/stripe/session": "Use GET to retrieve a session.",
    "/api/v1/stripe/portal": "Use POST to create a portal session.",
    "/api/v1/stripe/payment-methods": (
        "Use GET to list payment methods, POST to set default, or DELETE to remove."
    ),
    "/api/v1/stripe/ach/setup": "Use POST to create an ACH SetupIntent.",
    "/api/v1/stripe/ach/verify": "Use GET to verify an ACH payment method.",
    "/api/v1/stripe/test-connection": "Use GET to test the Stripe connection.",
}


def error_body(error: str, details: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "error": error}
    if details:
        body["details"] = details
    return body


def method_not_allowed_message(method: str, path: str) -> str:
    hint = METHOD_HINTS.get(path.rstrip("/"))
    if hint:
        return f"Method {method} not allowed. {hint}"
    return f"Method {method} not allowed."


def _validation_details(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query"))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 405:
            message = method_not_allowed_message(request.method, request.url.path)
            return JSONResponse(status_code=405, content=error_body(message), headers=exc.headers)
        return JSONResponse(status_code=exc.status_code, content=error_body(str(exc.detail)), headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content=error_body("Invalid request", _validation_details(exc)))

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError):
        logger.error("configuration invalide path=%s: %s", request.url.path, exc)
        return JSONResponse(status_code=500, content=error_body("Internal server error", "Payment processor is not configured."))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("erreur inattendue path=%s", request.url.path)
        return JSONResponse(status_code=500, content=error_body("Internal server error"))
