"""
Middlewares transverses de l'application.
- register_basic_middlewares: CORS, TrustedHost et confiance en X-Forwarded-*.
- register_security_middleware: en-têtes de sécurité et CSP (Stripe.js autorisé).
- register_no_cache_middleware: aucune mise en cache des réponses de facturation.
- register_force_https_middleware: force la redirection HTTPS (utile derrière proxy).
Note: le middleware HTTPS est ajouté en dernier pour s'exécuter en premier.
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from starlette.middleware.trustedhost import TrustedHostMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from payment_portal.config import Settings

STRIPE_JS_ORIGIN = "https://js.stripe.com"
STRIPE_API_ORIGIN = "https://api.stripe.com"
STRIPE_HOOKS_ORIGIN = "https://hooks.stripe.com"
NO_STORE_PREFIXES = ("/api/v1/stripe",)


def register_basic_middlewares(app: FastAPI, settings: Settings) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.allowed_hosts + ["*"] if "*" in settings.cors_origins else settings.allowed_hosts,
    )
    # Fait confiance aux en-têtes X-Forwarded-* (ALB, Nginx, etc.)
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])


def register_security_middleware(app: FastAPI, settings: Settings) -> None:
    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)

        # En-têtes de sécurité
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("Permissions-Policy", "geolocation=(), microphone=(), camera=(), payment=(self)")
        if settings.cookie_secure:
            response.headers.setdefault("Strict-Transport-Security", "max-age=63072000; includeSubDomains; preload")

        # CSP: Stripe.js charge ses iframes depuis js.stripe.com / hooks.stripe.com
        swagger_cdns = ["https://cdn.jsdelivr.net", "https://unpkg.com"]
        csp = (
            "default-src 'self'; "
            "base-uri 'self'; object-src 'none'; frame-ancestors 'none'; "
            "img-src 'self' data: blob: https://fastapi.tiangolo.com https://*.stripe.com; "
            f"style-src 'self' 'unsafe-inline' {' '.join(swagger_cdns)}; "
            f"script-src 'self' 'unsafe-inline' {STRIPE_JS_ORIGIN} {' '.join(swagger_cdns)}; "
            f"frame-src {STRIPE_JS_ORIGIN} {STRIPE_HOOKS_ORIGIN}; "
            f"connect-src 'self' {STRIPE_API_ORIGIN}"
        )
        response.headers["Content-Security-Policy"] = csp
        return response


def register_no_cache_middleware(app: FastAPI) -> None:
    """
    Empêche la mise en cache des réponses de facturation (/api/v1/stripe/*):
    sessions, moyens de paiement et portail contiennent des données client.
    """
    @app.middleware("http")
    async def no_store_for_billing(request: Request, call_next):
        response = await call_next(request)
        if request.url.path.startswith(NO_STORE_PREFIXES):
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
            response.headers["Pragma"] = "no-cache"
            response.headers["Expires"] = "0"
        return response


def register_force_https_middleware(app: FastAPI) -> None:
    """
    Force la redirection HTTP -> HTTPS lorsqu'un proxy place x-forwarded-proto=http.
    Ajouté en dernier afin qu'il s'exécute en premier dans la pile des middlewares.
    """
    @app.middleware("http")
    async def force_https(request: Request, call_next):
        if request.headers.get("x-forwarded-proto") == "http":
            url = str(request.url).replace("http://", "https://", 1)
            return RedirectResponse(url, status_code=301)
        return await call_next(request)
