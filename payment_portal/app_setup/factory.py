"""
Factory d'application utilisée par les entrypoints (ex: payment_portal.asgi).
Ordonne les étapes d'initialisation de manière lisible et testable.
"""
from typing import Optional

from fastapi import FastAPI

from payment_portal.config import Settings, load_settings
from .exceptions import register_exception_handlers
from .lifespan import lifespan
from .middlewares import (
    register_basic_middlewares,
    register_force_https_middleware,
    register_no_cache_middleware,
    register_security_middleware,
)
from .routers import register_routers


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Construit l'app FastAPI avec le lifespan et enregistre:
      - middlewares de base, sécurité, no-store
      - gestionnaires d'exceptions (enveloppe {success: false, error, details?})
      - tous les routers (catalogue, checkout, sessions, moyens de paiement, portail, ACH, health)
      - redirection HTTPS en production (ajoutée en dernier pour s'exécuter en premier)
    Retour:
      FastAPI prêt à être utilisé par le serveur ASGI.
    """
    settings = settings or load_settings()
    app = FastAPI(title="Payment Portal API", lifespan=lifespan)
    app.state.settings = settings
    register_basic_middlewares(app, settings)
    register_security_middleware(app, settings)
    register_no_cache_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    if settings.is_production:
        register_force_https_middleware(app)
    return app
