"""
Registre central des routers.
- Catalogue: /api/v1/catalog
- Facturation Stripe: /api/v1/stripe (checkout, sessions, moyens de paiement, portail, ACH)
- Health: /health et sondes Stripe
"""
from fastapi import FastAPI

from payment_portal.ach import views as ach_views
from payment_portal.billing_portal import views as billing_portal_views
from payment_portal.catalog import views as catalog_views
from payment_portal.checkout import views as checkout_views
from payment_portal.health.router import router as health_router, stripe_router as stripe_health_router
from payment_portal.payment_methods import views as payment_methods_views
from payment_portal.sessions import views as sessions_views


def register_routers(app: FastAPI) -> None:
    """
    Agrège tous les routers de l'application.
    L'ordre n'a pas d'impact sauf conflits de chemins (évités par préfixes).
    """
    # API v1
    app.include_router(catalog_views.router)
    app.include_router(checkout_views.router)
    app.include_router(sessions_views.router)
    app.include_router(payment_methods_views.router)
    app.include_router(billing_portal_views.router)
    app.include_router(ach_views.router)
    # Health & monitoring
    app.include_router(health_router)
    app.include_router(stripe_health_router)
