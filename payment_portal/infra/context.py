"""
Contexte applicatif injecté dans les routes (remplace les caches globaux).
Construit une fois dans le lifespan puis stocké sur app.state.portal.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from payment_portal.config import Settings, load_settings
from payment_portal.infra.parameter_store import SecretResolver
from payment_portal.infra.stripe_gateway import GatewayClients


@dataclass
class PortalContext:
    settings: Settings
    secrets: SecretResolver
    gateway: GatewayClients

    def stripe(self):
        return self.gateway.server_client()


def build_portal_context(settings: Optional[Settings] = None) -> PortalContext:
    settings = settings or load_settings()
    resolver = SecretResolver(settings)
    return PortalContext(settings=settings, secrets=resolver, gateway=GatewayClients(settings, resolver))


def get_portal(request: Request) -> PortalContext:
    """Dépendance FastAPI: retourne le contexte du process (créé à la volée si le lifespan n'a pas tourné)."""
    portal = getattr(request.app.state, "portal", None)
    if portal is None:
        portal = build_portal_context()
        request.app.state.portal = portal
    return portal
