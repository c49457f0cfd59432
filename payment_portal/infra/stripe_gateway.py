"""
Clients Stripe construits à la demande et mémorisés pour la durée du process.

- server_client(): stripe.StripeClient avec la clé secrète résolue (contexte serveur uniquement)
- browser_client(): configuration publique (clé publishable) destinée au front
Les deux ne sont jamais interchangeables: la configuration navigateur ne porte jamais la clé secrète.
"""
import logging
from typing import Any, Dict, Optional

import stripe
from pydantic import BaseModel, ConfigDict

from payment_portal.config import STRIPE_SECRET_KEY_NAME, Settings
from payment_portal.errors import ConfigurationError
from payment_portal.infra.parameter_store import SecretResolver

logger = logging.getLogger(__name__)

SECRET_KEY_PREFIXES = ("sk_", "rk_")
PUBLISHABLE_KEY_PREFIX = "pk_"


class BrowserGatewayConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    publishable_key: str
    locale: str = "en"

    def to_public_dict(self) -> Dict[str, Any]:
        return {"publishableKey": self.publishable_key, "locale": self.locale}


class GatewayClients:
    def __init__(self, settings: Settings, resolver: SecretResolver):
        self._settings = settings
        self._resolver = resolver
        self._server: Optional[stripe.StripeClient] = None
        self._browser: Optional[BrowserGatewayConfig] = None

    def server_client(self) -> stripe.StripeClient:
        """
        Client Stripe serveur (singleton paresseux).
        Lève ConfigurationError si la clé est introuvable ou n'a pas le bon format.
        """
        if self._server is None:
            secret_key = self._resolver.resolve_required(STRIPE_SECRET_KEY_NAME)
            if not secret_key.startswith(SECRET_KEY_PREFIXES):
                raise ConfigurationError(f"{STRIPE_SECRET_KEY_NAME} must start with \"sk_\"")
            if self._settings.is_production and "_test_" in secret_key:
                logger.warning("Clé Stripe de test utilisée en production")
            self._server = stripe.StripeClient(secret_key)
            logger.info("Client Stripe serveur initialisé (env=%s)", self._settings.deployment_env)
        return self._server

    def browser_client(self) -> BrowserGatewayConfig:
        """Configuration navigateur (clé publique lue telle quelle, aucune résolution de secret)."""
        if self._browser is None:
            key = self._settings.stripe_publishable_key
            if not key:
                raise ConfigurationError("STRIPE_PUBLISHABLE_KEY is not configured")
            if not key.startswith(PUBLISHABLE_KEY_PREFIX):
                raise ConfigurationError("STRIPE_PUBLISHABLE_KEY must start with \"pk_\"")
            if self._settings.is_production and "_test_" in key:
                logger.warning("Clé publishable Stripe de test utilisée en production")
            self._browser = BrowserGatewayConfig(publishable_key=key)
        return self._browser
