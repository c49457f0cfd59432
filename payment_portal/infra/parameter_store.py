"""
Résolution des secrets: cache mémoire -> variable d'environnement -> AWS Parameter Store.

Chemin distant: {PARAMETER_STORE_PREFIX}/{DEPLOYMENT_ENV}/{name}, lu avec déchiffrement.
Un échec côté Parameter Store est journalisé puis traité comme "introuvable":
c'est à l'appelant de décider (voir resolve_required).
"""
import logging
import os
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from payment_portal.config import Settings
from payment_portal.errors import ConfigurationError

logger = logging.getLogger(__name__)


class SecretResolver:
    def __init__(self, settings: Settings, ssm_client: Any = None):
        self._settings = settings
        self._ssm = ssm_client
        self._cache: Dict[str, str] = {}

    def parameter_path(self, name: str) -> str:
        return f"{self._settings.parameter_store_prefix}/{self._settings.deployment_env}/{name}"

    def _client(self):
        if self._ssm is None:
            # boto3 utilise sa chaîne standard de credentials (rôle IAM, profil, env)
            self._ssm = boto3.client("ssm", region_name=self._settings.aws_region)
        return self._ssm

    def resolve(self, name: str) -> Optional[str]:
        """
        Retourne la valeur du secret `name` ou None.
        - cache: valeurs déjà obtenues du Parameter Store (durée de vie du process)
        - environnement: correspondance exacte du nom
        - Parameter Store: ignoré en développement local sans DEPLOYMENT_ENV
        """
        cached = self._cache.get(name)
        if cached:
            return cached

        env_value = os.environ.get(name)
        if env_value:
            logger.debug("secret %s trouvé dans l'environnement", name)
            return env_value

        if self._settings.is_local_development:
            logger.info("[local] %s absent de l'environnement, Parameter Store ignoré", name)
            return None

        path = self.parameter_path(name)
        try:
            response = self._client().get_parameter(Name=path, WithDecryption=True)
        except (ClientError, BotoCoreError) as e:
            logger.warning("Parameter Store: lecture impossible de %s (%s)", path, type(e).__name__)
            return None

        value = ((response or {}).get("Parameter") or {}).get("Value")
        if not value:
            logger.warning("Parameter Store: %s sans valeur", path)
            return None

        self._cache[name] = value
        logger.info("Parameter Store: %s résolu", path)
        return value

    def resolve_required(self, name: str) -> str:
        """Comme resolve(), mais lève ConfigurationError si le secret est introuvable."""
        value = self.resolve(name)
        if not value:
            logger.error("%s introuvable (environnement et Parameter Store)", name)
            raise ConfigurationError(f"{name} not found in Parameter Store or environment")
        return value

    def is_cached(self, name: str) -> bool:
        return name in self._cache
