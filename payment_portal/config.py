# payment_portal.config
from pathlib import Path
import logging
import os
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)

"""
Configuration centrale du portail de facturation.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise les valeurs d'environnement (guillemets, espaces)
- Construit un objet Settings unique au démarrage (lifespan), injecté ensuite dans les routes
- Fournit un état de l'environnement pour les logs et le diagnostic (jamais les valeurs secrètes)
"""

logger = logging.getLogger(__name__)

# Nom du secret Stripe côté serveur (env ou Parameter Store)
STRIPE_SECRET_KEY_NAME = "STRIPE_SECRET_KEY"
STRIPE_PUBLISHABLE_KEY_NAME = "STRIPE_PUBLISHABLE_KEY"

REQUIRED_ENV_VARS = [STRIPE_PUBLISHABLE_KEY_NAME, STRIPE_SECRET_KEY_NAME]

DEFAULT_DEPLOYMENT_ENV = "staging"
DEFAULT_AWS_REGION = "us-east-1"
DEFAULT_PARAMETER_STORE_PREFIX = "/payment-portal"

COMPANY_NAME = "EZMedTech"


def _clean_env(v: Optional[str]) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")


def _env_bool(name: str, default: bool) -> bool:
    raw = _clean_env(os.getenv(name))
    if not raw:
        return default
    return raw.lower() in ("1", "true", "yes", "on")


def _env_csv(name: str, default: str) -> List[str]:
    return [v.strip() for v in os.getenv(name, default).split(",") if v.strip()]


class Settings(BaseModel):
    """
    Paramètres résolus une seule fois au démarrage du process.
    Immuable: les routes le reçoivent via PortalContext, jamais via des globales.
    """
    model_config = ConfigDict(frozen=True)

    deployment_env: str = DEFAULT_DEPLOYMENT_ENV
    deployment_env_explicit: bool = False
    app_mode: str = "production"
    aws_region: str = DEFAULT_AWS_REGION
    parameter_store_prefix: str = DEFAULT_PARAMETER_STORE_PREFIX
    stripe_publishable_key: str = ""
    app_base_url: str = "http://localhost:3000"
    cors_origins: List[str] = ["*"]
    allowed_hosts: List[str] = ["localhost", "127.0.0.1", "testserver"]
    cookie_secure: bool = False
    debug_routes_enabled: bool = False

    @property
    def is_production(self) -> bool:
        return self.app_mode == "production" and self.deployment_env in ("main", "production")

    @property
    def is_staging(self) -> bool:
        return self.app_mode == "production" and self.deployment_env == "staging"

    @property
    def is_local_development(self) -> bool:
        # Pas d'environnement de déploiement explicite + mode développement
        return self.app_mode == "development" and not self.deployment_env_explicit


def load_settings() -> Settings:
    """
    Lit l'environnement courant et construit Settings.
    - DEPLOYMENT_ENV: tag d'environnement (staging par défaut), utilisé dans le chemin Parameter Store
    - APP_MODE: development | production
    - PARAMETER_STORE_PREFIX: racine des paramètres (ex: /payment-portal)
    - APP_BASE_URL: URL publique du front (success/cancel du checkout)
    """
    raw_env = _clean_env(os.getenv("DEPLOYMENT_ENV"))
    app_mode = _clean_env(os.getenv("APP_MODE")).lower() or "production"
    base_url = _clean_env(os.getenv("APP_BASE_URL")) or "http://localhost:3000"
    prefix = _clean_env(os.getenv("PARAMETER_STORE_PREFIX")) or DEFAULT_PARAMETER_STORE_PREFIX
    deployment_env = raw_env or DEFAULT_DEPLOYMENT_ENV
    production_like = app_mode == "production" and deployment_env in ("main", "production")

    return Settings(
        deployment_env=deployment_env,
        deployment_env_explicit=bool(raw_env),
        app_mode=app_mode,
        aws_region=_clean_env(os.getenv("AWS_REGION")) or DEFAULT_AWS_REGION,
        parameter_store_prefix="/" + prefix.strip("/"),
        stripe_publishable_key=_clean_env(os.getenv(STRIPE_PUBLISHABLE_KEY_NAME)),
        app_base_url=base_url.rstrip("/"),
        cors_origins=_env_csv("CORS_ORIGINS", "*"),
        allowed_hosts=_env_csv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver"),
        cookie_secure=_env_bool("COOKIE_SECURE", False),
        debug_routes_enabled=_env_bool("ENABLE_DEBUG_ROUTES", not production_like),
    )


def environment_info(settings: Settings) -> Dict[str, Any]:
    """
    Résumé de l'environnement (booléens et tags uniquement, aucune valeur secrète).
    """
    return {
        "app_mode": settings.app_mode,
        "deployment_env": settings.deployment_env,
        "aws_region": settings.aws_region,
        "is_production": settings.is_production,
        "is_staging": settings.is_staging,
        "is_local_development": settings.is_local_development,
        "has_stripe_secret_key": bool(_clean_env(os.getenv(STRIPE_SECRET_KEY_NAME))),
        "has_stripe_publishable_key": bool(settings.stripe_publishable_key),
    }


def validate_required_environment() -> Dict[str, Any]:
    """Liste les variables requises absentes de l'environnement du process."""
    missing = [name for name in REQUIRED_ENV_VARS if not _clean_env(os.getenv(name))]
    return {"valid": not missing, "missing": missing}


def log_environment_info(settings: Settings) -> None:
    info = environment_info(settings)
    validation = validate_required_environment()
    logger.info(
        "environment app_mode=%s deployment_env=%s region=%s production=%s secret_in_env=%s publishable=%s",
        info["app_mode"],
        info["deployment_env"],
        info["aws_region"],
        info["is_production"],
        info["has_stripe_secret_key"],
        info["has_stripe_publishable_key"],
    )
    if not validation["valid"]:
        # Le secret peut encore venir du Parameter Store: simple avertissement
        logger.warning("Variables d'environnement absentes: %s", ", ".join(validation["missing"]))
