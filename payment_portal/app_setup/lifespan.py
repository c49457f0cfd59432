"""
Lifespan FastAPI: initialisation/arrêt des ressources partagées.
- Construit le PortalContext (Settings + SecretResolver + clients Stripe) une seule fois.
- Initialise FastAPILimiter (Redis) avec options de test (fakeredis).
- Variables d'environnement supportées:
  - DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS=1: désactive complètement (tests)
  - USE_FAKE_REDIS_FOR_TESTS=1: utilise fakeredis (tests)
  - LOCAL_RATE_LIMIT_FALLBACK=1: active un fallback local si l'init échoue
"""
import logging
import os
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from fastapi import FastAPI
from fastapi_limiter import FastAPILimiter
from redis.exceptions import RedisError

from payment_portal.config import log_environment_info
from payment_portal.infra.context import build_portal_context


async def _init_rate_limiter(app: FastAPI, logger: logging.Logger) -> None:
    if os.getenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS") == "1":
        app.state.rate_limit_enabled = False
        logger.info("Rate limiting disabled by DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS")
        return

    try:
        if os.getenv("USE_FAKE_REDIS_FOR_TESTS") == "1":
            # fakeredis n'est requis qu'avec ce drapeau (extra [test])
            from fakeredis.aioredis import FakeRedis
            r = FakeRedis(decode_responses=True)
        else:
            redis_url = os.getenv("RATE_LIMIT_REDIS_URL", "redis://127.0.0.1:6379/0")
            r = aioredis.from_url(redis_url, encoding="utf-8", decode_responses=True)

        await FastAPILimiter.init(r)
        app.state.rate_limit_enabled = True
        logger.info("Rate limiting enabled")
    except (RedisError, OSError) as e:
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            app.state.rate_limit_enabled = True
            logger.warning("Rate limiting falling back to local in-memory due to init error: %s", e)
        else:
            app.state.rate_limit_enabled = False
            logger.warning("Rate limiting disabled due to init error: %s", e)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Démarrage:
      1) contexte portail (réutilise app.state.portal s'il a été injecté, ex: tests)
      2) rate limiting avec fallbacks
    Les logs indiquent l'environnement et l'état effectif du rate limiting.
    """
    logger = logging.getLogger("uvicorn.error")

    if getattr(app.state, "portal", None) is None:
        app.state.portal = build_portal_context(getattr(app.state, "settings", None))
    log_environment_info(app.state.portal.settings)

    await _init_rate_limiter(app, logger)
    yield
