import hashlib
import logging
import os
import time
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from fastapi import Request, Response
from redis.exceptions import RedisError

from payment_portal.errors import ApiError

logger = logging.getLogger(__name__)


def client_ip(request: Request) -> Optional[str]:
    """IP du client: X-Forwarded-For (premier saut), puis X-Real-IP, puis la socket."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else None


def _client_key(request: Request) -> str:
    # Pas de session utilisateur: clé = IP (hashée) + route
    ip = client_ip(request) or "local"
    h = hashlib.sha256(ip.encode("utf-8")).hexdigest()[:16]
    return f"ip:{h}:{request.url.path}"


def optional_rate_limit(times: int, seconds: int):
    async def _dep(request: Request, response: Response):
        # Forcer le fallback mémoire en DEV si demandé
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            now = time.time()
            key = _client_key(request)
            store = getattr(request.app.state, "_rl_store", {})
            hits = [t for t in store.get(key, []) if now - t < seconds]
            if len(hits) >= times:
                raise ApiError(429, "Too many requests", f"Limit is {times} requests per {seconds} seconds.")
            hits.append(now)
            store[key] = hits
            request.app.state._rl_store = store
            return

        # Respecter le flag global
        if getattr(request.app.state, "rate_limit_enabled", None) is False:
            return

        from fastapi_limiter import FastAPILimiter
        from fastapi_limiter.depends import RateLimiter

        if getattr(FastAPILimiter, "redis", None) is None:
            # Limiter non initialisé (tests, Redis indisponible): pas de 429
            return

        async def _identifier(req: Request) -> str:
            return _client_key(req)

        try:
            return await RateLimiter(times=times, seconds=seconds, identifier=_identifier)(request, response)
        except (RedisError, OSError) as e:
            # Redis injoignable en cours de route: pas de 429
            logger.warning("rate limit indisponible path=%s err=%s", request.url.path, e)
            return
    return _dep


def rate_limit_health_info(request: Request) -> Dict[str, Any]:
    enabled = getattr(request.app.state, "rate_limit_enabled", None)

    from fastapi_limiter import FastAPILimiter
    limiter_ready = getattr(FastAPILimiter, "redis", None) is not None
    backend = "redis" if limiter_ready else None
    if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
        backend = "memory"

    info: Dict[str, Any] = {
        "enabled": (bool(enabled) if enabled is not None else None),
        "ready": limiter_ready,
        "backend": backend,
    }

    redis_url = os.getenv("RATE_LIMIT_REDIS_URL")
    if limiter_ready and redis_url:
        p = urlparse(redis_url)
        info["redis"] = {
            "scheme": p.scheme,
            "host": p.hostname,
            "port": p.port,
        }

    return info
