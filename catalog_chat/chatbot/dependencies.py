import hmac
import logging
import os
from typing import List, Optional

from dotenv import load_dotenv
from fastapi import Header, HTTPException, Request, status

load_dotenv()

logger = logging.getLogger(__name__)

# Reachable without an API key
PUBLIC_PATHS = frozenset(
    {
        "/health",
        "/docs",
        "/docs/oauth2-redirect",
        "/openapi.json",
        "/redoc",
        # the chat widget loads product images with plain <img> tags
        "/proxy-image",
    }
)


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes")


def get_api_keys() -> List[str]:
    """Comma-separated API_KEYS, blanks dropped."""
    return [k.strip() for k in os.getenv("API_KEYS", "").split(",") if k.strip()]


def anonymous_allowed() -> bool:
    """ALLOW_ANONYMOUS_API; only honoured while API_KEYS is empty."""
    return _env_flag("ALLOW_ANONYMOUS_API")


def _key_matches(candidate: str, valid_keys: List[str]) -> bool:
    return bool(candidate) and any(hmac.compare_digest(candidate, k) for k in valid_keys)


async def api_key_protection(
    request: Request = None,  # None only when called directly
    x_api_key: Optional[str] = Header(default=None, alias="X-API-KEY"),
):
    path = request.url.path if request is not None else None
    if path in PUBLIC_PATHS:
        return

    valid_keys = get_api_keys()
    if not valid_keys and anonymous_allowed():
        return

    accepted = _key_matches((x_api_key or "").strip(), valid_keys)
    if _env_flag("API_KEY_DEBUG"):
        logger.info("API key check on %s: accepted=%s (%d keys configured)", path, accepted, len(valid_keys))
    if not accepted:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or missing API Key")


async def current_user_id(x_user_id: Optional[str] = Header(default=None, alias="X-User-Id")) -> str:
    """Identity of the authenticated user, set by the upstream session layer."""
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Não autenticado")
    return user_id
