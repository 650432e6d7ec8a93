"""
Security utilities - ID token verification and history hashing
"""

import hashlib
import json
from typing import Any, Iterable, Optional

from jose import JWTError, jwt

from getcito.config import get_settings


def decode_token(token: str) -> Optional[dict]:
    """Decode and validate a signed ID token"""
    settings = get_settings()
    options = {"verify_aud": settings.JWT_AUDIENCE is not None}
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            options=options,
        )
    except JWTError:
        return None


def verify_id_token(token: str) -> Optional[str]:
    """Verify an ID token and return the user id (uid), None when invalid"""
    payload = decode_token(token)
    if payload is None:
        return None
    uid = payload.get("uid") or payload.get("sub") or payload.get("user_id")
    if not isinstance(uid, str) or not uid:
        return None
    return uid


# Hashing utilities
def _canonical(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


def generate_history_digest(brand: Any, competitors: Iterable[Any], records: Iterable[Any]) -> str:
    """
    Deterministic digest of everything analytics are computed from.
    Pydantic models are dumped to JSON-compatible dicts first.
    """
    def dump(item: Any) -> Any:
        if hasattr(item, "model_dump"):
            return item.model_dump(mode="json")
        return item

    content = _canonical({
        "brand": dump(brand),
        "competitors": [dump(c) for c in competitors],
        "records": [dump(r) for r in records],
    })
    return hashlib.sha256(content.encode()).hexdigest()


def generate_cache_key(brand_id: str, scope: str, digest: str) -> str:
    """Cache key for one brand analytics view"""
    return f"{brand_id}:{scope}:{digest}"
