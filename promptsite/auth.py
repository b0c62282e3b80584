import hashlib
import os
from typing import Optional, Set

from fastapi import Header, Request

from promptsite.responses import Unauthorized


def _load_keys() -> Set[str]:
    raw = os.getenv("API_KEYS", "")
    return {k.strip() for k in raw.split(",") if k.strip()}

API_KEYS: Set[str] = _load_keys()


def keys_required() -> bool:
    return bool(API_KEYS)


def check_api_key(key: Optional[str]) -> bool:
    """
    Returns True if:
      - API_KEYS is empty (open mode), or
      - 'key' is provided and is in API_KEYS.
    """
    if not API_KEYS:
        return True
    return bool(key) and key in API_KEYS


def require_api_key(x_api_key: Optional[str] = Header(default=None)) -> Optional[str]:
    """FastAPI dependency: returns the caller's key (None in open mode without one)."""
    if not check_api_key(x_api_key):
        raise Unauthorized("Missing or invalid API key")
    return x_api_key


def extract_client_key(api_key: Optional[str], request: Request) -> str:
    """Identity used for rate limiting: hashed API key, else forwarded or peer address."""
    if api_key:
        return "key:" + hashlib.sha256(api_key.encode("utf-8")).hexdigest()[:16]
    forwarded = request.headers.get("x-forwarded-for", "")
    first = forwarded.split(",")[0].strip()
    if first:
        return f"ip:{first}"
    host = request.client.host if request.client else "anon"
    return f"ip:{host}"
