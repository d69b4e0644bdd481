from __future__ import annotations

from typing import Any, Dict, Optional

from rolelink.auth.tokens import verify_token
from rolelink.auth.util import random_token
from rolelink.config import LinkConfig
from rolelink.errors import ValidationError

NONCE_COOKIE = "nonce"


def issue_nonce(nbytes: int = 16) -> str:
    return random_token(nbytes)


def nonce_cookie_kwargs(cfg: LinkConfig, nonce: str) -> dict:
    # Path=/ because the nonce is read back on both provider callbacks.
    return {
        "key": NONCE_COOKIE,
        "value": nonce,
        "max_age": cfg.cookie_max_age_seconds,
        "httponly": True,
        "secure": cfg.cookie_secure,
        "samesite": "lax",
        "path": "/",
    }


def nonce_from_cookie_header(cookie_header: Optional[str]) -> Optional[str]:
    """Pull the `nonce=` entry out of a raw `Cookie` request header."""
    if not cookie_header:
        return None
    for part in cookie_header.split(";"):
        name, sep, value = part.strip().partition("=")
        if sep and name == NONCE_COOKIE:
            return value or None
    return None


def validate_request_state(cfg: LinkConfig, state: str, cookie_header: Optional[str]) -> Dict[str, Any]:
    """
    Verify a state token and check it belongs to the browser presenting it.

    The token must be validly signed and unexpired, and its embedded nonce must
    exactly equal the browser's nonce cookie. Either half alone is useless.

    Raises:
        ValidationError: missing cookie, bad token, or nonce mismatch.
    """
    cookie_nonce = nonce_from_cookie_header(cookie_header)
    if cookie_nonce is None:
        raise ValidationError("Missing nonce cookie")

    payload = verify_token(cfg, state)
    if payload.get("nonce") != cookie_nonce:
        raise ValidationError("Nonce mismatch")
    return payload
