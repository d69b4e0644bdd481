"""
Compact signed tokens carried in the OAuth `state` parameter.

Format: `b64url(json_payload) + "." + b64url(hmac_sha256(json_payload))`, where
the payload always includes `exp` (absolute expiry, epoch milliseconds). Tokens
are self-contained: there is no server-side record and no revocation list, so a
short lifetime plus the nonce cookie is what bounds replay.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
import time
from functools import lru_cache
from typing import Any, Dict, Mapping

from itsdangerous import BadData
from itsdangerous.encoding import base64_decode, base64_encode
from itsdangerous.signer import HMACAlgorithm

from rolelink.config import LinkConfig
from rolelink.errors import InvalidTokenError

DEFAULT_TTL_SECONDS = 15 * 60
KEY_BYTES = 32

_ALGORITHM = HMACAlgorithm(hashlib.sha256)


def _now_ms() -> int:
    return int(time.time() * 1000)


@lru_cache(maxsize=4)
def _signing_key(secret_b64: str) -> bytes:
    if not secret_b64:
        raise ValueError("SECRET_KEY is not configured")
    try:
        key = base64.b64decode(secret_b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError("SECRET_KEY must be base64 encoded") from e
    if len(key) != KEY_BYTES:
        raise ValueError(f"SECRET_KEY must decode to {KEY_BYTES} bytes (got {len(key)})")
    return key


def load_signing_key(cfg: LinkConfig) -> bytes:
    return _signing_key(cfg.secret_key)


def _canonical(data: bytes) -> str:
    return base64_encode(data).decode("ascii")


def sign_token(cfg: LinkConfig, payload: Mapping[str, Any], ttl_seconds: int = DEFAULT_TTL_SECONDS) -> str:
    key = load_signing_key(cfg)
    data = dict(payload)
    data["exp"] = _now_ms() + int(ttl_seconds * 1000)
    raw = json.dumps(data, separators=(",", ":")).encode("utf-8")
    signature = _ALGORITHM.get_signature(key, raw)
    return f"{_canonical(raw)}.{_canonical(signature)}"


def verify_token(cfg: LinkConfig, token: str) -> Dict[str, Any]:
    """
    Return the signed payload (including `exp`) if the token is valid.

    Raises:
        InvalidTokenError: malformed token, expired token or signature mismatch.
    """
    key = load_signing_key(cfg)
    parts = (token or "").split(".")
    if len(parts) != 2:
        raise InvalidTokenError("Malformed state token")

    encoded_payload, encoded_signature = parts
    try:
        raw = base64_decode(encoded_payload)
        signature = base64_decode(encoded_signature)
        payload = json.loads(raw.decode("utf-8"))
    except (BadData, UnicodeDecodeError, ValueError):
        raise InvalidTokenError("Malformed state token") from None
    # Lenient base64 decoding ignores stray characters and trailing bits; only
    # accept the canonical encoding so every edited character is rejected.
    if _canonical(raw) != encoded_payload or _canonical(signature) != encoded_signature:
        raise InvalidTokenError("Malformed state token")
    if not isinstance(payload, dict):
        raise InvalidTokenError("Malformed state token")

    exp = payload.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        raise InvalidTokenError("Malformed state token")
    if exp <= _now_ms():
        raise InvalidTokenError("Token expired")

    # Sign the decoded bytes, not the transport encoding.
    if not _ALGORITHM.verify_signature(key, raw, signature):
        raise InvalidTokenError("Invalid signature")
    return payload
