from __future__ import annotations

import base64
import os


def b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def random_token(nbytes: int = 32) -> str:
    return b64url(os.urandom(nbytes))


def generate_secret_key(nbytes: int = 32) -> str:
    """Standard (padded) base64 of random bytes, the format `SECRET_KEY` expects."""
    return base64.b64encode(os.urandom(nbytes)).decode("ascii")
