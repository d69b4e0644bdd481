from __future__ import annotations

from typing import Any, Type, TypeVar

import requests
from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError

from rolelink.errors import UpstreamAuthError, UpstreamSchemaError

# Outbound calls are never retried; this only bounds a hung upstream.
HTTP_TIMEOUT_SECONDS = 10

M = TypeVar("M", bound=BaseModel)


def check_response(r: requests.Response, provider: str) -> None:
    if not r.ok:
        # Avoid leaking upstream bodies; the status is enough to diagnose.
        raise UpstreamAuthError(r.status_code, f"Request to {provider} failed with status {r.status_code}")


def response_json(r: requests.Response, provider: str) -> Any:
    try:
        return r.json()
    except ValueError:
        raise UpstreamSchemaError(f"Invalid JSON response from {provider}") from None


def parse_model(model: Type[M], data: Any, provider: str) -> M:
    try:
        return model.model_validate(data)
    except SchemaValidationError as e:
        raise UpstreamSchemaError(
            f"Unexpected response from {provider} ({e.error_count()} invalid field(s))"
        ) from e
