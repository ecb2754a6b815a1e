"""JSON encoding of command bodies and decoding of server responses."""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import Any, Optional, get_origin

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from .errors import ProtocolError, RequestBuildError, ResponseDecodeError, ServerError, classify
from .models import ErrorEnvelope, ErrorValue, WebElement

logger = logging.getLogger(__name__)


def _json_default(o: Any) -> Any:
    if isinstance(o, WebElement):
        return o.to_wire()
    if isinstance(o, BaseModel):
        return o.model_dump(mode="json", by_alias=True, exclude_none=True)
    raise TypeError(f"Object of type {type(o).__name__} is not JSON serializable")


def encode_body(body: Any) -> bytes:
    """Encode a command body as UTF-8 JSON. Elements nested anywhere keep their marker."""
    try:
        return json.dumps(body, default=_json_default).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise RequestBuildError(f"cannot encode request body: {e}") from e


def _text(body: bytes) -> str:
    return body.decode("utf-8", errors="replace")


def check(response: httpx.Response, body: Optional[bytes] = None) -> None:
    """Raise the typed error for a non-2xx response; return quietly otherwise.

    ``body`` is the already-read response body; it is read here when omitted.
    """
    code = response.status_code
    if 200 <= code <= 299:
        return

    if body is None:
        body = response.read()
    try:
        payload = json.loads(body)
    except ValueError as e:
        raise ResponseDecodeError(
            f"unparseable error response (HTTP {code})", http_status=code, body=_text(body)
        ) from e

    try:
        envelope = ErrorEnvelope.model_validate(payload)
    except ValidationError:
        raise ServerError(f"unexpected error response (HTTP {code})", code, payload) from None

    value = envelope.value or ErrorValue()
    kind = classify(value.error, envelope.status)
    if kind is None:
        code_text = value.error if value.error is not None else f"status {envelope.status}"
        raise ServerError(f"{code_text}: {value.message}", code, payload)

    raise ProtocolError(
        kind,
        value.message,
        stacktrace=value.stacktrace,
        stack_trace=value.stack_trace,
        session_id=envelope.session_id,
        status=envelope.status,
        http_status=code,
    )


@lru_cache(maxsize=None)
def _adapter(shape: Any) -> TypeAdapter:
    return TypeAdapter(shape)


def zero_value(shape: Any) -> Any:
    """The value a shape takes when the server sent none: "", False, [], a default model, or None."""
    origin = get_origin(shape)
    if origin in (list, dict, set, tuple):
        return origin()
    try:
        return shape()
    except (TypeError, ValidationError):
        return None


def decode_value(body: bytes, shape: Any) -> Any:
    """Decode the ``value`` member of a success envelope into ``shape``."""
    if not body.strip():
        return zero_value(shape)

    try:
        payload = json.loads(body)
    except ValueError as e:
        raise ResponseDecodeError("unparseable response body", body=_text(body)) from e
    if not isinstance(payload, dict):
        raise ResponseDecodeError("response body is not an envelope object", body=_text(body))

    value = payload.get("value")
    if value is None:
        return zero_value(shape)

    try:
        return _adapter(shape).validate_python(value)
    except ValidationError as e:
        raise ResponseDecodeError(f"unexpected response value: {e}", body=_text(body)) from e


def safe_close(response: httpx.Response) -> None:
    try:
        response.close()
    except Exception:
        logger.warning("failed to close response for %s %s", response.request.method, response.request.url, exc_info=True)
