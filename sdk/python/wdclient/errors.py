"""Error taxonomy for the WebDriver client.

Every failure surfaces as a subclass of :class:`WebDriverClientError`.
Failures reported by the remote end are classified into a closed set of
:class:`ErrorKind` values, whichever wire dialect the server speaks:

* W3C servers send a string code in ``value.error``
  (https://www.w3.org/TR/webdriver/#errors).
* Legacy JSON Wire Protocol servers send a numeric ``status``
  (https://github.com/SeleniumHQ/selenium/wiki/JsonWireProtocol#response-status-codes).
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Any, List, Mapping, Optional


class ErrorKind(str, Enum):
    ELEMENT_CLICK_INTERCEPTED = "element click intercepted"
    ELEMENT_NOT_INTERACTABLE = "element not interactable"
    ELEMENT_NOT_SELECTABLE = "element not selectable"
    INSECURE_CERTIFICATE = "insecure certificate"
    INVALID_ARGUMENT = "invalid argument"
    INVALID_COOKIE_DOMAIN = "invalid cookie domain"
    INVALID_ELEMENT_STATE = "invalid element state"
    INVALID_SELECTOR = "invalid selector"
    INVALID_SESSION_ID = "invalid session id"
    JAVASCRIPT_ERROR = "javascript error"
    MOVE_TARGET_OUT_OF_BOUNDS = "move target out of bounds"
    NO_SUCH_ALERT = "no such alert"
    NO_SUCH_COOKIE = "no such cookie"
    NO_SUCH_ELEMENT = "no such element"
    NO_SUCH_FRAME = "no such frame"
    NO_SUCH_SHADOW_ROOT = "no such shadow root"
    NO_SUCH_WINDOW = "no such window"
    SCRIPT_TIMEOUT = "script timeout"
    SESSION_NOT_CREATED = "session not created"
    STALE_ELEMENT_REFERENCE = "stale element reference"
    DETACHED_SHADOW_ROOT = "detached shadow root"
    TIMEOUT = "timeout"
    UNABLE_TO_SET_COOKIE = "unable to set cookie"
    UNABLE_TO_CAPTURE_SCREEN = "unable to capture screen"
    UNEXPECTED_ALERT_OPEN = "unexpected alert open"
    UNKNOWN_COMMAND = "unknown command"
    UNKNOWN_ERROR = "unknown error"
    UNKNOWN_METHOD = "unknown method"
    UNSUPPORTED_OPERATION = "unsupported operation"

    @property
    def not_found(self) -> bool:
        """True when the kind reports something absent (element, frame, window...)."""
        return self in _NOT_FOUND

    @property
    def retryable(self) -> bool:
        """True when re-issuing a read later may succeed; all other kinds are fatal."""
        return self in _RETRYABLE


_NOT_FOUND = frozenset({
    ErrorKind.NO_SUCH_ALERT,
    ErrorKind.NO_SUCH_COOKIE,
    ErrorKind.NO_SUCH_ELEMENT,
    ErrorKind.NO_SUCH_FRAME,
    ErrorKind.NO_SUCH_SHADOW_ROOT,
    ErrorKind.NO_SUCH_WINDOW,
})

_RETRYABLE = _NOT_FOUND | {
    ErrorKind.STALE_ELEMENT_REFERENCE,
    ErrorKind.ELEMENT_NOT_INTERACTABLE,
    ErrorKind.ELEMENT_CLICK_INTERCEPTED,
    ErrorKind.INVALID_ELEMENT_STATE,
}

# W3C dialect: value.error -> kind
W3C_ERRORS: Mapping[str, ErrorKind] = MappingProxyType({k.value: k for k in ErrorKind})

# Legacy dialect: status -> kind
LEGACY_STATUSES: Mapping[int, ErrorKind] = MappingProxyType({
    6: ErrorKind.INVALID_SESSION_ID,
    7: ErrorKind.NO_SUCH_ELEMENT,
    8: ErrorKind.NO_SUCH_FRAME,
    9: ErrorKind.UNKNOWN_COMMAND,
    10: ErrorKind.STALE_ELEMENT_REFERENCE,
    11: ErrorKind.ELEMENT_NOT_INTERACTABLE,  # ElementNotVisible
    12: ErrorKind.INVALID_ELEMENT_STATE,
    13: ErrorKind.UNKNOWN_ERROR,
    15: ErrorKind.ELEMENT_NOT_SELECTABLE,
    17: ErrorKind.JAVASCRIPT_ERROR,
    19: ErrorKind.INVALID_SELECTOR,  # XPathLookupError
    21: ErrorKind.TIMEOUT,
    23: ErrorKind.NO_SUCH_WINDOW,
    24: ErrorKind.INVALID_COOKIE_DOMAIN,
    25: ErrorKind.UNABLE_TO_SET_COOKIE,
    26: ErrorKind.UNEXPECTED_ALERT_OPEN,
    27: ErrorKind.NO_SUCH_ALERT,
    28: ErrorKind.SCRIPT_TIMEOUT,
    29: ErrorKind.INVALID_ARGUMENT,  # InvalidElementCoordinates
    30: ErrorKind.UNSUPPORTED_OPERATION,  # IMENotAvailable
    31: ErrorKind.UNSUPPORTED_OPERATION,  # IMEEngineActivationFailed
    32: ErrorKind.INVALID_SELECTOR,
    33: ErrorKind.SESSION_NOT_CREATED,
    34: ErrorKind.MOVE_TARGET_OUT_OF_BOUNDS,
    51: ErrorKind.INVALID_SELECTOR,
    52: ErrorKind.INVALID_SELECTOR,
    60: ErrorKind.ELEMENT_NOT_INTERACTABLE,
    61: ErrorKind.INVALID_ARGUMENT,
    62: ErrorKind.NO_SUCH_COOKIE,
    63: ErrorKind.UNABLE_TO_CAPTURE_SCREEN,
    64: ErrorKind.ELEMENT_CLICK_INTERCEPTED,
    405: ErrorKind.UNSUPPORTED_OPERATION,
})


def classify(error: Optional[str], status: Optional[int]) -> Optional[ErrorKind]:
    """Return the kind for a failure, preferring the W3C string over the legacy status.

    ``None`` means neither discriminant is recognized.
    """
    if error is not None and error in W3C_ERRORS:
        return W3C_ERRORS[error]
    if status is not None and status in LEGACY_STATUSES:
        return LEGACY_STATUSES[status]
    return None


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class WebDriverClientError(Exception):
    """Base exception for every error raised by wdclient."""


class ConfigError(WebDriverClientError, ValueError):
    """Raised when a Client cannot be built from the given session."""


class InvalidArgumentError(WebDriverClientError, ValueError):
    """Raised before any request is made when a command argument is empty or invalid."""


class RequestBuildError(WebDriverClientError):
    """Raised when a command path or body cannot be turned into a request."""


class TransportError(WebDriverClientError):
    """Raised when the request did not complete at the network level."""


class Canceled(TransportError):
    """Raised when the caller's context was canceled."""

    def __init__(self, message: str = "context canceled") -> None:
        super().__init__(message)


class DeadlineExceeded(TransportError, TimeoutError):
    """Raised when the caller's context deadline passed."""

    def __init__(self, message: str = "context deadline exceeded") -> None:
        super().__init__(message)


class ResponseDecodeError(WebDriverClientError):
    """Raised when a response body is not the JSON the command expects."""

    def __init__(self, message: str, http_status: Optional[int] = None, body: Optional[str] = None) -> None:
        super().__init__(message)
        self.http_status = http_status
        self.body = body


class ProtocolError(WebDriverClientError):
    """A failure reported by the remote end and classified into an :class:`ErrorKind`.

    ``kind`` is what callers branch on; ``message`` and the stack traces are
    the server's diagnostics.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str = "",
        stacktrace: Optional[str] = None,
        stack_trace: Optional[List[Any]] = None,
        session_id: Optional[str] = None,
        status: Optional[int] = None,
        http_status: Optional[int] = None,
    ) -> None:
        super().__init__(f"{kind.value}: {message}")
        self.kind = kind
        self.message = message
        self.stacktrace = stacktrace
        self.stack_trace = stack_trace or []
        self.session_id = session_id
        self.status = status
        self.http_status = http_status

    @property
    def not_found(self) -> bool:
        return self.kind.not_found

    @property
    def retryable(self) -> bool:
        return self.kind.retryable


class ServerError(WebDriverClientError):
    """A failure whose error code is not part of the known catalogue.

    ``payload`` is the raw decoded body, kept for diagnostics.
    """

    def __init__(self, message: str, http_status: int, payload: Any = None) -> None:
        super().__init__(message)
        self.http_status = http_status
        self.payload = payload


class PollTimeoutError(WebDriverClientError, TimeoutError):
    """Raised when a poll did not see its condition before the maximum wait."""

    def __init__(self, elapsed: float) -> None:
        super().__init__(f"timeout after {elapsed:.3f}s")
        self.elapsed = elapsed
