"""wdclient — WebDriver REST client for W3C and legacy remote ends."""

from ._version import __version__
from .client import Client
from .context import Context
from .elements import resolve_element_reference, resolve_element_references
from .errors import (
    Canceled,
    ConfigError,
    DeadlineExceeded,
    ErrorKind,
    InvalidArgumentError,
    PollTimeoutError,
    ProtocolError,
    RequestBuildError,
    ResponseDecodeError,
    ServerError,
    TransportError,
    WebDriverClientError,
)
from .models import (
    Cookie,
    ElementMarker,
    LocatorStrategy,
    Screenshot,
    ServerStatus,
    Session,
    Timeouts,
    WebElement,
    WindowRect,
)
from .polling import poll_until

__all__ = [
    "Client",
    "Context",
    "Session",
    "poll_until",
    "resolve_element_reference",
    "resolve_element_references",
    "Cookie",
    "ElementMarker",
    "LocatorStrategy",
    "Screenshot",
    "ServerStatus",
    "Timeouts",
    "WebElement",
    "WindowRect",
    "ErrorKind",
    "WebDriverClientError",
    "ConfigError",
    "InvalidArgumentError",
    "RequestBuildError",
    "TransportError",
    "Canceled",
    "DeadlineExceeded",
    "ResponseDecodeError",
    "ProtocolError",
    "ServerError",
    "PollTimeoutError",
]
