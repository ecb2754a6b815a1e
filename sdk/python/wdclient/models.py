"""Pydantic v2 models for WebDriver requests and responses."""

from __future__ import annotations

import base64
import os
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

_DEFAULT_WEBDRIVER_URL = "http://127.0.0.1:4444"


class Session(BaseModel):
    """Remote session the client talks to. ``id`` is allocated by the server, not here."""

    model_config = ConfigDict(frozen=True)

    id: str
    url: str

    @classmethod
    def from_env(cls, session_id: str) -> "Session":
        return cls(id=session_id, url=os.environ.get("WEBDRIVER_URL", _DEFAULT_WEBDRIVER_URL))


# ---------------------------------------------------------------------------
# Elements
# ---------------------------------------------------------------------------

class LocatorStrategy(str, Enum):
    """https://www.w3.org/TR/webdriver/#locator-strategies"""

    CSS_SELECTOR = "css selector"
    LINK_TEXT = "link text"
    PARTIAL_LINK_TEXT = "partial link text"
    TAG_NAME = "tag name"
    XPATH = "xpath"


class ElementMarker(str, Enum):
    """Key that marks a JSON object as an element reference."""

    W3C = "element-6066-11e4-a52e-4f735466cecf"
    LEGACY = "ELEMENT"


class WebElement(BaseModel):
    model_config = ConfigDict(frozen=True)

    marker: ElementMarker
    reference: str

    def to_wire(self) -> Dict[str, str]:
        """Serialize under the same marker the server used, e.g. for script arguments."""
        return {self.marker.value: self.reference}


class FindElementRequest(BaseModel):
    using: LocatorStrategy
    value: str


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class StackFrame(BaseModel):
    """One frame of a legacy server-side stack trace."""

    file_name: Optional[str] = Field(None, alias="fileName")
    method_name: Optional[str] = Field(None, alias="methodName")
    class_name: Optional[str] = Field(None, alias="className")
    line_number: Optional[int] = Field(None, alias="lineNumber")


class ErrorValue(BaseModel):
    """https://www.w3.org/TR/webdriver/#handling-errors"""

    error: Optional[str] = None
    message: str = ""
    stacktrace: Optional[str] = None
    stack_trace: Optional[List[StackFrame]] = Field(None, alias="stackTrace")


class ErrorEnvelope(BaseModel):
    session_id: Optional[str] = Field(None, alias="sessionId")
    value: Optional[ErrorValue] = None
    status: Optional[int] = None


# ---------------------------------------------------------------------------
# Server status
# ---------------------------------------------------------------------------

class StatusBuild(BaseModel):
    revision: Optional[str] = None
    time: Optional[datetime] = None
    version: Optional[str] = None


class StatusOS(BaseModel):
    arch: Optional[str] = None
    name: Optional[str] = None
    version: Optional[str] = None


class ServerStatus(BaseModel):
    """Value of GET /status. Legacy servers leave ``ready`` out."""

    ready: bool = False
    message: str = ""
    build: Optional[StatusBuild] = None
    os: Optional[StatusOS] = None


# ---------------------------------------------------------------------------
# Windows
# ---------------------------------------------------------------------------

class WindowRect(BaseModel):
    width: int = 0
    height: int = 0
    x: int = 0
    y: int = 0


class WindowHandleRequest(BaseModel):
    # W3C uses "handle", legacy servers use "name"
    handle: str
    name: str


# ---------------------------------------------------------------------------
# Cookies
# ---------------------------------------------------------------------------

class Cookie(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    value: str
    path: Optional[str] = None
    domain: Optional[str] = None
    secure: bool = False
    http_only: bool = Field(False, alias="httpOnly")
    expiry: Optional[int] = None
    same_site: Optional[str] = Field(None, alias="sameSite")


# ---------------------------------------------------------------------------
# Timeouts
# ---------------------------------------------------------------------------

class Timeouts(BaseModel):
    """Session timeouts in seconds (the wire carries milliseconds)."""

    implicit: float = 0.0
    page_load: float = 0.0
    script: Optional[float] = None

    @classmethod
    def from_wire(cls, raw: Dict[str, Any]) -> "Timeouts":
        def seconds(key: str) -> Optional[float]:
            ms = raw.get(key)
            return None if ms is None else ms / 1000.0

        return cls(
            implicit=seconds("implicit") or 0.0,
            page_load=seconds("pageLoad") or 0.0,
            script=seconds("script"),
        )


# ---------------------------------------------------------------------------
# Screenshots
# ---------------------------------------------------------------------------

class Screenshot(BaseModel):
    """PNG captured by the remote end, as the base64 text it was sent in."""

    data: str

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.data, validate=True)

    def save(self, path: Union[str, os.PathLike]) -> Path:
        """Write the PNG to ``path`` and return it as a Path."""
        target = Path(path)
        target.write_bytes(self.to_bytes())
        return target

