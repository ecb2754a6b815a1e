"""wdclient — synchronous WebDriver REST client."""

from __future__ import annotations

import logging
import os
from typing import Any, Callable, Collection, List, Optional, Sequence, TypeVar
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from . import polling
from ._version import __version__
from .context import Context
from .elements import resolve_element_reference, resolve_element_references
from .errors import (
    ConfigError,
    ErrorKind,
    InvalidArgumentError,
    RequestBuildError,
    TransportError,
)
from .models import (
    Cookie,
    FindElementRequest,
    LocatorStrategy,
    Screenshot,
    ServerStatus,
    Session,
    Timeouts,
    WebElement,
    WindowHandleRequest,
    WindowRect,
)
from .wire import check, decode_value, encode_body, safe_close

logger = logging.getLogger(__name__)

T = TypeVar("T")

_USER_AGENT = f"wdclient/{__version__}"


def _default_timeout() -> float:
    return float(os.environ.get("WEBDRIVER_TIMEOUT", "30"))


def _default_poll_interval() -> float:
    return float(os.environ.get("WEBDRIVER_POLL_INTERVAL", "0.5"))


def _base_headers() -> dict:
    """Headers that go on every request. content-type is set per request."""
    return {"accept": "application/json", "user-agent": _USER_AGENT}


def _segment(value: str) -> str:
    """Percent-encode a dynamic path segment (session id, element reference, names)."""
    return quote(str(value), safe="")


def _require(value: Any, what: str) -> None:
    if value is None or value == "":
        raise InvalidArgumentError(f"{what} is empty")


def _require_element(element: WebElement) -> None:
    if element is None or not element.reference:
        raise InvalidArgumentError("element is empty")


def _ms(seconds: float) -> int:
    return int(round(seconds * 1000))


class Client:
    """Synchronous WebDriver client bound to one remote session.

    Usage::

        session = Session(id="4f1c...", url="http://127.0.0.1:4444")
        with Client(session) as client:
            client.navigate_to("https://example.com")
            heading = client.element_find(LocatorStrategy.CSS_SELECTOR, "h1")
            print(client.element_text(heading))

    Every command takes an optional :class:`Context` (``ctx=``) for
    cancellation and deadlines; without one the call is bounded only by the
    HTTP timeout. Commands are never retried; only the ``*_wait_for_*``
    helpers re-issue reads.
    """

    def __init__(
        self,
        session: Optional[Session],
        timeout: Optional[float] = None,
        http: Optional[httpx.Client] = None,
    ) -> None:
        if session is None:
            raise ConfigError("session is empty")
        if not session.id:
            raise ConfigError("session ID is empty")
        if not session.url:
            raise ConfigError("base URL is empty")

        raw = session.url.rstrip("/") + "/"
        try:
            base_url = httpx.URL(raw)
        except httpx.InvalidURL as e:
            raise ConfigError(f"base URL is invalid: {session.url!r}") from e
        if base_url.scheme not in ("http", "https") or not base_url.host:
            raise ConfigError(f"base URL is invalid: {session.url!r}")

        self._session = session
        self._base_url = base_url
        self._owns_http = http is None
        self._http = http or httpx.Client(
            headers=_base_headers(),
            timeout=timeout if timeout is not None else _default_timeout(),
        )

    @property
    def session(self) -> Session:
        return self._session

    @property
    def base_url(self) -> str:
        return str(self._base_url)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def build_request(self, method: str, path: str, body: Any = None) -> httpx.Request:
        """Build a request for ``path`` resolved against the base URL.

        ``body`` is any JSON-serializable value or pydantic model; ``None``
        sends no body.
        """
        try:
            url = self._base_url.join(path)
        except (httpx.InvalidURL, TypeError) as e:
            raise RequestBuildError(f"invalid command path {path!r}: {e}") from e

        headers = {}
        content = None
        if body is not None:
            content = encode_body(body)
            headers["content-type"] = "application/json; charset=utf-8"
        return self._http.build_request(method, url, content=content, headers=headers)

    def send(self, request: httpx.Request, shape: Any = None, *, ctx: Optional[Context] = None) -> Any:
        """Send ``request`` and decode the envelope's ``value`` into ``shape``.

        With ``shape=None`` the body is not read and ``None`` is returned.

        Raises:
            Canceled / DeadlineExceeded: ``ctx`` was done, before or during the call.
            TransportError: the request failed at the network level.
            ProtocolError / ServerError: the server reported a failure.
            ResponseDecodeError: the body is not the JSON the command expects.
        """
        ctx = ctx or Context.background()
        self._raise_if_done(ctx)
        remaining = ctx.remaining()
        if remaining is not None:
            request.extensions["timeout"] = httpx.Timeout(remaining).as_dict()

        logger.debug("%s %s", request.method, request.url)
        try:
            response = self._http.send(request, stream=True)
        except httpx.HTTPError as e:
            raise self._transport_error(ctx, e) from e

        try:
            logger.debug("%s %s -> %d", request.method, request.url, response.status_code)
            self._raise_if_done(ctx)
            try:
                body = None
                if shape is not None or not response.is_success:
                    body = self._read(response, ctx)
                check(response, body)
                if shape is None:
                    return None
                value = decode_value(body, shape)
            except httpx.HTTPError as e:
                raise self._transport_error(ctx, e) from e
            self._raise_if_done(ctx)
            return value
        finally:
            safe_close(response)

    @staticmethod
    def _raise_if_done(ctx: Context) -> None:
        err = ctx.err()
        if err is not None:
            raise err

    @classmethod
    def _read(cls, response: httpx.Response, ctx: Context) -> bytes:
        # the httpx timeout bounds each read, not the whole body
        chunks = []
        for chunk in response.iter_bytes():
            cls._raise_if_done(ctx)
            chunks.append(chunk)
        cls._raise_if_done(ctx)
        return b"".join(chunks)

    @staticmethod
    def _transport_error(ctx: Context, e: httpx.HTTPError) -> TransportError:
        err = ctx.err()
        if err is not None:
            return err
        return TransportError(str(e) or type(e).__name__)

    def poll_until(
        self,
        command: Callable[[], T],
        predicate: Callable[[T], bool],
        interval: Optional[float] = None,
        max_wait: float = 10.0,
        *,
        ctx: Optional[Context] = None,
        pending_on: Collection[ErrorKind] = (),
        satisfied_on: Collection[ErrorKind] = (),
    ) -> Optional[T]:
        """See :func:`wdclient.polling.poll_until`."""
        return polling.poll_until(
            command,
            predicate,
            interval if interval is not None else _default_poll_interval(),
            max_wait,
            ctx=ctx,
            pending_on=pending_on,
            satisfied_on=satisfied_on,
        )

    def _route(self, *segments: str) -> str:
        return "/".join(("session", _segment(self._session.id)) + segments)

    def _get(self, path: str, shape: Any = None, ctx: Optional[Context] = None) -> Any:
        return self.send(self.build_request("GET", path), shape, ctx=ctx)

    def _post(self, path: str, body: Any = None, shape: Any = None, ctx: Optional[Context] = None) -> Any:
        # W3C remote ends reject POSTs without a JSON object body
        return self.send(self.build_request("POST", path, {} if body is None else body), shape, ctx=ctx)

    def _delete(self, path: str, ctx: Optional[Context] = None) -> None:
        self.send(self.build_request("DELETE", path), ctx=ctx)

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------

    def status(self, ctx: Optional[Context] = None) -> ServerStatus:
        """Whether the remote end can create new sessions.

        https://www.w3.org/TR/webdriver/#status
        """
        return self._get("status", ServerStatus, ctx)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def navigate_to(self, url: str, ctx: Optional[Context] = None) -> None:
        """https://www.w3.org/TR/webdriver/#navigate-to"""
        _require(url, "URL")
        self._post(self._route("url"), {"url": url}, ctx=ctx)

    def navigate_back(self, ctx: Optional[Context] = None) -> None:
        """Equivalent to pressing the browser back button.

        https://www.w3.org/TR/webdriver/#back
        """
        self._post(self._route("back"), ctx=ctx)

    def navigate_forward(self, ctx: Optional[Context] = None) -> None:
        """https://www.w3.org/TR/webdriver/#forward"""
        self._post(self._route("forward"), ctx=ctx)

    # ------------------------------------------------------------------
    # Page
    # ------------------------------------------------------------------

    def page_refresh(self, ctx: Optional[Context] = None) -> None:
        self._post(self._route("refresh"), ctx=ctx)

    def page_url(self, ctx: Optional[Context] = None) -> str:
        """https://www.w3.org/TR/webdriver/#get-current-url"""
        return self._get(self._route("url"), str, ctx)

    def page_title(self, ctx: Optional[Context] = None) -> str:
        return self._get(self._route("title"), str, ctx)

    def page_source(self, ctx: Optional[Context] = None) -> str:
        return self._get(self._route("source"), str, ctx)

    def page_screenshot(self, ctx: Optional[Context] = None) -> Screenshot:
        """Screenshot of the current top-level browsing context.

        https://www.w3.org/TR/webdriver/#take-screenshot
        """
        return Screenshot(data=self._get(self._route("screenshot"), str, ctx))

    def _script(self, route: str, script: str, args: Optional[Sequence[Any]], ctx: Optional[Context]) -> Any:
        _require(script, "script")
        body = {"script": script, "args": list(args or [])}
        return self._post(self._route(*route.split("/")), body, Any, ctx)

    def page_script(self, script: str, args: Optional[Sequence[Any]] = None, ctx: Optional[Context] = None) -> Any:
        """Run a synchronous script in the current frame and return its result.

        :class:`WebElement` arguments are sent under the marker they were
        found with, so the script receives the DOM element.

        https://www.w3.org/TR/webdriver/#execute-script
        """
        return self._script("execute/sync", script, args, ctx)

    def page_script_legacy(self, script: str, args: Optional[Sequence[Any]] = None, ctx: Optional[Context] = None) -> Any:
        """https://github.com/SeleniumHQ/selenium/wiki/JsonWireProtocol#sessionsessionidexecute"""
        return self._script("execute", script, args, ctx)

    def page_script_async(self, script: str, args: Optional[Sequence[Any]] = None, ctx: Optional[Context] = None) -> Any:
        """Run a script that signals completion through the callback passed as its last argument.

        https://www.w3.org/TR/webdriver/#execute-async-script
        """
        return self._script("execute/async", script, args, ctx)

    def page_script_async_legacy(self, script: str, args: Optional[Sequence[Any]] = None, ctx: Optional[Context] = None) -> Any:
        return self._script("execute_async", script, args, ctx)

    # ------------------------------------------------------------------
    # Elements
    # ------------------------------------------------------------------

    @staticmethod
    def _locator(by: LocatorStrategy, value: str) -> FindElementRequest:
        _require(by, "locator strategy")
        _require(value, "value")
        try:
            return FindElementRequest(using=by, value=value)
        except ValidationError as e:
            raise InvalidArgumentError(f"unknown locator strategy {by!r}") from e

    def element_find(self, by: LocatorStrategy, value: str, ctx: Optional[Context] = None) -> WebElement:
        """https://www.w3.org/TR/webdriver/#find-element"""
        body = self._locator(by, value)
        return resolve_element_reference(self._post(self._route("element"), body, Any, ctx))

    def elements_find(self, by: LocatorStrategy, value: str, ctx: Optional[Context] = None) -> List[WebElement]:
        """https://www.w3.org/TR/webdriver/#find-elements"""
        body = self._locator(by, value)
        return resolve_element_references(self._post(self._route("elements"), body, Any, ctx))

    def element_find_from(self, element: WebElement, by: LocatorStrategy, value: str, ctx: Optional[Context] = None) -> WebElement:
        """https://www.w3.org/TR/webdriver/#find-element-from-element"""
        _require_element(element)
        body = self._locator(by, value)
        route = self._route("element", _segment(element.reference), "element")
        return resolve_element_reference(self._post(route, body, Any, ctx))

    def elements_find_from(self, element: WebElement, by: LocatorStrategy, value: str, ctx: Optional[Context] = None) -> List[WebElement]:
        """https://www.w3.org/TR/webdriver/#find-elements-from-element"""
        _require_element(element)
        body = self._locator(by, value)
        route = self._route("element", _segment(element.reference), "elements")
        return resolve_element_references(self._post(route, body, Any, ctx))

    def element_find_shadow_root(self, element: WebElement, ctx: Optional[Context] = None) -> WebElement:
        """Return the shadow root hosted by ``element``."""
        _require_element(element)
        return resolve_element_reference(self.page_script("return arguments[0].shadowRoot", [element], ctx))

    def element_find_shadow_root_legacy(self, element: WebElement, ctx: Optional[Context] = None) -> WebElement:
        _require_element(element)
        return resolve_element_reference(self.page_script_legacy("return arguments[0].shadowRoot", [element], ctx))

    def _element_route(self, element: WebElement, *segments: str) -> str:
        _require_element(element)
        return self._route("element", _segment(element.reference), *segments)

    def element_click(self, element: WebElement, ctx: Optional[Context] = None) -> None:
        """https://www.w3.org/TR/webdriver/#element-click"""
        self._post(self._element_route(element, "click"), ctx=ctx)

    def element_clear(self, element: WebElement, ctx: Optional[Context] = None) -> None:
        """Clear an input or textarea element.

        https://www.w3.org/TR/webdriver/#element-clear
        """
        self._post(self._element_route(element, "clear"), ctx=ctx)

    def element_send_keys(self, element: WebElement, keys: str, ctx: Optional[Context] = None) -> None:
        """https://www.w3.org/TR/webdriver/#element-send-keys"""
        route = self._element_route(element, "value")
        _require(keys, "keys")
        self._post(route, {"text": keys}, ctx=ctx)

    def element_send_keys_legacy(self, element: WebElement, keys: str, ctx: Optional[Context] = None) -> None:
        """Legacy servers take the keys as a list of single characters."""
        route = self._element_route(element, "value")
        _require(keys, "keys")
        self._post(route, {"value": list(keys)}, ctx=ctx)

    def element_attribute(self, element: WebElement, name: str, ctx: Optional[Context] = None) -> Optional[str]:
        """https://www.w3.org/TR/webdriver/#get-element-attribute"""
        _require_element(element)
        _require(name, "attribute")
        route = self._element_route(element, "attribute", _segment(name))
        return self._get(route, Optional[str], ctx)

    def element_property(self, element: WebElement, name: str, ctx: Optional[Context] = None) -> Any:
        """https://www.w3.org/TR/webdriver/#get-element-property"""
        _require_element(element)
        _require(name, "property")
        route = self._element_route(element, "property", _segment(name))
        return self._get(route, Any, ctx)

    def element_css_value(self, element: WebElement, name: str, ctx: Optional[Context] = None) -> str:
        """https://www.w3.org/TR/webdriver/#get-element-css-value"""
        _require_element(element)
        _require(name, "CSS property")
        route = self._element_route(element, "css", _segment(name))
        return self._get(route, str, ctx)

    def element_text(self, element: WebElement, ctx: Optional[Context] = None) -> str:
        return self._get(self._element_route(element, "text"), str, ctx)

    def element_tag_name(self, element: WebElement, ctx: Optional[Context] = None) -> str:
        return self._get(self._element_route(element, "name"), str, ctx)

    def element_screenshot(self, element: WebElement, ctx: Optional[Context] = None) -> Screenshot:
        """https://www.w3.org/TR/webdriver/#take-element-screenshot"""
        return Screenshot(data=self._get(self._element_route(element, "screenshot"), str, ctx))

    def element_is_selected(self, element: WebElement, ctx: Optional[Context] = None) -> bool:
        """Whether an option, checkbox or radio button is selected."""
        return self._get(self._element_route(element, "selected"), bool, ctx)

    def element_is_enabled(self, element: WebElement, ctx: Optional[Context] = None) -> bool:
        return self._get(self._element_route(element, "enabled"), bool, ctx)

    def element_is_displayed(self, element: WebElement, ctx: Optional[Context] = None) -> bool:
        """https://www.w3.org/TR/webdriver/#element-displayedness"""
        return self._get(self._element_route(element, "displayed"), bool, ctx)

    # ------------------------------------------------------------------
    # Waits
    # ------------------------------------------------------------------

    def element_wait_for_present(
        self,
        by: LocatorStrategy,
        value: str,
        max_wait: float = 10.0,
        interval: Optional[float] = None,
        ctx: Optional[Context] = None,
    ) -> WebElement:
        """Poll until an element matching the locator exists and return it."""
        self._locator(by, value)
        return self.poll_until(
            lambda: self.element_find(by, value, ctx=ctx),
            lambda _: True,
            interval,
            max_wait,
            ctx=ctx,
            pending_on=(ErrorKind.NO_SUCH_ELEMENT,),
        )

    def element_wait_for_absent(
        self,
        by: LocatorStrategy,
        value: str,
        max_wait: float = 10.0,
        interval: Optional[float] = None,
        ctx: Optional[Context] = None,
    ) -> None:
        """Poll until no element matches the locator."""
        self._locator(by, value)
        self.poll_until(
            lambda: self.element_find(by, value, ctx=ctx),
            lambda _: False,
            interval,
            max_wait,
            ctx=ctx,
            satisfied_on=(ErrorKind.NO_SUCH_ELEMENT,),
        )

    def element_wait_for_text(
        self,
        element: WebElement,
        max_wait: float = 10.0,
        interval: Optional[float] = None,
        ctx: Optional[Context] = None,
    ) -> str:
        """Poll until the element's text is non-empty and return it."""
        _require_element(element)
        return self.poll_until(lambda: self.element_text(element, ctx=ctx), bool, interval, max_wait, ctx=ctx)

    def element_wait_for_enabled(
        self,
        element: WebElement,
        max_wait: float = 10.0,
        interval: Optional[float] = None,
        ctx: Optional[Context] = None,
    ) -> None:
        _require_element(element)
        self.poll_until(lambda: self.element_is_enabled(element, ctx=ctx), bool, interval, max_wait, ctx=ctx)

    def element_wait_for_displayed(
        self,
        element: WebElement,
        max_wait: float = 10.0,
        interval: Optional[float] = None,
        ctx: Optional[Context] = None,
    ) -> None:
        _require_element(element)
        self.poll_until(lambda: self.element_is_displayed(element, ctx=ctx), bool, interval, max_wait, ctx=ctx)

    # ------------------------------------------------------------------
    # Frames
    # ------------------------------------------------------------------

    def switch_to_frame(self, index: int, ctx: Optional[Context] = None) -> None:
        """Make the nested frame at ``index`` the target of subsequent commands.

        https://www.w3.org/TR/webdriver/#switch-to-frame
        """
        self._post(self._route("frame"), {"id": index}, ctx=ctx)

    def switch_to_parent_frame(self, ctx: Optional[Context] = None) -> None:
        """https://www.w3.org/TR/webdriver/#switch-to-parent-frame"""
        self._post(self._route("frame", "parent"), ctx=ctx)

    # ------------------------------------------------------------------
    # Windows
    # ------------------------------------------------------------------

    def window_handle(self, ctx: Optional[Context] = None) -> str:
        """https://www.w3.org/TR/webdriver/#get-window-handle"""
        return self._get(self._route("window"), str, ctx)

    def window_handles(self, ctx: Optional[Context] = None) -> List[str]:
        return self._get(self._route("window", "handles"), List[str], ctx)

    def window_new(self, ctx: Optional[Context] = None) -> str:
        """Open a new window and return its handle.

        https://www.w3.org/TR/webdriver/#new-window
        """
        value = self._post(self._route("window", "new"), shape=Any, ctx=ctx)
        # W3C returns {"handle", "type"}; older drivers return the bare handle
        if isinstance(value, dict):
            return value.get("handle", "")
        return value or ""

    def window_close(self, ctx: Optional[Context] = None) -> None:
        """Close the current window."""
        self._delete(self._route("window"), ctx=ctx)

    def window_switch(self, handle: str, ctx: Optional[Context] = None) -> None:
        """https://www.w3.org/TR/webdriver/#switch-to-window"""
        _require(handle, "window ID")
        self._post(self._route("window"), WindowHandleRequest(handle=handle, name=handle), ctx=ctx)

    def window_rect(self, ctx: Optional[Context] = None) -> WindowRect:
        """https://www.w3.org/TR/webdriver/#get-window-rect"""
        return self._get(self._route("window", "rect"), WindowRect, ctx)

    def window_set_rect(
        self,
        width: int,
        height: int,
        x: Optional[int] = None,
        y: Optional[int] = None,
        ctx: Optional[Context] = None,
    ) -> WindowRect:
        """https://www.w3.org/TR/webdriver/#set-window-rect"""
        if not width:
            raise InvalidArgumentError("window width is empty")
        if not height:
            raise InvalidArgumentError("window height is empty")
        body = {"width": width, "height": height}
        if x is not None:
            body["x"] = x
        if y is not None:
            body["y"] = y
        return self._post(self._route("window", "rect"), body, WindowRect, ctx)

    def window_maximize(self, ctx: Optional[Context] = None) -> WindowRect:
        return self._post(self._route("window", "maximize"), shape=WindowRect, ctx=ctx)

    def window_minimize(self, ctx: Optional[Context] = None) -> WindowRect:
        return self._post(self._route("window", "minimize"), shape=WindowRect, ctx=ctx)

    def window_fullscreen(self, ctx: Optional[Context] = None) -> WindowRect:
        return self._post(self._route("window", "fullscreen"), shape=WindowRect, ctx=ctx)

    # ------------------------------------------------------------------
    # Cookies
    # ------------------------------------------------------------------

    def cookie(self, name: str, ctx: Optional[Context] = None) -> Cookie:
        """https://www.w3.org/TR/webdriver/#get-named-cookie"""
        _require(name, "cookie name")
        return self._get(self._route("cookie", _segment(name)), Cookie, ctx)

    def cookie_add(self, cookie: Cookie, ctx: Optional[Context] = None) -> None:
        """https://www.w3.org/TR/webdriver/#add-cookie"""
        _require(cookie.name, "cookie name")
        _require(cookie.value, "cookie value")
        self._post(self._route("cookie"), {"cookie": cookie}, ctx=ctx)

    def cookie_delete(self, name: str, ctx: Optional[Context] = None) -> None:
        _require(name, "cookie name")
        self._delete(self._route("cookie", _segment(name)), ctx=ctx)

    def cookies(self, ctx: Optional[Context] = None) -> List[Cookie]:
        """All cookies visible to the current page."""
        return self._get(self._route("cookie"), List[Cookie], ctx)

    def cookies_delete(self, ctx: Optional[Context] = None) -> None:
        self._delete(self._route("cookie"), ctx=ctx)

    # ------------------------------------------------------------------
    # Timeouts
    # ------------------------------------------------------------------

    def timeouts(self, ctx: Optional[Context] = None) -> Timeouts:
        """https://www.w3.org/TR/webdriver/#get-timeouts"""
        return Timeouts.from_wire(self._get(self._route("timeouts"), dict, ctx))

    def set_implicit_timeout(self, seconds: float, ctx: Optional[Context] = None) -> None:
        """How long the server keeps looking for an element before reporting it missing."""
        self._post(self._route("timeouts"), {"implicit": _ms(seconds)}, ctx=ctx)

    def set_page_load_timeout(self, seconds: float, ctx: Optional[Context] = None) -> None:
        self._post(self._route("timeouts"), {"pageLoad": _ms(seconds)}, ctx=ctx)

    def set_script_timeout(self, seconds: float, ctx: Optional[Context] = None) -> None:
        self._post(self._route("timeouts"), {"script": _ms(seconds)}, ctx=ctx)

    # ------------------------------------------------------------------

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *_) -> None:
        self.close()
