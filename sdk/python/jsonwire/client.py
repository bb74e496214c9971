"""jsonwire client: request dispatch and session handles."""

from __future__ import annotations

import base64
import copy
import logging
from typing import Any, Dict, List, Optional, Sequence, Union
from urllib.parse import quote

import httpx

from .elements import CURRENT_WINDOW, Element, Window, element_id, find_body, to_elements
from .envelope import Envelope, Reply, normalize_session_id
from .errors import MalformedResponseError, TransportError, error_for
from .models import Cookie, FindStrategy, SessionInfo

logger = logging.getLogger(__name__)

_METHODS = ("GET", "POST", "DELETE")
_POST_CONTENT_TYPE = "application/json;charset=utf-8"


def _base_headers(extra: Optional[dict] = None) -> dict:
    """Headers that go on every request (content-type is set for POST only)."""
    h: dict = {"Accept": "application/json", "Accept-Charset": "utf-8"}
    if extra:
        h.update(extra)
    return h


def build_path(template: str, args: Sequence[Any]) -> str:
    """Substitute ``args`` into the ``%s`` placeholders of ``template``, in order.

    Each argument becomes exactly one percent-encoded path segment.
    """
    expected = template.count("%s")
    if expected != len(args):
        raise ValueError(f"path {template!r} takes {expected} argument(s), got {len(args)}")
    return template % tuple(quote(str(a), safe="") for a in args)


# ---------------------------------------------------------------------------
# Web storage
# ---------------------------------------------------------------------------

class Storage:
    """localStorage or sessionStorage of the current page of a session."""

    def __init__(self, session: "Session", area: str) -> None:
        self._session = session
        self._area = area

    def _path(self, suffix: str = "") -> str:
        return "/session/%s/" + self._area + suffix

    def size(self) -> int:
        return self._session._driver._get(self._path("/size"), self._session.id).decode(int)

    def keys(self) -> List[str]:
        return self._session._driver._get(self._path(), self._session.id).decode(List[str])

    def get(self, key: str) -> Optional[str]:
        return self._session._driver._get(self._path("/key/%s"), self._session.id, key).decode(Optional[str])

    def set(self, key: str, value: str) -> None:
        self._session._driver._post(self._path(), {"key": key, "value": value}, self._session.id)

    def delete(self, key: str) -> None:
        self._session._driver._delete(self._path("/key/%s"), self._session.id, key)

    def clear(self) -> None:
        self._session._driver._delete(self._path(), self._session.id)


# ---------------------------------------------------------------------------
# Session handle
# ---------------------------------------------------------------------------

class Session:
    """Handle for a single remote browser session.

    Sessions come from ``Driver.sessions.create()`` or ``Driver.sessions.list()``.
    Elements, windows and cookies obtained through a session are only valid
    until the session is deleted; the client does not track this, the server
    answers later calls with ``UnknownResourceError``.
    """

    def __init__(self, session_id: str, capabilities: Dict[str, Any], driver: "Driver") -> None:
        self._id = session_id
        self._capabilities = capabilities
        self._driver = driver
        self.local_storage = Storage(self, "local_storage")
        self.session_storage = Storage(self, "session_storage")

    @property
    def id(self) -> str:
        return self._id

    @property
    def capabilities(self) -> Dict[str, Any]:
        return copy.deepcopy(self._capabilities)

    @property
    def driver(self) -> "Driver":
        return self._driver

    def __repr__(self) -> str:
        return f"Session(id={self._id!r})"

    def delete(self) -> None:
        """Delete the session, shutting down the remote browser."""
        self._driver._delete("/session/%s", self._id)

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *_) -> None:
        self.delete()

    # ------------------------------------------------------------------
    # Navigation and page
    # ------------------------------------------------------------------

    def url(self) -> str:
        return self._driver._get("/session/%s/url", self._id).decode(str)

    def load(self, url: str) -> None:
        """Navigate to ``url``."""
        self._driver._post("/session/%s/url", {"url": url}, self._id)

    navigate = load

    def title(self) -> str:
        return self._driver._get("/session/%s/title", self._id).decode(str)

    def source(self) -> str:
        return self._driver._get("/session/%s/source", self._id).decode(str)

    def back(self) -> None:
        self._driver._post("/session/%s/back", None, self._id)

    def forward(self) -> None:
        self._driver._post("/session/%s/forward", None, self._id)

    def refresh(self) -> None:
        self._driver._post("/session/%s/refresh", None, self._id)

    def screenshot(self) -> bytes:
        """Screenshot of the viewport as raw PNG bytes."""
        data = self._driver._get("/session/%s/screenshot", self._id).decode(str)
        return base64.b64decode(data)

    def execute_sync(self, script: str, args: Optional[List[Any]] = None) -> Any:
        """Run ``script`` in the page and return its JSON result."""
        body = {"script": script, "args": args or []}
        return self._driver._post("/session/%s/execute/sync", body, self._id).value

    def execute_async(self, script: str, args: Optional[List[Any]] = None) -> Any:
        body = {"script": script, "args": args or []}
        return self._driver._post("/session/%s/execute/async", body, self._id).value

    # ------------------------------------------------------------------
    # Timeouts
    # ------------------------------------------------------------------

    def timeouts(self, kind: str, ms: int) -> None:
        """Set a timeout: ``kind`` is 'script', 'implicit' or 'page load'."""
        self._driver._post("/session/%s/timeouts", {"type": kind, "ms": ms}, self._id)

    def timeouts_async_script(self, ms: int) -> None:
        self._driver._post("/session/%s/timeouts/async_script", {"ms": ms}, self._id)

    def timeouts_implicit_wait(self, ms: int) -> None:
        self._driver._post("/session/%s/timeouts/implicit_wait", {"ms": ms}, self._id)

    # ------------------------------------------------------------------
    # Elements
    # ------------------------------------------------------------------

    def active(self) -> Element:
        """The element that currently has focus."""
        reply = self._driver._post("/session/%s/element/active", None, self._id)
        return Element(element_id(reply.value), self)

    def element(self, using: Union[FindStrategy, str], value: str) -> Element:
        """Find the first element on the page matching ``value``."""
        reply = self._driver._post("/session/%s/element", find_body(using, value), self._id)
        return Element(element_id(reply.value), self)

    def elements(self, using: Union[FindStrategy, str], value: str) -> List[Element]:
        """Find every element matching ``value``; an empty list when none do."""
        reply = self._driver._post("/session/%s/elements", find_body(using, value), self._id)
        return to_elements(reply.decode(List[Any]), self)

    # ------------------------------------------------------------------
    # Windows
    # ------------------------------------------------------------------

    def window(self) -> Window:
        """The active window, without a round trip."""
        return Window(CURRENT_WINDOW, self)

    def window_handle(self) -> Window:
        """The active window, resolved to its real handle."""
        handle = self._driver._get("/session/%s/window_handle", self._id).decode(str)
        return Window(handle, self)

    def windows(self) -> List[Window]:
        handles = self._driver._get("/session/%s/window_handles", self._id).decode(List[str])
        return [Window(h, self) for h in handles]

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    def alert_text(self) -> str:
        return self._driver._get("/session/%s/alert_text", self._id).decode(str)

    def respond_alert(self, text: str) -> None:
        """Type ``text`` into the open prompt dialog."""
        self._driver._post("/session/%s/alert_text", {"text": text}, self._id)

    def accept_alert(self) -> None:
        self._driver._post("/session/%s/accept_alert", None, self._id)

    def dismiss_alert(self) -> None:
        self._driver._post("/session/%s/dismiss_alert", None, self._id)

    # ------------------------------------------------------------------
    # Mouse
    # ------------------------------------------------------------------

    def move(self, element: Optional[Element] = None, x: int = 0, y: int = 0) -> None:
        """Move the mouse by an offset, relative to ``element`` when given."""
        body: dict = {"xoffset": x, "yoffset": y}
        if element is not None:
            body["element"] = element.id
        self._driver._post("/session/%s/moveto", body, self._id)

    def click(self, button: int = 0) -> None:
        self._driver._post("/session/%s/click", {"button": button}, self._id)

    def button_down(self, button: int = 0) -> None:
        self._driver._post("/session/%s/buttondown", {"button": button}, self._id)

    def button_up(self, button: int = 0) -> None:
        self._driver._post("/session/%s/buttonup", {"button": button}, self._id)

    def double_click(self) -> None:
        self._driver._post("/session/%s/doubleclick", None, self._id)

    # ------------------------------------------------------------------
    # Touch
    # ------------------------------------------------------------------

    def touch_click(self, element: Element) -> None:
        self._driver._post("/session/%s/touch/click", {"element": element.id}, self._id)

    def touch_down(self, x: int, y: int) -> None:
        self._driver._post("/session/%s/touch/down", {"x": x, "y": y}, self._id)

    def touch_up(self, x: int, y: int) -> None:
        self._driver._post("/session/%s/touch/up", {"x": x, "y": y}, self._id)

    def touch_move(self, x: int, y: int) -> None:
        self._driver._post("/session/%s/touch/move", {"x": x, "y": y}, self._id)

    def touch_scroll(self, element: Element, x: int, y: int) -> None:
        body = {"element": element.id, "xoffset": x, "yoffset": y}
        self._driver._post("/session/%s/touch/scroll", body, self._id)

    def touch_double_click(self, element: Element) -> None:
        self._driver._post("/session/%s/touch/doubleclick", {"element": element.id}, self._id)

    def touch_long_click(self, element: Element) -> None:
        self._driver._post("/session/%s/touch/longclick", {"element": element.id}, self._id)

    def touch_flick(self, element: Element, x: int, y: int, speed: int) -> None:
        body = {"element": element.id, "xoffset": x, "yoffset": y, "speed": speed}
        self._driver._post("/session/%s/touch/flick", body, self._id)

    def touch_flick_anywhere(self, xspeed: int, yspeed: int) -> None:
        self._driver._post("/session/%s/touch/flick", {"xspeed": xspeed, "yspeed": yspeed}, self._id)

    # ------------------------------------------------------------------
    # Cookies
    # ------------------------------------------------------------------

    def cookie(self, name: str, value: str = "", **fields: Any) -> Cookie:
        """Build a cookie bound to this session; call ``set()`` to save it."""
        return Cookie(name=name, value=value, **fields).bind(self)

    def cookies(self) -> List[Cookie]:
        """All cookies visible to the current page."""
        cookies = self._driver._get("/session/%s/cookie", self._id).decode(List[Cookie])
        return [c.bind(self) for c in cookies]

    def clear_cookies(self) -> None:
        self._driver._delete("/session/%s/cookie", self._id)

    # ------------------------------------------------------------------
    # Application cache
    # ------------------------------------------------------------------

    def application_cache_status(self) -> int:
        return self._driver._get("/session/%s/application_cache/status", self._id).decode(int)


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------

class Driver:
    """Synchronous JSON Wire client bound to one automation server.

    Usage::

        with Driver("http://127.0.0.1:4444/wd/hub") as driver:
            with driver.sessions.create({"browserName": "chrome"}) as sess:
                sess.load("https://example.com")
                print(sess.element(FindStrategy.CSS_SELECTOR, "h1").text())

    The base URL never changes after construction and the underlying
    ``httpx.Client`` pools connections, so one driver can be shared by many
    threads. Calls against the same session are not serialized.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        headers: Optional[dict] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._url = url.rstrip("/")
        self._http = httpx.Client(
            headers=_base_headers(headers),
            timeout=timeout,
            transport=transport,
        )
        self.sessions = _SessionManager(self)

    @property
    def url(self) -> str:
        return self._url

    def status(self) -> Dict[str, Any]:
        """Server build and OS information."""
        return self._get("/status").decode(Dict[str, Any])

    def dispatch(self, method: str, template: str, *args: Any, body: Optional[dict] = None) -> Reply:
        """Send one command and unwrap the response envelope.

        ``args`` fill the ``%s`` placeholders of ``template`` left to right.
        ``body`` is only allowed for POST, which always sends a JSON object.

        Raises TransportError if no response arrives, a ProtocolError
        subclass if the server reports a failure (HTTP status outside 2xx or
        a non-zero envelope status), and MalformedResponseError if a
        successful response carries no valid envelope.
        """
        method = method.upper()
        if method not in _METHODS:
            raise ValueError(f"unsupported method: {method}")
        url = self._url + build_path(template, args)

        kwargs: dict = {}
        if method == "POST":
            kwargs["json"] = body if body is not None else {}
            kwargs["headers"] = {"Content-Type": _POST_CONTENT_TYPE}
        elif body is not None:
            raise ValueError(f"{method} requests carry no body")

        logger.debug("%s %s", method, url)
        try:
            resp = self._http.request(method, url, **kwargs)
        except httpx.RequestError as exc:
            logger.debug("%s %s failed: %r", method, url, exc)
            raise TransportError(str(exc) or type(exc).__name__, method=method, url=url) from exc
        return self._unwrap(resp, method, url)

    def _unwrap(self, resp: httpx.Response, method: str, url: str) -> Reply:
        envelope: Optional[Envelope] = None
        malformed: Optional[MalformedResponseError] = None
        # Only 204 No Content may come without an envelope.
        if resp.status_code != 204 or resp.content.strip():
            try:
                envelope = Envelope.parse(resp.content)
            except MalformedResponseError as exc:
                malformed = exc

        status = envelope.status if envelope is not None else 0
        if not resp.is_success or status != 0:
            logger.debug("%s %s -> HTTP %d, status %d", method, url, resp.status_code, status)
            raise error_for(resp.status_code, status, resp.reason_phrase, method=method, url=url)

        if malformed is not None:
            logger.debug("%s %s -> HTTP %d, undecodable body", method, url, resp.status_code)
            malformed.method = method
            malformed.url = url
            raise malformed

        logger.debug("%s %s -> HTTP %d", method, url, resp.status_code)
        if envelope is None:
            return Reply("", None)
        return Reply(envelope.session_id, envelope.value)

    def _get(self, template: str, *args: Any) -> Reply:
        return self.dispatch("GET", template, *args)

    def _post(self, template: str, body: Optional[dict], *args: Any) -> Reply:
        return self.dispatch("POST", template, *args, body=body)

    def _delete(self, template: str, *args: Any) -> Reply:
        return self.dispatch("DELETE", template, *args)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "Driver":
        return self

    def __exit__(self, *_) -> None:
        self.close()


class _SessionManager:
    def __init__(self, driver: Driver) -> None:
        self._driver = driver

    def create(
        self,
        desired: Optional[Dict[str, Any]] = None,
        required: Optional[Dict[str, Any]] = None,
    ) -> Session:
        """Start a new remote browser with the given capabilities."""
        reply = self._driver._post(
            "/session",
            {"desiredCapabilities": desired or {}, "requiredCapabilities": required or {}},
        )
        value = reply.decode(Dict[str, Any])
        session_id = reply.session_id
        capabilities = value
        # W3C-style servers put the id and capabilities inside the value.
        if not session_id and "sessionId" in value:
            session_id = normalize_session_id(value["sessionId"])
            capabilities = value.get("capabilities") or {}
        if not session_id:
            raise MalformedResponseError(
                "new session response carries no session id",
                method="POST",
                url=self._driver.url + "/session",
            )
        logger.debug("created session %s", session_id)
        return Session(session_id, capabilities, self._driver)

    def list(self) -> List[Session]:
        """All sessions currently active on the server."""
        infos = self._driver._get("/sessions").decode(List[SessionInfo])
        return [Session(info.id, info.capabilities, self._driver) for info in infos]
