"""
Shared fixtures for the unit tests: an in-memory JSON Wire server mounted
on httpx.MockTransport, so no automation server is needed.
"""

from __future__ import annotations

import itertools
import json
import os
import re
import sys
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

# Add sdk to path so we don't need to install it
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../sdk/python"))

from jsonwire import Driver

BASE_URL = "http://127.0.0.1:4444/wd/hub"
BLANK_PAGE = "about:blank"

# JSON Wire status codes used by the fake
NO_SUCH_ELEMENT = 7
NO_SUCH_SESSION = 6
UNKNOWN_COMMAND = 9


def envelope(value: Any = None, session_id: Optional[str] = None, status: int = 0) -> dict:
    return {"sessionId": session_id, "status": status, "value": value}


class FakeServer:
    """Tiny stateful JSON Wire server.

    The page DOM is a mapping of css selector -> element ids, and element
    text is looked up in ``texts``.
    """

    def __init__(self) -> None:
        self.sessions: Dict[str, dict] = {}
        self.requests: List[httpx.Request] = []
        self.dom: Dict[str, List[str]] = {
            "li": ["e1", "e2", "e3"],
            "h1": ["e4"],
        }
        self.children: Dict[str, Dict[str, List[str]]] = {"e4": {"span": ["e5"]}}
        self.texts: Dict[str, str] = {"e4": "Welcome", "e5": "inner"}
        self.clicked: List[str] = []
        self.keys: Dict[str, List[str]] = {}
        self._ids = itertools.count(1)

    # -- plumbing -----------------------------------------------------------

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path[len("/wd/hub"):]
        body = json.loads(request.content) if request.content else None
        return self.route(request.method, path, body)

    def ok(self, value: Any = None, session_id: Optional[str] = None) -> httpx.Response:
        return httpx.Response(200, json=envelope(value, session_id))

    def fail(self, http_status: int, status: int, message: str, session_id: Optional[str] = None) -> httpx.Response:
        return httpx.Response(http_status, json=envelope({"message": message}, session_id, status))

    # -- routing ------------------------------------------------------------

    def route(self, method: str, path: str, body: Optional[dict]) -> httpx.Response:
        if path == "/status" and method == "GET":
            return self.ok({"build": {"version": "fake-1.0"}, "os": {"name": "linux"}})
        if path == "/session" and method == "POST":
            sid = f"sess-{next(self._ids)}"
            caps = dict(body.get("desiredCapabilities") or {})
            self.sessions[sid] = {
                "caps": caps,
                "url": BLANK_PAGE,
                "cookies": [],
                "local_storage": {},
                "session_storage": {},
            }
            return self.ok(caps, session_id=sid)
        if path == "/sessions" and method == "GET":
            return self.ok([{"id": sid, "capabilities": s["caps"]} for sid, s in self.sessions.items()])

        m = re.match(r"^/session/([^/]+)(/.*)?$", path)
        if not m:
            return self.fail(404, UNKNOWN_COMMAND, "unknown command")
        sid, rest = m.group(1), m.group(2) or ""
        state = self.sessions.get(sid)
        if state is None:
            return self.fail(404, NO_SUCH_SESSION, f"session {sid} not found")

        if rest == "" and method == "DELETE":
            del self.sessions[sid]
            return self.ok(session_id=sid)
        if rest == "/url":
            if method == "POST":
                state["url"] = body["url"]
                return self.ok(session_id=sid)
            return self.ok(state["url"], session_id=sid)
        if rest == "/title" and method == "GET":
            return self.ok("Fake Page", session_id=sid)
        if rest in ("/element", "/elements") and method == "POST":
            return self.find(sid, self.dom, body, many=rest == "/elements")
        if rest == "/window_handle":
            return self.ok("w-main", session_id=sid)
        if rest == "/window_handles":
            return self.ok(["w-main", "w-popup"], session_id=sid)
        if rest.startswith("/element/"):
            return self.element(sid, method, rest[len("/element/"):], body)
        if rest.startswith("/cookie"):
            return self.cookie(sid, state, method, rest[len("/cookie"):], body)
        m = re.match(r"^/(local_storage|session_storage)(.*)$", rest)
        if m:
            return self.storage(sid, state[m.group(1)], method, m.group(2), body)
        return self.fail(404, UNKNOWN_COMMAND, f"unknown command {method} {rest}", session_id=sid)

    def find(self, sid: str, dom: Dict[str, List[str]], body: dict, many: bool) -> httpx.Response:
        if body["using"] != "css selector":
            return self.fail(500, 32, "only css selectors are supported", session_id=sid)
        ids = dom.get(body["value"], [])
        if many:
            return self.ok([{"ELEMENT": i} for i in ids], session_id=sid)
        if not ids:
            return self.fail(500, NO_SUCH_ELEMENT, "no such element", session_id=sid)
        return self.ok({"ELEMENT": ids[0]}, session_id=sid)

    def element(self, sid: str, method: str, rest: str, body: Optional[dict]) -> httpx.Response:
        eid, _, facet = rest.partition("/")
        if facet in ("element", "elements") and method == "POST":
            return self.find(sid, self.children.get(eid, {}), body, many=facet == "elements")
        if facet == "text":
            return self.ok(self.texts.get(eid, ""), session_id=sid)
        if facet == "click":
            self.clicked.append(eid)
            return self.ok(session_id=sid)
        if facet == "value":
            self.keys[eid] = body["value"]
            return self.ok(session_id=sid)
        if facet.startswith("equal/"):
            return self.ok(eid == facet[len("equal/"):], session_id=sid)
        if facet.startswith("attribute/"):
            return self.ok(None, session_id=sid)
        return self.fail(404, UNKNOWN_COMMAND, f"unknown element command {facet}", session_id=sid)

    def cookie(self, sid: str, state: dict, method: str, rest: str, body: Optional[dict]) -> httpx.Response:
        if method == "GET" and not rest:
            return self.ok(state["cookies"], session_id=sid)
        if method == "POST" and not rest:
            cookie = body["cookie"]
            state["cookies"] = [c for c in state["cookies"] if c["name"] != cookie["name"]] + [cookie]
            return self.ok(session_id=sid)
        if method == "DELETE":
            name = rest.lstrip("/")
            state["cookies"] = [c for c in state["cookies"] if name and c["name"] != name]
            return self.ok(session_id=sid)
        return self.fail(405, UNKNOWN_COMMAND, "invalid method", session_id=sid)

    def storage(self, sid: str, store: dict, method: str, rest: str, body: Optional[dict]) -> httpx.Response:
        if rest == "/size" and method == "GET":
            return self.ok(len(store), session_id=sid)
        if rest.startswith("/key/"):
            key = rest[len("/key/"):]
            if method == "GET":
                return self.ok(store.get(key), session_id=sid)
            if method == "DELETE":
                store.pop(key, None)
                return self.ok(session_id=sid)
        if not rest:
            if method == "GET":
                return self.ok(sorted(store), session_id=sid)
            if method == "POST":
                store[body["key"]] = body["value"]
                return self.ok(session_id=sid)
            if method == "DELETE":
                store.clear()
                return self.ok(session_id=sid)
        return self.fail(405, UNKNOWN_COMMAND, "invalid method", session_id=sid)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
def driver(server):
    with Driver(BASE_URL, transport=httpx.MockTransport(server)) as d:
        yield d


@pytest.fixture
def session(driver):
    return driver.sessions.create({"browserName": "headless"})


@pytest.fixture
def make_driver():
    """Build a driver whose every request is answered by ``handler``."""
    drivers: List[Driver] = []

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> Driver:
        d = Driver(BASE_URL, transport=httpx.MockTransport(handler))
        drivers.append(d)
        return d

    yield _make
    for d in drivers:
        d.close()
