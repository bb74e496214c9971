"""Element and window handles."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from .errors import MalformedResponseError
from .models import FindStrategy, Point, Size

if TYPE_CHECKING:
    from .client import Driver, Session

# Legacy JSON Wire key and the W3C web element identifier.
ELEMENT_KEY = "ELEMENT"
W3C_ELEMENT_KEY = "element-6066-11e4-a52e-4f735466cecf"

CURRENT_WINDOW = "current"


def find_body(using: Union[FindStrategy, str], value: str) -> Dict[str, str]:
    """Request body for an element lookup; rejects unknown strategies."""
    try:
        strategy = FindStrategy(using)
    except ValueError:
        raise ValueError(f"unknown find strategy: {using!r}") from None
    return {"using": strategy.value, "value": value}


def element_id(ref: Any) -> str:
    """Pull the element identifier out of a web element reference object."""
    if isinstance(ref, dict):
        for key in (ELEMENT_KEY, W3C_ELEMENT_KEY):
            if isinstance(ref.get(key), str):
                return ref[key]
    raise MalformedResponseError(f"not a web element reference: {ref!r}")


def to_elements(refs: List[Any], session: "Session") -> List["Element"]:
    return [Element(element_id(ref), session) for ref in refs]


# ---------------------------------------------------------------------------
# Element
# ---------------------------------------------------------------------------

class Element:
    """Handle for a DOM node inside one session.

    Identifiers are only unique within the issuing session, and the same node
    can come back with another id when it is looked up again. Compare two
    handles with ``equals()``, which asks the server; ``==`` is identity.
    """

    def __init__(self, element_id: str, session: "Session") -> None:
        self._id = element_id
        self._session = session

    @property
    def id(self) -> str:
        return self._id

    @property
    def session(self) -> "Session":
        return self._session

    @property
    def _driver(self) -> "Driver":
        return self._session._driver

    def __repr__(self) -> str:
        return f"Element(id={self._id!r}, session={self._session.id!r})"

    def _get(self, facet: str, *args: str):
        return self._driver._get("/session/%s/element/%s/" + facet, self._session.id, self._id, *args)

    def _post(self, action: str, body: Optional[dict] = None):
        return self._driver._post("/session/%s/element/%s/" + action, body, self._session.id, self._id)

    # -- facets -------------------------------------------------------------

    def size(self) -> Size:
        return self._get("size").decode(Size)

    def location(self) -> Point:
        """Location of the element's top-left corner on the page."""
        return self._get("location").decode(Point)

    def name(self) -> str:
        """Tag name of the element."""
        return self._get("name").decode(str)

    def text(self) -> str:
        """Visible text of the element."""
        return self._get("text").decode(str)

    def html(self) -> str:
        return self.attr("outerHTML")

    def attr(self, name: str) -> Optional[str]:
        return self._get("attribute/%s", name).decode(Optional[str])

    def css(self, name: str) -> str:
        """Computed value of a CSS property."""
        return self._get("css/%s", name).decode(str)

    def enabled(self) -> bool:
        return self._get("enabled").decode(bool)

    def displayed(self) -> bool:
        return self._get("displayed").decode(bool)

    def selected(self) -> bool:
        return self._get("selected").decode(bool)

    def equals(self, other: "Element") -> bool:
        """Ask the server whether both handles refer to the same DOM node."""
        return self._get("equal/%s", other.id).decode(bool)

    # -- actions ------------------------------------------------------------

    def click(self) -> None:
        self._post("click")

    def submit(self) -> None:
        """Submit the form this element belongs to."""
        self._post("submit")

    def clear(self) -> None:
        """Clear a text input or textarea."""
        self._post("clear")

    def send_keys(self, sequence: str) -> None:
        """Type ``sequence`` into the element, one keystroke per character."""
        self._post("value", {"value": list(sequence)})

    # -- scoped lookup ------------------------------------------------------

    def element(self, using: Union[FindStrategy, str], value: str) -> "Element":
        """Find the first matching element below this one."""
        reply = self._post("element", find_body(using, value))
        return Element(element_id(reply.value), self._session)

    def elements(self, using: Union[FindStrategy, str], value: str) -> List["Element"]:
        """Find all matching elements below this one (possibly none)."""
        reply = self._post("elements", find_body(using, value))
        return to_elements(reply.decode(List[Any]), self._session)


# ---------------------------------------------------------------------------
# Window
# ---------------------------------------------------------------------------

class Window:
    """Handle for a browser window or tab.

    ``Session.window()`` returns a handle whose id is the literal
    ``"current"``, which the server resolves to the active window.
    """

    def __init__(self, window_id: str, session: "Session") -> None:
        self._id = window_id
        self._session = session

    @property
    def id(self) -> str:
        return self._id

    @property
    def session(self) -> "Session":
        return self._session

    @property
    def _driver(self) -> "Driver":
        return self._session._driver

    def __repr__(self) -> str:
        return f"Window(id={self._id!r}, session={self._session.id!r})"

    def size(self) -> Size:
        return self._driver._get("/session/%s/window/%s/size", self._session.id, self._id).decode(Size)

    def resize(self, width: int, height: int) -> None:
        self._driver._post(
            "/session/%s/window/%s/size",
            {"width": width, "height": height},
            self._session.id,
            self._id,
        )

    def position(self) -> Point:
        return self._driver._get("/session/%s/window/%s/position", self._session.id, self._id).decode(Point)

    def move(self, x: int, y: int) -> None:
        self._driver._post("/session/%s/window/%s/position", {"x": x, "y": y}, self._session.id, self._id)

    def minimize(self) -> None:
        self._driver._post("/session/%s/window/%s/minimize", None, self._session.id, self._id)

    def maximize(self) -> None:
        self._driver._post("/session/%s/window/%s/maximize", None, self._session.id, self._id)

    def focus(self) -> None:
        """Make this window the target of subsequent commands."""
        self._driver._post("/session/%s/window", {"name": self._id}, self._session.id)

    def close(self) -> None:
        """Close the session's current window.

        The protocol has no per-handle close: whatever window is active is
        closed, whichever handle this is. Call ``focus()`` first to close a
        specific window.
        """
        self._driver._delete("/session/%s/window", self._session.id)
