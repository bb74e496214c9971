"""Pydantic v2 models for jsonwire values."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

if TYPE_CHECKING:
    from .client import Session


class FindStrategy(str, Enum):
    """Element lookup strategies accepted in the ``using`` field."""

    CLASS_NAME = "class name"
    CSS_SELECTOR = "css selector"
    ID = "id"
    NAME = "name"
    LINK_TEXT = "link text"
    PARTIAL_LINK_TEXT = "partial link text"
    TAG_NAME = "tag name"
    XPATH = "xpath"


class Size(BaseModel):
    width: int
    height: int


class Point(BaseModel):
    x: int
    y: int


class SessionInfo(BaseModel):
    id: str
    capabilities: Dict[str, Any] = Field(default_factory=dict)


class Cookie(BaseModel):
    """A browser cookie.

    Cookies are addressed by name; the owning session is kept only to scope
    ``set`` and ``clear``. Build one with ``Session.cookie(name)`` or get them
    from ``Session.cookies()``.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    value: str = ""
    path: Optional[str] = None
    domain: Optional[str] = None
    secure: bool = False
    http_only: Optional[bool] = Field(None, alias="httpOnly")
    expiry: Optional[int] = None

    _session: Any = PrivateAttr(None)

    @property
    def session(self) -> Optional["Session"]:
        return self._session

    def bind(self, session: "Session") -> "Cookie":
        self._session = session
        return self

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def set(self) -> None:
        """Save the cookie to the owning session."""
        session = self._require_session()
        session._driver._post("/session/%s/cookie", {"cookie": self.to_wire()}, session.id)

    def clear(self) -> None:
        """Remove this cookie (by name) from the owning session."""
        session = self._require_session()
        session._driver._delete("/session/%s/cookie/%s", session.id, self.name)

    def _require_session(self) -> "Session":
        if self._session is None:
            raise ValueError(f"cookie {self.name!r} is not bound to a session")
        return self._session
