"""JSON Wire response envelope: ``{"sessionId": ..., "status": 0, "value": ...}``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from .errors import MalformedResponseError

T = TypeVar("T")

# Keys checked, in order, when a server wraps the session id in an object.
_SESSION_ID_KEYS = ("sessionId", "id", "value")


def normalize_session_id(raw: Any) -> str:
    """Reduce the three wire shapes of ``sessionId`` to a plain string.

    Servers send it absent/null, as a bare string (sometimes still carrying
    quotes or braces), or wrapped in an object.
    """
    if raw is None:
        return ""
    if isinstance(raw, dict):
        for key in _SESSION_ID_KEYS:
            if key in raw:
                return normalize_session_id(raw[key])
        values = [v for v in raw.values() if v is not None]
        return normalize_session_id(values[0]) if values else ""
    return str(raw).strip('{}"')


class Envelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    session_id: str = Field("", alias="sessionId")
    status: int = 0
    value: Any = None

    @field_validator("session_id", mode="before")
    @classmethod
    def _normalize(cls, v: Any) -> str:
        return normalize_session_id(v)

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v: Any) -> Any:
        return 0 if v is None else v

    @classmethod
    def parse(cls, content: bytes) -> "Envelope":
        """Decode a raw response body.

        Raises MalformedResponseError when the body is not a JSON object.
        """
        try:
            return cls.model_validate_json(content)
        except ValidationError as exc:
            raise MalformedResponseError("response must be a JSON object") from exc


@dataclass(frozen=True)
class Reply:
    """Outcome of one successful dispatch.

    ``value`` is the envelope's value sub-document exactly as the server sent
    it. Call sites turn it into their own result type with ``decode``.
    """

    session_id: str
    value: Any

    def decode(self, type_: Type[T]) -> T:
        try:
            return TypeAdapter(type_).validate_python(self.value)
        except ValidationError as exc:
            raise MalformedResponseError(f"unexpected value for {type_!r}: {self.value!r}") from exc
