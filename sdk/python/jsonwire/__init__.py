"""jsonwire Python SDK"""

from .client import Driver, Session, Storage
from .elements import CURRENT_WINDOW, Element, Window
from .envelope import Envelope, Reply
from .errors import (
    CommandFailedError,
    ErrorKind,
    InvalidMethodError,
    InvalidParametersError,
    MalformedResponseError,
    ProtocolError,
    TransportError,
    UnimplementedCommandError,
    UnknownProtocolError,
    UnknownResourceError,
    WebDriverError,
    classify,
)
from .models import Cookie, FindStrategy, Point, SessionInfo, Size

__version__ = "0.1.0"
__all__ = [
    "Driver",
    "Session",
    "Storage",
    "Element",
    "Window",
    "CURRENT_WINDOW",
    "Cookie",
    "FindStrategy",
    "Point",
    "Size",
    "SessionInfo",
    "Envelope",
    "Reply",
    "ErrorKind",
    "classify",
    "WebDriverError",
    "TransportError",
    "MalformedResponseError",
    "ProtocolError",
    "InvalidParametersError",
    "UnknownResourceError",
    "InvalidMethodError",
    "CommandFailedError",
    "UnimplementedCommandError",
    "UnknownProtocolError",
]
