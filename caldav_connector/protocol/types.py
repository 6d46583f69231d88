"""
The values passed between the protocol layer and the transport: what
to send, what came back, and what the multistatus bodies contain.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class DAVMethod(Enum):
    GET = "GET"
    PUT = "PUT"
    DELETE = "DELETE"
    PROPFIND = "PROPFIND"
    REPORT = "REPORT"


@dataclass(frozen=True)
class DAVRequest:
    """A request still to be sent; ``url`` is always a full url"""

    method: DAVMethod
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None

    def with_header(self, name: str, value: str) -> "DAVRequest":
        """A copy with one more header, the original is left alone"""
        return DAVRequest(
            method=self.method,
            url=self.url,
            headers={**self.headers, name: value},
            body=self.body,
        )


@dataclass(frozen=True)
class DAVResponse:
    status: int
    headers: dict[str, str]
    body: bytes
    reason: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup"""
        name = name.lower()
        for key, value in self.headers.items():
            if key.lower() == name:
                return value
        return None


@dataclass
class PropfindResult:
    """
    One DAV:response of a PROPFIND.  ``properties`` maps the clark
    notation tag ("{DAV:}displayname") to the text, or to a list for
    resourcetype and supported-calendar-component-set.
    """

    href: str
    properties: dict[str, Any] = field(default_factory=dict)
    status: int = 200


@dataclass
class CalendarObjectData:
    """
    One calendar object from a calendar-query or calendar-multiget
    REPORT: where it is, its version, and the raw iCalendar text.
    """

    url: str
    etag: str | None = None
    data: str | None = None
    status: int = 200
