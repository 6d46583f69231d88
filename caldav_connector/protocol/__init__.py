"""
CalDAV without the I/O: request builders and multistatus parsers.

- types: DAVRequest, DAVResponse and the parsed results
- xml_builders: PROPFIND, calendar-query and calendar-multiget bodies
- xml_parsers: multistatus bodies to PropfindResult and CalendarObjectData
- operations: CalDAVProtocol, which puts urls, headers and bodies together

The requests are sent by caldav_connector.io.
"""

from .types import (
    CalendarObjectData,
    DAVMethod,
    DAVRequest,
    DAVResponse,
    PropfindResult,
)
from .xml_builders import (
    build_calendar_multiget_body,
    build_calendar_query_body,
    build_propfind_body,
)
from .xml_parsers import (
    parse_calendar_query_response,
    parse_multistatus,
    parse_propfind_response,
)
from .operations import CalDAVProtocol

__all__ = [
    "DAVMethod",
    "DAVRequest",
    "DAVResponse",
    "CalendarObjectData",
    "PropfindResult",
    "build_calendar_multiget_body",
    "build_calendar_query_body",
    "build_propfind_body",
    "parse_calendar_query_response",
    "parse_multistatus",
    "parse_propfind_response",
    "CalDAVProtocol",
]
