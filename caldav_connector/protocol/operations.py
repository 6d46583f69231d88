"""
The requests the connector sends, and the parsing of what comes back.

Nothing here touches the network: ``CalDAVProtocol`` turns calls like
"fetch the VEVENTs of this calendar between two instants" into
``DAVRequest`` objects, and turns ``DAVResponse`` objects into
``PropfindResult`` and ``CalendarObjectData``.  The DAV client pairs it
with an I/O implementation from ``caldav_connector.io``.
"""

import base64
from datetime import datetime
from typing import Dict, List, Optional
from urllib.parse import urljoin, urlparse

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
    parse_propfind_response,
)

ICALENDAR_CONTENT_TYPE = "text/calendar; charset=utf-8"


class CalDAVProtocol:
    """
    Example:
        protocol = CalDAVProtocol(base_url="https://dav.example.com/dav/")
        request = protocol.calendar_query_request(
            "calendars/alice/work/", start, end, comp_filter="VEVENT"
        )
        objects = protocol.parse_calendar_query(io.execute(request))
    """

    def __init__(
        self,
        base_url: str = "",
        username: Optional[str] = None,
        password: Optional[str] = None,
        user_agent: Optional[str] = None,
    ):
        """
        Args:
            base_url: the server url, relative paths are resolved against it
            username, password: HTTP Basic credentials, sent only when both are set
            user_agent: value of the User-Agent header, if any
        """
        self.base_url = base_url.rstrip("/") if base_url else ""
        self.username = username
        self.password = password
        self.user_agent = user_agent
        self._auth_header = None
        if username and password:
            token = base64.b64encode(f"{username}:{password}".encode("utf-8"))
            self._auth_header = "Basic " + token.decode()

    def _headers(self, **extra: str) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/xml; charset=utf-8",
            "Accept": "text/xml, text/calendar",
        }
        if self.user_agent:
            headers["User-Agent"] = self.user_agent
        if self._auth_header:
            headers["Authorization"] = self._auth_header
        headers.update(extra)
        return headers

    def resolve_url(self, path: str) -> str:
        """
        A full url for ``path``.  Absolute paths replace the path of
        the server url, relative ones extend it, full urls are kept.
        """
        if not path:
            return self.base_url
        if urlparse(path).scheme or not self.base_url:
            return path
        return urljoin(self.base_url + "/", path)

    def _report(self, path: str, body: bytes) -> DAVRequest:
        return DAVRequest(
            method=DAVMethod.REPORT,
            url=self.resolve_url(path),
            headers=self._headers(Depth="1"),
            body=body,
        )

    ## Requests

    def propfind_request(
        self,
        path: str,
        props: Optional[List[str]] = None,
        depth: int = 0,
    ) -> DAVRequest:
        """PROPFIND for the given property names, with Depth 0 or 1"""
        return DAVRequest(
            method=DAVMethod.PROPFIND,
            url=self.resolve_url(path),
            headers=self._headers(Depth=str(depth)),
            body=build_propfind_body(props),
        )

    def calendar_query_request(
        self,
        path: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        expand: bool = False,
        comp_filter: Optional[str] = None,
    ) -> DAVRequest:
        """
        calendar-query REPORT on a calendar collection.  start and end
        limit the objects to those overlapping the range; comp_filter is
        a component name like VEVENT or VTODO.
        """
        return self._report(
            path,
            build_calendar_query_body(
                start=start, end=end, expand=expand, comp_filter=comp_filter
            ),
        )

    def calendar_multiget_request(self, path: str, hrefs: List[str]) -> DAVRequest:
        """calendar-multiget REPORT for the objects at ``hrefs``"""
        return self._report(path, build_calendar_multiget_body(hrefs))

    def put_request(
        self,
        path: str,
        data: bytes,
        etag: Optional[str] = None,
        create_only: bool = False,
    ) -> DAVRequest:
        """
        PUT of an iCalendar object.  With an etag the server only
        accepts the write if the object still has that version; with
        create_only (If-None-Match: *) it never overwrites an object.
        """
        headers = self._headers()
        headers["Content-Type"] = ICALENDAR_CONTENT_TYPE
        if etag:
            headers["If-Match"] = etag
        if create_only:
            headers["If-None-Match"] = "*"
        return DAVRequest(
            method=DAVMethod.PUT,
            url=self.resolve_url(path),
            headers=headers,
            body=data,
        )

    def delete_request(self, path: str, etag: Optional[str] = None) -> DAVRequest:
        headers = self._headers()
        ## no body
        del headers["Content-Type"]
        if etag:
            headers["If-Match"] = etag
        return DAVRequest(
            method=DAVMethod.DELETE,
            url=self.resolve_url(path),
            headers=headers,
        )

    ## Responses

    def parse_propfind(
        self, response: DAVResponse, huge_tree: bool = False
    ) -> List[PropfindResult]:
        return parse_propfind_response(
            response.body, status_code=response.status, huge_tree=huge_tree
        )

    def parse_calendar_query(
        self, response: DAVResponse, huge_tree: bool = False
    ) -> List[CalendarObjectData]:
        """Works for calendar-query and calendar-multiget responses alike"""
        return parse_calendar_query_response(
            response.body, status_code=response.status, huge_tree=huge_tree
        )
