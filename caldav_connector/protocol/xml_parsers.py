"""
Parsing of the multistatus bodies the server answers PROPFIND and
REPORT with.  Bytes in, ``PropfindResult`` / ``CalendarObjectData``
out; no I/O.

Hrefs are handed out as paths, still percent-encoded the way the
server sent them, whether it sent a path or a full url.  Callers
resolve them against the server url themselves.
"""

import logging
from typing import Any, Iterator
from urllib.parse import urlparse

from lxml import etree
from lxml.etree import _Element

from caldav_connector.elements import cdav, dav
from caldav_connector.lib import error
from caldav_connector.lib.url import URL

from .types import CalendarObjectData, PropfindResult

log = logging.getLogger(__name__)

## statuses a single response inside a multistatus may carry
ACCEPTABLE_STATUSES = (" 200 ", " 201 ", " 207 ", " 404 ")

## properties whose value is an href
HREF_PROPERTIES = (cdav.CalendarHomeSet.tag, dav.CurrentUserPrincipal.tag)


def parse_multistatus(body: bytes, huge_tree: bool = False) -> list[PropfindResult]:
    """
    One PropfindResult per DAV:response.  Properties reported with a
    404 propstat are left out of ``properties``.

    Raises:
        XMLSyntaxError: body is not XML
        ResponseError: a response carries a status like 403 or 500
    """
    return [
        PropfindResult(
            href=href,
            properties=_properties(propstats),
            status=_status_code(status),
        )
        for href, propstats, status in _responses(body, huge_tree)
    ]


def parse_propfind_response(
    body: bytes,
    status_code: int = 207,
    huge_tree: bool = False,
) -> list[PropfindResult]:
    if status_code == 404:
        return []
    if status_code not in (200, 207):
        raise error.PropfindError(reason=f"PROPFIND failed with status {status_code}")
    if not body:
        return []
    return parse_multistatus(body, huge_tree=huge_tree)


def parse_calendar_query_response(
    body: bytes,
    status_code: int = 207,
    huge_tree: bool = False,
) -> list[CalendarObjectData]:
    """
    calendar-query and calendar-multiget answer alike: one response
    per object carrying getetag and calendar-data.  Objects reported
    with status 404 (multiget for a missing href) are left out.
    """
    if status_code not in (200, 207):
        raise error.ReportError(reason=f"REPORT failed with status {status_code}")
    if not body:
        return []

    results: list[CalendarObjectData] = []
    for href, propstats, status in _responses(body, huge_tree):
        code = _status_code(status)
        if code == 404:
            continue
        props = _properties(propstats)
        results.append(
            CalendarObjectData(
                url=href,
                etag=props.get(dav.GetEtag.tag),
                data=props.get(cdav.CalendarData.tag),
                status=code,
            )
        )
    return results


def _responses(
    body: bytes, huge_tree: bool
) -> Iterator[tuple[str, list[_Element], str | None]]:
    """(href, propstat elements, status) for each DAV:response in the body"""
    tree = etree.fromstring(body, etree.XMLParser(huge_tree=huge_tree))

    ## usually <multistatus><response/>...</multistatus>, but some servers
    ## wrap it in an <xml> element and some send a bare <response>
    if tree.tag == "xml" and len(tree) > 0 and tree[0].tag == dav.MultiStatus.tag:
        elements: Any = tree[0]
    elif tree.tag == dav.MultiStatus.tag:
        elements = tree
    else:
        elements = [tree]

    for response in elements:
        if response.tag != dav.Response.tag:
            continue
        href = None
        status = None
        propstats: list[_Element] = []
        for elem in response:
            if elem.tag == dav.Status.tag:
                status = elem.text
                if status and not any(x in status for x in ACCEPTABLE_STATUSES):
                    raise error.ResponseError(url=href, reason=status)
            elif elem.tag == dav.Href.tag:
                href = _href_path(elem.text or "")
            elif elem.tag == dav.PropStat.tag:
                propstats.append(elem)
            else:
                error.weirdness("unexpected element in response", elem.tag)
        error.assert_(href)
        yield href or "", propstats, status


def _href_path(text: str) -> str:
    ## some servers quote the @ of email-like paths twice
    href = text.strip().replace("%2540", "%40")
    if urlparse(href).scheme:
        href = URL(href).path
    return href


def _properties(propstats: list[_Element]) -> dict[str, Any]:
    properties: dict[str, Any] = {}
    for propstat in propstats:
        status = propstat.find(dav.Status.tag)
        if status is not None and status.text and " 404 " in status.text:
            continue
        prop = propstat.find(dav.Prop.tag)
        if prop is None:
            continue
        for child in prop:
            properties[child.tag] = child.text if len(child) == 0 else _value(child)
    return properties


def _value(elem: _Element) -> Any:
    """The value of a property element that has children"""
    if elem.tag == cdav.SupportedCalendarComponentSet.tag:
        return [comp.get("name") for comp in elem if comp.get("name")]
    if elem.tag == dav.ResourceType.tag:
        return [child.tag for child in elem]
    if elem.tag in HREF_PROPERTIES:
        for child in elem:
            if child.tag == dav.Href.tag and child.text:
                return child.text.strip().replace("%2540", "%40")
        return None
    texts = [child.text for child in elem if child.text]
    if len(texts) == 1:
        return texts[0]
    return texts or elem


def _status_code(status: str | None) -> int:
    """200 for "HTTP/1.1 200 OK", and for anything unparseable"""
    try:
        return int(status.split()[1]) if status else 200
    except (IndexError, ValueError):
        return 200
