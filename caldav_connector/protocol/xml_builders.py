"""
Request bodies for the three kinds of request the connector sends
with XML: PROPFIND, calendar-query and calendar-multiget.
"""
from datetime import datetime
from typing import Any
from typing import Dict
from typing import List
from typing import Optional

from caldav_connector.elements import cdav
from caldav_connector.elements import dav
from caldav_connector.elements.base import BaseElement
from caldav_connector.lib import error


def build_propfind_body(props: Optional[List[str]] = None) -> bytes:
    """
    Property names are given like "displayname" or "calendar_home_set".
    Unknown names are skipped, no names give an empty prop element.
    """
    prop_elements = []
    for prop_name in props or []:
        prop_element = _prop_name_to_element(prop_name)
        if prop_element is not None:
            prop_elements.append(prop_element)
    propfind = dav.Propfind() + (dav.Prop() + prop_elements)
    return propfind.tostring()


def build_calendar_query_body(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    expand: bool = False,
    comp_filter: Optional[str] = None,
) -> bytes:
    """
    Every object of the calendar with etag and calendar data, filtered
    on component (VEVENT, VTODO) and on start/end when given.  With
    expand the server is asked to send the occurrences of recurring
    events inside the range instead of the masters.

    Raises:
        ReportError: if expand is asked for without a complete time range
    """
    data = cdav.CalendarData()
    if expand:
        if not start or not end:
            raise error.ReportError(reason="can't expand without a date range")
        data += cdav.Expand(start, end)
    prop = dav.Prop() + [dav.GetEtag(), data]

    vcalendar = cdav.CompFilter("VCALENDAR")
    filter_list: List[BaseElement] = []
    if start or end:
        filter_list.append(cdav.TimeRange(start, end))

    if comp_filter:
        comp_filter_elem = cdav.CompFilter(comp_filter)
        if filter_list:
            comp_filter_elem += filter_list
        vcalendar += comp_filter_elem
    elif filter_list:
        ## A time-range is not allowed directly below VCALENDAR,
        ## so without a component type we filter on events.
        vcalendar += cdav.CompFilter("VEVENT") + filter_list

    root = cdav.CalendarQuery() + [prop, cdav.Filter() + vcalendar]
    return root.tostring()


def build_calendar_multiget_body(hrefs: List[str]) -> bytes:
    """Fetch the objects at the given hrefs, with etag and calendar data"""
    elements: List[BaseElement] = [dav.Prop() + [dav.GetEtag(), cdav.CalendarData()]]
    for href in hrefs:
        elements.append(dav.Href(href))
    return (cdav.CalendarMultiGet() + elements).tostring()


def _prop_name_to_element(name: str) -> Optional[BaseElement]:
    props: Dict[str, Any] = {
        "displayname": dav.DisplayName,
        "resourcetype": dav.ResourceType,
        "getetag": dav.GetEtag,
        "current-user-principal": dav.CurrentUserPrincipal,
        "sync-token": dav.SyncToken,
        "getctag": dav.GetCtag,
        "calendar-home-set": cdav.CalendarHomeSet,
        "calendar-description": cdav.CalendarDescription,
        "calendar-timezone": cdav.CalendarTimeZone,
        "supported-calendar-component-set": cdav.SupportedCalendarComponentSet,
    }
    cls = props.get(name.lower().replace("_", "-"))
    if cls is None:
        return None
    return cls()
