#!/usr/bin/env python
"""
Conversion between iCalendar text and the connector's Event and Todo
objects, built on the icalendar library.
"""
import datetime
import uuid
from typing import Iterable
from typing import List
from typing import Optional
from typing import Union
from urllib.parse import quote

import icalendar

from caldav_connector.lib import error
from caldav_connector.lib.python_utilities import to_normal_str
from caldav_connector.objects import Event
from caldav_connector.objects import Todo

PRODID = "-//caldav-connector//EN"

utc = datetime.timezone.utc

Timestamp = Union[str, datetime.datetime, datetime.date]


def generate_uid() -> str:
    return f"{uuid.uuid4()}@caldav-connector"


def generate_filename(uid: str) -> str:
    """
    The object name used when storing a new object on the server.
    Slashes need to be replaced with %2F before the whole UID is quoted,
    some servers will otherwise treat them as path separators.
    """
    return quote(uid.replace("/", "%2F")) + ".ics"


def parse_timestamp(value: Timestamp) -> datetime.datetime:
    """
    Accept a datetime or an ISO-8601 string as given by the host, and
    return an aware datetime.  Timestamps without a timezone are taken
    to be UTC.
    """
    if isinstance(value, str):
        value = value.strip()
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        value = datetime.datetime.fromisoformat(value)
    elif not isinstance(value, datetime.datetime):
        value = datetime.datetime(value.year, value.month, value.day)
    if value.tzinfo is None:
        value = value.replace(tzinfo=utc)
    return value


def _parse_date(value: Timestamp) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    return datetime.date.fromisoformat(value.strip().split("T")[0])


def _to_datetime(value) -> Optional[datetime.datetime]:
    """
    Normalize a DTSTART/DTEND/DUE value to an aware datetime.  DATE
    values become midnight UTC, floating times are taken to be UTC.
    """
    if value is None:
        return None
    if hasattr(value, "dt"):
        value = value.dt
    if isinstance(value, datetime.datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=utc)
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime(value.year, value.month, value.day, tzinfo=utc)
    return None


def _text(component, name: str) -> Optional[str]:
    value = component.get(name)
    if value is None:
        return None
    return str(value)


def _stamp(component) -> None:
    now = datetime.datetime.now(tz=utc)
    component.add("created", now)
    component.add("dtstamp", now)
    component.add("last-modified", now)


def _new_calendar() -> icalendar.Calendar:
    calendar = icalendar.Calendar()
    calendar.add("version", "2.0")
    calendar.add("prodid", PRODID)
    return calendar


def event_to_ical(
    summary: str,
    start: Timestamp,
    end: Timestamp,
    uid: Optional[str] = None,
    all_day: bool = False,
    description: Optional[str] = None,
    location: Optional[str] = None,
    rrule: Optional[str] = None,
    attendees: Optional[Union[str, Iterable[str]]] = None,
) -> str:
    """
    Build a VCALENDAR holding one VEVENT.

    All-day events get DATE values, everything else UTC DATE-TIME.
    ``rrule`` is an RRULE value like "FREQ=WEEKLY;COUNT=4", attendees
    may be given as a list of email addresses or a comma separated
    string.
    """
    calendar = _new_calendar()
    event = icalendar.Event()
    event.add("uid", uid or generate_uid())
    event.add("summary", summary)

    if all_day:
        event.add("dtstart", _parse_date(start))
        event.add("dtend", _parse_date(end))
    else:
        event.add("dtstart", parse_timestamp(start).astimezone(utc))
        event.add("dtend", parse_timestamp(end).astimezone(utc))

    if description:
        event.add("description", description)
    if location:
        event.add("location", location)
    if rrule:
        event.add("rrule", icalendar.vRecur.from_ical(rrule))

    if isinstance(attendees, str):
        attendees = attendees.split(",")
    for email in attendees or []:
        email = email.strip()
        if not email:
            continue
        event.add(
            "attendee",
            icalendar.vCalAddress(f"mailto:{email}"),
            parameters={"RSVP": "TRUE"},
        )

    _stamp(event)
    calendar.add_component(event)
    return to_normal_str(calendar.to_ical())


def todo_to_ical(
    summary: str,
    uid: Optional[str] = None,
    description: Optional[str] = None,
    due: Optional[Timestamp] = None,
    priority: Optional[int] = None,
    status: Optional[str] = None,
    completed: bool = False,
) -> str:
    """
    Build a VCALENDAR holding one VTODO.  ``completed`` overrides the
    status with COMPLETED and records the completion time.
    """
    calendar = _new_calendar()
    todo = icalendar.Todo()
    todo.add("uid", uid or generate_uid())
    todo.add("summary", summary)
    if description:
        todo.add("description", description)
    if due:
        todo.add("due", parse_timestamp(due).astimezone(utc))
    if priority is not None:
        todo.add("priority", int(priority))
    if completed:
        todo.add("status", "COMPLETED")
        todo.add("completed", datetime.datetime.now(tz=utc))
    elif status:
        todo.add("status", status.upper())
    _stamp(todo)
    calendar.add_component(todo)
    return to_normal_str(calendar.to_ical())


def _load(data, url: str) -> icalendar.Calendar:
    if not isinstance(data, (str, bytes)) or not data:
        raise error.ParseError(url=url, reason="Invalid iCalendar data: expected string")
    try:
        return icalendar.Calendar.from_ical(data)
    except (ValueError, IndexError) as e:
        raise error.ParseError(url=url, reason=f"Failed to parse iCalendar: {e}") from e


def _event_from_component(vevent, url: str, etag: Optional[str]) -> Event:
    dtstart = vevent.get("dtstart")
    rrule = vevent.get("rrule")
    recurrence_id = vevent.get("recurrence-id")
    attendees = vevent.get("attendee") or []
    if not isinstance(attendees, list):
        attendees = [attendees]
    return Event(
        uid=_text(vevent, "uid") or "",
        summary=_text(vevent, "summary") or "",
        start=_to_datetime(dtstart),
        end=_to_datetime(vevent.get("dtend")),
        url=url,
        etag=etag,
        all_day=dtstart is not None
        and not isinstance(dtstart.dt, datetime.datetime),
        description=_text(vevent, "description"),
        location=_text(vevent, "location"),
        rrule=to_normal_str(rrule.to_ical()) if rrule is not None else None,
        attendees=[str(a).replace("mailto:", "") for a in attendees],
        recurrence_id=_to_datetime(recurrence_id),
    )


def ical_to_events(data, url: str, etag: Optional[str] = None) -> List[Event]:
    """
    All VEVENTs of a calendar object.  For an ordinary object this is
    the event itself (plus any overridden recurrences), for data
    fetched with expansion it's one Event per occurrence.

    Raises:
        ParseError: the data is not valid iCalendar or holds no VEVENT
    """
    calendar = _load(data, url)
    try:
        events = [
            _event_from_component(vevent, url, etag)
            for vevent in calendar.walk("VEVENT")
        ]
    except (ValueError, AttributeError, TypeError) as e:
        raise error.ParseError(url=url, reason=f"Failed to parse iCalendar: {e}") from e
    if not events:
        raise error.ParseError(url=url, reason="No VEVENT found in iCalendar data")
    return events


def ical_to_event(data, url: str, etag: Optional[str] = None) -> Event:
    """The first VEVENT of a calendar object"""
    return ical_to_events(data, url, etag)[0]


def ical_to_todo(data, url: str, etag: Optional[str] = None) -> Todo:
    calendar = _load(data, url)
    todos = calendar.walk("VTODO")
    if not todos:
        raise error.ParseError(url=url, reason="No VTODO found in iCalendar data")
    vtodo = todos[0]

    try:
        status = _text(vtodo, "status")
        priority = vtodo.get("priority")
        return Todo(
            uid=_text(vtodo, "uid") or "",
            summary=_text(vtodo, "summary") or "",
            url=url,
            etag=etag,
            due=_to_datetime(vtodo.get("due")),
            status=status,
            completed=(status == "COMPLETED") if status else None,
            priority=int(priority) if priority is not None else None,
            description=_text(vtodo, "description"),
        )
    except (ValueError, TypeError) as e:
        raise error.ParseError(url=url, reason=f"Failed to parse iCalendar: {e}") from e
