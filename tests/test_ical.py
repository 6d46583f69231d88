"""
Tests for the conversion between iCalendar data and Event/Todo objects.
"""
from datetime import datetime
from datetime import timezone

import icalendar
import pytest

from caldav_connector.ical import event_to_ical
from caldav_connector.ical import generate_filename
from caldav_connector.ical import generate_uid
from caldav_connector.ical import ical_to_event
from caldav_connector.ical import ical_to_events
from caldav_connector.ical import ical_to_todo
from caldav_connector.ical import parse_timestamp
from caldav_connector.ical import todo_to_ical
from caldav_connector.lib import error

utc = timezone.utc

URL = "https://dav.example.com/dav/calendars/alice/work/x.ics"

ev_berlin = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Example Corp.//CalDAV Client//EN
BEGIN:VTIMEZONE
TZID:Europe/Berlin
BEGIN:STANDARD
DTSTART:19701025T030000
RRULE:FREQ=YEARLY;BYMONTH=10;BYDAY=-1SU
TZOFFSETFROM:+0200
TZOFFSETTO:+0100
END:STANDARD
BEGIN:DAYLIGHT
DTSTART:19700329T020000
RRULE:FREQ=YEARLY;BYMONTH=3;BYDAY=-1SU
TZOFFSETFROM:+0100
TZOFFSETTO:+0200
END:DAYLIGHT
END:VTIMEZONE
BEGIN:VEVENT
UID:berlin-1
DTSTAMP:20260101T000000Z
DTSTART;TZID=Europe/Berlin:20260115T100000
DTEND;TZID=Europe/Berlin:20260115T110000
SUMMARY:Planning
LOCATION:Room 4
DESCRIPTION:Quarterly planning
ATTENDEE;RSVP=TRUE:mailto:bob@example.com
ATTENDEE:mailto:carol@example.com
END:VEVENT
END:VCALENDAR
"""

ev_all_day = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Example Corp.//CalDAV Client//EN
BEGIN:VEVENT
UID:holiday
DTSTAMP:20260101T000000Z
DTSTART;VALUE=DATE:20260501
DTEND;VALUE=DATE:20260502
SUMMARY:Holiday
END:VEVENT
END:VCALENDAR
"""

ev_floating = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Example Corp.//CalDAV Client//EN
BEGIN:VEVENT
UID:floating
DTSTAMP:20260101T000000Z
DTSTART:20260115T100000
SUMMARY:Floating
END:VEVENT
END:VCALENDAR
"""

ev_expanded = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Example Corp.//CalDAV Client//EN
BEGIN:VEVENT
UID:weekly
DTSTAMP:20260101T000000Z
RECURRENCE-ID:20260105T090000Z
DTSTART:20260105T090000Z
DTEND:20260105T100000Z
SUMMARY:Weekly
END:VEVENT
BEGIN:VEVENT
UID:weekly
DTSTAMP:20260101T000000Z
RECURRENCE-ID:20260112T090000Z
DTSTART:20260112T090000Z
DTEND:20260112T100000Z
SUMMARY:Weekly
END:VEVENT
END:VCALENDAR
"""

todo_done = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Example Corp.//CalDAV Client//EN
BEGIN:VTODO
UID:todo-1
DTSTAMP:20260101T000000Z
SUMMARY:File taxes
DUE:20260430T220000Z
PRIORITY:1
STATUS:COMPLETED
END:VTODO
END:VCALENDAR
"""


class TestHelpers:
    def test_generate_uid(self):
        uid = generate_uid()
        assert uid.endswith("@caldav-connector")
        assert generate_uid() != uid

    def test_generate_filename(self):
        assert generate_filename("abc@caldav-connector") == "abc%40caldav-connector.ics"
        assert "/" not in generate_filename("a/b")

    def test_parse_timestamp(self):
        assert parse_timestamp("2026-01-05T09:00:00Z") == datetime(
            2026, 1, 5, 9, tzinfo=utc
        )
        ## no timezone given means UTC
        assert parse_timestamp("2026-01-05T09:00:00") == datetime(
            2026, 1, 5, 9, tzinfo=utc
        )
        assert parse_timestamp(datetime(2026, 1, 5)) == datetime(2026, 1, 5, tzinfo=utc)


class TestEventToIcal:
    def test_fields(self):
        data = event_to_ical(
            "Standup",
            "2026-01-05T10:00:00+01:00",
            "2026-01-05T10:15:00+01:00",
            uid="standup-1",
            description="Daily sync",
            location="Room 1",
            rrule="FREQ=DAILY;COUNT=5",
            attendees="bob@example.com, carol@example.com",
        )
        cal = icalendar.Calendar.from_ical(data)
        assert str(cal["PRODID"]) == "-//caldav-connector//EN"
        assert str(cal["VERSION"]) == "2.0"
        vevent = cal.walk("VEVENT")[0]
        assert str(vevent["UID"]) == "standup-1"
        ## converted to UTC
        assert vevent["DTSTART"].dt == datetime(2026, 1, 5, 9, tzinfo=utc)
        for prop in ("CREATED", "DTSTAMP", "LAST-MODIFIED"):
            assert prop in vevent
        attendees = vevent["ATTENDEE"]
        assert [str(a) for a in attendees] == [
            "mailto:bob@example.com",
            "mailto:carol@example.com",
        ]
        assert all(a.params["RSVP"] == "TRUE" for a in attendees)

    def test_round_trip(self):
        """What goes in comes out of the parser again"""
        data = event_to_ical(
            "Standup",
            "2026-01-05T09:00:00Z",
            "2026-01-05T09:15:00Z",
            uid="standup-1",
            location="Room 1",
            rrule="FREQ=WEEKLY;COUNT=4",
            attendees=["bob@example.com"],
        )
        event = ical_to_event(data, URL, '"1"')
        assert event.uid == "standup-1"
        assert event.summary == "Standup"
        assert event.start == datetime(2026, 1, 5, 9, tzinfo=utc)
        assert event.end == datetime(2026, 1, 5, 9, 15, tzinfo=utc)
        assert event.location == "Room 1"
        assert event.description is None
        assert event.rrule == "FREQ=WEEKLY;COUNT=4"
        assert event.attendees == ["bob@example.com"]
        assert event.all_day is False
        assert event.etag == '"1"'

    def test_all_day(self):
        data = event_to_ical(
            "Holiday", "2026-05-01T00:00:00Z", "2026-05-02", all_day=True
        )
        assert "DTSTART;VALUE=DATE:20260501" in data
        event = ical_to_event(data, URL)
        assert event.all_day is True
        assert event.start == datetime(2026, 5, 1, tzinfo=utc)

    def test_generated_uid(self):
        event = ical_to_event(event_to_ical("x", "2026-01-05T09:00:00Z", "2026-01-05T10:00:00Z"), URL)
        assert event.uid.endswith("@caldav-connector")


class TestIcalToEvent:
    def test_timezone(self):
        event = ical_to_event(ev_berlin, URL, '"7"')
        assert event.start == datetime(2026, 1, 15, 9, tzinfo=utc)
        assert event.summary == "Planning"
        assert event.location == "Room 4"
        assert event.description == "Quarterly planning"
        assert event.attendees == ["bob@example.com", "carol@example.com"]
        assert event.rrule is None

    def test_to_dict(self):
        d = ical_to_event(ev_berlin, URL, '"7"').to_dict()
        assert d["start"] == "2026-01-15T09:00:00Z"
        assert d["end"] == "2026-01-15T10:00:00Z"
        assert d["etag"] == '"7"'
        assert d["url"] == URL
        assert d["allDay"] is False
        assert "rrule" not in d

    def test_all_day(self):
        event = ical_to_event(ev_all_day, URL)
        assert event.all_day is True
        assert event.start == datetime(2026, 5, 1, tzinfo=utc)
        assert event.end == datetime(2026, 5, 2, tzinfo=utc)

    def test_floating_is_utc(self):
        event = ical_to_event(ev_floating, URL)
        assert event.start == datetime(2026, 1, 15, 10, tzinfo=utc)
        assert event.end is None

    def test_expanded(self):
        """One Event per occurrence, sharing the uid"""
        events = ical_to_events(ev_expanded, URL, '"3"')
        assert [e.start.day for e in events] == [5, 12]
        assert {e.uid for e in events} == {"weekly"}
        assert all(e.recurrence_id is not None for e in events)
        assert not any(e.is_recurring_master for e in events)
        assert ical_to_event(ev_expanded, URL).start.day == 5

    def test_garbage(self):
        with pytest.raises(error.ParseError):
            ical_to_event("this is not icalendar", URL)

    def test_not_a_string(self):
        with pytest.raises(error.ParseError):
            ical_to_event(None, URL)

    def test_no_vevent(self):
        with pytest.raises(error.ParseError) as excinfo:
            ical_to_event(todo_done, URL)
        assert excinfo.value.url == URL


class TestTodo:
    def test_ical_to_todo(self):
        todo = ical_to_todo(todo_done, URL, '"9"')
        assert todo.uid == "todo-1"
        assert todo.summary == "File taxes"
        assert todo.due == datetime(2026, 4, 30, 22, tzinfo=utc)
        assert todo.priority == 1
        assert todo.status == "COMPLETED"
        assert todo.completed is True
        assert todo.to_dict() == {
            "uid": "todo-1",
            "summary": "File taxes",
            "url": URL,
            "etag": '"9"',
            "due": "2026-04-30T22:00:00Z",
            "status": "COMPLETED",
            "completed": True,
            "priority": 1,
        }

    def test_todo_to_ical(self):
        data = todo_to_ical(
            "Call bob",
            uid="todo-2",
            due="2026-02-01T12:00:00Z",
            priority=5,
            status="in-process",
            description="about the offer",
        )
        todo = ical_to_todo(data, URL)
        assert todo.uid == "todo-2"
        assert todo.status == "IN-PROCESS"
        assert todo.completed is False
        assert todo.priority == 5
        assert todo.description == "about the offer"
        assert todo.due == datetime(2026, 2, 1, 12, tzinfo=utc)

    def test_completed_overrides_status(self):
        data = todo_to_ical("Call bob", status="NEEDS-ACTION", completed=True)
        vtodo = icalendar.Calendar.from_ical(data).walk("VTODO")[0]
        assert vtodo["STATUS"] == "COMPLETED"
        assert "COMPLETED" in vtodo

    def test_no_vtodo(self):
        with pytest.raises(error.ParseError):
            ical_to_todo(ev_all_day, URL)
