"""
Tests for the change classifier and the fetch window.  Everything here
is pure; events are built directly, no iCalendar involved.
"""
from datetime import datetime
from datetime import timedelta
from datetime import timezone

from caldav_connector.objects import Event
from caldav_connector.poll import build_fetch_window
from caldav_connector.poll import classify
from caldav_connector.poll import EventCreatedTrigger
from caldav_connector.poll import EventStartedTrigger
from caldav_connector.poll import EventUpdatedTrigger
from caldav_connector.poll import PollState

utc = timezone.utc

CAL = "https://dav.example.com/dav/calendars/alice/work/"
NOW = datetime(2026, 3, 2, 12, 0, tzinfo=utc)
LAST = NOW - timedelta(minutes=5)

created = EventCreatedTrigger(CAL)
updated = EventUpdatedTrigger(CAL)


def ev(uid, etag=None, start=None, rrule=None):
    return Event(
        uid=uid,
        summary=uid.capitalize(),
        start=start,
        end=start + timedelta(hours=1) if start else None,
        url=CAL + uid + ".ics",
        etag=etag,
        rrule=rrule,
    )


def uids(changes):
    return [c.event.uid for c in changes]


class TestCreated:
    def test_new_objects_fire_once(self):
        state = PollState(last_checked_at=LAST, known_versions={"a": "e1"})
        changes, new_state = classify(
            [ev("a", "e1"), ev("b", "e1"), ev("c", "e5")], state, created, NOW
        )
        assert uids(changes) == ["b", "c"]
        assert all(c.kind == "eventCreated" for c in changes)
        assert new_state.known_versions == {"a": "e1", "b": "e1", "c": "e5"}

    def test_no_op_poll(self):
        """polling an unchanged calendar twice gives nothing the second time"""
        events = [ev("a", "e1"), ev("b", "e2")]
        _, state = classify(events, PollState(last_checked_at=LAST), created, NOW)
        changes, _ = classify(events, state, created, NOW + timedelta(minutes=5))
        assert changes == []

    def test_deleted_objects_are_forgotten(self):
        state = PollState(last_checked_at=LAST, known_versions={"a": "e1", "gone": "e1"})
        _, new_state = classify([ev("a", "e1")], state, created, NOW)
        assert new_state.known_versions == {"a": "e1"}

    def test_missing_etag_stored_as_empty(self):
        _, new_state = classify([ev("a")], PollState(last_checked_at=LAST), created, NOW)
        assert new_state.known_versions == {"a": ""}

    def test_inputs_untouched(self):
        known = {"gone": "e1"}
        state = PollState(last_checked_at=LAST, known_versions=known)
        _, new_state = classify([ev("a", "e1")], state, created, NOW)
        assert known == {"gone": "e1"}
        assert state.last_checked_at == LAST
        assert new_state.last_checked_at == NOW


class TestUpdated:
    def test_changed_etag_fires(self):
        state = PollState(last_checked_at=LAST, known_versions={"a": "e1", "b": "e1"})
        changes, new_state = classify(
            [ev("a", "e2"), ev("b", "e1")], state, updated, NOW
        )
        assert uids(changes) == ["a"]
        assert changes[0].kind == "eventUpdated"
        assert new_state.known_versions == {"a": "e2", "b": "e1"}

    def test_new_objects_never_fire(self):
        """an object has to be seen unchanged once before it can be updated"""
        state = PollState(last_checked_at=LAST, known_versions={"a": "e1"})
        changes, new_state = classify([ev("new", "e9")], state, updated, NOW)
        assert changes == []
        assert new_state.known_versions == {"new": "e9"}


class TestStarted:
    def test_boundaries(self):
        """the interval is open at the previous poll and closed at now"""
        trigger = EventStartedTrigger(CAL, minutes_before=10)
        offset = timedelta(minutes=10)
        events = [
            ev("at-last", start=LAST + offset),
            ev("after-last", start=LAST + offset + timedelta(seconds=1)),
            ev("at-now", start=NOW + offset),
            ev("after-now", start=NOW + offset + timedelta(seconds=1)),
        ]
        changes, _ = classify(events, PollState(last_checked_at=LAST), trigger, NOW)
        assert uids(changes) == ["after-last", "at-now"]
        assert all(c.kind == "eventStarted" for c in changes)

    def test_no_offset(self):
        trigger = EventStartedTrigger(CAL)
        changes, _ = classify(
            [ev("a", start=NOW), ev("b", start=NOW + timedelta(minutes=1))],
            PollState(last_checked_at=LAST),
            trigger,
            NOW,
        )
        assert uids(changes) == ["a"]

    def test_occurrences_fire_master_does_not(self):
        trigger = EventStartedTrigger(CAL)
        start = NOW - timedelta(minutes=1)
        events = [
            ev("daily", start=start, rrule="FREQ=DAILY"),
            ev("weekly", start=start),
            ev("weekly", start=start - timedelta(minutes=2)),
            ## the same occurrence reported twice
            ev("weekly", start=start),
        ]
        changes, _ = classify(events, PollState(last_checked_at=LAST), trigger, NOW)
        assert [(c.event.uid, c.event.start) for c in changes] == [
            ("weekly", start),
            ("weekly", start - timedelta(minutes=2)),
        ]

    def test_no_start_never_fires(self):
        changes, _ = classify(
            [ev("a")], PollState(last_checked_at=LAST), EventStartedTrigger(CAL), NOW
        )
        assert changes == []

    def test_known_versions_untouched(self):
        state = PollState(last_checked_at=LAST, known_versions={"x": "e1"})
        _, new_state = classify(
            [ev("a", "e3", start=NOW)], state, EventStartedTrigger(CAL), NOW
        )
        assert new_state.known_versions == {"x": "e1"}
        assert new_state.last_checked_at == NOW


class TestScenario:
    def test_created_then_nothing_then_updated(self):
        state = PollState(last_checked_at=LAST)

        changes, state = classify([ev("a", "e1")], state, created, NOW)
        assert [c.as_dict()["uid"] for c in changes] == ["a"]
        assert state.known_versions == {"a": "e1"}

        later = NOW + timedelta(minutes=5)
        changes, state = classify([ev("a", "e1")], state, created, later)
        assert changes == []

        changes, state = classify(
            [ev("a", "e2")], state, updated, later + timedelta(minutes=5)
        )
        assert len(changes) == 1
        d = changes[0].as_dict()
        assert d["uid"] == "a"
        assert d["etag"] == "e2"


class TestFetchWindow:
    def test_started(self):
        window = build_fetch_window(EventStartedTrigger(CAL, minutes_before=15), LAST, NOW)
        assert window.start == LAST
        assert window.end == NOW + timedelta(minutes=15)
        assert window.expand is True
        assert window.time_range == (LAST, NOW + timedelta(minutes=15))

    def test_created_and_updated(self):
        for trigger in (created, updated):
            window = build_fetch_window(trigger, LAST, NOW)
            assert window.time_range is None
            assert window.expand is False

    def test_end_rounded_up_to_whole_second(self):
        now = NOW + timedelta(microseconds=123000)
        window = build_fetch_window(EventStartedTrigger(CAL), LAST, now)
        assert window.end == NOW + timedelta(seconds=1)
        assert window.start == LAST
