#!/usr/bin/env python
import logging
from datetime import datetime
from datetime import timezone
from typing import Any
from typing import Dict
from typing import List
from typing import Optional

from caldav_connector.ical import ical_to_event
from caldav_connector.ical import ical_to_events
from caldav_connector.lib import error
from caldav_connector.objects import Calendar
from caldav_connector.objects import Event
from caldav_connector.poll.classifier import classify
from caldav_connector.poll.config import Trigger
from caldav_connector.poll.state import MemoryPollStateStore
from caldav_connector.poll.window import build_fetch_window
from caldav_connector.protocol import CalendarObjectData

log = logging.getLogger("caldav_connector")


class CalDAVTrigger:
    """
    Polls one calendar and reports what's new since the previous poll.

    Example::

        trigger = CalDAVTrigger(
            client,
            trigger_from_dict({"calendarUrl": url, "triggerOn": "eventStarted"}),
            JsonFilePollStateStore("/var/lib/monitor/work.json"),
        )
        changes = trigger.poll()

    The host is expected to not run two polls of the same monitor at
    the same time.
    """

    def __init__(self, client, config: Trigger, store=None) -> None:
        self.client = client
        self.config = config
        self.store = store if store is not None else MemoryPollStateStore()

    def find_calendar(self) -> Calendar:
        """
        Raises:
          CalendarNotFoundError: the server doesn't report the configured calendar
        """
        return self.client.find_calendar(self.config.calendar_url)

    def _parse(self, objects: List[CalendarObjectData], expanded: bool) -> List[Event]:
        events = []
        for obj in objects:
            if not obj.data:
                continue
            try:
                if expanded:
                    events.extend(ical_to_events(obj.data, obj.url, obj.etag))
                else:
                    events.append(ical_to_event(obj.data, obj.url, obj.etag))
            except error.ParseError as e:
                log.warning("skipping calendar object %s: %s", obj.url, e.reason)
        return events

    def poll(self, now: Optional[datetime] = None) -> Optional[List[Dict[str, Any]]]:
        """
        Runs one poll.

        Returns:
          the changed events as dicts, or None when nothing fired

        Raises:
          ConfigurationError: the calendar can't be found
          TransportError: talking to the server failed.  The stored
            state is left as it was, so the next poll covers this one too.
        """
        if now is None:
            now = datetime.now(tz=timezone.utc)
        state = self.store.load()

        calendar = self.find_calendar()
        window = build_fetch_window(self.config, state.last_checked_at, now)
        objects = self.client.fetch_calendar_objects(
            calendar,
            time_range=window.time_range,
            expand=window.expand,
            component="VEVENT",
        )
        events = self._parse(objects, window.expand)

        changes, new_state = classify(events, state, self.config, now)
        self.store.save(new_state)

        log.debug(
            "%s poll of %s: %i objects, %i changes",
            self.config.trigger_on,
            calendar.url,
            len(events),
            len(changes),
        )
        if not changes:
            return None
        return [change.as_dict() for change in changes]
