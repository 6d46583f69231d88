#!/usr/bin/env python
from dataclasses import dataclass
from datetime import datetime
from datetime import timedelta
from typing import Optional

from caldav_connector.poll.config import EventStartedTrigger
from caldav_connector.poll.config import Trigger


@dataclass(frozen=True)
class FetchWindow:
    """The time range and expansion to ask the server for; no range means the whole calendar"""

    start: Optional[datetime] = None
    end: Optional[datetime] = None
    expand: bool = False

    @property
    def time_range(self):
        if self.start is None and self.end is None:
            return None
        return (self.start, self.end)


def _ceil_second(ts: datetime) -> datetime:
    if ts.microsecond:
        return ts.replace(microsecond=0) + timedelta(seconds=1)
    return ts


def build_fetch_window(
    trigger: Trigger, last_checked_at: datetime, now: datetime
) -> FetchWindow:
    """
    The started mode needs every occurrence whose trigger time may
    fall between the previous poll and now, which is up to
    ``minutes_before`` after now.  The other modes compare the whole
    calendar against the known versions.

    Time ranges go over the wire with whole seconds and an exclusive
    end, so the end is rounded up to the next second.
    """
    if isinstance(trigger, EventStartedTrigger):
        return FetchWindow(
            start=last_checked_at,
            end=_ceil_second(now + timedelta(minutes=trigger.minutes_before)),
            expand=True,
        )
    return FetchWindow()
