#!/usr/bin/env python
"""
Decides which fetched events are news for the trigger.  Pure: the
inputs are left alone, the new state is returned.
"""
from dataclasses import dataclass
from datetime import datetime
from datetime import timedelta
from typing import Any
from typing import Dict
from typing import Iterable
from typing import List
from typing import Set
from typing import Tuple

from caldav_connector.objects import Event
from caldav_connector.poll.config import EVENT_CREATED
from caldav_connector.poll.config import EVENT_STARTED
from caldav_connector.poll.config import EVENT_UPDATED
from caldav_connector.poll.config import EventStartedTrigger
from caldav_connector.poll.config import Trigger
from caldav_connector.poll.state import PollState


@dataclass(frozen=True)
class ChangeEvent:
    kind: str
    event: Event

    def as_dict(self) -> Dict[str, Any]:
        return self.event.to_dict()


def _started(
    events: Iterable[Event], trigger: EventStartedTrigger, last_checked_at, now
) -> List[Event]:
    offset = timedelta(minutes=trigger.minutes_before)
    seen: Set[Tuple[str, datetime]] = set()
    ret = []
    for event in events:
        if event.start is None or event.is_recurring_master:
            continue
        key = (event.uid, event.start)
        if key in seen:
            continue
        trigger_time = event.start - offset
        if last_checked_at < trigger_time <= now:
            seen.add(key)
            ret.append(event)
    return ret


def _new_versions(events: Iterable[Event]) -> Dict[str, str]:
    return {event.uid: event.etag or "" for event in events}


def classify(
    events: Iterable[Event], state: PollState, trigger: Trigger, now: datetime
) -> Tuple[List[ChangeEvent], PollState]:
    """
    created: the uid was not known before.
    updated: the uid was known, with another etag.
    started: the occurrence's start minus the offset is after the
      previous poll and not after now.

    For created and updated the known versions are replaced by the
    fetched events, forgetting deleted ones.  The started mode keeps
    them as they are.
    """
    events = list(events)
    known = state.known_versions

    if trigger.trigger_on == EVENT_STARTED:
        fired = _started(events, trigger, state.last_checked_at, now)
        versions = dict(known)
    elif trigger.trigger_on == EVENT_CREATED:
        fired = [e for e in events if e.uid not in known]
        versions = _new_versions(events)
    elif trigger.trigger_on == EVENT_UPDATED:
        fired = [
            e for e in events if e.uid in known and known[e.uid] != (e.etag or "")
        ]
        versions = _new_versions(events)
    else:
        raise ValueError(f"unknown trigger mode {trigger.trigger_on!r}")

    changes = [ChangeEvent(kind=trigger.trigger_on, event=e) for e in fired]
    return changes, PollState(last_checked_at=now, known_versions=versions)
