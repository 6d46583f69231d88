#!/usr/bin/env python
"""
Plain data objects handed between the DAV client, the iCalendar codec,
the poll engine and the host.

``to_dict`` renders each object the way the host receives it: camelCase
keys, ISO-8601 UTC timestamps, and optional fields only when set.
"""
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from datetime import timezone
from typing import Any
from typing import Dict
from typing import List
from typing import Optional


def isoformat(ts: Optional[datetime]) -> str:
    """UTC ISO-8601 with a trailing Z, or an empty string for no timestamp"""
    if ts is None:
        return ""
    return ts.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class Calendar:
    url: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    timezone: Optional[str] = None
    components: List[str] = field(default_factory=list)
    ctag: Optional[str] = None
    sync_token: Optional[str] = None

    def supports(self, component: str) -> bool:
        return component.upper() in self.components

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "displayName": self.display_name,
            "description": self.description,
            "timezone": self.timezone,
            "components": list(self.components),
            "ctag": self.ctag,
            "syncToken": self.sync_token,
        }


@dataclass
class Event:
    """
    A VEVENT, or one occurrence of a recurring VEVENT when the calendar
    was fetched with expansion.  Occurrences share the uid of their
    master, carry a recurrence_id and no rrule.
    """

    uid: str
    summary: str = ""
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    url: Optional[str] = None
    etag: Optional[str] = None
    all_day: bool = False
    description: Optional[str] = None
    location: Optional[str] = None
    rrule: Optional[str] = None
    attendees: List[str] = field(default_factory=list)
    recurrence_id: Optional[datetime] = None

    @property
    def is_recurring_master(self) -> bool:
        return self.rrule is not None

    def to_dict(self) -> Dict[str, Any]:
        ret: Dict[str, Any] = {
            "uid": self.uid,
            "summary": self.summary,
            "start": isoformat(self.start),
            "end": isoformat(self.end),
            "etag": self.etag,
            "url": self.url,
            "allDay": self.all_day,
        }
        if self.description:
            ret["description"] = self.description
        if self.location:
            ret["location"] = self.location
        if self.rrule:
            ret["rrule"] = self.rrule
        if self.attendees:
            ret["attendees"] = list(self.attendees)
        return ret


@dataclass
class Todo:
    uid: str
    summary: str = ""
    url: Optional[str] = None
    etag: Optional[str] = None
    due: Optional[datetime] = None
    status: Optional[str] = None
    completed: Optional[bool] = None
    priority: Optional[int] = None
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        ret: Dict[str, Any] = {
            "uid": self.uid,
            "summary": self.summary,
            "url": self.url,
        }
        if self.etag:
            ret["etag"] = self.etag
        if self.due is not None:
            ret["due"] = isoformat(self.due)
        if self.status:
            ret["status"] = self.status
            ret["completed"] = self.completed
        if self.priority is not None:
            ret["priority"] = self.priority
        if self.description:
            ret["description"] = self.description
        return ret
