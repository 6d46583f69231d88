#!/usr/bin/env python
"""
Create, read, update and delete calendars, events and todos on behalf
of a host workflow.  Parameters come as the host gives them: a dict per
item, with optional fields collected under ``additionalFields`` and
query options under ``options``.
"""
import logging
from typing import Any
from typing import Callable
from typing import Dict
from typing import Iterable
from typing import List
from typing import Mapping
from typing import Optional
from typing import Union

from caldav_connector.ical import event_to_ical
from caldav_connector.ical import generate_filename
from caldav_connector.ical import generate_uid
from caldav_connector.ical import ical_to_event
from caldav_connector.ical import ical_to_events
from caldav_connector.ical import ical_to_todo
from caldav_connector.ical import parse_timestamp
from caldav_connector.ical import todo_to_ical
from caldav_connector.lib import error
from caldav_connector.lib.url import parent_collection
from caldav_connector.objects import Calendar
from caldav_connector.protocol import CalendarObjectData

log = logging.getLogger("caldav_connector")

Result = Union[Dict[str, Any], List[Dict[str, Any]]]

TODO_STATUSES = ("NEEDS-ACTION", "IN-PROCESS", "COMPLETED", "CANCELLED")

UNNAMED_CALENDAR = "Unnamed Calendar"


def _calendar_param(params: Mapping[str, Any]) -> str:
    """The calendar is either a url or a resource locator like {"mode": "list", "value": url}"""
    calendar = params.get("calendar")
    if isinstance(calendar, Mapping):
        calendar = calendar.get("value")
    if not calendar:
        raise error.ConfigurationError(reason="no calendar given")
    return calendar


def _required(params: Mapping[str, Any], key: str) -> Any:
    value = params.get(key)
    if value is None or value == "":
        raise error.ConfigurationError(reason=f"missing parameter {key}")
    return value


class CalDAVConnector:
    """
    Example::

        with get_davclient() as client:
            connector = CalDAVConnector(client)
            event = connector.execute("event", "create", {
                "calendar": "https://dav.example.com/dav/alice/work/",
                "summary": "Standup",
                "start": "2026-01-05T09:00:00Z",
                "end": "2026-01-05T09:15:00Z",
                "additionalFields": {"rrule": "FREQ=DAILY;COUNT=5"},
            })
    """

    def __init__(self, client) -> None:
        self.client = client
        self._operations: Dict[tuple, Callable[[Mapping[str, Any]], Result]] = {
            ("calendar", "getAll"): self.get_calendars,
            ("event", "create"): self.create_event,
            ("event", "get"): self.get_event,
            ("event", "getAll"): self.get_events,
            ("event", "update"): self.update_event,
            ("event", "delete"): self.delete_object,
            ("todo", "create"): self.create_todo,
            ("todo", "get"): self.get_todo,
            ("todo", "getAll"): self.get_todos,
            ("todo", "update"): self.update_todo,
            ("todo", "delete"): self.delete_object,
        }

    def execute(
        self, resource: str, operation: str, params: Optional[Mapping[str, Any]] = None
    ) -> Result:
        """
        Runs one operation.  Single objects come back as a dict, getAll
        operations as a list of dicts.

        Raises:
          ConfigurationError: unknown operation or missing parameter
          DAVError: whatever the server or the parsing complained about
        """
        method = self._operations.get((resource, operation))
        if method is None:
            raise error.ConfigurationError(
                reason=f"unknown operation {operation!r} on {resource!r}"
            )
        log.debug("%s %s", resource, operation)
        return method(params or {})

    def execute_items(
        self,
        resource: str,
        operation: str,
        items: Iterable[Mapping[str, Any]],
        continue_on_fail: bool = False,
    ) -> List[Dict[str, Any]]:
        """
        Runs the operation once per item and collects the results in
        one flat list.  With continue_on_fail a failing item gives
        ``{"error": message}`` instead of stopping the run.
        """
        ret: List[Dict[str, Any]] = []
        for params in items:
            try:
                result = self.execute(resource, operation, params)
            except error.DAVError as e:
                if not continue_on_fail:
                    raise
                log.info("item failed, continuing: %s", e)
                ret.append({"error": str(e)})
                continue
            if isinstance(result, list):
                ret.extend(result)
            else:
                ret.append(result)
        return ret

    ## Calendars

    def find_calendar(self, calendar_url: str) -> Calendar:
        """
        Raises:
          CalendarNotFoundError: no calendar at that url
        """
        return self.client.find_calendar(calendar_url)

    def get_calendars(self, params: Mapping[str, Any]) -> List[Dict[str, Any]]:
        return [calendar.to_dict() for calendar in self.client.fetch_calendars()]

    def _list(self, component: str, filter: Optional[str]) -> List[Dict[str, str]]:
        ret = []
        for calendar in self.client.fetch_calendars():
            if not calendar.supports(component):
                continue
            name = calendar.display_name or UNNAMED_CALENDAR
            if filter and filter.lower() not in name.lower():
                continue
            ret.append({"name": name, "value": calendar.url})
        ret.sort(key=lambda x: x["name"].lower())
        return ret

    def list_calendars(self, filter: Optional[str] = None) -> List[Dict[str, str]]:
        """Calendars that can hold events, for a calendar picker"""
        return self._list("VEVENT", filter)

    def list_todo_calendars(self, filter: Optional[str] = None) -> List[Dict[str, str]]:
        """Calendars that can hold todos, for a calendar picker"""
        return self._list("VTODO", filter)

    ## Shared by events and todos

    def _fetch_object(self, url: str, what: str) -> CalendarObjectData:
        calendar = self.find_calendar(parent_collection(url))
        objects = self.client.fetch_calendar_objects(calendar, object_urls=[url])
        if not objects or not objects[0].data:
            raise error.NotFoundError(url=url, reason=f"{what} not found")
        return objects[0]

    def _create(self, params: Mapping[str, Any], ical: str, uid: str) -> CalendarObjectData:
        calendar = self.find_calendar(_calendar_param(params))
        url = self.client.create_calendar_object(
            calendar, generate_filename(uid), ical
        )
        objects = self.client.fetch_calendar_objects(calendar, object_urls=[url])
        if not objects or not objects[0].data:
            raise error.NotFoundError(url=url, reason="failed to fetch created object")
        return objects[0]

    def delete_object(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        url = params.get("eventUrl") or _required(params, "todoUrl")
        self.client.delete_calendar_object(url, etag=params.get("etag") or None)
        return {"success": True}

    ## Events

    def _event_ical(self, params: Mapping[str, Any], uid: str) -> str:
        fields = params.get("additionalFields") or {}
        return event_to_ical(
            summary=_required(params, "summary"),
            start=_required(params, "start"),
            end=_required(params, "end"),
            uid=uid,
            all_day=fields.get("allDay") is True,
            description=fields.get("description"),
            location=fields.get("location"),
            rrule=fields.get("rrule"),
            attendees=fields.get("attendees"),
        )

    def create_event(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        uid = (params.get("additionalFields") or {}).get("uid") or generate_uid()
        obj = self._create(params, self._event_ical(params, uid), uid)
        return ical_to_event(obj.data, obj.url, obj.etag).to_dict()

    def get_event(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        obj = self._fetch_object(_required(params, "eventUrl"), "Event")
        return ical_to_event(obj.data, obj.url, obj.etag).to_dict()

    def get_events(self, params: Mapping[str, Any]) -> List[Dict[str, Any]]:
        """
        All events of a calendar.  The time range only applies when
        both timeMin and timeMax are given.  Expanded recurrences give
        one dict per occurrence.
        """
        calendar = self.find_calendar(_calendar_param(params))
        options = params.get("options") or {}
        time_range = None
        if options.get("timeMin") and options.get("timeMax"):
            time_range = (
                parse_timestamp(options["timeMin"]),
                parse_timestamp(options["timeMax"]),
            )
        expand = bool(options.get("expand"))
        objects = self.client.fetch_calendar_objects(
            calendar, time_range=time_range, expand=expand, component="VEVENT"
        )
        ret = []
        for obj in objects:
            if not obj.data:
                continue
            if expand:
                ret.extend(e.to_dict() for e in ical_to_events(obj.data, obj.url, obj.etag))
            else:
                ret.append(ical_to_event(obj.data, obj.url, obj.etag).to_dict())
        return ret

    def update_event(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Replaces the event.  The uid is kept unless a new one is given
        in the additional fields.

        Raises:
          ConflictError: the etag given is not the current one
        """
        url = _required(params, "eventUrl")
        uid = (params.get("additionalFields") or {}).get("uid")
        if not uid:
            uid = ical_to_event(self._fetch_object(url, "Event").data, url).uid
        self.client.update_calendar_object(
            url, self._event_ical(params, uid), etag=params.get("etag") or None
        )
        obj = self._fetch_object(url, "Updated event")
        return ical_to_event(obj.data, obj.url, obj.etag).to_dict()

    ## Todos

    def _todo_ical(self, params: Mapping[str, Any], uid: str) -> str:
        fields = params.get("additionalFields") or {}
        status = fields.get("status")
        if status and status.upper() not in TODO_STATUSES:
            raise error.ConfigurationError(reason=f"unknown todo status {status!r}")
        return todo_to_ical(
            summary=_required(params, "summary"),
            uid=uid,
            description=fields.get("description"),
            due=fields.get("due") or None,
            priority=fields.get("priority"),
            status=status,
            completed=fields.get("completed") is True,
        )

    def create_todo(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        uid = (params.get("additionalFields") or {}).get("uid") or generate_uid()
        obj = self._create(params, self._todo_ical(params, uid), uid)
        return ical_to_todo(obj.data, obj.url, obj.etag).to_dict()

    def get_todo(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        obj = self._fetch_object(_required(params, "todoUrl"), "Todo")
        return ical_to_todo(obj.data, obj.url, obj.etag).to_dict()

    def get_todos(self, params: Mapping[str, Any]) -> List[Dict[str, Any]]:
        calendar = self.find_calendar(_calendar_param(params))
        status = (params.get("options") or {}).get("status")
        objects = self.client.fetch_calendar_objects(calendar, component="VTODO")
        todos = [
            ical_to_todo(obj.data, obj.url, obj.etag) for obj in objects if obj.data
        ]
        if status:
            todos = [todo for todo in todos if todo.status == status]
        return [todo.to_dict() for todo in todos]

    def update_todo(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        url = _required(params, "todoUrl")
        uid = (params.get("additionalFields") or {}).get("uid")
        if not uid:
            uid = ical_to_todo(self._fetch_object(url, "Todo").data, url).uid
        self.client.update_calendar_object(
            url, self._todo_ical(params, uid), etag=params.get("etag") or None
        )
        obj = self._fetch_object(url, "Updated todo")
        return ical_to_todo(obj.data, obj.url, obj.etag).to_dict()
