#!/usr/bin/env python
"""
What a monitor watches for.  One dataclass per trigger mode; only the
started mode has an offset.
"""
from dataclasses import dataclass
from typing import Any
from typing import Mapping
from typing import Union

from caldav_connector.lib import error

EVENT_CREATED = "eventCreated"
EVENT_UPDATED = "eventUpdated"
EVENT_STARTED = "eventStarted"

DEFAULT_POLL_INTERVAL = 5


@dataclass(frozen=True)
class EventCreatedTrigger:
    calendar_url: str
    poll_interval_minutes: int = DEFAULT_POLL_INTERVAL

    trigger_on = EVENT_CREATED


@dataclass(frozen=True)
class EventUpdatedTrigger:
    calendar_url: str
    poll_interval_minutes: int = DEFAULT_POLL_INTERVAL

    trigger_on = EVENT_UPDATED


@dataclass(frozen=True)
class EventStartedTrigger:
    """
    Fires for each occurrence whose start minus ``minutes_before``
    passed since the previous poll.
    """

    calendar_url: str
    minutes_before: int = 0
    poll_interval_minutes: int = DEFAULT_POLL_INTERVAL

    trigger_on = EVENT_STARTED

    def __post_init__(self) -> None:
        if self.minutes_before < 0:
            raise error.ConfigurationError(
                reason=f"minutesBefore must not be negative, got {self.minutes_before}"
            )


Trigger = Union[EventCreatedTrigger, EventUpdatedTrigger, EventStartedTrigger]


def _int_param(params: Mapping[str, Any], key: str, default: int, minimum: int) -> int:
    value = params.get(key)
    if value is None or value == "":
        return default
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError) as e:
        raise error.ConfigurationError(
            reason=f"{key} must be an integer, got {value!r}"
        ) from e
    ## int() would truncate 1.5 to 1
    if isinstance(value, float) and value != number:
        raise error.ConfigurationError(
            reason=f"{key} must be an integer, got {value!r}"
        )
    value = number
    if value < minimum:
        raise error.ConfigurationError(
            reason=f"{key} must be at least {minimum}, got {value}"
        )
    return value


def trigger_from_dict(params: Mapping[str, Any]) -> Trigger:
    """
    Builds the trigger from the host's node parameters::

        {"calendarUrl": "...", "triggerOn": "eventStarted", "minutesBefore": 15}

    The calendar may also come as ``calendar``, either a url or a
    ``{"value": url}`` picker result, and the poll interval may be nested
    in ``options``.

    Raises:
      ConfigurationError: on a missing calendar, unknown mode or bad numbers
    """
    calendar = params.get("calendarUrl", params.get("calendar"))
    if isinstance(calendar, Mapping):
        calendar = calendar.get("value")
    if not calendar or not isinstance(calendar, str):
        raise error.ConfigurationError(reason="no calendar given")

    ## the poll interval lives in the options collection of the node
    options = {**(params.get("options") or {}), **params}
    poll_interval = _int_param(options, "pollInterval", DEFAULT_POLL_INTERVAL, 1)
    trigger_on = params.get("triggerOn", EVENT_CREATED)

    if trigger_on == EVENT_CREATED:
        return EventCreatedTrigger(calendar, poll_interval_minutes=poll_interval)
    if trigger_on == EVENT_UPDATED:
        return EventUpdatedTrigger(calendar, poll_interval_minutes=poll_interval)
    if trigger_on == EVENT_STARTED:
        return EventStartedTrigger(
            calendar,
            minutes_before=_int_param(params, "minutesBefore", 0, 0),
            poll_interval_minutes=poll_interval,
        )
    raise error.ConfigurationError(reason=f"unknown trigger mode {trigger_on!r}")
