#!/usr/bin/env python
import logging
import os
from collections import defaultdict
from typing import Dict
from typing import Optional

from caldav_connector import __version__

## one of DEBUG, DEVELOPMENT, PRODUCTION
debugmode = os.environ.get("CALDAV_CONNECTOR_DEBUGMODE")
if not debugmode:
    if "dev" in __version__:
        debugmode = "DEVELOPMENT"
    else:
        debugmode = "PRODUCTION"

log = logging.getLogger("caldav_connector")
if debugmode.startswith("DEBUG"):
    log.setLevel(logging.DEBUG)
else:
    log.setLevel(logging.WARNING)


def errmsg(r) -> str:
    """Utility for formatting an error response to an error string"""
    return "%s %s\n\n%s" % (r.status, r.reason, r.body)


def weirdness(*reasons) -> None:
    reason = " : ".join([str(x) for x in reasons])
    log.warning(f"Deviation from expectations found: {reason}")


def assert_(condition: object) -> None:
    try:
        assert condition
    except AssertionError:
        if debugmode == "PRODUCTION":
            log.error("Deviation from expectations found", exc_info=True)
        else:
            raise


class DAVError(Exception):
    url: Optional[str] = None
    reason: str = "no reason"

    def __init__(self, url: Optional[str] = None, reason: Optional[str] = None) -> None:
        if url:
            self.url = url
        if reason:
            self.reason = reason

    def __str__(self) -> str:
        return "%s at '%s', reason %s" % (
            self.__class__.__name__,
            self.url,
            self.reason,
        )


class ConfigurationError(DAVError):
    """
    The connector was configured with something that can't work, i.e.
    an unknown trigger mode or a negative offset.  Fatal for a poll.
    """

    pass


class CalendarNotFoundError(ConfigurationError):
    """
    The monitored or targeted calendar could not be located among the
    calendars the server reports.  The url property holds the calendar
    url that was asked for.
    """

    pass


class TransportError(DAVError):
    """
    Anything that went wrong while talking to the server: connection
    failures, timeouts and unexpected HTTP statuses.
    """

    pass


class AuthorizationError(TransportError):
    """
    The server answered with HTTP 401 or 403.  The url property will
    contain the url in question, the reason property will contain the
    excuse the server sent.
    """

    pass


class NotFoundError(TransportError):
    pass


class PropfindError(TransportError):
    pass


class ReportError(TransportError):
    pass


class PutError(TransportError):
    pass


class DeleteError(TransportError):
    pass


class ResponseError(TransportError):
    pass


class ConflictError(DAVError):
    """
    The server rejected a conditional PUT or DELETE (HTTP 412) because
    the etag given does not match the current version of the object.
    Re-fetch the object and retry instead of overwriting blindly.
    """

    pass


class ParseError(DAVError):
    """The calendar data of an object could not be parsed"""

    pass


exception_by_method: Dict[str, type] = defaultdict(lambda: TransportError)
for method in (
    "delete",
    "put",
    "report",
    "propfind",
):
    exception_by_method[method] = locals()[method[0].upper() + method[1:] + "Error"]
