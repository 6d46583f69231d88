#!/usr/bin/env python
import logging

__version__ = "0.1.0"

from .davclient import DAVClient
from .connector import CalDAVConnector
from .poll import CalDAVTrigger

# Silence notification of no default logging handler
log = logging.getLogger("caldav_connector")


class NullHandler(logging.Handler):
    def emit(self, record) -> None:
        pass


log.addHandler(NullHandler())

__all__ = ["__version__", "DAVClient", "CalDAVConnector", "CalDAVTrigger"]
