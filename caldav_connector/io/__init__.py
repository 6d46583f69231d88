"""
HTTP transport for the requests built by caldav_connector.protocol.

Only ``SyncIO`` is provided; anything with the same ``execute`` and
``close`` methods (see ``SyncIOProtocol``) can stand in for it, i.e. in
tests.
"""

from .base import SyncIOProtocol
from .sync import SyncIO

__all__ = [
    "SyncIOProtocol",
    "SyncIO",
]
