from typing import Protocol, runtime_checkable

from caldav_connector.protocol.types import DAVRequest, DAVResponse


@runtime_checkable
class SyncIOProtocol(Protocol):
    """
    What the DAV client needs from a transport.  HTTP error statuses
    come back as a DAVResponse; only failing to get a response at all
    (connection refused, timeout, TLS) raises, as
    caldav_connector.lib.error.TransportError.
    """

    def execute(self, request: DAVRequest) -> DAVResponse: ...

    def close(self) -> None: ...
