import logging
from typing import Optional, Union

import requests
from requests.auth import AuthBase

from caldav_connector.lib import error
from caldav_connector.protocol.types import DAVRequest, DAVResponse

log = logging.getLogger(__name__)


class SyncIO:
    """
    Runs DAVRequests over a requests.Session.

    The session is reused for every request of a poll or a connector
    run, and closed with ``close()`` unless it was passed in by the
    caller.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = 30.0,
        verify: Union[bool, str] = True,
        auth: Optional[AuthBase] = None,
        proxy: Optional[str] = None,
    ):
        """
        Args:
            session: a requests Session to use instead of a new one
            timeout: seconds to wait for the server
            verify: False to skip certificate checks, or a CA bundle path
            auth: a requests auth object, for servers that want
                  something other than the Basic header CalDAVProtocol sends
            proxy: proxy url, used for both http and https
        """
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.timeout = timeout
        self.verify = verify
        self.auth = auth
        self.proxies = {"http": proxy, "https": proxy} if proxy else None

    def execute(self, request: DAVRequest) -> DAVResponse:
        """
        Raises:
            TransportError: no response, i.e. connection refused or timeout
        """
        log.debug("%s %s", request.method.value, request.url)
        try:
            response = self.session.request(
                method=request.method.value,
                url=request.url,
                headers=request.headers,
                data=request.body,
                timeout=self.timeout,
                verify=self.verify,
                auth=self.auth,
                proxies=self.proxies,
            )
        except requests.RequestException as e:
            raise error.TransportError(url=request.url, reason=str(e)) from e
        log.debug("server responded with %i %s", response.status_code, response.reason)
        return DAVResponse(
            status=response.status_code,
            headers=dict(response.headers),
            body=response.content,
            reason=response.reason or "",
        )

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "SyncIO":
        return self

    def __exit__(self, *args) -> None:
        self.close()
