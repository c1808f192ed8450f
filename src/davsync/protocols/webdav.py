"""
WebDAV protocol implementation for davsync.

Handles the HTTP requests davsync needs (HEAD, PROPFIND, MKCOL, PUT) over a
single keep-alive session, and remote existence probing on top of them.
"""

import logging
from typing import IO, Any, Optional

import requests
import urllib3

from davsync.exceptions import TransportError
from davsync.models import RemoteKind

logger = logging.getLogger(__name__)

# Status codes meaning "this resource is there"
FILE_EXISTS_STATUSES = (200,)
COLLECTION_EXISTS_STATUSES = (200, 207)


class WebDAVTransport:
    """
    Thin WebDAV client bound to one base URL and one set of credentials.

    Every method takes an already encoded path relative to the base URL and
    returns the raw ``requests.Response``; interpreting status codes is left
    to the caller. Connection, TLS and timeout failures are raised as
    TransportError.
    """

    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        verify_ssl: bool = True,
        timeout: float = 60,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.auth = (username, password)
        self.session.verify = verify_ssl
        if not verify_ssl:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def url_for(self, path: str) -> str:
        """Build the absolute URL for an encoded relative path."""
        return self.base_url + path.lstrip("/")

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = self.url_for(path)
        kwargs.setdefault("timeout", self.timeout)
        kwargs.setdefault("allow_redirects", False)
        try:
            response = self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e
        logger.debug("%s %s -> %s", method, url, response.status_code)
        return response

    def head(self, path: str) -> requests.Response:
        return self._request("HEAD", path)

    def propfind(self, path: str, depth: str = "0") -> requests.Response:
        return self._request("PROPFIND", path, headers={"Depth": depth})

    def mkcol(self, path: str) -> requests.Response:
        return self._request("MKCOL", path)

    def put(self, path: str, stream: IO[bytes]) -> requests.Response:
        return self._request(
            "PUT",
            path,
            data=stream,
            headers={"Content-Type": "application/octet-stream"},
        )

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "WebDAVTransport":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def collection_path(encoded_path: str) -> str:
    """Encoded relative path of a collection, with the trailing slash WebDAV expects."""
    return encoded_path.strip("/") + "/" if encoded_path.strip("/") else ""


class RemoteProbe:
    """Answers "does this remote resource exist?" for files and collections."""

    def __init__(self, transport: WebDAVTransport) -> None:
        self.transport = transport

    def exists(self, encoded_path: str, kind: RemoteKind) -> bool:
        """
        Check whether a remote resource exists.

        Files are probed with HEAD and only 200 counts; collections are probed
        with a Depth 0 PROPFIND and 200 or 207 count. A transport failure is
        reported as "not existing": the subsequent create or upload will fail
        on its own and be logged.

        Args:
            encoded_path: Encoded path relative to the base URL.
            kind: RemoteKind.FILE or RemoteKind.COLLECTION.

        Returns:
            True if the server confirmed the resource exists.
        """
        try:
            if kind is RemoteKind.COLLECTION:
                response = self.transport.propfind(collection_path(encoded_path))
                return response.status_code in COLLECTION_EXISTS_STATUSES
            response = self.transport.head(encoded_path)
            return response.status_code in FILE_EXISTS_STATUSES
        except TransportError as e:
            logger.warning("Could not probe '%s', assuming absent: %s", encoded_path, e)
            return False
