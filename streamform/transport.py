from __future__ import annotations

import logging
import ssl
from abc import abstractmethod
from typing import Optional, Union

import certifi
import httpx

from .exceptions import TransportError
from .models import Response, TransportRequest

DEFAULT_CACERT = certifi.where()
DEFAULT_TIMEOUT = 30.0

logger = logging.getLogger(__name__)


class Transport:
    """Sends a :class:`TransportRequest` and returns a :class:`Response`.

    Implementations must read ``request.body`` until EOF or until they fail, and
    raise :class:`TransportError` for connection or protocol failures. An HTTP
    error status is a normal response, not an exception.
    """

    @abstractmethod
    def send(self, request: TransportRequest) -> Response:
        raise NotImplementedError()

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


class HttpxTransport(Transport):
    """Transport backed by :class:`httpx.Client`."""

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        timeout: Union[float, httpx.Timeout] = DEFAULT_TIMEOUT,
    ):
        """
        Parameters:
            client: client to send requests with. It is not closed by the transport.
                By default, a new client verifying certs from ``certifi`` is created.
            timeout: how many seconds to wait before giving up, ignored when a
                client is given.
        """
        if client is None:
            self._client = httpx.Client(
                timeout=timeout,
                verify=ssl.create_default_context(cafile=DEFAULT_CACERT),
            )
            self._owns_client = True
        else:
            self._client = client
            self._owns_client = False

    @property
    def client(self) -> httpx.Client:
        return self._client

    def send(self, request: TransportRequest) -> Response:
        headers = dict(request.headers)
        # an explicit length keeps httpx from switching to chunked encoding
        headers["Content-Length"] = str(request.content_length)
        try:
            req = self._client.build_request(
                request.method, request.url, headers=headers, content=request.body
            )
            rsp = self._client.send(req)
            try:
                rsp.read()
            finally:
                rsp.close()
        except (httpx.RequestError, httpx.InvalidURL) as e:
            raise TransportError(f"Failed to {request.method} {request.url}: {e}") from e

        logger.debug("%s %s -> %d", request.method, request.url, rsp.status_code)
        return Response(
            url=str(rsp.url),
            status_code=rsp.status_code,
            reason=rsp.reason_phrase,
            headers=rsp.headers,
            content=rsp.content,
            encoding=rsp.encoding,
            elapsed=rsp.elapsed.total_seconds(),
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
