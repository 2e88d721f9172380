from dataclasses import dataclass, field
from json import loads
from typing import Any, Mapping, Optional

from .exceptions import HTTPError


@dataclass
class TransportRequest:
    """What the uploader hands to a transport.

    Attributes:
        method: http method, POST or PUT.
        url: target url.
        headers: request headers, ``Content-Type`` and ``Content-Length`` included.
        body: readable byte stream, read it until ``b""``.
        content_length: exact number of bytes ``body`` yields.
    """

    method: str
    url: str
    headers: Mapping[str, str]
    body: Any
    content_length: int


@dataclass
class Response:
    """Contains information the server sends.

    Attributes:
        url: url used in the request.
        status_code: http status code.
        reason: http response reason, such as OK, Not Found.
        headers: response headers.
        content: response body in bytes.
        encoding: http body encoding.
        elapsed: how many seconds the request cost.
    """

    url: str = ""
    status_code: int = 200
    reason: str = "OK"
    headers: Mapping[str, str] = field(default_factory=dict)
    content: bytes = b""
    encoding: Optional[str] = "utf-8"
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        """Is status_code in [200, 400)?"""
        return 200 <= self.status_code < 400

    @property
    def text(self) -> str:
        try:
            return self.content.decode(self.encoding or "utf-8", errors="replace")
        except LookupError:
            return self.content.decode("utf-8-sig")

    def json(self, **kw):
        return loads(self.content, **kw)

    def raise_for_status(self):
        if not self.ok:
            raise HTTPError(f"HTTP Error {self.status_code}: {self.reason}", response=self)
