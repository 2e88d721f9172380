from __future__ import annotations

import os
import re
from typing import Optional

from .exceptions import ConfigurationError, StreamFormError

# RFC 2046 bchars, the last character must not be a space
BOUNDARY_RE = re.compile(r"^[0-9A-Za-z'()+_,\-./:=? ]{0,69}[0-9A-Za-z'()+_,\-./:=?]$")
# boundaries containing these must be quoted in the Content-Type header
TSPECIALS = set('()<>@,;:\\"/[]?= ')

FILE_CONTENT_TYPE = "application/octet-stream"


def choose_boundary() -> str:
    """Random boundary, 30 random bytes in hex."""
    return os.urandom(30).hex()


def escape_quotes(s: str) -> str:
    return s.replace("\\", "\\\\").replace('"', '\\"')


class MultipartWriter:
    """Incremental multipart/form-data encoder.

    Framing bytes are appended to an internal buffer, which the caller takes with
    :meth:`drain` after each call. Bulk file content never goes through the writer:
    :meth:`create_form_file` only emits the part headers, the payload is written by
    the caller right after the drained prefix.
    """

    def __init__(self, boundary: Optional[str] = None):
        """
        Parameters:
            boundary: boundary to use, a random one is generated if not given.

        Raises:
            ConfigurationError: if the boundary is not valid per RFC 2046.
        """
        if boundary is None:
            boundary = choose_boundary()
        elif not BOUNDARY_RE.match(boundary):
            raise ConfigurationError(f"Invalid multipart boundary: {boundary!r}")
        self._boundary = boundary
        self._buffer = bytearray()
        self._has_parts = False
        self._closed = False

    @property
    def boundary(self) -> str:
        return self._boundary

    @property
    def content_type(self) -> str:
        b = self._boundary
        if any(c in TSPECIALS for c in b):
            b = f'"{b}"'
        return f"multipart/form-data; boundary={b}"

    def _create_part(self, headers: list[tuple[str, str]]) -> None:
        if self._closed:
            raise StreamFormError("Multipart writer is already closed.")
        if self._has_parts:
            self._buffer += f"\r\n--{self._boundary}\r\n".encode()
        else:
            self._buffer += f"--{self._boundary}\r\n".encode()
        for key, value in headers:
            self._buffer += f"{key}: {value}\r\n".encode()
        self._buffer += b"\r\n"
        self._has_parts = True

    def write_field(self, name: str, value: str) -> None:
        """Write a complete form field part."""
        self._create_part(
            [("Content-Disposition", f'form-data; name="{escape_quotes(name)}"')]
        )
        self._buffer += value.encode()

    def create_form_file(self, field_name: str, filename: str) -> None:
        """Write the headers of a file part, the content is left to the caller."""
        disposition = 'form-data; name="%s"; filename="%s"' % (
            escape_quotes(field_name),
            escape_quotes(filename),
        )
        self._create_part(
            [
                ("Content-Disposition", disposition),
                ("Content-Type", FILE_CONTENT_TYPE),
            ]
        )

    def close(self) -> None:
        """Write the terminating boundary."""
        if self._closed:
            raise StreamFormError("Multipart writer is already closed.")
        if self._has_parts:
            self._buffer += b"\r\n"
        self._buffer += f"--{self._boundary}--\r\n".encode()
        self._closed = True

    def drain(self) -> bytes:
        """Take everything written so far out of the buffer."""
        data = bytes(self._buffer)
        self._buffer.clear()
        return data
