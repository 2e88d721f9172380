from __future__ import annotations

import logging
import os
import warnings
from concurrent.futures import ThreadPoolExecutor
from functools import partialmethod
from typing import List, Mapping, Optional, Sequence, Tuple, Union

from .exceptions import ConfigurationError, StreamFormWarning
from .models import Response, TransportRequest
from .multipart import MultipartWriter
from .parts import EndPart, FieldPart, FilePart, FormPart
from .pipe import PipeWriter, pipe
from .transport import HttpxTransport, Transport

DEFAULT_CHUNK_SIZE = 1024 * 10
# a base name can be used this many times in one add_files call: as is, then
# prefixed with _001_ to _999_
MAX_NAME_COLLISIONS = 1000

logger = logging.getLogger(__name__)

FieldsType = Union[Mapping[str, str], Sequence[Tuple[str, str]]]


def _release_all(parts: Sequence[FormPart]) -> None:
    for part in parts:
        try:
            part.release()
        except OSError as e:
            warnings.warn(f"Failed to release {part!r}: {e}", StreamFormWarning, stacklevel=3)


class FormUploader:
    """HTTP multipart form submission, streamed from disk.

    Fields and files are collected first, then :meth:`submit` (or :meth:`post` /
    :meth:`put`) computes the exact ``Content-Length`` and streams the body to the
    transport from a background thread.

    Notes:
        An uploader is not meant to be submitted from several threads at once.
        ```
        from streamform import FormUploader

        fu = FormUploader()
        fu.add_field("id", "42")
        fu.add_files("files", "./image.jpg", "./other/image.jpg")
        r = fu.post("https://example.com/upload")
        ```
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE, boundary: Optional[str] = None):
        """
        Parameters:
            chunk_size: size of the buffer used to copy file content.
            boundary: fixed multipart boundary, a random one is used for each
                submission by default.
        """
        self._chunk_size = DEFAULT_CHUNK_SIZE
        self.chunk_size = chunk_size
        if boundary is not None:
            # validate early, the writer is created again for every submission
            MultipartWriter(boundary)
        self.boundary = boundary
        self._fields: List[FieldPart] = []
        self._files: List[FilePart] = []

    def add_field(self, name: str, value: str) -> FormUploader:
        """Add a text field, non-str names and values are converted with ``str()``."""
        self._fields.append(FieldPart(name, value))
        return self

    def add_fields(self, fields: FieldsType) -> FormUploader:
        items = fields.items() if isinstance(fields, Mapping) else fields
        for name, value in items:
            self._fields.append(FieldPart(name, value))
        return self

    def fields(self, name: str) -> List[str]:
        """Values of every field named ``name``, in insertion order."""
        return [f.value for f in self._fields if f.name == name]

    def add_files(self, field_name: str, *paths: str) -> FormUploader:
        """Add files to upload under ``field_name``.

        Files are not opened here. Base names repeated within one call are made
        unique for the server by prefixing them with ``_001_``, ``_002_``, etc.

        Raises:
            ConfigurationError: if a path can not be made absolute, or a base name
                is repeated too many times. Paths before the failing one stay added.
        """
        base_names = set()
        for path in paths:
            try:
                source_path = os.path.abspath(os.fspath(path))
            except (OSError, TypeError) as e:
                raise ConfigurationError(f"Invalid file path {path!r}: {e}") from e

            base_name = os.path.basename(source_path)
            name = base_name
            for n in range(1, MAX_NAME_COLLISIONS + 1):
                if name not in base_names:
                    break
                if n == MAX_NAME_COLLISIONS:
                    raise ConfigurationError(
                        f"Too many files named {base_name!r}, "
                        f"at most {MAX_NAME_COLLISIONS} are allowed in one call."
                    )
                name = "_%03d_%s" % (n, base_name)
            base_names.add(name)

            self._files.append(FilePart(field_name, source_path, name))
        return self

    def files(self) -> List[str]:
        """Absolute paths of the files to upload, in insertion order."""
        return [f.source_path for f in self._files]

    def display_names(self) -> List[str]:
        """File names as the server will see them."""
        return [f.display_name for f in self._files]

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @chunk_size.setter
    def chunk_size(self, size: int) -> None:
        if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
            raise ConfigurationError(f"Chunk size must be a positive int, got {size!r}")
        self._chunk_size = size

    def set_chunk_size(self, size: int) -> FormUploader:
        self.chunk_size = size
        return self

    def _produce(self, parts: Sequence[FormPart], writer: PipeWriter) -> None:
        # allocate buffer for reading file.
        chunk = bytearray(self._chunk_size)
        try:
            for part in parts:
                part.stream(chunk, writer)
        except Exception as e:
            logger.debug("Producer stopped at %r: %s", part, e)
            writer.close_with_error(e)
            raise
        else:
            writer.close()

    def submit(self, method: str, url: str, transport: Optional[Transport] = None) -> Response:
        """Send the form.

        Parameters:
            method: http method, usually POST or PUT.
            url: url to send the form to.
            transport: transport to use, a new :class:`HttpxTransport` is created and
                closed for this call if not given.

        Returns:
            the response, whatever its status code is.

        Raises:
            PreparationError: a file could not be opened or stat'd, nothing was sent.
            TransportError: the transport failed.
            StreamingError: writing the body failed, e.g. a file changed size.
        """
        if transport is None:
            with HttpxTransport() as default_transport:
                return self.submit(method, url, default_transport)

        # fields, files, end. The same order is used for sizing and streaming.
        parts: List[FormPart] = [*self._fields, *self._files, EndPart()]
        try:
            mpw = MultipartWriter(self.boundary)
            content_length = 0
            for part in parts:
                content_length += part.prepare(mpw)
            logger.debug(
                "Prepared %d field(s) and %d file(s), content length: %d",
                len(self._fields),
                len(self._files),
                content_length,
            )

            # Reader side will be connected to the request, while writer side will
            # be used for writing multipart form content.
            reader, writer = pipe()
            with ThreadPoolExecutor(max_workers=1, thread_name_prefix="streamform") as executor:
                producer = executor.submit(self._produce, parts, writer)
                request = TransportRequest(
                    method=method,
                    url=url,
                    headers={
                        "Content-Type": mpw.content_type,
                        "Content-Length": str(content_length),
                    },
                    body=reader,
                    content_length=content_length,
                )
                try:
                    rsp = transport.send(request)
                finally:
                    # wakes up the producer if it is still blocked on the pipe
                    reader.close()
                    producer_error = producer.exception()

            if producer_error is not None:
                raise producer_error
            logger.debug("%s %s: %d", method, url, rsp.status_code)
            return rsp
        finally:
            _release_all(parts)

    post = partialmethod(submit, "POST")
    put = partialmethod(submit, "PUT")
