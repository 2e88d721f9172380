from __future__ import annotations

import os
from abc import abstractmethod
from typing import BinaryIO, Optional

from .exceptions import LengthMismatchError, PreparationError, StreamingError
from .multipart import MultipartWriter
from .utils import write_all


class FormPart:
    """One unit of multipart content.

    A part is used in two passes. ``prepare`` runs first for every part, in order,
    against a shared :class:`MultipartWriter` and returns the exact number of bytes
    the part will contribute to the body. ``stream`` later writes those bytes to the
    destination. ``release`` frees whatever ``prepare`` acquired and may be called
    any number of times.
    """

    @abstractmethod
    def prepare(self, writer: MultipartWriter) -> int:
        raise NotImplementedError()

    @abstractmethod
    def stream(self, chunk: bytearray, dst) -> None:
        raise NotImplementedError()

    def release(self) -> None:
        pass


class FieldPart(FormPart):
    def __init__(self, name: str, value: str):
        self.name = str(name)
        self.value = str(value)
        self.data = b""

    def prepare(self, writer: MultipartWriter) -> int:
        writer.write_field(self.name, self.value)
        self.data = writer.drain()
        return len(self.data)

    def stream(self, chunk: bytearray, dst) -> None:
        # chunk is not used.
        write_all(dst, self.data)

    def __repr__(self):
        return f"<FieldPart name={self.name!r}>"


class FilePart(FormPart):
    """A file uploaded from disk.

    Attributes:
        field_name: name of the form field.
        source_path: absolute path of the file on disk.
        display_name: filename sent to the server, may differ from the base name.
        file_size: size recorded by ``prepare``.
        prefix: boundary and headers preceding the file content.
    """

    def __init__(self, field_name: str, source_path: str, display_name: str):
        self.field_name = field_name
        self.source_path = source_path
        self.display_name = display_name
        self.file_size = 0
        self.prefix = b""
        self._file: Optional[BinaryIO] = None

    def prepare(self, writer: MultipartWriter) -> int:
        self.release()

        try:
            file = open(self.source_path, "rb")
        except OSError as e:
            raise PreparationError(
                f"Failed to open {self.source_path}: {e}", path=self.source_path
            ) from e
        try:
            size = os.fstat(file.fileno()).st_size
        except OSError as e:
            file.close()
            raise PreparationError(
                f"Failed to stat {self.source_path}: {e}", path=self.source_path
            ) from e
        self._file = file
        self.file_size = size

        writer.create_form_file(self.field_name, self.display_name)
        self.prefix = writer.drain()
        return len(self.prefix) + self.file_size

    def stream(self, chunk: bytearray, dst) -> None:
        if self._file is None:
            raise StreamingError(f"File part {self.source_path} is not prepared.")

        write_all(dst, self.prefix)

        view = memoryview(chunk)
        copied = 0
        while copied < self.file_size:
            n = self._file.readinto(view[: min(len(view), self.file_size - copied)])
            if not n:
                raise LengthMismatchError(
                    f"file size ({self.file_size}) != copy size ({copied})",
                    expected=self.file_size,
                    actual=copied,
                )
            write_all(dst, view[:n])
            copied += n

        # the file has grown since it was stat'd
        extra = len(self._file.read(1))
        if extra:
            raise LengthMismatchError(
                f"file size ({self.file_size}) != copy size ({copied + extra}+)",
                expected=self.file_size,
                actual=copied + extra,
            )

    def release(self) -> None:
        file, self._file = self._file, None
        if file is not None:
            file.close()

    @property
    def is_open(self) -> bool:
        return self._file is not None

    def __repr__(self):
        return f"<FilePart field={self.field_name!r} name={self.display_name!r}>"


class EndPart(FormPart):
    def __init__(self):
        self.data = b""

    def prepare(self, writer: MultipartWriter) -> int:
        writer.close()
        self.data = writer.drain()
        return len(self.data)

    def stream(self, chunk: bytearray, dst) -> None:
        write_all(dst, self.data)
