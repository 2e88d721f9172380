import os
from io import BytesIO

import pytest

from streamform import (
    EndPart,
    FieldPart,
    FilePart,
    LengthMismatchError,
    MultipartWriter,
    PreparationError,
    StreamingError,
)


def test_field_part():
    mpw = MultipartWriter("b")
    part = FieldPart("foo", "bar")
    n = part.prepare(mpw)
    assert n == len(part.data)

    dst = BytesIO()
    part.stream(bytearray(4), dst)
    assert dst.getvalue() == b'--b\r\nContent-Disposition: form-data; name="foo"\r\n\r\nbar'


def test_file_part_declared_length(make_file):
    path = make_file("a.bin", b"x" * 1000)
    part = FilePart("files", path, "a.bin")
    try:
        n = part.prepare(MultipartWriter("b"))
        assert part.file_size == 1000
        assert n == len(part.prefix) + 1000
        assert part.is_open
    finally:
        part.release()


def test_file_part_stream_uses_small_chunks(make_file):
    content = os.urandom(10000)
    path = make_file("a.bin", content)
    part = FilePart("files", path, "renamed.bin")
    n = part.prepare(MultipartWriter("b"))

    dst = BytesIO()
    part.stream(bytearray(7), dst)
    part.release()

    body = dst.getvalue()
    assert len(body) == n
    assert body.startswith(part.prefix)
    assert body[len(part.prefix):] == content
    assert b'filename="renamed.bin"' in part.prefix


def test_empty_file(make_file):
    part = FilePart("files", make_file("empty.txt", b""), "empty.txt")
    n = part.prepare(MultipartWriter("b"))
    dst = BytesIO()
    part.stream(bytearray(16), dst)
    part.release()
    assert n == len(part.prefix)
    assert dst.getvalue() == part.prefix


def test_missing_file(tmp_path):
    path = str(tmp_path / "nope.txt")
    part = FilePart("files", path, "nope.txt")
    mpw = MultipartWriter("b")
    with pytest.raises(PreparationError) as exc_info:
        part.prepare(mpw)
    assert exc_info.value.path == path
    assert isinstance(exc_info.value.__cause__, FileNotFoundError)
    # nothing was written for the failed part
    assert mpw.drain() == b""
    assert not part.is_open


def test_file_shrinks(make_file):
    path = make_file("a.txt", b"0123456789")
    part = FilePart("files", path, "a.txt")
    part.prepare(MultipartWriter("b"))
    with open(path, "wb") as f:
        f.write(b"0123")

    with pytest.raises(LengthMismatchError) as exc_info:
        part.stream(bytearray(3), BytesIO())
    part.release()
    assert exc_info.value.expected == 10
    assert exc_info.value.actual == 4


def test_file_grows(make_file):
    path = make_file("a.txt", b"0123456789")
    part = FilePart("files", path, "a.txt")
    part.prepare(MultipartWriter("b"))
    with open(path, "ab") as f:
        f.write(b"more")

    dst = BytesIO()
    with pytest.raises(LengthMismatchError) as exc_info:
        part.stream(bytearray(3), dst)
    part.release()
    assert exc_info.value.expected == 10
    # the extra bytes never reach the destination
    assert dst.getvalue() == part.prefix + b"0123456789"


def test_stream_unprepared_file(make_file):
    part = FilePart("files", make_file("a.txt", b"abc"), "a.txt")
    with pytest.raises(StreamingError):
        part.stream(bytearray(3), BytesIO())


def test_release_is_idempotent(make_file):
    part = FilePart("files", make_file("a.txt", b"abc"), "a.txt")
    part.prepare(MultipartWriter("b"))
    file = part._file
    part.release()
    part.release()
    assert file.closed
    assert not part.is_open


def test_prepare_twice_reopens(make_file):
    part = FilePart("files", make_file("a.txt", b"abc"), "a.txt")
    part.prepare(MultipartWriter("b"))
    first = part._file
    part.prepare(MultipartWriter("b"))
    assert first.closed
    assert part.is_open
    part.release()


def test_end_part():
    mpw = MultipartWriter("b")
    FieldPart("a", "1").prepare(mpw)
    end = EndPart()
    assert end.prepare(mpw) == len(b"\r\n--b--\r\n")
    dst = BytesIO()
    end.stream(bytearray(1), dst)
    assert dst.getvalue() == b"\r\n--b--\r\n"
    end.release()
