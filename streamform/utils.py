import warnings

from .exceptions import StreamFormWarning, StreamingError


def config_warnings(on: bool = False):
    if on:
        warnings.simplefilter("default", category=StreamFormWarning)
    else:
        warnings.simplefilter("ignore", category=StreamFormWarning)


def write_all(dst, data) -> None:
    """Write all of ``data`` to ``dst``, looping over short writes.

    Raises:
        StreamingError: if the destination accepts no bytes at all.
    """
    view = memoryview(data)
    while view:
        n = dst.write(view)
        if not n:
            raise StreamingError(f"Short write: {len(view)} bytes left unwritten.")
        view = view[n:]
