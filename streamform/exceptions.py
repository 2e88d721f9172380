# Exception layout follows the requests-style tree used by HTTP clients:
# one package base error, then one class per failure kind.


class StreamFormError(Exception):
    """Base exception for streamform package"""


class ConfigurationError(StreamFormError, ValueError):
    """The uploader was configured with an invalid value.

    Raised synchronously from the add/set operations, before any submission.
    """


class PreparationError(StreamFormError, OSError):
    """A part could not be prepared, e.g. the file is missing or unreadable.

    No network I/O has happened when this is raised.
    """

    def __init__(self, msg, path=None, *args, **kwargs):
        super().__init__(msg, *args, **kwargs)
        self.path = path


class StreamingError(StreamFormError, IOError):
    """Writing the request body failed on the producer side."""


class LengthMismatchError(StreamingError):
    """The number of bytes streamed for a file differs from its stat'd size."""

    def __init__(self, msg, expected: int = 0, actual: int = 0, *args, **kwargs):
        super().__init__(msg, *args, **kwargs)
        self.expected = expected
        self.actual = actual


class PipeClosedError(StreamingError):
    """Read or write on a closed pipe."""


class TransportError(StreamFormError, IOError):
    """The HTTP transport failed to deliver the request."""

    def __init__(self, msg, response=None, *args, **kwargs):
        super().__init__(msg, *args, **kwargs)
        self.response = response


class HTTPError(StreamFormError):
    """An HTTP error status was received."""

    def __init__(self, msg, response=None, *args, **kwargs):
        super().__init__(msg, *args, **kwargs)
        self.response = response


# Warnings


class StreamFormWarning(UserWarning, RuntimeWarning):
    pass
