__all__ = [
    "FormUploader",
    "MultipartWriter",
    "FieldPart",
    "FilePart",
    "EndPart",
    "Transport",
    "HttpxTransport",
    "TransportRequest",
    "Response",
    "StreamFormError",
    "ConfigurationError",
    "PreparationError",
    "StreamingError",
    "LengthMismatchError",
    "PipeClosedError",
    "TransportError",
    "HTTPError",
    "StreamFormWarning",
    "config_warnings",
    "post",
    "put",
]

from .exceptions import (
    ConfigurationError,
    HTTPError,
    LengthMismatchError,
    PipeClosedError,
    PreparationError,
    StreamFormError,
    StreamFormWarning,
    StreamingError,
    TransportError,
)
from .models import Response, TransportRequest
from .multipart import MultipartWriter
from .parts import EndPart, FieldPart, FilePart
from .transport import HttpxTransport, Transport
from .uploader import FormUploader
from .utils import config_warnings

from .__version__ import __title__, __version__, __description__


def post(url, fields=None, files=None, file_field="files", transport=None, **kwargs):
    """Upload ``fields`` and ``files`` with a single POST, see :class:`FormUploader`."""
    return _submit("POST", url, fields, files, file_field, transport, **kwargs)


def put(url, fields=None, files=None, file_field="files", transport=None, **kwargs):
    """Upload ``fields`` and ``files`` with a single PUT, see :class:`FormUploader`."""
    return _submit("PUT", url, fields, files, file_field, transport, **kwargs)


def _submit(method, url, fields, files, file_field, transport, **kwargs):
    fu = FormUploader(**kwargs)
    if fields:
        fu.add_fields(fields)
    if files:
        fu.add_files(file_field, *files)
    return fu.submit(method, url, transport)
