"""
Multipart form encoding for declarative HTTP clients, with file upload support
"""

from __future__ import annotations

# Set default logging handler to avoid "No handler found" warnings.
import logging
import typing
from logging import NullHandler

from . import exceptions
from ._collections import HTTPHeaderDict
from ._version import __version__
from .config import ConfigurationRegistry
from .converters import DEFAULT_CONVERTERS, Converter, ConverterRegistry
from .encoder import (
    FORM_BODY_TYPE,
    EncodedRequest,
    MultipartFormEncoder,
    is_form_request,
)
from .fields import FormPart, UploadFile
from .filepost import encode_multipart_formdata
from .template import RequestTemplate

__license__ = "MIT"
__version__ = __version__

__all__ = (
    "ConfigurationRegistry",
    "Converter",
    "ConverterRegistry",
    "DEFAULT_CONVERTERS",
    "EncodedRequest",
    "FORM_BODY_TYPE",
    "FormPart",
    "HTTPHeaderDict",
    "MultipartFormEncoder",
    "RequestTemplate",
    "UploadFile",
    "add_stderr_logger",
    "encode_form",
    "encode_multipart_formdata",
    "exceptions",
    "is_form_request",
)

logging.getLogger(__name__).addHandler(NullHandler())


def add_stderr_logger(
    level: int = logging.DEBUG,
) -> logging.StreamHandler[typing.TextIO]:
    """
    Helper for quickly adding a StreamHandler to the logger. Useful for
    debugging.

    Returns the handler after adding it.
    """
    # This method needs to be in this __init__.py to get the __name__ correct
    # even if formpart is vendored within another package.
    logger = logging.getLogger(__name__)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.debug("Added a stderr logging handler to logger: %s", __name__)
    return handler


# ... Clean up.
del NullHandler


_DEFAULT_ENCODER = MultipartFormEncoder()


def encode_form(
    form: typing.Optional[typing.Mapping[str, typing.Any]],
    boundary: typing.Optional[str] = None,
) -> EncodedRequest:
    """
    A convenience, top-level encode function. It uses a module-global
    :class:`MultipartFormEncoder` with the default converters, which holds no
    per-request state and is safe to share.
    """
    return _DEFAULT_ENCODER.encode_form(form, boundary=boundary)
