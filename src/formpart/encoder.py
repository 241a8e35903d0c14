from __future__ import annotations

import collections.abc
import logging
import typing

from ._collections import HTTPHeaderDict
from .converters import DEFAULT_CONVERTERS, ConverterRegistry
from .exceptions import EncodeError, InvalidInputError, UnsupportedShapeError
from .fields import (
    DEFAULT_TEXT_CONTENT_TYPE,
    FieldKind,
    FormField,
    FormPart,
    is_file_like,
)
from .filepost import DEFAULT_BLOCKSIZE, encode_multipart_formdata

if typing.TYPE_CHECKING:
    from .template import RequestTemplate

log = logging.getLogger(__name__)

#: Body type that marks a request as a form, see :func:`is_form_request`.
FORM_BODY_TYPE = typing.Mapping[str, typing.Any]

#: Text parts and the request body are always UTF-8.
CHARSET = "utf-8"

_MAPPING_ORIGINS = (
    dict,
    collections.abc.Mapping,
    collections.abc.MutableMapping,
)


def is_form_request(body_type: typing.Any) -> bool:
    """
    Whether ``body_type`` declares a mapping of ``str`` to anything, e.g.
    ``Mapping[str, Any]`` or ``dict[str, Any]``.
    """
    if typing.get_origin(body_type) not in _MAPPING_ORIGINS:
        return False
    return typing.get_args(body_type) == (str, typing.Any)


class EncodedRequest(typing.NamedTuple):
    body: bytes
    headers: HTTPHeaderDict
    charset: str = CHARSET

    @property
    def content_type(self) -> str:
        return self.headers["Content-Type"]


def iter_form_fields(
    form: typing.Mapping[str, typing.Any]
) -> typing.Iterator[FormField]:
    """
    Classify every entry of ``form``, in its iteration order, as a file, a
    list of files or a text value.

    :raises UnsupportedShapeError: a field name is not a ``str``.
    :raises EncodeError: a list mixes files and other values.
    """
    for name, value in form.items():
        if not isinstance(name, str):
            raise UnsupportedShapeError(
                f"Form field names must be str, got {type(name).__name__!r}"
            )
        if is_file_like(value):
            yield FormField(name, FieldKind.FILE, value)
        elif isinstance(value, (list, tuple)) and value and is_file_like(value[0]):
            if not all(is_file_like(item) for item in value):
                raise EncodeError(f"Field {name!r} mixes files and other values")
            yield FormField(name, FieldKind.FILE_LIST, tuple(value))
        else:
            yield FormField(name, FieldKind.TEXT, value)


class MultipartFormEncoder:
    """
    Encodes a mapping of form fields as a ``multipart/form-data`` request.

    Plain values become ``text/plain`` parts serialized by the first
    matching converter. File-likes become file parts, and a list of
    file-likes becomes one part per file under the same field name.

    :param converters:
        Registry used for text parts. Defaults to
        :data:`~formpart.converters.DEFAULT_CONVERTERS`.

    :param blocksize:
        Read size used when streaming file parts.

    :param boundary:
        Fixed multipart boundary. A random one is chosen per request when
        omitted.

    Example:

    .. code-block:: python

        encoder = MultipartFormEncoder()
        template = RequestTemplate("POST", "https://example.com/upload")
        encoder.encode(
            {"name": "Alice", "doc": UploadFile.from_path("a.txt")},
            FORM_BODY_TYPE,
            template,
        )
    """

    def __init__(
        self,
        converters: typing.Optional[ConverterRegistry] = None,
        *,
        blocksize: int = DEFAULT_BLOCKSIZE,
        boundary: typing.Optional[str] = None,
    ) -> None:
        if blocksize <= 0:
            raise ValueError(f"blocksize must be positive, got {blocksize}")
        self.converters = DEFAULT_CONVERTERS if converters is None else converters
        self.blocksize = blocksize
        self.boundary = boundary
        log.debug(
            "Loaded multipart form encoder with %d converters", len(self.converters)
        )

    def encode(
        self, obj: typing.Any, body_type: typing.Any, template: RequestTemplate
    ) -> None:
        """
        Encode ``obj`` onto ``template``.

        The content type header produced here replaces any value already on
        the template. Nothing is written to the template if encoding fails.

        :raises UnsupportedShapeError: ``body_type`` is not a form type.
        """
        if not is_form_request(body_type):
            raise UnsupportedShapeError("Not a form request")

        encoded = self.encode_form(obj)
        for name in encoded.headers:
            template.header(name, encoded.headers.getlist(name))
        template.body(encoded.body, encoded.charset)

    def encode_form(
        self,
        form: typing.Optional[typing.Mapping[str, typing.Any]],
        boundary: typing.Optional[str] = None,
    ) -> EncodedRequest:
        """
        Encode ``form`` into a multipart body and its headers.

        :raises InvalidInputError: ``form`` is ``None``.
        :raises UnsupportedShapeError: ``form`` is not a mapping.
        :raises EncodeError: a value could not be written or a file could
            not be read.
        """
        if form is None:
            raise InvalidInputError("Cannot encode request with null form")
        if not isinstance(form, collections.abc.Mapping):
            raise UnsupportedShapeError(
                f"Cannot encode {type(form).__name__!r} as a form, expected a mapping"
            )

        try:
            fields = list(iter_form_fields(form))
            parts = self.build_parts(fields)
        except Exception:
            # Nothing was read yet, close streams the caller passed in open.
            for value in form.values():
                _release(value)
            raise

        log.debug(
            "Encoding multipart form: %d fields, %d parts", len(fields), len(parts)
        )

        body, content_type = encode_multipart_formdata(
            parts,
            boundary=boundary or self.boundary,
            blocksize=self.blocksize,
        )
        headers = HTTPHeaderDict()
        headers["Content-Type"] = content_type
        return EncodedRequest(body, headers)

    def build_parts(
        self, fields: typing.Iterable[FormField]
    ) -> typing.List[FormPart]:
        parts: typing.List[FormPart] = []
        for field in fields:
            if field.kind is FieldKind.TEXT:
                parts.append(self.encode_text_field(field.name, field.value))
            else:
                for file in field.files:
                    parts.append(FormPart.for_file(field.name, file))
        return parts

    def encode_text_field(self, name: str, value: typing.Any) -> FormPart:
        data = self.converters.write(value, DEFAULT_TEXT_CONTENT_TYPE, CHARSET)
        return FormPart.for_text(name, data)


def _release(value: typing.Any) -> None:
    files: typing.Iterable[typing.Any]
    if isinstance(value, (list, tuple)):
        files = value
    else:
        files = (value,)
    for file in files:
        if is_file_like(file):
            close = getattr(file, "close", None)
            if close is not None:
                close()
