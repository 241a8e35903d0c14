from __future__ import annotations

import enum
import inspect
import io
import mimetypes
import os
import re
import typing

if typing.TYPE_CHECKING:
    from typing_extensions import Final

DEFAULT_FILE_CONTENT_TYPE: Final = "application/octet-stream"
DEFAULT_TEXT_CONTENT_TYPE: Final = "text/plain"

_TYPE_STREAM_SOURCE = typing.Union[
    typing.BinaryIO, typing.Callable[[], typing.BinaryIO]
]


def guess_content_type(
    filename: typing.Optional[str], default: str = DEFAULT_FILE_CONTENT_TYPE
) -> str:
    """
    Guess the "Content-Type" of a file.

    :param filename:
        The filename to guess the "Content-Type" of using :mod:`mimetypes`.
    :param default:
        If no "Content-Type" can be guessed, default to `default`.
    """
    if filename:
        return mimetypes.guess_type(filename)[0] or default
    return default


def format_multipart_header_param(name: str, value: typing.Union[str, bytes]) -> str:
    """
    Format and quote a single multipart header parameter.

    This follows the `WHATWG HTML Standard`_ as of 2021/06/10, matching
    the behavior of current browser and curl versions. Values are
    assumed to be UTF-8. The ``\\n``, ``\\r``, and ``"`` characters are
    percent encoded.

    .. _WHATWG HTML Standard:
        https://html.spec.whatwg.org/multipage/
        form-control-infrastructure.html#multipart-form-data

    :param name:
        The name of the parameter, an ASCII-only ``str``.
    :param value:
        The value of the parameter, a ``str`` or UTF-8 encoded
        ``bytes``.
    :returns:
        A string ``name="value"`` with the escaped value.
    """
    if isinstance(value, bytes):
        value = value.decode("utf-8")

    # percent encode \n \r "
    value = value.translate({10: "%0A", 13: "%0D", 34: "%22"})
    return f'{name}="{value}"'


_HEADER_NAME_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


def _stream_length(stream: typing.BinaryIO) -> typing.Optional[int]:
    try:
        return os.fstat(stream.fileno()).st_size - stream.tell()
    except (AttributeError, OSError, io.UnsupportedOperation):
        pass
    try:
        position = stream.tell()
        end = stream.seek(0, os.SEEK_END)
        stream.seek(position)
    except (AttributeError, OSError, io.UnsupportedOperation):
        return None
    return end - position


class UploadFile:
    """
    A file to be sent as one part of a multipart form.

    The stream is only opened when the part is written, and closed right
    after. Filename and size are sent as declared, they are never inferred
    from what the stream yields.

    :param filename:
        The filename reported to the server.
    :param stream:
        A readable binary stream, or a callable returning a fresh one.
    :param size:
        Number of bytes the stream will yield. Determined from the stream
        when omitted and the stream can tell.
    :param content_type:
        The declared "Content-Type". ``None`` is sent as
        ``application/octet-stream``.
    """

    def __init__(
        self,
        filename: str,
        stream: _TYPE_STREAM_SOURCE,
        size: typing.Optional[int] = None,
        content_type: typing.Optional[str] = None,
    ) -> None:
        if size is None:
            if callable(stream):
                raise ValueError("size is required when stream is a callable")
            size = _stream_length(stream)
            if size is None:
                raise ValueError(
                    f"Unable to determine the size of {filename!r}, pass size="
                )
        if size < 0:
            raise ValueError(f"size must be a non-negative integer, got {size}")

        self.filename = filename
        self.size = size
        self.content_type = content_type
        self._source = stream
        self._stream: typing.Optional[typing.BinaryIO] = None

    @classmethod
    def from_path(
        cls,
        path: typing.Union[str, os.PathLike[str]],
        content_type: typing.Optional[str] = None,
        filename: typing.Optional[str] = None,
        guess_type: bool = False,
    ) -> UploadFile:
        """
        Build an :class:`UploadFile` for a file on disk. The file is opened
        lazily, so building many of these holds no descriptors.
        """
        path = os.fspath(path)
        if filename is None:
            filename = os.path.basename(path)
        if content_type is None and guess_type:
            content_type = guess_content_type(filename)

        def opener() -> typing.BinaryIO:
            return open(path, "rb")

        return cls(filename, opener, os.stat(path).st_size, content_type)

    @classmethod
    def from_bytes(
        cls,
        filename: str,
        data: bytes,
        content_type: typing.Optional[str] = None,
    ) -> UploadFile:
        return cls(filename, lambda: io.BytesIO(data), len(data), content_type)

    def open(self) -> typing.BinaryIO:
        """Return the stream to read this file's content from."""
        if self._stream is None:
            source = self._source
            self._stream = source() if callable(source) else source
        return self._stream

    def close(self) -> None:
        """Close the stream if one was opened, or was handed in open."""
        stream = self._stream
        if stream is None and not callable(self._source):
            stream = self._source
        self._stream = None
        if stream is not None:
            stream.close()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(filename={self.filename!r}, size={self.size}, "
            f"content_type={self.content_type!r})"
        )


def is_file_like(value: object) -> bool:
    """
    Whether ``value`` can be sent as a file part: it declares ``filename``,
    ``size`` and ``content_type`` and can be read through ``open()`` or
    ``read()``. Async readers are not file-likes.
    """
    if isinstance(value, UploadFile):
        return True
    if isinstance(value, (str, bytes, bytearray, type)):
        return False
    if not (
        hasattr(value, "filename")
        and isinstance(getattr(value, "size", None), int)
        and hasattr(value, "content_type")
    ):
        return False
    reader = getattr(value, "open", None)
    if not callable(reader):
        reader = getattr(value, "read", None)
    return callable(reader) and not inspect.iscoroutinefunction(reader)


class FieldKind(enum.Enum):
    TEXT = "text"
    FILE = "file"
    FILE_LIST = "file_list"


class FormField(typing.NamedTuple):
    """One entry of the form being encoded, after classification."""

    name: str
    kind: FieldKind
    value: typing.Any

    @property
    def files(self) -> typing.Tuple[typing.Any, ...]:
        if self.kind is FieldKind.FILE:
            return (self.value,)
        if self.kind is FieldKind.FILE_LIST:
            return tuple(self.value)
        return ()


class FormPart:
    """
    A data container for one body part of a multipart request.

    :param name:
        The name of this request field. Must be unicode.
    :param data:
        ``bytes`` for text parts, or a file-like (see :func:`is_file_like`)
        for file parts.
    :param filename:
        An optional filename of the request field. Must be unicode.
    :param headers:
        An optional dict-like object of headers to initially use for the field.
    :param header_formatter:
        An optional callable that is used to encode and format the headers. By
        default, this is :func:`format_multipart_header_param`.
    """

    def __init__(
        self,
        name: str,
        data: typing.Any,
        filename: typing.Optional[str] = None,
        headers: typing.Optional[typing.Mapping[str, str]] = None,
        header_formatter: typing.Callable[
            [str, typing.Union[str, bytes]], str
        ] = format_multipart_header_param,
    ):
        self._name = name
        self._filename = filename
        self.data = data
        self.headers: typing.Dict[str, typing.Optional[str]] = {}
        if headers:
            self.headers = dict(headers)
        self.header_formatter = header_formatter

    @classmethod
    def for_text(
        cls, name: str, data: bytes, content_type: str = DEFAULT_TEXT_CONTENT_TYPE
    ) -> FormPart:
        part = cls(name, data)
        part.make_multipart(content_type=content_type)
        return part

    @classmethod
    def for_file(cls, name: str, file: typing.Any) -> FormPart:
        """
        A file part: the declared content type or ``application/octet-stream``,
        with the declared filename and size echoed in the part headers.
        """
        part = cls(name, file, filename=file.filename)
        part.make_multipart(
            content_type=file.content_type or DEFAULT_FILE_CONTENT_TYPE,
            content_length=file.size,
        )
        return part

    @property
    def name(self) -> str:
        return self._name

    @property
    def filename(self) -> typing.Optional[str]:
        return self._filename

    @property
    def content_type(self) -> typing.Optional[str]:
        return self.headers.get("Content-Type")

    @property
    def is_file(self) -> bool:
        return not isinstance(self.data, (bytes, bytearray))

    @property
    def length(self) -> int:
        """Number of body bytes this part will write."""
        if self.is_file:
            return int(self.data.size)
        return len(self.data)

    def _render_part(self, name: str, value: typing.Union[str, bytes]) -> str:
        """
        Overridable helper function to format a single header parameter. By
        default, this calls ``self.header_formatter``.

        :param name:
            The name of the parameter, a string expected to be ASCII only.
        :param value:
            The value of the parameter, provided as a unicode string.
        """

        return self.header_formatter(name, value)

    def _render_parts(
        self,
        header_parts: typing.Sequence[
            typing.Tuple[str, typing.Optional[typing.Union[str, bytes]]]
        ],
    ) -> str:
        """
        Helper function to format and quote a single header.

        Useful for single headers that are composed of multiple items. E.g.,
        'Content-Disposition' fields.

        :param header_parts:
            A sequence of (k, v) tuples to format as `k1="v1"; k2="v2"; ...`.
        """
        parts = []
        for name, value in header_parts:
            if value is not None:
                parts.append(self._render_part(name, value))

        return "; ".join(parts)

    def render_headers(self) -> str:
        """
        Renders the headers for this request field.
        """
        lines = []

        sort_keys = ["Content-Disposition", "Content-Type", "Content-Length"]
        for sort_key in sort_keys:
            if self.headers.get(sort_key, False):
                lines.append(f"{sort_key}: {self.headers[sort_key]}")

        for header_name, header_value in self.headers.items():
            if header_name not in sort_keys:
                if not _HEADER_NAME_RE.match(header_name):
                    raise ValueError(f"Invalid part header name {header_name!r}")
                if header_value:
                    lines.append(f"{header_name}: {header_value}")

        lines.append("\r\n")
        return "\r\n".join(lines)

    def make_multipart(
        self,
        content_disposition: typing.Optional[str] = None,
        content_type: typing.Optional[str] = None,
        content_length: typing.Optional[int] = None,
    ) -> None:
        """
        Makes this request field into a multipart request field.

        This method overrides "Content-Disposition", "Content-Type" and
        "Content-Length" headers of the part.

        :param content_disposition:
            The 'Content-Disposition' of the request body. Defaults to 'form-data'
        :param content_type:
            The 'Content-Type' of the request body.
        :param content_length:
            The declared size of the part body, sent for file parts.
        """
        content_disposition = (content_disposition or "form-data") + "; ".join(
            [
                "",
                self._render_parts(
                    (("name", self._name), ("filename", self._filename))
                ),
            ]
        )

        self.headers["Content-Disposition"] = content_disposition
        self.headers["Content-Type"] = content_type
        self.headers["Content-Length"] = (
            None if content_length is None else str(content_length)
        )

    def close(self) -> None:
        """Release the file stream of a file part, if any."""
        if not self.is_file:
            return
        close = getattr(self.data, "close", None)
        if close is not None:
            close()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self._name!r}, "
            f"filename={self._filename!r}, content_type={self.content_type!r})"
        )
