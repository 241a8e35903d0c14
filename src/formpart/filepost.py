from __future__ import annotations

import binascii
import logging
import os
import typing
from io import BytesIO

from .exceptions import EncodeError, IncompleteFileError
from .fields import FormPart

log = logging.getLogger(__name__)

# Default read size for file parts, matches the blocksize of urllib3 pools.
DEFAULT_BLOCKSIZE = 16384


def choose_boundary() -> str:
    """
    Our embarrassingly-simple replacement for mimetools.choose_boundary.
    """
    return binascii.hexlify(os.urandom(16)).decode()


def content_type_for(boundary: str) -> str:
    return f"multipart/form-data; boundary={boundary}"


def _open_stream(file: typing.Any) -> typing.BinaryIO:
    opener = getattr(file, "open", None)
    if callable(opener):
        return typing.cast(typing.BinaryIO, opener())
    return typing.cast(typing.BinaryIO, file)


def iter_file_chunks(
    part: FormPart, blocksize: int = DEFAULT_BLOCKSIZE
) -> typing.Iterator[bytes]:
    """
    Yield exactly ``part.length`` bytes from the file of a file part, at
    most ``blocksize`` at a time. The stream is opened on first iteration
    and closed when the generator finishes, fails or is closed.

    :raises IncompleteFileError:
        The stream ends before, or continues past, the declared size.
    :raises EncodeError:
        Reading the stream failed, or the stream was already closed, or the
        stream yields text instead of bytes.
    """
    file = part.data
    remaining = expected = part.length
    try:
        try:
            stream = _open_stream(file)
            while remaining > 0:
                chunk = stream.read(min(blocksize, remaining))
                if not isinstance(chunk, (bytes, bytearray)):
                    raise EncodeError(
                        f"File {part.filename!r} must be opened in binary mode"
                    )
                if not chunk:
                    raise IncompleteFileError(
                        part.filename, expected, expected - remaining
                    )
                remaining -= len(chunk)
                yield chunk
            if stream.read(1):
                raise IncompleteFileError(part.filename, expected, expected + 1)
        except (OSError, ValueError) as e:
            # ValueError: the stream was already closed
            raise EncodeError(f"Cannot read file {part.filename!r}", e) from e
    finally:
        part.close()


def iter_multipart_chunks(
    parts: typing.Iterable[FormPart],
    boundary: str,
    blocksize: int = DEFAULT_BLOCKSIZE,
) -> typing.Iterator[bytes]:
    """
    Yield a ``multipart/form-data`` body piece by piece. File bodies are read
    in ``blocksize`` chunks and never held in memory as a whole.
    """
    delimiter = f"--{boundary}\r\n".encode("latin-1")
    for part in parts:
        yield delimiter
        yield part.render_headers().encode("utf-8")
        if part.is_file:
            yield from iter_file_chunks(part, blocksize)
        else:
            yield bytes(part.data)
        yield b"\r\n"

    yield f"--{boundary}--\r\n".encode("latin-1")


def encode_multipart_formdata(
    parts: typing.Sequence[FormPart],
    boundary: typing.Optional[str] = None,
    blocksize: int = DEFAULT_BLOCKSIZE,
) -> typing.Tuple[bytes, str]:
    """
    Encode ``parts`` using the multipart/form-data MIME format.

    Every file stream is released before this returns, whether encoding
    succeeded or not.

    :param parts:
        Sequence of :class:`~formpart.fields.FormPart`, already made
        multipart.

    :param boundary:
        If not specified, then a random boundary will be generated using
        :func:`formpart.filepost.choose_boundary`.

    :returns:
        The body and the value of its ``Content-Type`` header.
    """
    body = BytesIO()
    if boundary is None:
        boundary = choose_boundary()

    try:
        for chunk in iter_multipart_chunks(parts, boundary, blocksize):
            body.write(chunk)
    finally:
        # Parts after a failing one were never read, release them as well.
        for part in parts:
            part.close()

    log.debug("Encoded %d parts into %d bytes", len(parts), body.tell())

    return body.getvalue(), content_type_for(boundary)
