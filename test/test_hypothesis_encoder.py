"""
Hypothesis property-based tests for multipart form encoding.
"""
from __future__ import annotations

import pytest
from hypothesis import given, settings, strategies as st

from formpart import MultipartFormEncoder, UploadFile
from formpart.exceptions import IncompleteFileError

from . import TrackingStream
from .multipart_decoder import MultipartDecoder

# Strategy for field names
field_names = st.text(
    alphabet=st.characters(
        categories=("Lu", "Ll", "Nd"), include_characters="_-"
    ),
    min_size=1,
    max_size=50,
)

# Strategy for filenames
filenames = st.text(
    alphabet=st.characters(
        categories=("Lu", "Ll", "Nd"), include_characters="._-"
    ),
    min_size=1,
    max_size=100,
)


@settings(max_examples=200, deadline=None)
@given(form=st.dictionaries(field_names, st.text(max_size=200), max_size=10))
def test_text_fields(form: dict[str, str]) -> None:
    """Every text entry becomes one text/plain part named by its key."""
    encoded = MultipartFormEncoder().encode_form(form)
    decoded = MultipartDecoder.from_encoded(encoded)

    assert [part.name for part in decoded.parts] == list(form)
    for part, value in zip(decoded.parts, form.values()):
        assert part.content == value.encode("utf-8")
        assert part.content_type == "text/plain"
        assert part.filename is None


@settings(max_examples=200, deadline=None)
@given(
    name=field_names,
    files=st.lists(
        st.tuples(filenames, st.binary(max_size=2000)), min_size=1, max_size=5
    ),
    blocksize=st.integers(min_value=1, max_value=4096),
)
def test_file_list(
    name: str, files: list[tuple[str, bytes]], blocksize: int
) -> None:
    """A file list yields one part per file, in list order, at any blocksize."""
    streams = [TrackingStream(data) for _, data in files]
    uploads = [
        UploadFile(filename, stream)
        for (filename, _), stream in zip(files, streams)
    ]
    encoder = MultipartFormEncoder(blocksize=blocksize)
    decoded = MultipartDecoder.from_encoded(encoder.encode_form({name: uploads}))

    assert len(decoded.parts) == len(files)
    for part, (filename, data) in zip(decoded.parts, files):
        assert part.name == name
        assert part.filename == filename
        assert part.content == data
        assert part.headers["Content-Length"] == str(len(data))
    assert all(stream.closed for stream in streams)
    assert all(max(stream.reads) <= blocksize for stream in streams)


@settings(max_examples=200, deadline=None)
@given(
    data=st.binary(max_size=500),
    declared=st.integers(min_value=0, max_value=600),
)
def test_declared_size_must_match(data: bytes, declared: int) -> None:
    """A stream shorter or longer than its declared size never encodes."""
    stream = TrackingStream(data)
    form = {"upload": UploadFile("data.bin", stream, size=declared)}
    encoder = MultipartFormEncoder()

    if declared == len(data):
        decoded = MultipartDecoder.from_encoded(encoder.encode_form(form))
        assert decoded.parts[0].content == data
    else:
        with pytest.raises(IncompleteFileError):
            encoder.encode_form(form)
    assert stream.closed
