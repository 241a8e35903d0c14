from __future__ import annotations

import io
import typing
import unittest

import pytest

from formpart import EncodedRequest, HTTPHeaderDict, MultipartFormEncoder, UploadFile

from .multipart_decoder import (
    BodyPart,
    ImproperBodyPartContentError,
    MultipartDecoder,
    NonMultipartContentTypeError,
)


class TestBodyPart(unittest.TestCase):
    @staticmethod
    def bodypart_bytes_from_headers_and_values(
        headers: typing.Sequence[tuple[str, str]], value: str, encoding: str
    ) -> bytes:
        return b"\r\n\r\n".join(
            [
                b"\r\n".join(
                    [b": ".join([i.encode(encoding) for i in h]) for h in headers]
                ),
                value.encode(encoding),
            ]
        )

    def setUp(self) -> None:
        self.value_1 = "Ćêñtêñt"
        self.part_1 = BodyPart(
            TestBodyPart.bodypart_bytes_from_headers_and_values(
                [], self.value_1, "utf-8"
            ),
            "utf-8",
        )
        self.part_2 = BodyPart(
            TestBodyPart.bodypart_bytes_from_headers_and_values(
                [], self.value_1, "utf-16"
            ),
            "utf-16",
        )

    def test_equality_content_equals_bytes(self) -> None:
        assert self.part_1.content == self.value_1.encode("utf-8")

    def test_equality_content_should_not_be_equal(self) -> None:
        assert self.part_1.content != self.part_2.content

    def test_changing_encoding_changes_text(self) -> None:
        part_2_orig_text = self.part_2.text
        self.part_2.encoding = "latin-1"
        assert self.part_2.text != part_2_orig_text

    def test_text_should_be_equal(self) -> None:
        assert self.part_1.text == self.part_2.text

    def test_no_headers(self) -> None:
        part_3 = BodyPart(b"\r\n\r\nNo headers\r\nTwo lines", "utf-8")
        assert len(part_3.headers) == 0
        assert part_3.content == b"No headers\r\nTwo lines"
        assert part_3.name is None
        assert part_3.filename is None
        assert part_3.content_type is None

    def test_no_crlf_crlf_in_content(self) -> None:
        with pytest.raises(ImproperBodyPartContentError):
            BodyPart(b"no CRLF CRLF here!\r\n", "utf-8")

    def test_disposition_params(self) -> None:
        part = BodyPart(
            TestBodyPart.bodypart_bytes_from_headers_and_values(
                [
                    (
                        "Content-Disposition",
                        'form-data; name="upload"; filename="a b.txt"',
                    ),
                    ("Content-Type", "text/csv"),
                ],
                "x,y",
                "utf-8",
            ),
            "utf-8",
        )
        assert part.name == "upload"
        assert part.filename == "a b.txt"
        assert part.content_type == "text/csv"
        assert repr(part) == "BodyPart(name='upload', filename='a b.txt')"


class TestMultipartDecoder(unittest.TestCase):
    def setUp(self) -> None:
        self.boundary = "test-boundary"
        self.encoder = MultipartFormEncoder(boundary=self.boundary)
        self.encoded_1 = self.encoder.encode_form(
            {
                "field 1": "value 1",
                "field 2": "value 2",
                "files": [
                    UploadFile.from_bytes("a.txt", b"first", "text/plain"),
                    UploadFile.from_bytes("b.bin", b"\x00second"),
                ],
            }
        )
        self.decoded_1 = MultipartDecoder.from_encoded(self.encoded_1)

    def test_non_multipart_content_type_fails(self) -> None:
        with pytest.raises(NonMultipartContentTypeError):
            MultipartDecoder(b"", "image/jpeg")

    def test_missing_boundary_raises_descriptive_error(self) -> None:
        with pytest.raises(NonMultipartContentTypeError, match="No boundary"):
            MultipartDecoder(b"", "multipart/form-data")

    def test_length_of_parts(self) -> None:
        assert len(self.decoded_1.parts) == 4

    def test_text_parts(self) -> None:
        field_1, field_2 = self.decoded_1.parts[:2]
        assert field_1.name == "field 1"
        assert field_1.content == b"value 1"
        assert field_1.content_type == "text/plain"
        assert field_1.filename is None
        assert field_2.text == "value 2"

    def test_file_parts(self) -> None:
        first, second = self.decoded_1.get_all("files")
        assert (first.filename, first.content) == ("a.txt", b"first")
        assert first.content_type == "text/plain"
        assert first.headers["Content-Length"] == "5"
        assert (second.filename, second.content) == ("b.bin", b"\x00second")
        assert second.content_type == "application/octet-stream"

    def test_get_all_unknown_name(self) -> None:
        assert self.decoded_1.get_all("missing") == []

    def test_from_encoded_needs_content_type(self) -> None:
        encoded = EncodedRequest(b"", HTTPHeaderDict())
        with pytest.raises(ValueError, match="Cannot determine content-type"):
            MultipartDecoder.from_encoded(encoded)

    def test_quoted_boundary(self) -> None:
        cnt = io.BytesIO()
        cnt.write(b"\r\n--samp1\r\n")
        cnt.write(b"Header-1: Header-Value-1\r\n")
        cnt.write(b"Header-2: Header-Value-2\r\n")
        cnt.write(b"\r\n")
        cnt.write(b"Body 1, Line 1\r\n")
        cnt.write(b"Body 1, Line 2\r\n")
        cnt.write(b"--samp1\r\n")
        cnt.write(b"\r\n")
        cnt.write(b"Body 2, Line 1\r\n")
        cnt.write(b"--samp1--\r\n")
        decoder_2 = MultipartDecoder(
            cnt.getvalue(), 'Multipart/Related; boundary="samp1"'
        )
        assert decoder_2.parts[0].content == b"Body 1, Line 1\r\nBody 1, Line 2"
        assert decoder_2.parts[0].headers["Header-1"] == "Header-Value-1"
        assert len(decoder_2.parts[1].headers) == 0
        assert decoder_2.parts[1].content == b"Body 2, Line 1"

    def test_empty_form(self) -> None:
        decoded = MultipartDecoder.from_encoded(self.encoder.encode_form({}))
        assert decoded.parts == ()

    def test_encoding_stored(self) -> None:
        assert self.decoded_1.encoding == "utf-8"

    def test_content_type_stored(self) -> None:
        assert self.decoded_1.content_type == self.encoded_1.content_type
