from __future__ import annotations

import typing
from pathlib import Path

import pytest

from formpart import MultipartFormEncoder, RequestTemplate, UploadFile

from . import BOUNDARY


@pytest.fixture
def encoder() -> MultipartFormEncoder:
    return MultipartFormEncoder(boundary=BOUNDARY)


@pytest.fixture
def template() -> RequestTemplate:
    return RequestTemplate("POST", "http://localhost/upload")


@pytest.fixture
def text_file(tmp_path: Path) -> typing.Generator[UploadFile, None, None]:
    path = tmp_path / "notes.txt"
    path.write_bytes(b"line one\nline two\n")
    yield UploadFile.from_path(path)
