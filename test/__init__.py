from __future__ import annotations

import io
import typing

BOUNDARY = "!! test boundary !!"
BOUNDARY_BYTES = BOUNDARY.encode()


class TrackingStream(io.BytesIO):
    """A BytesIO that records how it was read and whether it was closed."""

    def __init__(self, data: bytes = b"") -> None:
        super().__init__(data)
        self.reads: list[int] = []
        self.close_calls = 0

    def read(self, size: typing.Optional[int] = -1) -> bytes:
        self.reads.append(-1 if size is None else size)
        return super().read(size)

    def close(self) -> None:
        self.close_calls += 1
        super().close()


class BrokenStream(TrackingStream):
    """Fails after ``fail_after`` bytes have been read."""

    def __init__(self, data: bytes = b"", fail_after: int = 0) -> None:
        super().__init__(data)
        self.fail_after = fail_after

    def read(self, size: typing.Optional[int] = -1) -> bytes:
        if self.tell() >= self.fail_after:
            raise OSError("device not ready")
        return super().read(size)


class FakeFile:
    """A file-like that is not an UploadFile, read directly through read()."""

    def __init__(
        self, filename: str, data: bytes, content_type: typing.Optional[str] = None
    ) -> None:
        self.filename = filename
        self.size = len(data)
        self.content_type = content_type
        self._stream = TrackingStream(data)

    def read(self, size: int = -1) -> bytes:
        return self._stream.read(size)

    def close(self) -> None:
        self._stream.close()

    @property
    def closed(self) -> bool:
        return self._stream.closed
