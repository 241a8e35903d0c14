from __future__ import annotations

import typing

# Base Exceptions


class FormError(Exception):
    """Base exception used by this module."""

    pass


class FormWarning(Warning):
    """Base warning used by this module."""

    pass


class InvalidInputError(ValueError, FormError):
    """Raised when there is no form to encode."""

    pass


class UnsupportedShapeError(TypeError, FormError):
    """Raised when the declared body type or the form itself is not a
    mapping of ``str`` to values."""

    pass


class EncodeError(FormError):
    """Raised when building a multipart body fails.

    The underlying error, if any, is available as ``original_error`` and as
    ``__cause__``.
    """

    original_error: typing.Optional[BaseException]

    def __init__(
        self, message: str, error: typing.Optional[BaseException] = None
    ) -> None:
        if error is None:
            super().__init__(message)
        else:
            super().__init__(message, error)
        self.original_error = error


class ConfigurationError(FormError):
    """Raised when a configuration bundle cannot be registered."""

    pass


# Leaf Exceptions


class IncompleteFileError(EncodeError):
    """Raised when a file stream does not yield exactly its declared size."""

    def __init__(self, filename: typing.Optional[str], expected: int, actual: int):
        self.filename = filename
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"File {filename!r} declared {expected} bytes but "
            f"{'at least ' if actual > expected else ''}{actual} were read"
        )

    def __reduce__(
        self,
    ) -> typing.Tuple[typing.Callable[..., object], typing.Tuple[object, ...]]:
        # For pickling purposes.
        return self.__class__, (self.filename, self.expected, self.actual)


class UnwritableValueError(EncodeError):
    """Raised when no registered converter can write a form value."""

    def __init__(self, value_type: type, content_type: str) -> None:
        self.value_type = value_type
        self.content_type = content_type
        super().__init__(
            f"No converter can write {value_type.__qualname__!r} as {content_type!r}"
        )

    def __reduce__(
        self,
    ) -> typing.Tuple[typing.Callable[..., object], typing.Tuple[object, ...]]:
        return self.__class__, (self.value_type, self.content_type)
