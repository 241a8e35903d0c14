"""
Serializers turning form values into part bodies.

A :class:`ConverterRegistry` is an ordered, immutable list of
:class:`Converter` strategies. The first converter whose
:meth:`~Converter.can_write` accepts a value's type and the part content
type writes it.
"""

from __future__ import annotations

import dataclasses
import datetime
import decimal
import enum
import json
import logging
import typing
import uuid
from collections.abc import Mapping

from .exceptions import UnwritableValueError

log = logging.getLogger(__name__)

ALL = "*/*"


def _media_type(content_type: typing.Optional[str]) -> str:
    """``text/plain; charset=utf-8`` -> ``text/plain``"""
    if not content_type:
        return ALL
    return content_type.split(";", 1)[0].strip().lower()


def _media_type_matches(pattern: str, media_type: str) -> bool:
    if pattern == ALL or media_type == ALL:
        return True
    p_type, _, p_subtype = pattern.partition("/")
    m_type, _, m_subtype = media_type.partition("/")
    if p_type != m_type:
        return False
    if p_subtype == m_subtype or p_subtype == "*":
        return True
    # application/*+json style wildcards
    if p_subtype.startswith("*+"):
        return m_subtype.endswith(p_subtype[1:])
    return False


class Converter:
    """
    Base class for value serializers.

    Subclasses declare ``supported_types`` and ``supported_media_types`` and
    implement :meth:`write`. Override :meth:`supports` when a type check
    needs more than ``issubclass``.
    """

    supported_types: typing.ClassVar[typing.Tuple[type, ...]] = ()
    supported_media_types: typing.ClassVar[typing.Tuple[str, ...]] = (ALL,)

    def supports(self, value_type: type) -> bool:
        return issubclass(value_type, self.supported_types)

    def can_write(self, value_type: type, content_type: typing.Optional[str]) -> bool:
        if not self.supports(value_type):
            return False
        media_type = _media_type(content_type)
        return any(
            _media_type_matches(pattern, media_type)
            for pattern in self.supported_media_types
        )

    def write(
        self, value: typing.Any, content_type: typing.Optional[str], charset: str
    ) -> bytes:
        raise NotImplementedError()

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class BytesConverter(Converter):
    supported_types = (bytes, bytearray, memoryview)

    def write(
        self, value: typing.Any, content_type: typing.Optional[str], charset: str
    ) -> bytes:
        return bytes(value)


class StringConverter(Converter):
    supported_types = (str,)
    supported_media_types = ("text/plain", ALL)

    def write(
        self, value: typing.Any, content_type: typing.Optional[str], charset: str
    ) -> bytes:
        return typing.cast(str, value).encode(charset)


class PrimitiveConverter(Converter):
    """Numbers, booleans, dates, UUIDs and enums rendered as text."""

    supported_types = (
        bool,
        int,
        float,
        decimal.Decimal,
        uuid.UUID,
        datetime.date,
        datetime.time,
        enum.Enum,
    )
    supported_media_types = ("text/plain", ALL)

    def write(
        self, value: typing.Any, content_type: typing.Optional[str], charset: str
    ) -> bytes:
        return self.to_text(value).encode(charset)

    @classmethod
    def to_text(cls, value: typing.Any) -> str:
        if isinstance(value, enum.Enum):
            return cls.to_text(value.value)
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (datetime.date, datetime.time)):
            return value.isoformat()
        return str(value)


def _json_default(value: typing.Any) -> typing.Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, (decimal.Decimal, uuid.UUID)):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class JSONConverter(Converter):
    """Mappings, lists, tuples and dataclass instances written as JSON."""

    supported_types = (Mapping, list, tuple)
    supported_media_types = (
        "application/json",
        "application/*+json",
        "text/plain",
        ALL,
    )

    def supports(self, value_type: type) -> bool:
        return super().supports(value_type) or dataclasses.is_dataclass(value_type)

    def write(
        self, value: typing.Any, content_type: typing.Optional[str], charset: str
    ) -> bytes:
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            value = dataclasses.asdict(value)
        try:
            text = json.dumps(
                value, ensure_ascii=False, separators=(",", ":"), default=_json_default
            )
        except (TypeError, ValueError) as e:
            raise UnwritableValueError(type(value), _media_type(content_type)) from e
        return text.encode(charset)


class ConverterRegistry(typing.Sequence[Converter]):
    """
    An ordered, read-only collection of converters. Lookups return the first
    converter that can write a type as a content type, so order decides
    which serialization wins.

    Registries never change after construction; :meth:`with_converter`
    returns a new one. A single registry can be shared between threads.
    """

    def __init__(self, converters: typing.Iterable[Converter] = ()) -> None:
        self._converters: typing.Tuple[Converter, ...] = tuple(converters)

    @typing.overload
    def __getitem__(self, index: int) -> Converter:
        ...

    @typing.overload
    def __getitem__(self, index: slice) -> typing.Sequence[Converter]:
        ...

    def __getitem__(
        self, index: typing.Union[int, slice]
    ) -> typing.Union[Converter, typing.Sequence[Converter]]:
        return self._converters[index]

    def __len__(self) -> int:
        return len(self._converters)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self._converters)!r})"

    def find(
        self, value_type: type, content_type: typing.Optional[str]
    ) -> typing.Optional[Converter]:
        for converter in self._converters:
            if converter.can_write(value_type, content_type):
                return converter
        return None

    def write(
        self, value: typing.Any, content_type: typing.Optional[str], charset: str
    ) -> bytes:
        """
        Serialize ``value`` with the first converter that accepts it.

        :raises UnwritableValueError: no converter accepts ``type(value)``.
        """
        converter = self.find(type(value), content_type)
        if converter is None:
            raise UnwritableValueError(type(value), _media_type(content_type))
        log.debug(
            "Writing %s as %s with %r", type(value).__name__, content_type, converter
        )
        return converter.write(value, content_type, charset)

    def with_converter(
        self, converter: Converter, first: bool = True
    ) -> ConverterRegistry:
        """Return a new registry with ``converter`` added first (or last)."""
        if first:
            return type(self)((converter, *self._converters))
        return type(self)((*self._converters, converter))


DEFAULT_CONVERTERS = ConverterRegistry(
    (BytesConverter(), StringConverter(), PrimitiveConverter(), JSONConverter())
)
