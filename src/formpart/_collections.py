from __future__ import annotations

import typing
from collections.abc import Mapping, MutableMapping

__all__ = ["HTTPHeaderDict"]


_HeaderSource = typing.Union[
    "HTTPHeaderDict",
    typing.Mapping[str, str],
    typing.Iterable[typing.Tuple[str, str]],
]


class HTTPHeaderDict(MutableMapping[str, str]):
    """
    Request or part headers. Names compare case-insensitively and keep the
    casing they were first added with; a name can hold several values.

    Item assignment replaces every value of a name, :meth:`add` appends one.
    Reading an item joins the values with ``", "``.

    >>> headers = HTTPHeaderDict({"Content-Type": "text/plain"})
    >>> headers.add("x-trace", "a")
    >>> headers.add("X-Trace", "b")
    >>> headers["x-trace"]
    'a, b'
    >>> headers.getlist("content-type")
    ['text/plain']
    """

    def __init__(self, headers: typing.Optional[_HeaderSource] = None) -> None:
        super().__init__()
        # lower-cased name -> [original name, value, value, ...]
        self._container: typing.Dict[str, typing.List[str]] = {}
        if headers is not None:
            self.extend(headers)

    def __setitem__(self, key: str, val: str) -> None:
        self._container[key.lower()] = [key, val]

    def __getitem__(self, key: str) -> str:
        return ", ".join(self._container[key.lower()][1:])

    def __delitem__(self, key: str) -> None:
        del self._container[key.lower()]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._container

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Mapping):
            return False
        theirs = other if isinstance(other, HTTPHeaderDict) else HTTPHeaderDict(other)
        return dict(self._lowered()) == dict(theirs._lowered())

    def __len__(self) -> int:
        return len(self._container)

    def __iter__(self) -> typing.Iterator[str]:
        for vals in self._container.values():
            yield vals[0]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict(self.itermerged())})"

    def discard(self, key: str) -> None:
        """Remove ``key`` if present."""
        self._container.pop(key.lower(), None)

    def add(self, key: str, val: str) -> None:
        """Append a value to ``key``, keeping the values already there."""
        vals = self._container.setdefault(key.lower(), [key])
        vals.append(val)

    def extend(self, *args: _HeaderSource) -> None:
        """:meth:`add` every header of a mapping or of ``(name, value)`` pairs."""
        if len(args) > 1:
            raise TypeError(
                f"extend() takes at most 1 positional argument ({len(args)} given)"
            )
        if not args:
            return
        other = args[0]
        items: typing.Iterable[typing.Tuple[str, str]]
        if isinstance(other, HTTPHeaderDict):
            items = other.iteritems()
        elif isinstance(other, Mapping):
            items = other.items()
        else:
            items = other
        for key, val in items:
            self.add(key, val)

    def getlist(self, key: str) -> typing.List[str]:
        """Every value of ``key``, or an empty list."""
        return self._container.get(key.lower(), [key])[1:]

    def iteritems(self) -> typing.Iterator[typing.Tuple[str, str]]:
        """One ``(name, value)`` pair per value, duplicates included."""
        for vals in self._container.values():
            for val in vals[1:]:
                yield vals[0], val

    def itermerged(self) -> typing.Iterator[typing.Tuple[str, str]]:
        """One ``(name, joined values)`` pair per name."""
        for vals in self._container.values():
            yield vals[0], ", ".join(vals[1:])

    def _lowered(self) -> typing.Iterator[typing.Tuple[str, str]]:
        for key, val in self.itermerged():
            yield key.lower(), val
