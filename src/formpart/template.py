from __future__ import annotations

import logging
import typing

from ._collections import HTTPHeaderDict

if typing.TYPE_CHECKING:
    import urllib3

    from typing_extensions import Protocol

    class _RequestMethods(Protocol):
        def request(
            self,
            method: str,
            url: str,
            body: typing.Optional[bytes] = ...,
            headers: typing.Optional[typing.Mapping[str, str]] = ...,
            **urlopen_kw: typing.Any,
        ) -> urllib3.BaseHTTPResponse:
            ...


log = logging.getLogger(__name__)


class RequestTemplate:
    """
    An outbound request being prepared: method, url, headers and body.

    Encoders fill it in through :meth:`header` and :meth:`body`; the
    transport picks it up through :meth:`send`.

    :param method:
        HTTP request method (such as GET, POST, PUT, etc.)

    :param url:
        The URL to send the request to.

    :param headers:
        Initial headers. Names compare case-insensitively.
    """

    def __init__(
        self,
        method: str = "POST",
        url: str = "",
        headers: typing.Optional[typing.Mapping[str, str]] = None,
    ) -> None:
        self.method = method.upper()
        self.url = url
        self.headers = HTTPHeaderDict(headers)
        self.request_body: typing.Optional[bytes] = None
        self.charset: typing.Optional[str] = None

    def header(
        self, name: str, values: typing.Union[str, typing.Iterable[str]]
    ) -> RequestTemplate:
        """
        Set header ``name`` to ``values``, replacing what was there. An empty
        iterable removes the header.
        """
        if isinstance(values, str):
            values = (values,)
        self.headers.discard(name)
        for value in values:
            self.headers.add(name, value)
        return self

    def body(
        self, data: typing.Optional[bytes], charset: typing.Optional[str] = None
    ) -> RequestTemplate:
        """
        Set the request body, and the ``Content-Length`` header that goes
        with it. ``None`` clears both.
        """
        self.request_body = data
        self.charset = charset
        if data is None:
            self.headers.discard("Content-Length")
        else:
            self.headers["Content-Length"] = str(len(data))
        return self

    def send(
        self, http: _RequestMethods, **urlopen_kw: typing.Any
    ) -> urllib3.BaseHTTPResponse:
        """
        Hand the request over to a transport such as
        :class:`urllib3.PoolManager`. Extra keyword arguments go to its
        ``request`` method (``timeout``, ``retries``, ...).
        """
        log.debug(
            "Sending %s %s (%s bytes)",
            self.method,
            self.url,
            "no" if self.request_body is None else len(self.request_body),
        )
        return http.request(
            self.method,
            self.url,
            body=self.request_body,
            headers=dict(self.headers.itermerged()),
            **urlopen_kw,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(method={self.method!r}, url={self.url!r})"
