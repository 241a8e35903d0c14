from __future__ import annotations

import logging
import threading
import typing

from .exceptions import ConfigurationError

log = logging.getLogger(__name__)


class ConfigurationRegistry:
    """
    Named configuration bundles an application enables at startup.

    Bundles are registered once, by an explicit call in the application's
    startup path (for instance :func:`formpart.contrib.apidocs.enable_api_docs`),
    and looked up by name afterwards.

    >>> registry = ConfigurationRegistry()
    >>> registry.register("feature", {"enabled": True})
    >>> "feature" in registry
    True
    """

    def __init__(self) -> None:
        self._bundles: typing.Dict[str, typing.Any] = {}
        self.lock = threading.RLock()

    def register(self, name: str, bundle: typing.Any) -> None:
        """
        Register ``bundle`` under ``name``.

        :raises ConfigurationError: a bundle is already registered as ``name``.
        """
        with self.lock:
            if name in self._bundles:
                raise ConfigurationError(
                    f"Configuration bundle {name!r} is already registered"
                )
            self._bundles[name] = bundle
        log.debug("Registered configuration bundle %r", name)

    def get(self, name: str) -> typing.Any:
        """
        Return the bundle registered as ``name``.

        :raises KeyError: nothing is registered as ``name``.
        """
        with self.lock:
            return self._bundles[name]

    def is_enabled(self, name: str) -> bool:
        with self.lock:
            return name in self._bundles

    __contains__ = is_enabled

    def bundles(self) -> typing.List[str]:
        """Names of all registered bundles, in registration order."""
        with self.lock:
            return list(self._bundles)

    def __len__(self) -> int:
        with self.lock:
            return len(self._bundles)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.bundles()!r})"
