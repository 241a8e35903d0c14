"""
API documentation settings, enabled explicitly at application startup.

.. code-block:: python

    from formpart.config import ConfigurationRegistry
    from formpart.contrib.apidocs import ApiDocsSettings, enable_api_docs

    registry = ConfigurationRegistry()
    enable_api_docs(registry, ApiDocsSettings.from_mapping(properties))

Settings can be read from flat ``swagger.*`` properties, with dashed or
underscored keys (``swagger.license-url`` or ``swagger.license_url``).
"""

from __future__ import annotations

import dataclasses
import logging
import re
import typing

from ..exceptions import ConfigurationError

if typing.TYPE_CHECKING:
    from ..config import ConfigurationRegistry

log = logging.getLogger(__name__)

#: Name the API docs bundle is registered under.
API_DOCS_BUNDLE = "api-docs"

_TRUE_VALUES = frozenset(["1", "true", "yes", "on"])
_FALSE_VALUES = frozenset(["0", "false", "no", "off"])


def _to_bool(key: str, value: typing.Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Invalid boolean for {key!r}: {value!r}")


def _to_patterns(value: typing.Any) -> typing.Tuple[str, ...]:
    if isinstance(value, str):
        return tuple(p.strip() for p in value.split(",") if p.strip())
    return tuple(value)


@dataclasses.dataclass(frozen=True)
class ApiDocsSettings:
    enabled: bool = True
    title: str = ""
    description: str = ""
    version: str = ""
    license: str = ""
    license_url: str = ""
    terms_of_service_url: str = ""
    contact_name: str = ""
    contact_url: str = ""
    contact_email: str = ""
    base_package: str = ""
    #: Path patterns to document. ``**`` matches across ``/``, ``*`` does not.
    base_path: typing.Tuple[str, ...] = ("/**",)
    #: Path patterns left out even when ``base_path`` matches.
    exclude_path: typing.Tuple[str, ...] = ()

    @classmethod
    def from_mapping(
        cls, properties: typing.Mapping[str, typing.Any], prefix: str = "swagger."
    ) -> ApiDocsSettings:
        """
        Build settings from flat properties such as ``swagger.title``.

        Keys without ``prefix`` are ignored, unknown keys under it raise.

        :raises ConfigurationError: unknown key or unparseable value.
        """
        known = {field.name: field for field in dataclasses.fields(cls)}
        values: typing.Dict[str, typing.Any] = {}
        for key, value in properties.items():
            if not key.startswith(prefix):
                continue
            name = key[len(prefix) :].replace("-", "_").replace(".", "_")
            if name not in known:
                raise ConfigurationError(f"Unknown API docs setting {key!r}")
            if name == "enabled":
                values[name] = _to_bool(key, value)
            elif name in ("base_path", "exclude_path"):
                values[name] = _to_patterns(value)
            else:
                values[name] = str(value)
        return cls(**values)


def _compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile an ant-style path pattern: ``**``, ``*`` and ``?``."""
    if pattern.endswith("/**"):
        # "/api/**" also matches "/api"
        return re.compile(_translate(pattern[:-3]) + r"(?:/.*)?\Z")
    return re.compile(_translate(pattern) + r"\Z")


def _translate(pattern: str) -> str:
    out = []
    for token in re.split(r"(\*\*|\*|\?)", pattern):
        if token == "**":
            out.append(".*")
        elif token == "*":
            out.append("[^/]*")
        elif token == "?":
            out.append("[^/]")
        else:
            out.append(re.escape(token))
    return "".join(out)


class ApiDocsConfiguration:
    """The registered API docs bundle: document info and path selection."""

    def __init__(self, settings: ApiDocsSettings) -> None:
        self.settings = settings
        self._includes = [_compile_pattern(p) for p in settings.base_path]
        self._excludes = [_compile_pattern(p) for p in settings.exclude_path]

    def api_info(self) -> typing.Dict[str, typing.Any]:
        """The OpenAPI ``info`` object for these settings, empty fields left out."""
        settings = self.settings
        info: typing.Dict[str, typing.Any] = {
            "title": settings.title,
            "version": settings.version,
        }
        if settings.description:
            info["description"] = settings.description
        if settings.terms_of_service_url:
            info["termsOfService"] = settings.terms_of_service_url
        contact = {
            key: value
            for key, value in (
                ("name", settings.contact_name),
                ("url", settings.contact_url),
                ("email", settings.contact_email),
            )
            if value
        }
        if contact:
            info["contact"] = contact
        if settings.license:
            info["license"] = {"name": settings.license}
            if settings.license_url:
                info["license"]["url"] = settings.license_url
        return info

    def includes(self, path: str) -> bool:
        """Whether ``path`` is documented. Exclusions win over inclusions."""
        if any(p.match(path) for p in self._excludes):
            return False
        return any(p.match(path) for p in self._includes)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.settings!r})"


def enable_api_docs(
    registry: ConfigurationRegistry, settings: typing.Optional[ApiDocsSettings] = None
) -> typing.Optional[ApiDocsConfiguration]:
    """
    Register the API docs bundle on ``registry``.

    Returns the registered configuration, or ``None`` when ``settings``
    disable API docs.

    :raises ConfigurationError: API docs were already enabled on ``registry``.
    """
    if settings is None:
        settings = ApiDocsSettings()
    if not settings.enabled:
        log.debug("API docs disabled, not registering %r", API_DOCS_BUNDLE)
        return None
    configuration = ApiDocsConfiguration(settings)
    registry.register(API_DOCS_BUNDLE, configuration)
    return configuration
