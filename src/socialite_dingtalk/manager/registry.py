"""Provider registry and the registration event.

Provider packages register themselves through a listener: a class with a
`handle(event)` method, advertised under the `socialite.listeners` entry
point group. `SocialiteManager.boot()` loads every listener once and hands
it a `SocialiteWasCalled` event, through which the listener binds an
identifier to its provider class.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from importlib.metadata import entry_points
from typing import Any, Protocol

import httpx

from .config import ConfigRetriever
from .contracts import AbstractProvider
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

LISTENER_GROUP = "socialite.listeners"


class SocialiteListener(Protocol):
    """Anything that can register providers when the host boots."""

    def handle(self, event: SocialiteWasCalled) -> None: ...


class SocialiteWasCalled:
    """Event handed to listeners so they can register their providers."""

    def __init__(self, manager: SocialiteManager):
        self.manager = manager

    def extend_socialite(self, identifier: str, provider_cls: type[AbstractProvider]) -> None:
        self.manager.extend(identifier, provider_cls)


def discover_listeners(group: str = LISTENER_GROUP) -> list[Any]:
    """Load the listeners advertised by installed distributions."""
    listeners = []
    for entry_point in entry_points(group=group):
        logger.debug(f"Loading socialite listener {entry_point.name} ({entry_point.value})")
        listeners.append(entry_point.load())
    return listeners


class SocialiteManager:
    """Resolves provider identifiers to configured provider instances."""

    def __init__(
        self,
        services: Mapping[str, Any] | None = None,
        *,
        config_retriever: ConfigRetriever | None = None,
        listeners: Iterable[Any] | None = None,
    ):
        self.config_retriever = config_retriever or ConfigRetriever(services)
        self._listeners = list(listeners) if listeners is not None else None
        self._providers: dict[str, type[AbstractProvider]] = {}
        self._booted = False

    def extend(self, identifier: str, provider_cls: type[AbstractProvider]) -> None:
        if not (isinstance(provider_cls, type) and issubclass(provider_cls, AbstractProvider)):
            raise TypeError(f"{provider_cls!r} is not an AbstractProvider subclass")
        if identifier in self._providers:
            logger.debug(f"Replacing provider registered as '{identifier}'")
        self._providers[identifier] = provider_cls

    def boot(self) -> None:
        """Run every listener once; later calls are no-ops."""
        if self._booted:
            return

        listeners = self._listeners if self._listeners is not None else discover_listeners()
        event = SocialiteWasCalled(self)
        for listener in listeners:
            # Entry points load classes; explicit listeners may be instances.
            handler = listener() if isinstance(listener, type) else listener
            handler.handle(event)

        self._booted = True
        logger.info(f"Socialite providers booted: {', '.join(self.providers()) or 'none'}")

    def providers(self) -> list[str]:
        return sorted(self._providers)

    def has(self, identifier: str) -> bool:
        self.boot()
        return identifier in self._providers

    def provider_class(self, identifier: str) -> type[AbstractProvider]:
        self.boot()
        try:
            return self._providers[identifier]
        except KeyError:
            raise ConfigurationError(f"Provider '{identifier}' is not registered") from None

    def driver(
        self,
        identifier: str,
        request: Mapping[str, Any] | None = None,
        http_client: httpx.Client | None = None,
    ) -> AbstractProvider:
        """Return a provider instance configured from the services mapping."""
        provider_cls = self.provider_class(identifier)
        config = self.config_retriever.from_services(
            identifier, provider_cls.additional_config_keys()
        )
        return provider_cls(config, request=request, http_client=http_client)


__all__ = [
    "LISTENER_GROUP",
    "SocialiteListener",
    "SocialiteManager",
    "SocialiteWasCalled",
    "discover_listeners",
]
