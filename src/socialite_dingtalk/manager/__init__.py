"""Generic social-authentication host: provider base class, config and registry."""

from .config import (
    ConfigRetriever,
    EnvResolver,
    ProviderConfigModel,
    load_services_config,
)
from .contracts import AbstractProvider, User
from .errors import (
    ConfigurationError,
    InvalidStateError,
    ProviderError,
    SocialiteError,
)
from .registry import (
    LISTENER_GROUP,
    SocialiteListener,
    SocialiteManager,
    SocialiteWasCalled,
    discover_listeners,
)

__all__ = [
    # Configuration
    "ConfigRetriever",
    "EnvResolver",
    "ProviderConfigModel",
    "load_services_config",
    # Contracts
    "AbstractProvider",
    "User",
    # Errors
    "ConfigurationError",
    "InvalidStateError",
    "ProviderError",
    "SocialiteError",
    # Registry
    "LISTENER_GROUP",
    "SocialiteListener",
    "SocialiteManager",
    "SocialiteWasCalled",
    "discover_listeners",
]
