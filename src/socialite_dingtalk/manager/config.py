"""Provider configuration for the social-authentication host.

Providers are configured from a *services* mapping keyed by provider
identifier, either passed in directly or loaded from a YAML file:

```yaml
dingtalk:
  client_id: ${DINGTALK_CLIENT_ID}
  client_secret: ${DINGTALK_CLIENT_SECRET}
  redirect: https://example.com/auth/dingtalk/callback
  scopes: [openid, corpid]
  http:
    timeout: 10
```

`client_id`, `client_secret` and `redirect` are required for every provider.
Any other key is kept only if the host declares it (`http`) or the provider
class lists it in `additional_config_keys()`.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field

from socialite_dingtalk.models import SocialiteBaseModel

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ("client_id", "client_secret", "redirect")

# Extra keys every provider accepts; `http` holds httpx.Client keyword arguments.
DEFAULT_ADDITIONAL_KEYS = ("http",)

SERVICES_CONFIG_ENV = "SOCIALITE_SERVICES_CONFIG"


class ProviderConfigModel(SocialiteBaseModel):
    """Immutable configuration for one provider during one login flow."""

    client_id: str | None = None
    client_secret: str | None = None
    redirect: str | None = None
    additional: dict[str, Any] = Field(default_factory=dict)


class EnvResolver:
    """Resolver for environment variable references like ${VAR_NAME}."""

    ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z0-9_]+)\}")

    def can_resolve(self, reference: str) -> bool:
        return self.ENV_VAR_PATTERN.fullmatch(reference) is not None

    def resolve(self, reference: str) -> str:
        match = self.ENV_VAR_PATTERN.fullmatch(reference)
        if not match:
            raise ConfigurationError(f"Invalid environment variable reference: {reference}")

        var_name = match.group(1)
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigurationError(f"Environment variable not found: {var_name}")

        return value

    def resolve_value(self, value: Any) -> Any:
        """Recursively resolve references inside mappings, lists and strings."""
        if isinstance(value, str):
            return self.resolve(value) if self.can_resolve(value) else value
        if isinstance(value, Mapping):
            return {key: self.resolve_value(item) for key, item in value.items()}
        if isinstance(value, list):
            return [self.resolve_value(item) for item in value]
        return value


def load_services_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load the services mapping from a YAML file.

    Args:
        config_path: Optional path to the services file.
                    If not provided, looks for:
                    1. SOCIALITE_SERVICES_CONFIG environment variable
                    2. ./services.yaml

    Returns:
        The services mapping (empty if no file was found)

    Raises:
        ConfigurationError: If an explicit file is missing or is not a mapping
    """
    if config_path is None:
        env_path = os.environ.get(SERVICES_CONFIG_ENV)
        if env_path:
            config_path = Path(env_path)
        else:
            candidate = Path.cwd() / "services.yaml"
            if not candidate.exists():
                logger.info("No services config file found, using empty configuration")
                return {}
            config_path = candidate

    if not config_path.exists():
        raise ConfigurationError(f"Services config file not found at {config_path}")

    logger.debug(f"Loading services config from: {config_path}")

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in services config {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Services config {config_path} must be a mapping of provider names"
        )
    return data


class ConfigRetriever:
    """Builds a `ProviderConfigModel` for a provider from the services mapping."""

    def __init__(
        self,
        services: Mapping[str, Any] | None = None,
        resolver: EnvResolver | None = None,
    ):
        self.services: Mapping[str, Any] = services or {}
        self.resolver = resolver or EnvResolver()

    @classmethod
    def from_file(cls, config_path: Path | None = None) -> ConfigRetriever:
        return cls(load_services_config(config_path))

    def from_services(
        self, provider_name: str, additional_config_keys: Iterable[str] = ()
    ) -> ProviderConfigModel:
        """Return the configuration of `provider_name`.

        Raises:
            ConfigurationError: If the provider has no section or a required
                key is empty.
        """
        section = self.services.get(provider_name)
        if section is None:
            raise ConfigurationError(f"No services configuration for provider '{provider_name}'")
        if not isinstance(section, Mapping):
            raise ConfigurationError(
                f"Services configuration for provider '{provider_name}' must be a mapping"
            )

        resolved = self.resolver.resolve_value(section)

        missing = [key for key in REQUIRED_KEYS if not resolved.get(key)]
        if missing:
            raise ConfigurationError(
                f"Missing configuration keys for provider '{provider_name}': {', '.join(missing)}"
            )

        # Ordered union: provider keys never displace the host defaults.
        allowed = dict.fromkeys([*DEFAULT_ADDITIONAL_KEYS, *additional_config_keys])
        additional = {key: resolved[key] for key in allowed if key in resolved}

        return ProviderConfigModel(
            client_id=str(resolved["client_id"]),
            client_secret=str(resolved["client_secret"]),
            redirect=str(resolved["redirect"]),
            additional=additional,
        )


__all__ = [
    "ConfigRetriever",
    "DEFAULT_ADDITIONAL_KEYS",
    "EnvResolver",
    "ProviderConfigModel",
    "REQUIRED_KEYS",
    "load_services_config",
]
