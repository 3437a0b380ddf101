"""socialite-dingtalk - DingTalk OAuth2 login for a pluggable social-auth host.

## Key Components

### Host
- `SocialiteManager`: registry resolving identifiers like "dingtalk" to providers
- `AbstractProvider`: generic OAuth2 authorization-code flow
- `User`: normalized user returned after login

### DingTalk
- `DingTalkProvider`: DingTalk endpoints, field names and profile mapping
- `DingTalkExtendSocialite`: listener registering `dingtalk` at boot

## Quick Example

```python
from socialite_dingtalk import SocialiteManager

manager = SocialiteManager(
    {
        "dingtalk": {
            "client_id": "ding123",
            "client_secret": "secret",
            "redirect": "https://example.com/auth/dingtalk/callback",
        }
    }
)
provider = manager.driver("dingtalk")
url = provider.redirect()

# ...on the callback request
provider.set_request({"authCode": "...", "state": provider.state})
user = provider.user()
print(user.id, user.unionid, user.nickname)
```
"""

__version__ = "1.0.0"

from .dingtalk import DingTalkExtendSocialite, DingTalkProvider
from .manager import (
    AbstractProvider,
    ConfigRetriever,
    ConfigurationError,
    InvalidStateError,
    ProviderConfigModel,
    ProviderError,
    SocialiteError,
    SocialiteManager,
    SocialiteWasCalled,
    User,
)

__all__ = [
    "__version__",
    "AbstractProvider",
    "ConfigRetriever",
    "ConfigurationError",
    "DingTalkExtendSocialite",
    "DingTalkProvider",
    "InvalidStateError",
    "ProviderConfigModel",
    "ProviderError",
    "SocialiteError",
    "SocialiteManager",
    "SocialiteWasCalled",
    "User",
]
