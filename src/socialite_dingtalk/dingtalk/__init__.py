"""DingTalk provider for the socialite host."""

from .extend import DingTalkExtendSocialite
from .provider import DingTalkProvider

__all__ = ["DingTalkExtendSocialite", "DingTalkProvider"]
