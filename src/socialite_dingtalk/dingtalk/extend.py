"""Registers the DingTalk provider with the socialite host."""

from __future__ import annotations

from socialite_dingtalk.manager.registry import SocialiteWasCalled

from .provider import DingTalkProvider


class DingTalkExtendSocialite:
    """Listener binding the `dingtalk` identifier to `DingTalkProvider`."""

    def handle(self, socialite_was_called: SocialiteWasCalled) -> None:
        socialite_was_called.extend_socialite("dingtalk", DingTalkProvider)
