"""Command line for inspecting socialite providers."""

import click

from socialite_dingtalk import __version__

from .commands import auth_url, list_providers


@click.group()
@click.version_option(__version__, prog_name="socialite-dingtalk")
def main() -> None:
    """socialite-dingtalk: DingTalk login for the socialite host."""


main.add_command(list_providers)
main.add_command(auth_url)

__all__ = ["main"]
