from pathlib import Path

import click

from socialite_dingtalk.cli.utils import configure_logging, output_error, output_result
from socialite_dingtalk.manager import ConfigRetriever, SocialiteError, SocialiteManager


def _manager(config: Path | None) -> SocialiteManager:
    return SocialiteManager(config_retriever=ConfigRetriever.from_file(config))


@click.command(name="providers")
@click.option("--json-output", is_flag=True, help="Output in JSON format")
@click.option("--debug", is_flag=True, help="Show detailed debug information")
def list_providers(json_output: bool, debug: bool) -> None:
    """List the provider identifiers registered by installed packages.

    \b
    Examples:
        socialite-dingtalk providers
        socialite-dingtalk providers --json-output
    """
    configure_logging(debug)

    try:
        manager = SocialiteManager()
        manager.boot()
        output_result(manager.providers(), json_output)
    except SocialiteError as e:
        output_error(e, json_output, debug)


@click.command(name="auth-url")
@click.argument("provider")
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Services YAML file (defaults to $SOCIALITE_SERVICES_CONFIG or ./services.yaml)",
)
@click.option("--state", help="State value to embed (generated if omitted)")
@click.option("--stateless", is_flag=True, help="Build the URL without a state parameter")
@click.option("--json-output", is_flag=True, help="Output in JSON format")
@click.option("--debug", is_flag=True, help="Show detailed debug information")
def auth_url(
    provider: str,
    config: Path | None,
    state: str | None,
    stateless: bool,
    json_output: bool,
    debug: bool,
) -> None:
    """Print the authorization URL for PROVIDER.

    \b
    Examples:
        socialite-dingtalk auth-url dingtalk --config services.yaml
        socialite-dingtalk auth-url dingtalk --state abc --json-output
    """
    configure_logging(debug)

    try:
        driver = _manager(config).driver(provider)
        url = driver.stateless(stateless).redirect(state)
        if json_output:
            output_result({"url": url, "state": driver.state}, json_output)
        else:
            output_result(url)
    except SocialiteError as e:
        output_error(e, json_output, debug)
