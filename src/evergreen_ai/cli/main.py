"""Click CLI group: generate, test-connection, and show-config commands."""

from __future__ import annotations

import asyncio
import json
import sys

import click

from evergreen_ai.client import GenerationClient, user_friendly_error
from evergreen_ai.config import Settings, get_settings, validate_settings
from evergreen_ai.errors import EvergreenError, GenerationError
from evergreen_ai.logging import configure_logging

DEFAULT_SYSTEM = "You are a helpful assistant."


def _build_client(settings: Settings) -> GenerationClient:
    return GenerationClient.from_settings(settings)


def _load() -> GenerationClient:
    settings = get_settings()
    configure_logging(settings.log_level)
    try:
        validate_settings(settings)
    except EvergreenError as exc:
        raise click.ClickException(str(exc)) from exc
    return _build_client(settings)


def _mask(secret: str) -> str:
    value = secret.strip()
    if not value:
        return ""
    if len(value) <= 8:
        return "*" * len(value)
    return f"{value[:3]}...{value[-4:]}"


@click.group()
def cli() -> None:
    """Evergreen AI generation client CLI."""


@cli.command()
@click.argument("prompt")
@click.option("--system", "system", type=str, default=DEFAULT_SYSTEM, show_default=True)
@click.option("--stream", is_flag=True, help="Print fragments as they arrive.")
@click.option("--json", "json_output", is_flag=True, help="Print the response as JSON.")
def generate(prompt: str, system: str, stream: bool, json_output: bool) -> None:
    """Send one prompt to the configured provider and print the reply."""
    if stream and json_output:
        raise click.ClickException("--stream and --json cannot be combined")
    client = _load()
    try:
        if stream:
            asyncio.run(
                client.generate_stream(
                    prompt,
                    system,
                    on_chunk=lambda text: click.echo(text, nl=False),
                    on_complete=click.echo,
                )
            )
            return
        response = asyncio.run(client.generate(prompt, system))
    except GenerationError as exc:
        raise click.ClickException(user_friendly_error(exc)) from exc

    if not json_output:
        click.echo(response.content)
        return
    usage = None
    if response.usage is not None:
        usage = {
            "prompt_tokens": response.usage.prompt_tokens,
            "completion_tokens": response.usage.completion_tokens,
        }
    click.echo(json.dumps({"content": response.content, "model": response.model, "usage": usage}))


@cli.command("test-connection")
def test_connection() -> None:
    """Check that the configured provider answers a fixed prompt."""
    client = _load()
    try:
        ok = asyncio.run(client.test_connection())
    except GenerationError as exc:
        raise click.ClickException(user_friendly_error(exc)) from exc
    if not ok:
        click.echo("connection test failed: unexpected reply", err=True)
        sys.exit(1)
    click.echo(f"connected ({client.config.provider}, model {client.config.model})")


@cli.command("show-config")
def show_config() -> None:
    """Print the effective provider configuration with the API key masked."""
    settings = get_settings()
    config = settings.provider_config()
    click.echo(
        json.dumps(
            {
                "provider": str(config.provider),
                "model": config.model,
                "api_key": _mask(config.api_key),
                "endpoint": config.endpoint,
                "temperature": config.temperature,
                "max_tokens": config.max_tokens,
                "platform": settings.ai_platform,
            },
            indent=2,
        )
    )


if __name__ == "__main__":
    cli()
