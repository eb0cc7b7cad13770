"""CLI error handling helpers."""

import click

from tdyvoucher.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    if isinstance(error, DomainError) and error.retryable:
        click.echo("The rate source is temporarily unavailable; try again later.", err=True)
    ctx.exit(1)
