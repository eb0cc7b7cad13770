"""Main CLI entry point."""

import logging

import click
from tdyvoucher.database.factories import create_sqlite_rate_table
from tdyvoucher.domain.rates import DEFAULT_MAX_WORKERS
from tdyvoucher.utils.logging import configure_logging

# Import and register all commands at module level
from tdyvoucher.cli.commands import (
    rate,
    estimate,
    voucher,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to rate table database file (overrides TDYVOUCHER_DB_PATH environment variable)",
    envvar="TDYVOUCHER_DB_PATH",
)
@click.option(
    "--rate-timeout",
    type=float,
    default=None,
    envvar="TDYVOUCHER_RATE_TIMEOUT",
    help="Seconds to wait for each rate lookup before treating it as unavailable",
)
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    default=DEFAULT_MAX_WORKERS,
    envvar="TDYVOUCHER_RATE_WORKERS",
    show_default=True,
    help="Concurrent rate lookups per trip",
)
@click.option("--verbose", "-v", is_flag=True, help="Log rate lookups to stderr")
@click.pass_context
def cli(ctx, db_path: str | None, rate_timeout: float | None, workers: int, verbose: bool):
    """TDY voucher - travel reimbursement estimates and voucher packages.

    Estimate per-diem, lodging, mileage and miscellaneous reimbursement for a
    temporary-duty trip and assemble a checklisted voucher.
    """
    ctx.ensure_object(dict)
    configure_logging(logging.DEBUG if verbose else None)

    # Open the rate table only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        ctx.obj["rates"] = create_sqlite_rate_table(database_path=db_path)
        ctx.obj["rate_timeout"] = rate_timeout
        ctx.obj["workers"] = workers


# Register all commands
rate.register_commands(cli)
estimate.register_commands(cli)
voucher.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
