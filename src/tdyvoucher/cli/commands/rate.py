"""Rate table commands."""

import click
from tdyvoucher.cli.error_handling import handle_domain_error
from tdyvoucher.domain.errors import DomainError
from tdyvoucher.domain.money import format_cents
from tdyvoucher.domain.rate_table import RateTableService
from tdyvoucher.domain.rates import RateResolver
from tdyvoucher.utils.amount_parser import parse_cents
from tdyvoucher.utils.date_parser import parse_date


@click.group()
def rate_group():
    """Manage per-diem rates."""
    pass


@rate_group.command("add")
@click.argument("locality", metavar="LOCALITY")
@click.option("--mie", required=True, help="Full-day M&IE rate in dollars (e.g., 59.00)")
@click.option("--lodging-cap", required=True, help="Nightly lodging cap in dollars")
@click.option("--mileage", required=True, help="Mileage rate in dollars per mile (e.g., 0.67)")
@click.option("--start", "start_date", required=True, help="First date the rates apply")
@click.option("--end", "end_date", help="Last date the rates apply (open-ended if omitted)")
@click.pass_context
def add_rate(
    ctx,
    locality: str,
    mie: str,
    lodging_cap: str,
    mileage: str,
    start_date: str,
    end_date: str | None,
):
    """Add rates for a locality.

    Examples:
        tdyvoucher rate add "Norfolk, VA" --mie 59 --lodging-cap 150 --mileage 0.67 --start 2024-10-01
        tdyvoucher rate add 23511 --mie 64 --lodging-cap 140 --mileage 0.67 --start 2024-10-01 --end 2025-09-30
    """
    service = RateTableService(ctx.obj["rates"])

    try:
        rate_id = service.add_rate(
            locality=locality,
            effective_start=parse_date(start_date),
            effective_end=parse_date(end_date) if end_date else None,
            mie_rate_cents=parse_cents(mie),
            lodging_cap_cents=parse_cents(lodging_cap),
            mileage_rate_cents=parse_cents(mileage),
        )
        click.echo(f"Added rate for '{locality}' (ID: {rate_id})")
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


@rate_group.command("list")
@click.option("--locality", help="Only show rates for this locality")
@click.pass_context
def list_rates(ctx, locality: str | None):
    """List rates."""
    service = RateTableService(ctx.obj["rates"])

    rates = service.list_rates(locality=locality)
    if not rates:
        click.echo("No rates found.")
        return

    click.echo("\nRates:")
    click.echo("-" * 90)
    for rate in rates:
        end = rate["effective_end"].isoformat() if rate["effective_end"] else "open"
        click.echo(
            f"ID: {rate['id']:3d} | {rate['locality']:20s} | "
            f"{rate['effective_start'].isoformat()} to {end:10s} | "
            f"M&IE {format_cents(rate['mie_rate_cents']):>8s} | "
            f"Lodging {format_cents(rate['lodging_cap_cents']):>9s} | "
            f"Mileage {format_cents(rate['mileage_rate_cents'])}"
        )


@rate_group.command("show")
@click.argument("locality", metavar="LOCALITY")
@click.argument("on_date", metavar="DATE")
@click.pass_context
def show_rate(ctx, locality: str, on_date: str):
    """Show the rates in effect for a locality on a date."""
    resolver = RateResolver(
        ctx.obj["rates"], max_workers=1, timeout=ctx.obj.get("rate_timeout")
    )

    try:
        day = parse_date(on_date)
    except ValueError as e:
        click.echo(f"Error: Invalid date: {e}", err=True)
        ctx.exit(1)

    try:
        snapshot = resolver.resolve_many([(locality, day)])[(locality, day)]
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Rates for '{snapshot.locality}' on {day.isoformat()}:")
    click.echo(f"  M&IE:        {format_cents(snapshot.mie_rate_cents)}")
    click.echo(f"  Lodging cap: {format_cents(snapshot.lodging_cap_cents)}")
    click.echo(f"  Mileage:     {format_cents(snapshot.mileage_rate_cents)} per mile")


@rate_group.command("import")
@click.argument("csv_file", type=click.Path(exists=True))
@click.pass_context
def import_rates(ctx, csv_file: str):
    """Import rates from a CSV file.

    Columns: locality, effective_start, mie, lodging_cap, mileage and
    optionally effective_end.
    """
    service = RateTableService(ctx.obj["rates"])

    try:
        result = service.import_csv(csv_file)
        click.echo("\nImport complete:")
        click.echo(f"  Imported: {result['imported']} rates")
        if result["errors"]:
            click.echo(f"  Errors: {len(result['errors'])}")
            for error in result["errors"]:
                click.echo(f"    {error}", err=True)
    except (ValueError, FileNotFoundError) as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


def register_commands(cli):
    """Register rate commands with main CLI."""
    cli.add_command(rate_group, name="rate")
