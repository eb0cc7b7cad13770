"""Estimate command."""

import json

import click
from tdyvoucher.cli.error_handling import handle_domain_error
from tdyvoucher.cli.trip_options import build_estimate_service, build_trip, trip_options
from tdyvoucher.domain.csv_import import ItemCSVImportService
from tdyvoucher.domain.entities import EstimateTotals
from tdyvoucher.domain.errors import DomainError
from tdyvoucher.domain.money import format_cents


def display_estimate(totals: EstimateTotals) -> None:
    """Print the day-by-day ledger and category totals."""
    click.echo("\nDaily ledger:")
    click.echo("-" * 96)
    click.echo(
        f"{'Date':<12} {'Locality':<18} {'Type':<7} {'M&IE':>10} {'Lodging':>10} "
        f"{'Mileage':>10} {'Misc':>10} {'Total':>12}"
    )
    click.echo("-" * 96)
    for day, entry in zip(totals.days, totals.ledger):
        kind = "travel" if day.is_travel_day else "full"
        click.echo(
            f"{day.date.isoformat():<12} {day.locality[:18]:<18} {kind:<7} "
            f"{format_cents(entry.mie_allowed_cents):>10} "
            f"{format_cents(entry.lodging_allowed_cents):>10} "
            f"{format_cents(entry.mileage_cents):>10} "
            f"{format_cents(entry.misc_cents):>10} "
            f"{format_cents(entry.total_cents):>12}"
        )
    click.echo("-" * 96)
    click.echo(f"{'M&IE':<20} {format_cents(totals.mie_total_cents):>14}")
    click.echo(f"{'Lodging':<20} {format_cents(totals.lodging_allowed_cents):>14}")
    click.echo(f"{'Mileage':<20} {format_cents(totals.mileage_total_cents):>14}")
    click.echo(f"{'Miscellaneous':<20} {format_cents(totals.misc_total_cents):>14}")
    click.echo(f"{'Grand total':<20} {format_cents(totals.grand_total_cents):>14}")
    if totals.meals_claimed_cents:
        click.echo(
            f"\nMeals claimed ({format_cents(totals.meals_claimed_cents)}) are covered "
            "by M&IE and not reimbursed separately."
        )


@click.command("estimate")
@trip_options
@click.pass_context
def estimate(
    ctx,
    items_csv: str,
    depart_date: str,
    return_date: str,
    locality: str,
    stops: tuple[str, ...],
    trip_id: str,
    purpose: str,
    origin: str,
    destination: str,
    as_json: bool,
):
    """Estimate reimbursement for a trip.

    ITEMS_CSV lists the trip's classified expenses (columns: item_type,
    tx_date, amount, vendor, receipt, nights, nightly_rate, tax, miles,
    origin, destination, description).

    Examples:
        tdyvoucher estimate items.csv --depart 2024-03-04 --return 2024-03-06 --locality "Norfolk, VA"
        tdyvoucher estimate items.csv --depart 2024-03-04 --return 2024-03-08 --locality 23511 --stop 2024-03-07=92134
    """
    trip = build_trip(
        ctx,
        trip_id=trip_id,
        depart_date=depart_date,
        return_date=return_date,
        locality=locality,
        stops=stops,
        purpose=purpose,
        origin=origin,
        destination=destination,
    )
    service = build_estimate_service(ctx)

    try:
        raw_items = ItemCSVImportService().read(items_csv)
        totals = service.recompute(trip, raw_items)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if as_json:
        click.echo(json.dumps(totals.to_dict(), sort_keys=True, indent=2))
        return

    click.echo(
        f"Trip {trip.trip_id}: {trip.departure_date.isoformat()} to "
        f"{trip.return_date.isoformat()} ({trip.day_count} day(s))"
    )
    display_estimate(totals)


def register_commands(cli):
    """Register estimate command with main CLI."""
    cli.add_command(estimate)
