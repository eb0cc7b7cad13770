"""Voucher command."""

import click
from tdyvoucher.cli.commands.estimate import display_estimate
from tdyvoucher.cli.error_handling import handle_domain_error
from tdyvoucher.cli.trip_options import build_estimate_service, build_trip, trip_options
from tdyvoucher.domain.csv_import import ItemCSVImportService
from tdyvoucher.domain.errors import DomainError
from tdyvoucher.domain.voucher import VoucherAssembler


@click.command("voucher")
@trip_options
@click.option(
    "--premium",
    is_flag=True,
    envvar="TDYVOUCHER_PREMIUM",
    help="Caller holds the premium access claim required to finalize",
)
@click.pass_context
def voucher(
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
    premium: bool,
):
    """Assemble a finalized voucher for a trip.

    Runs a fresh estimate, then finalizes it with the submission checklist.
    Finalizing requires --premium.
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
    assembler = VoucherAssembler(build_estimate_service(ctx))

    try:
        raw_items = ItemCSVImportService().read(items_csv)
        workflow = assembler.estimate(assembler.start(trip, raw_items))
        workflow = assembler.finalize(workflow, has_access=premium)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    package = workflow.voucher
    if as_json:
        click.echo(package.to_json())
        return

    summary = package.trip.summary()
    click.echo(f"Voucher {package.voucher_id}")
    click.echo("=" * 96)
    click.echo(f"Trip:        {summary['trip_id']}")
    if summary["purpose"]:
        click.echo(f"Purpose:     {summary['purpose']}")
    if summary["origin"] or summary["destination"]:
        click.echo(f"Route:       {summary['origin']} -> {summary['destination']}")
    click.echo(f"Dates:       {summary['departure_date']} to {summary['return_date']}")
    click.echo(f"Items:       {len(package.items)}")
    display_estimate(package.estimate)

    click.echo("\nChecklist:")
    for line in package.checklist_lines:
        click.echo(f"  {line}")


def register_commands(cli):
    """Register voucher command with main CLI."""
    cli.add_command(voucher)
