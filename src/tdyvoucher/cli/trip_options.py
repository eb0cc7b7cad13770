"""CLI helpers for describing a trip on the command line."""

import functools

import click

from tdyvoucher.domain.entities import LocalityPlan, Trip
from tdyvoucher.domain.errors import DomainError
from tdyvoucher.domain.estimate import EstimateService
from tdyvoucher.domain.rates import RateResolver
from tdyvoucher.utils.date_parser import parse_date, parse_locality_stop


def trip_options(func):
    """Add the options that describe a trip and its items file."""

    @click.argument("items_csv", type=click.Path(exists=True))
    @click.option("--depart", "depart_date", required=True, help="Departure date (YYYY-MM-DD)")
    @click.option("--return", "return_date", required=True, help="Return date (YYYY-MM-DD)")
    @click.option("--locality", required=True, help="Per-diem locality for the trip")
    @click.option(
        "--stop",
        "stops",
        multiple=True,
        help="Day spent in another locality, as DATE=LOCALITY (repeatable)",
    )
    @click.option("--trip-id", default="TRIP-1", show_default=True, help="Trip identifier")
    @click.option("--purpose", default="", help="Purpose of travel")
    @click.option("--origin", default="", help="Where the trip starts")
    @click.option("--destination", default="", help="TDY location")
    @click.option("--json", "as_json", is_flag=True, help="Print JSON instead of a table")
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        return func(*args, **kwargs)

    return wrapper


def build_trip(
    ctx: click.Context,
    *,
    trip_id: str,
    depart_date: str,
    return_date: str,
    locality: str,
    stops: tuple[str, ...],
    purpose: str,
    origin: str,
    destination: str,
) -> Trip:
    """Build a Trip from CLI options, exiting on bad input."""
    try:
        departure = parse_date(depart_date)
        return_ = parse_date(return_date)
        overrides = dict(parse_locality_stop(stop) for stop in stops)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    try:
        return Trip(
            trip_id=trip_id,
            departure_date=departure,
            return_date=return_,
            localities=LocalityPlan.from_map(locality, overrides),
            purpose=purpose,
            origin=origin,
            destination=destination,
        )
    except DomainError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


def build_estimate_service(ctx: click.Context) -> EstimateService:
    """Estimate service over the configured rate table."""
    resolver = RateResolver(
        ctx.obj["rates"],
        max_workers=ctx.obj.get("workers", 1),
        timeout=ctx.obj.get("rate_timeout"),
    )
    return EstimateService(resolver)
