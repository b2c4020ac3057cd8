"""CLI for Real Estimate comparable-based price estimation."""

from __future__ import annotations

import logging
import os
from datetime import date, timedelta
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import get_proptx_settings, get_storage_path, load_config
from .connectors import PropTxConnector
from .estimator import AdjustmentResolver, EstimatorEngine
from .models import TRANSACTION_TYPES, EstimateResult, HomeSpecs, MatchTier, UnitSpecs
from .storage import Storage, export_csv, export_json

app = typer.Typer(
    name="real-estimate",
    help="Comparable-transaction price and rent estimator for condos and homes",
)
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


def _get_storage(cfg: dict) -> Storage:
    """Storage at REAL_ESTIMATE_DB, else the configured path."""
    return Storage(os.environ.get("REAL_ESTIMATE_DB") or get_storage_path(cfg))


def _check_type(transaction_type: str) -> str:
    if transaction_type not in TRANSACTION_TYPES:
        console.print(f"[red]Unknown type {transaction_type!r}; use one of: {', '.join(TRANSACTION_TYPES)}[/red]")
        raise typer.Exit(1)
    return transaction_type


def _money(value: float | None) -> str:
    return f"${value:,.0f}" if value is not None else "-"


def _display_estimate(result: EstimateResult, limit: int = 10) -> None:
    """Render an estimate, or the reference comparables behind a no-estimate result."""
    if result.show_price:
        suffix = "/mo" if result.transaction_type == "lease" else ""
        console.print(
            f"\n[bold green]Estimate: {_money(result.estimated_price)}{suffix}[/bold green] "
            f"(range {_money(result.price_range.low)} - {_money(result.price_range.high)})"
        )
        console.print(f"Tier: [cyan]{result.match_tier.value}[/cyan]  Confidence: {result.confidence.value}")
        console.print(f"[dim]{result.confidence_message}[/dim]")
        if result.current_market_price is not None:
            console.print(f"Most recent comparable: {_money(result.current_market_price)}")
        console.print(
            f"Market: {result.market_speed.status} ({result.market_speed.avg_days_on_market} days avg) "
            f"- {result.market_speed.message}"
        )
        if result.parking_cost or result.locker_cost:
            console.print(
                f"Parking: {_money(result.parking_cost)}/mo  Locker: {_money(result.locker_cost)}/mo"
            )
    else:
        console.print(f"\n[yellow]{result.confidence_message}[/yellow]")
        console.print("[yellow]Contact an agent for a professional assessment.[/yellow]")

    if result.geo_level:
        console.print(f"[dim]Comparables from {result.geo_level} level[/dim]")
    if not result.comparables:
        return

    table = Table(title="Reference Comparables" if result.match_tier == MatchTier.CONTACT else "Comparables")
    table.add_column("Closed", style="dim")
    table.add_column("Unit", style="cyan")
    table.add_column("Bed/Bath", justify="center")
    table.add_column("Size")
    table.add_column("Pkg", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Adjusted", justify="right")
    table.add_column("Quality")
    table.add_column("Notes")

    for comp in result.comparables[:limit]:
        t = comp.transaction
        size = f"{comp.exact_sqft} sqft" if comp.exact_sqft else (t.living_area_range or "")
        notes = comp.mismatch_reason or "; ".join(a.reason for a in comp.adjustments)
        table.add_row(
            t.close_date.isoformat() if t.close_date else "",
            t.unit_number or t.listing_key,
            f"{t.bedrooms}/{t.bathrooms}",
            size,
            str(t.parking or 0),
            _money(t.close_price),
            _money(comp.adjusted_price),
            comp.match_quality.value if comp.match_quality else "-",
            notes,
        )
    console.print(table)


def _export(result: EstimateResult, json_path: Optional[Path], csv_path: Optional[Path]) -> None:
    if json_path:
        export_json(result, json_path)
        console.print(f"[dim]JSON: {json_path}[/dim]")
    if csv_path:
        export_csv(result, csv_path)
        console.print(f"[dim]CSV:  {csv_path}[/dim]")


@app.command("import-csv")
def import_csv(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV of transactions"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
) -> None:
    """Import closed transactions from a CSV file."""
    cfg = load_config(config_path)
    storage = _get_storage(cfg)
    try:
        count = storage.import_transactions_csv(path)
    finally:
        storage.close()
    console.print(f"[green]Imported {count} transaction(s) from {path}[/green]")


@app.command()
def sync(
    building_id: Optional[str] = typer.Option(None, "--building", help="Stamp rows with this building id"),
    community_id: Optional[str] = typer.Option(None, "--community", help="Stamp rows with this community id"),
    municipality_id: Optional[str] = typer.Option(None, "--municipality", help="Stamp rows with this municipality id"),
    odata_filter: Optional[str] = typer.Option(None, "--filter", "-f", help="Extra OData filter clause"),
    years: int = typer.Option(2, "--years", help="How far back to fetch"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
) -> None:
    """Fetch closed transactions from PropTx into the store."""
    cfg = load_config(config_path)
    settings = get_proptx_settings(cfg)
    connector = PropTxConnector(**settings)
    scope = {
        k: v
        for k, v in (
            ("building_id", building_id),
            ("community_id", community_id),
            ("municipality_id", municipality_id),
        )
        if v
    }
    since = date.today() - timedelta(days=365 * years)
    console.print(f"[bold]Fetching closed transactions since {since.isoformat()}...[/bold]")
    result = connector.fetch_closed(since, odata_filter, **scope)

    for e in result.errors:
        console.print(f"[yellow]Warning: {e}[/yellow]")

    if not result.transactions:
        console.print("[yellow]No transactions to save. Check PROPTX_TOKEN in .env.[/yellow]")
        raise typer.Exit(1)

    storage = _get_storage(cfg)
    try:
        storage.save_transactions(result.transactions)
    finally:
        storage.close()
    console.print(f"[green]Saved {len(result.transactions)} transaction(s)[/green]")


@app.command()
def adjustments(
    building_id: str = typer.Argument(..., help="Building id"),
    transaction_type: str = typer.Option("sale", "--type", "-t", help="sale or lease"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
) -> None:
    """Show resolved adjustment values for a building and where each came from."""
    _check_type(transaction_type)
    cfg = load_config(config_path)
    storage = _get_storage(cfg)
    try:
        values = AdjustmentResolver(storage, cfg).resolve(building_id, transaction_type)
    finally:
        storage.close()

    table = Table(title=f"Adjustments: {building_id} ({transaction_type})")
    table.add_column("Field", style="cyan")
    table.add_column("Value", justify="right")
    table.add_column("Source", style="dim")
    table.add_row("Parking (per space)", _money(values.parking_per_space), values.sources.get("parking", ""))
    table.add_row("Locker", _money(values.locker), values.sources.get("locker", ""))
    table.add_row("Bathroom", _money(values.bathroom), values.sources.get("bathroom", ""))
    console.print(table)


@app.command()
def condo(
    building_id: str = typer.Option(..., "--building", "-b", help="Building id"),
    bedrooms: int = typer.Option(..., "--beds", min=0),
    bathrooms: int = typer.Option(..., "--baths", min=0),
    living_area_range: str = typer.Option("", "--range", help="Living area range, e.g. 700-799"),
    exact_sqft: Optional[int] = typer.Option(None, "--sqft", help="Exact square footage"),
    parking: int = typer.Option(0, "--parking", min=0),
    locker: bool = typer.Option(False, "--locker/--no-locker"),
    association_fee: Optional[float] = typer.Option(None, "--fee", help="Monthly maintenance fee"),
    transaction_type: str = typer.Option("sale", "--type", "-t", help="sale or lease"),
    json_path: Optional[Path] = typer.Option(None, "--json", help="Export estimate to JSON"),
    csv_path: Optional[Path] = typer.Option(None, "--csv", help="Export comparables to CSV"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
) -> None:
    """Estimate a condo unit's sale price or monthly rent."""
    _check_type(transaction_type)
    cfg = load_config(config_path)
    specs = UnitSpecs(
        bedrooms=bedrooms,
        bathrooms=bathrooms,
        living_area_range=living_area_range,
        parking=parking,
        has_locker=locker,
        building_id=building_id,
        exact_sqft=exact_sqft,
        association_fee=association_fee,
    )
    storage = _get_storage(cfg)
    try:
        result = EstimatorEngine(storage, config=cfg).estimate_condo(specs, transaction_type)
    finally:
        storage.close()

    _display_estimate(result)
    _export(result, json_path, csv_path)


@app.command()
def home(
    community_id: str = typer.Option(..., "--community", help="Community id"),
    property_subtype: str = typer.Option(..., "--subtype", help="e.g. Detached, Semi-Detached"),
    bedrooms: int = typer.Option(..., "--beds", min=0),
    bathrooms: int = typer.Option(..., "--baths", min=0),
    municipality_id: Optional[str] = typer.Option(None, "--municipality", help="Municipality id"),
    living_area_range: str = typer.Option("", "--range", help="Living area range, e.g. 1500-2000"),
    exact_sqft: Optional[int] = typer.Option(None, "--sqft", help="Exact square footage"),
    parking: int = typer.Option(0, "--parking", min=0),
    lot_width: Optional[float] = typer.Option(None, "--lot-width"),
    lot_depth: Optional[float] = typer.Option(None, "--lot-depth"),
    garage_type: Optional[str] = typer.Option(None, "--garage"),
    basement_type: Optional[str] = typer.Option(None, "--basement"),
    approximate_age: Optional[str] = typer.Option(None, "--age", help="e.g. New, 0-5, 6-15, 16-30"),
    transaction_type: str = typer.Option("sale", "--type", "-t", help="sale or lease"),
    json_path: Optional[Path] = typer.Option(None, "--json", help="Export estimate to JSON"),
    csv_path: Optional[Path] = typer.Option(None, "--csv", help="Export comparables to CSV"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
) -> None:
    """Estimate a freehold home's sale price or monthly rent."""
    _check_type(transaction_type)
    cfg = load_config(config_path)
    specs = HomeSpecs(
        bedrooms=bedrooms,
        bathrooms=bathrooms,
        property_subtype=property_subtype,
        community_id=community_id,
        municipality_id=municipality_id,
        living_area_range=living_area_range,
        exact_sqft=exact_sqft,
        parking=parking,
        lot_width=lot_width,
        lot_depth=lot_depth,
        garage_type=garage_type,
        basement_type=basement_type,
        approximate_age=approximate_age,
    )
    storage = _get_storage(cfg)
    try:
        result = EstimatorEngine(storage, config=cfg).estimate_home(specs, transaction_type)
    finally:
        storage.close()

    _display_estimate(result)
    _export(result, json_path, csv_path)


if __name__ == "__main__":
    app()
