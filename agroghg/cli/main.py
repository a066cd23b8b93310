# -*- coding: utf-8 -*-
"""
AgroGHG CLI
====================

Command-line interface for the agricultural emissions engine.

Usage:
    agroghg factors [--subcategory S]
    agroghg resolve SUBCATEGORY [--species S] [--system S]
    agroghg calculate SUBCATEGORY -f key=value ... [--json] [--audit]
    agroghg batch records.yaml
    agroghg import-factors [--database-url URL]
    agroghg version
"""

import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional

import typer
import yaml
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.table import Table

from agroghg._version import __version__
from agroghg.calculation import (
    AuditTrailGenerator,
    BatchCalculator,
    EmissionCalculator,
    normalize_subcategory,
)
from agroghg.catalog import (
    CatalogImporter,
    EmissionFactorCatalog,
    FactorResolver,
    default_catalog,
    load_catalog,
)
from agroghg.config import get_config
from agroghg.db import SQLAlchemyFactorStore
from agroghg.exceptions import AgroGHGException

logger = logging.getLogger(__name__)

# Create the main app
app = typer.Typer(
    name="agroghg",
    help="AgroGHG: agricultural GHG emissions engine (GHG Protocol Brasil)",
    no_args_is_help=True,
    add_completion=False,
)
console = Console()


def _fail(exc: AgroGHGException) -> NoReturn:
    console.print(f"[red][ERROR][/red] {escape(str(exc))}")
    raise typer.Exit(1)


def _catalog() -> EmissionFactorCatalog:
    config = get_config()
    return load_catalog(config.catalog_path) if config.catalog_path else default_catalog()


def _fmt(value: Optional[Decimal]) -> str:
    return "-" if value is None else str(value)


def _parse_fields(fields: List[str]) -> Dict[str, Any]:
    activity: Dict[str, Any] = {}
    for item in fields:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Expected key=value, got {item!r}", param_hint="--field")
        activity[key.strip()] = value.strip()
    return activity


@app.callback()
def _root(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level (defaults to AGROGHG_LOG_LEVEL)"
    ),
):
    """
    AgroGHG - agricultural GHG emissions engine
    """
    level = (log_level or get_config().log_level).upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("agroghg").setLevel(level)


@app.command()
def version():
    """Show AgroGHG version"""
    console.print(f"[bold green]AgroGHG v{__version__}[/bold green]")
    console.print(f"Methodology: {_catalog().methodology_version}")


@app.command()
def factors(
    subcategory: Optional[str] = typer.Option(None, "--subcategory", "-s", help="Only this subcategory"),
):
    """List the emission factor catalog"""
    try:
        catalog = _catalog()
        if subcategory:
            selected = catalog.factors_by_subcategory(normalize_subcategory(subcategory).label)
        else:
            selected = catalog.factors
    except AgroGHGException as e:
        _fail(e)

    table = Table(show_header=True, header_style="bold magenta", title=catalog.methodology_version)
    table.add_column("Name", style="cyan")
    table.add_column("Subcategory")
    table.add_column("CO2", justify="right")
    table.add_column("CH4", justify="right")
    table.add_column("N2O", justify="right")
    table.add_column("Unit")
    table.add_column("Biogenic", justify="right", style="green")

    for factor in selected:
        table.add_row(
            factor.name,
            factor.subcategory,
            _fmt(factor.co2_factor),
            _fmt(factor.ch4_factor),
            _fmt(factor.n2o_factor),
            factor.activity_unit,
            str(factor.biogenic_fraction),
        )

    console.print(table)
    console.print(f"\nTotal: {len(selected)} factors")


@app.command()
def resolve(
    subcategory: str = typer.Argument(..., help="Subcategory label or alias"),
    species: Optional[str] = typer.Option(None, "--species", help="Species qualifier"),
    system: Optional[str] = typer.Option(None, "--system", help="System qualifier"),
):
    """Show the factor selected for a subcategory and qualifiers"""
    try:
        label = normalize_subcategory(subcategory).label
        resolver = FactorResolver(_catalog())
        factor = resolver.resolve(label, species=species, system=system)
    except AgroGHGException as e:
        _fail(e)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Attribute", style="cyan")
    table.add_column("Value")
    table.add_row("Name", factor.name)
    table.add_row("Subcategory", factor.subcategory)
    table.add_row("Source", factor.source)
    table.add_row("Methodology", factor.methodology)
    table.add_row("CO2 factor", _fmt(factor.co2_factor))
    table.add_row("CH4 factor", _fmt(factor.ch4_factor))
    table.add_row("N2O factor", _fmt(factor.n2o_factor))
    table.add_row("Activity unit", factor.activity_unit)
    table.add_row("Biogenic fraction", str(factor.biogenic_fraction))
    table.add_row("Uncertainty", resolver.uncertainty_range(label, species, system))
    console.print(table)


@app.command()
def calculate(
    subcategory: str = typer.Argument(..., help="Subcategory label or alias"),
    field: List[str] = typer.Option([], "--field", "-f", help="Activity field as key=value (repeatable)"),
    as_json: bool = typer.Option(False, "--json", help="Print the full result as JSON"),
    audit: bool = typer.Option(False, "--audit", help="Print the audit trail"),
):
    """Calculate emissions for one activity"""
    activity = _parse_fields(field)
    try:
        result = EmissionCalculator.from_config().calculate(subcategory, activity)
    except AgroGHGException as e:
        _fail(e)

    if as_json:
        typer.echo(result.to_json())
        return

    table = Table(show_header=True, header_style="bold magenta", title=result.subcategory)
    table.add_column("Metric", style="cyan")
    table.add_column("Value (t)", justify="right")
    table.add_row("Raw CO2", str(result.raw_co2))
    table.add_row("Raw CH4", str(result.raw_ch4))
    table.add_row("Raw N2O", str(result.raw_n2o))
    table.add_row("Fossil CO2e", str(result.fossil_co2e))
    table.add_row("Biogenic CO2e", str(result.biogenic_co2e))
    table.add_row("[bold]Total CO2e[/bold]", f"[bold]{result.total_co2e}[/bold]")
    console.print(table)
    console.print(f"Factor: {escape(result.calculation_details['factor']['name'])}")

    if audit:
        trail = AuditTrailGenerator().generate(result)
        console.print(Markdown(trail.to_markdown()))


def _load_records(path: Path) -> List[Dict[str, Any]]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (json.JSONDecodeError, yaml.YAMLError, UnicodeDecodeError, OSError) as e:
        raise typer.BadParameter(f"Cannot read {path.name}: {e}", param_hint="FILE") from e
    if isinstance(data, dict):
        data = data.get("records")
    if not isinstance(data, list) or not all(isinstance(record, dict) for record in data):
        raise typer.BadParameter("Expected a list of records (or a 'records' key)", param_hint="FILE")
    return data


@app.command()
def batch(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON or YAML list of records"),
):
    """Calculate a batch of activity records"""
    records = _load_records(file)
    try:
        calculator = BatchCalculator(EmissionCalculator.from_config())
    except AgroGHGException as e:
        _fail(e)
    result = calculator.calculate_batch(records)

    table = Table(show_header=True, header_style="bold magenta", title="Totals by subcategory")
    table.add_column("Subcategory", style="cyan")
    table.add_column("Total CO2e (t)", justify="right")
    for subcategory, total in result.totals_by_subcategory.items():
        table.add_row(subcategory, str(total))
    console.print(table)

    console.print(f"Records: {len(result.items)} ({result.successful_count} ok, {result.failed_count} failed)")
    console.print(f"Fossil CO2e: {result.fossil_co2e} t")
    console.print(f"Biogenic CO2e: {result.biogenic_co2e} t")
    console.print(f"[bold]Total CO2e: {result.total_co2e} t[/bold]")

    for message in result.get_errors():
        console.print(f"[yellow][WARN][/yellow] {escape(message)}")


@app.command("import-factors")
def import_factors(
    database_url: Optional[str] = typer.Option(
        None, "--database-url", help="SQLAlchemy URL (defaults to AGROGHG_DATABASE_URL)"
    ),
):
    """Upsert the catalog into the emission factor store"""
    url = database_url or get_config().database_url
    try:
        catalog = _catalog()
        store = SQLAlchemyFactorStore.from_url(url)
    except AgroGHGException as e:
        _fail(e)

    try:
        report = CatalogImporter(store).import_factors(catalog)
    finally:
        store.close()

    console.print(
        f"[green][OK][/green] Imported {report.success_count} factors "
        f"({report.inserted_count} inserted, {report.updated_count} updated)"
    )
    for message in report.errors:
        console.print(f"[red][ERROR][/red] {escape(message)}")
    if report.errors:
        raise typer.Exit(1)


def main():
    """Console script entry point"""
    app()


if __name__ == "__main__":
    main()
