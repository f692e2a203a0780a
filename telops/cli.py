"""telops CLI.

Commands:
- init: Initialize database schema
- kpi: Print the KPI summary for a time range
- health: Print component health scores
- snapshot: Record a metrics snapshot
- add-item: Open an inventory item with its starting balance
- web serve: Run the HTTP API
"""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from telops.config import get_config
from telops.core.logging import configure_logging
from telops.db.connection import Database
from telops.models import Actor, parse_time_range
from telops.services import build_services

app = typer.Typer(
    name="telops",
    help="telops - Operational lifecycle engine for network operations",
    no_args_is_help=True,
)

web_cli = typer.Typer(help="Web API")
app.add_typer(web_cli, name="web")

console = Console()


@app.command()
def init(
    drop: bool = typer.Option(False, "--drop", help="Drop existing tables"),
):
    """Initialize database schema."""
    config = get_config()
    console.print(f"[bold]Initializing database:[/bold] {config.db.url}")

    async def _init():
        database = Database.from_config(config)
        try:
            if drop:
                console.print("[yellow]Dropping existing tables...[/yellow]")
            console.print("[green]Creating tables...[/green]")
            await database.create_all(drop=drop)
        finally:
            await database.dispose()

    asyncio.run(_init())
    console.print("[bold green]✓[/bold green] Database initialized")


@app.command()
def kpi(
    time_range: str | None = typer.Option(
        None, "--range", "-r", help="daily, weekly, monthly, quarterly, yearly or a number of days"
    ),
):
    """Show KPI metrics for a trailing window."""
    config = get_config()
    configure_logging(config.log_level, config.log_format)
    try:
        window_days = parse_time_range(time_range, default=config.metrics.default_time_range)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    async def _kpi():
        database = Database.from_config(config)
        try:
            services = build_services(database, config)
            return await services.metrics.kpi_summary(window_days)
        finally:
            await database.dispose()

    metrics = asyncio.run(_kpi())

    table = Table(title=f"KPI Summary (last {window_days} days)")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")

    table.add_row("Uptime %", f"{metrics.uptime_percent:.2f}")
    table.add_row("Availability %", f"{metrics.availability_percent:.2f}")
    table.add_row("MTTR (min)", f"{metrics.mttr_minutes:.2f}")
    table.add_row("Avg first response (min)", f"{metrics.avg_first_response_minutes:.2f}")
    table.add_row("Faults / day", f"{metrics.fault_frequency_daily:.2f}")
    table.add_row("Resolution rate %", f"{metrics.resolution_rate_percent:.2f}")
    table.add_row("Faults in window", str(metrics.faults_in_window))
    table.add_row("Components", str(metrics.total_components))
    console.print(table)

    if metrics.technician_performance:
        techs = Table(title="Technician Performance")
        techs.add_column("Technician", style="cyan")
        techs.add_column("Assigned", justify="right")
        techs.add_column("Resolved", justify="right", style="green")
        techs.add_column("Avg resolution (min)", justify="right")
        for row in metrics.technician_performance:
            techs.add_row(
                row.name,
                str(row.assigned_count),
                str(row.resolved_count),
                f"{row.avg_resolution_time:.2f}",
            )
        console.print(techs)


@app.command()
def health():
    """Show component health scores, least healthy first."""
    config = get_config()

    async def _health():
        database = Database.from_config(config)
        try:
            return await build_services(database, config).metrics.component_health()
        finally:
            await database.dispose()

    rows = asyncio.run(_health())

    table = Table(title="Component Health")
    table.add_column("Component", style="cyan")
    table.add_column("Status")
    table.add_column("Open", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Score", justify="right", style="green")
    for row in rows:
        table.add_row(
            row.name, row.status, str(row.open_faults), str(row.total_faults), str(row.health_score)
        )
    console.print(table)


@app.command()
def snapshot():
    """Record today's headline metrics (run from cron for trend history)."""
    config = get_config()
    configure_logging(config.log_level, config.log_format)

    async def _snapshot():
        database = Database.from_config(config)
        try:
            return await build_services(database, config).metrics.record_snapshot()
        finally:
            await database.dispose()

    recorded = asyncio.run(_snapshot())
    console.print(
        f"[bold green]✓[/bold green] Snapshot #{recorded.id} recorded: "
        f"uptime {recorded.uptime_percent:.2f}%, "
        f"{recorded.total_faults_today} faults today"
    )


@app.command(name="add-item")
def add_item(
    name: str = typer.Argument(..., help="Item name"),
    category: str = typer.Option(..., "--category", "-c", help="Item category"),
    quantity: int = typer.Option(0, "--quantity", "-q", help="Opening balance"),
    min_level: int | None = typer.Option(None, "--min-level", help="Reorder threshold"),
    location: str | None = typer.Option(None, "--location", help="Storage location"),
    actor_id: int = typer.Option(..., "--actor", help="User ID recorded on the opening movement"),
):
    """Open an inventory item and record its opening stock."""
    config = get_config()
    configure_logging(config.log_level, config.log_format)

    async def _add():
        database = Database.from_config(config)
        try:
            services = build_services(database, config)
            return await services.inventory.open_item(
                Actor(id=actor_id, username="cli"),
                name,
                category,
                quantity=quantity,
                min_level=min_level,
                location=location,
            )
        finally:
            await database.dispose()

    result = asyncio.run(_add())
    if not result.ok:
        console.print(f"[red]✗[/red] {result.detail}")
        raise typer.Exit(code=1)
    item = result.value
    console.print(
        f"[bold green]✓[/bold green] Created item #{item.id} {item.name} (quantity {item.quantity})"
    )


@web_cli.command("serve")
def web_serve(
    host: str = typer.Option("0.0.0.0", help="Host to bind"),
    port: int = typer.Option(8001, help="Port to bind"),
    reload: bool = typer.Option(False, help="Enable autoreload (dev only)"),
):
    """Run the FastAPI lifecycle API."""
    import uvicorn

    typer.echo(f"Starting telops API on http://{host}:{port}")
    uvicorn.run(
        "telops.web.app:create_app", factory=True, host=host, port=port, reload=reload, workers=1
    )


if __name__ == "__main__":
    app()
