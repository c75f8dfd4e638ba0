"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, List, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..bootstrap import Services, build_services
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import AvailabilityFetchError, ClientInputError
from ..domain.models import BookingRequest

app = typer.Typer(
    name="consultslot",
    help="Find free consultation slots and book them",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
MockOption = Annotated[
    bool,
    typer.Option("--mock", help="Use the bundled mock calendar; no email or CRM calls."),
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
):
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_services(config_file: Optional[Path], mock: bool) -> Services:
    """Load configuration and build services, exiting with a message on failure."""
    config_path = config_file or get_default_config_path()

    try:
        if config_path.exists() or not mock:
            config = AppConfig.load_from_yaml(config_path)
        else:
            config = AppConfig()
        return build_services(config, mock=mock)

    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def availability(
    start: Annotated[Optional[str], typer.Option("--start", help="First day (YYYY-MM-DD). Defaults to today")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="Last day (YYYY-MM-DD). Defaults to --start")] = None,
    tz: Annotated[Optional[str], typer.Option("--tz", help="Timezone to display slots in")] = None,
    show_busy: Annotated[bool, typer.Option("--show-busy", help="Also list slots that are taken")] = False,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Show consultation slots per day.

    Examples:

        consultslot availability --start 2025-01-06 --end 2025-01-10

        consultslot availability --tz Europe/Berlin --mock
    """
    services = _load_services(config_file, mock)
    business_tz = services.availability.business_timezone
    display_tz = tz or business_tz
    start_date = start or pendulum.now(business_tz).to_date_string()

    if mock:
        console.print("[yellow]⚠  MOCK MODE: using bundled calendar data[/yellow]\n")

    try:
        days = asyncio.run(
            services.availability.get_availability(
                start_date=start_date,
                end_date=end,
                timezone=display_tz,
            )
        )
    except ClientInputError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)
    except AvailabilityFetchError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    for day in days:
        slots = day.slots if show_busy else tuple(day.available_slots())

        table = Table(
            title=f"{day.date.format('dddd, D MMMM YYYY')} ({display_tz})",
            show_header=True,
            header_style="bold cyan",
        )
        table.add_column("Start", style="bold yellow")
        table.add_column("End")
        table.add_column("Status")

        for slot in slots:
            local = slot.time_range.in_timezone(display_tz)
            status = "[green]free[/green]" if slot.available else "[red]busy[/red]"
            table.add_row(local.start.format("HH:mm"), local.end.format("HH:mm"), status)

        if not slots:
            table.add_row("-", "-", "[yellow]no free slots[/yellow]")

        console.print(table)
        console.print()


@app.command()
def book(
    name: Annotated[str, typer.Option("--name", help="Name of the person booking")],
    email: Annotated[str, typer.Option("--email", help="Email of the person booking")],
    start: Annotated[str, typer.Option("--start", help="Slot start, ISO 8601")],
    end: Annotated[str, typer.Option("--end", help="Slot end, ISO 8601")],
    company: Annotated[str, typer.Option("--company")] = "",
    website: Annotated[str, typer.Option("--website")] = "",
    tz: Annotated[str, typer.Option("--tz", help="Requester's timezone")] = "",
    focus: Annotated[Optional[List[str]], typer.Option("--focus", help="Focus area (repeatable)")] = None,
    country: Annotated[Optional[List[str]], typer.Option("--country", help="Target country (repeatable)")] = None,
    timeline: Annotated[str, typer.Option("--timeline")] = "",
    challenge: Annotated[str, typer.Option("--challenge", help="Primary challenge")] = "",
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Book a consultation slot.
    """
    services = _load_services(config_file, mock)

    request = BookingRequest(
        name=name,
        email=email,
        company=company,
        website=website,
        timezone=tz,
        focus_areas=tuple(focus or ()),
        target_countries=tuple(country or ()),
        timeline=timeline,
        primary_challenge=challenge,
        start_iso=start,
        end_iso=end,
    )

    result = asyncio.run(services.booking.book(request))

    if not result.ok:
        console.print(f"\n[bold red]✗ Booking failed:[/bold red] {result.error}\n")
        raise typer.Exit(1)

    console.print(Panel.fit(
        f"[bold green]✓ Consultation booked successfully![/bold green]\n\n"
        f"[bold]Meeting link:[/bold] {result.meeting_link or 'N/A'}\n"
        f"[bold]Event:[/bold] {result.event_url or 'N/A'}",
        title="Booking"
    ))


@app.command()
def serve(
    host: Annotated[str, typer.Option("--host")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port")] = 3001,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Run the HTTP API.
    """
    import uvicorn

    from ..api import create_app

    services = _load_services(config_file, mock)
    uvicorn.run(create_app(services), host=host, port=port)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]consultslot[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
