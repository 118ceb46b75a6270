"""
Main CLI application using Typer.
"""

import logging
from pathlib import Path
from typing import Annotated, List, NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..config import AppConfig
from ..domain.exceptions import SchedulerError
from ..domain.models import format_time
from ..services.scheduling_service import SchedulingService
from ..services.schemas import AvailabilityRequest

app = typer.Typer(
    name="slotify",
    help="Find common meeting slots from CSV calendars",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml if present")]
CalendarOption = Annotated[Optional[Path], typer.Option("--calendar", help="Calendar CSV (participant,subject,start,end)")]
BlackoutOption = Annotated[Optional[Path], typer.Option("--blackouts", help="Blackout CSV (start,end)")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging")]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _build_service(
    config: AppConfig,
    calendar: Optional[Path],
    blackouts: Optional[Path],
) -> SchedulingService:
    """
    Create the service and load data into it.

    The calendar file is always read for in-memory storage. With Redis the
    stored schedules are used unless a calendar is given explicitly.
    """
    service = SchedulingService.from_config(config)

    if calendar is not None or not config.redis.is_enabled():
        service.load_calendar(calendar or config.data.calendar_path)

    service.load_blackouts(blackouts or config.data.blackout_path)
    return service


def _fail(message: str) -> NoReturn:
    console.print(f"[bold red]Error:[/bold red] {message}")
    raise typer.Exit(1)


@app.command()
def find(
    required: Annotated[List[str], typer.Argument(help="Required participants, e.g. 'Alice Jack'")],
    optional: Annotated[Optional[List[str]], typer.Option("--optional", "-o", help="Optional participant (repeatable)")] = None,
    duration: Annotated[int, typer.Option("--duration", "-d", help="Meeting duration in minutes")] = 60,
    buffer: Annotated[Optional[int], typer.Option("--buffer", "-b", help="Buffer between meetings in minutes")] = None,
    calendar: CalendarOption = None,
    blackouts: BlackoutOption = None,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Find slots where all required participants are free.

    Examples:

        slotify find Alice Jack

        slotify find Alice Jack --duration 30 --buffer 10

        slotify find Alice -o Jack -o Bob --calendar calendar.csv
    """
    _configure_logging(verbose)

    try:
        config = AppConfig.load(config_file)
        service = _build_service(config, calendar, blackouts)

        request = AvailabilityRequest(
            required_participants=required,
            optional_participants=optional or [],
            duration_minutes=duration,
            buffer_minutes=buffer,
        )
        buffer_minutes = buffer if buffer is not None else config.scheduling.buffer_minutes
        slots = service.find_slots(request)
    except SchedulerError as e:
        _fail(e.message)
    except (FileNotFoundError, ValueError) as e:
        _fail(str(e))

    console.print()
    console.print("[bold cyan]Summary:[/bold cyan]")
    console.print(f"   Required: {', '.join(required)}")
    if optional:
        console.print(f"   Optional: {', '.join(optional)}")
    console.print(f"   Duration: {duration} minutes")
    console.print(f"   Buffer: {buffer_minutes} minutes")
    console.print()

    if not slots:
        console.print(
            "[yellow]No available slots found.[/yellow]\n"
            "Try a shorter meeting or fewer required participants."
        )
        console.print()
        return

    table = Table(
        title=f"{len(slots)} available slot(s)",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Start", style="bold green")
    table.add_column("End")
    if optional:
        table.add_column("Available (optional)", style="green")
        table.add_column("Unavailable (optional)", style="red")

    for slot in slots:
        row = [format_time(slot.time_slot.start), format_time(slot.time_slot.end)]
        if optional:
            row.append(", ".join(slot.available_optional_participants) or "-")
            row.append(", ".join(slot.unavailable_optional_participants) or "-")
        table.add_row(*row)

    console.print(table)
    console.print()


@app.command()
def load(
    calendar: CalendarOption = None,
    blackouts: BlackoutOption = None,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Load a calendar into storage and show the merged busy times.
    """
    _configure_logging(verbose)

    try:
        config = AppConfig.load(config_file)
        service = SchedulingService.from_config(config)
        service.load_calendar(calendar or config.data.calendar_path)
        blackout_slots = service.load_blackouts(blackouts or config.data.blackout_path)
        busy = service.busy_slots()
    except SchedulerError as e:
        _fail(e.message)
    except (FileNotFoundError, ValueError) as e:
        _fail(str(e))

    table = Table(
        title="Busy times",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Participant", style="bold yellow")
    table.add_column("Busy")

    for name, slots in busy.items():
        table.add_row(name, ", ".join(str(slot) for slot in slots) or "-")

    console.print()
    console.print(table)
    console.print(f"\n[green]✓ Loaded {len(busy)} participant(s) and {len(blackout_slots)} blackout period(s).[/green]\n")


@app.command()
def participants(
    calendar: CalendarOption = None,
    config_file: ConfigOption = None,
):
    """
    List all known participants.
    """
    try:
        config = AppConfig.load(config_file)
        service = SchedulingService.from_config(config)
        if calendar is not None or not config.redis.is_enabled():
            service.load_calendar(calendar or config.data.calendar_path)
        names = service.participants()
    except SchedulerError as e:
        _fail(e.message)
    except (FileNotFoundError, ValueError) as e:
        _fail(str(e))

    if not names:
        console.print("[yellow]No participants found.[/yellow]")
        return

    for name in names:
        console.print(f"  {name}")


@app.command()
def serve(
    host: Annotated[str, typer.Option("--host", help="Interface to bind")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port", "-p", help="Port to listen on")] = 8080,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Run the HTTP API.
    """
    import uvicorn

    from ..web.app import create_app

    _configure_logging(verbose)

    try:
        config = AppConfig.load(config_file)
        service = SchedulingService.from_config(config)
        service.load_blackouts(config.data.blackout_path)
    except SchedulerError as e:
        _fail(e.message)
    except (FileNotFoundError, ValueError) as e:
        _fail(str(e))

    console.print(f"[bold cyan]slotify[/bold cyan] listening on http://{host}:{port}")
    uvicorn.run(create_app(service), host=host, port=port)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]slotify[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
