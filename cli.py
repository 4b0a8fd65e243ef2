"""CLI commands for campus event management."""

import asyncio
from datetime import timedelta
from uuid import UUID

import typer

from campus_events.config.database import async_session_manager
from campus_events.config.logging import setup_logging
from campus_events.events.dtos import EventVisibility
from campus_events.events.repository.write_models import SqlEventWriteModel
from campus_events.models.user import User
from campus_events.registrations.dtos import RegistrationError
from campus_events.registrations.repository.write_models import SqlRegistrationWriteModel
from campus_events.reminders.scheduler import build_reminder_scheduler, start_reminder_scheduler
from campus_events.utils.timezone import utcnow

app = typer.Typer(help="CLI commands for campus event management")


@app.callback()
def main():
    setup_logging()


@app.command()
def create_user(
    email: str = typer.Argument(..., help="Email address of the user"),
    name: str = typer.Argument(..., help="Display name of the user"),
    no_reminders: bool = typer.Option(
        False,
        "--no-reminders",
        help="Opt the user out of reminder emails",
    ),
):
    """Create a user that can register for events."""

    async def _create_user():
        async with async_session_manager() as session:
            user = User(email=email, name=name, email_reminders=not no_reminders)
            session.add(user)
            await session.flush()
            return user.uuid

    user_id = asyncio.run(_create_user())

    typer.secho("User created!", fg=typer.colors.GREEN)
    typer.secho(f"  Email: {email}", fg=typer.colors.BLUE)
    typer.secho(f"  User ID: {user_id}", fg=typer.colors.CYAN)


@app.command()
def create_event(
    title: str = typer.Argument(..., help="Event title"),
    starts_in_minutes: int = typer.Option(
        24 * 60,
        "--starts-in",
        "-s",
        help="Minutes from now until the event starts",
    ),
    capacity: int = typer.Option(
        None,
        "--capacity",
        "-c",
        help="Maximum number of registrations, unlimited when omitted",
    ),
    venue: str = typer.Option(None, "--venue", "-v", help="Where the event takes place"),
    private: bool = typer.Option(False, "--private", help="Hide the event from reminders"),
):
    """Create an event starting a number of minutes from now."""
    write_model = SqlEventWriteModel()
    try:
        event = asyncio.run(
            write_model.create_event(
                title=title,
                start_at=utcnow() + timedelta(minutes=starts_in_minutes),
                capacity=capacity,
                venue=venue,
                visibility=EventVisibility.PRIVATE if private else EventVisibility.PUBLIC,
            )
        )
    except ValueError as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(1)

    typer.secho("Event created!", fg=typer.colors.GREEN)
    typer.secho(f"  Title: {event.title}", fg=typer.colors.BLUE)
    typer.secho(f"  Starts at: {event.start_at.isoformat()}", fg=typer.colors.BLUE)
    typer.secho(f"  Event ID: {event.id}", fg=typer.colors.CYAN)


@app.command()
def register(
    event_id: str = typer.Argument(..., help="Event UUID"),
    user_id: str = typer.Argument(..., help="User UUID"),
):
    """Register a user for an event."""
    write_model = SqlRegistrationWriteModel()
    try:
        registration = asyncio.run(
            write_model.register(event_id=UUID(event_id), subject_id=UUID(user_id))
        )
    except RegistrationError as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(1)

    typer.secho("Registered!", fg=typer.colors.GREEN)
    typer.secho(f"  Registration ID: {registration.id}", fg=typer.colors.CYAN)


@app.command()
def send_reminders(
    tier: str = typer.Option(
        None,
        "--tier",
        "-t",
        help="Only scan this reminder tier (e.g. 24h, 1h)",
    ),
):
    """Run the reminder scans once and print what was sent."""
    scheduler = build_reminder_scheduler()
    try:
        results = asyncio.run(scheduler.run_now(tier_name=tier))
    except ValueError as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(1)

    for result in results:
        typer.secho(f"{result.tier} reminders", fg=typer.colors.GREEN)
        typer.secho(
            f"  Window: {result.window.start.isoformat()} .. {result.window.end.isoformat()}",
            fg=typer.colors.BLUE,
        )
        typer.secho(f"  Events: {result.events}", fg=typer.colors.BLUE)
        typer.secho(
            f"  Sent: {result.dispatch.sent}, skipped: {result.dispatch.skipped}, "
            f"failed: {result.dispatch.failed}, excluded: {result.dispatch.excluded}",
            fg=typer.colors.CYAN,
        )


@app.command()
def cleanup_reminders():
    """Clear reminder markers of events that are long over."""
    scheduler = build_reminder_scheduler()
    result = asyncio.run(scheduler.cleanup_now())
    if result is None:
        typer.secho("Cleanup failed, see the log for details", fg=typer.colors.RED)
        raise typer.Exit(1)

    typer.secho("Cleanup done!", fg=typer.colors.GREEN)
    typer.secho(f"  Cutoff: {result.cutoff.isoformat()}", fg=typer.colors.BLUE)
    typer.secho(
        f"  Cleared {result.markers_cleared} markers on {result.registrations} registrations",
        fg=typer.colors.CYAN,
    )


@app.command()
def run_scheduler():
    """Run the reminder scheduler as a standalone worker until interrupted."""

    async def _run():
        scheduler = await start_reminder_scheduler()
        if scheduler is None:
            typer.secho("Email transport check failed, see the log", fg=typer.colors.RED)
            raise typer.Exit(1)
        typer.secho("Reminder scheduler running, press Ctrl+C to stop", fg=typer.colors.GREEN)
        try:
            await asyncio.Event().wait()
        finally:
            await scheduler.stop()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        typer.secho("Reminder scheduler stopped", fg=typer.colors.YELLOW)


if __name__ == "__main__":
    app()
