"""Verification code CLI commands."""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from together.config import settings
from together.database import get_session_factory
from together.models import VerificationPurpose
from together.services.errors import RecoveryError
from together.services.verification import VerificationService
from together.services.verification_store import VerificationStore
from together.tasks import queue
from together.tasks.maintenance import MAINTENANCE_TIMEOUT_SECONDS

console = Console()
app = typer.Typer(help="Verification code commands")


@app.command("purge")
def purge(
    retention_hours: int = typer.Option(
        settings.verification_retention_hours,
        "--hours",
        help="Keep codes that expired less than this many hours ago",
    ),
    background: bool = typer.Option(False, "--background", "-b", help="Run in background worker"),
):
    """Delete expired verification codes."""

    async def _purge():
        if background:
            job = await queue.enqueue(
                "purge_expired_verification_codes",
                retention_hours=retention_hours,
                timeout=MAINTENANCE_TIMEOUT_SECONDS,
            )
            console.print(f"[green]Queued purge job:[/green] {job.id if job else 'unknown'}")
            return

        from together.tasks.maintenance import purge_expired_verification_codes

        result = await purge_expired_verification_codes(ctx={}, retention_hours=retention_hours)
        if not result.get("success"):
            console.print(f"[red]Error:[/red] {result.get('error')}")
            raise typer.Exit(1)

        table = Table(title="Verification Code Purge")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", justify="right")
        table.add_row("Cutoff", result["cutoff"])
        table.add_row("Deleted", str(result["deleted"]))
        console.print(table)

    asyncio.run(_purge())


@app.command("issue")
def issue(
    target: str = typer.Argument(..., help="Email address or mobile number"),
    purpose: VerificationPurpose = typer.Argument(..., help="Verification purpose"),
):
    """Issue a code and print it instead of delivering it (development only)."""
    if settings.is_production:
        console.print("[red]Error:[/red] codes issue is disabled in production")
        raise typer.Exit(1)

    async def _issue():
        service = VerificationService(VerificationStore(get_session_factory()))
        try:
            record = await service.issue(target, purpose, deliver=False)
        except RecoveryError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from e

        console.print(f"[green]Code:[/green] {record.code}")
        console.print(f"[dim]Target: {record.target} / Expires: {record.expires_at}[/dim]")

    asyncio.run(_issue())
