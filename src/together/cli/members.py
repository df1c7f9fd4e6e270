"""Member management CLI commands."""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from together.database import get_session_factory
from together.models import MemberType
from together.services.errors import RecoveryError
from together.services.members import MemberDirectory
from together.services.passwords import validate_password_strength
from together.services.targets import normalize_email, normalize_phone

console = Console()
app = typer.Typer(help="Member management commands")


def _directory() -> MemberDirectory:
    return MemberDirectory(get_session_factory())


@app.command("list")
def list_members(
    limit: int = typer.Option(50, "--limit", "-l", help="Number of members to show"),
):
    """List the most recently created members."""

    async def _list():
        members = await _directory().list_members(limit=limit)

        table = Table(title="Members")
        table.add_column("ID", style="cyan")
        table.add_column("Login ID", style="green")
        table.add_column("Name")
        table.add_column("Email")
        table.add_column("Phone")
        table.add_column("Type", style="magenta")
        table.add_column("Status")
        table.add_column("Created", style="dim")

        for member in members:
            created = member.created_at.strftime("%Y-%m-%d") if member.created_at else "-"
            table.add_row(
                member.id,
                member.login_id,
                member.name,
                member.email,
                member.phone_number,
                member.member_type.value,
                member.status.value,
                created,
            )

        console.print(table)

    asyncio.run(_list())


@app.command("create")
def create_member(
    login_id: str = typer.Argument(..., help="Login ID"),
    name: str = typer.Option(..., "--name", "-n", help="Member name"),
    email: str = typer.Option(..., "--email", "-e", help="Email address"),
    phone: str = typer.Option(..., "--phone", "-p", help="Mobile number"),
    member_type: MemberType = typer.Option(MemberType.GENERAL, "--type", help="Member type"),
    password: str | None = typer.Option(
        None, "--password", help="Initial password (omit for SNS-only accounts)"
    ),
):
    """Create a member account."""

    async def _create():
        directory = _directory()
        if await directory.get_by_login_id(login_id):
            console.print(f"[red]Error:[/red] Member {login_id} already exists")
            raise typer.Exit(1)

        try:
            if password:
                validate_password_strength(password)
            member = await directory.create(
                login_id=login_id,
                name=name,
                email=normalize_email(email),
                phone_number=normalize_phone(phone),
                password=password,
                member_type=member_type,
            )
        except RecoveryError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from e

        console.print(f"[green]Created member:[/green] {member.login_id} ({member.id})")

    asyncio.run(_create())


@app.command("set-password")
def set_password(
    login_id: str = typer.Argument(..., help="Login ID"),
    password: str = typer.Option(
        ..., "--password", prompt=True, hide_input=True, confirmation_prompt=True
    ),
):
    """Set a member's password directly."""

    async def _set():
        directory = _directory()
        member = await directory.get_by_login_id(login_id)
        if member is None:
            console.print(f"[red]Error:[/red] Member {login_id} not found")
            raise typer.Exit(1)

        try:
            validate_password_strength(password)
        except RecoveryError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from e

        await directory.update_credential(member.id, password)
        console.print(f"[green]Password updated for:[/green] {login_id}")

    asyncio.run(_set())
