"""CLI commands using Typer."""

import typer

from together.cli.codes import app as codes_app
from together.cli.db import app as db_app
from together.cli.members import app as members_app

app = typer.Typer(name="together", help="Together API CLI")

# Register sub-apps
app.add_typer(db_app, name="db")
app.add_typer(members_app, name="members")
app.add_typer(codes_app, name="codes")


@app.command()
def version():
    """Show version information."""
    from together import __version__

    typer.echo(f"Together API v{__version__}")


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Host to bind to"),
    port: int = typer.Option(8000, help="Port to bind to"),
    reload: bool = typer.Option(False, help="Enable auto-reload"),
):
    """Run the API server."""
    import uvicorn

    from together.logging import get_uvicorn_log_config

    uvicorn.run(
        "together.main:app",
        host=host,
        port=port,
        reload=reload,
        log_config=get_uvicorn_log_config(),
    )


@app.command()
def worker(
    concurrency: int = typer.Option(2, help="Number of concurrent tasks"),
):
    """Run the background task worker, including the code purge cron job."""
    import asyncio

    from saq import Worker

    from together.logging import setup_logging
    from together.tasks import get_queue_settings

    setup_logging()
    settings = get_queue_settings()

    typer.echo(f"Starting worker with concurrency={concurrency}")

    async def run_worker():
        w = Worker(
            queue=settings["queue"],
            functions=settings["functions"],
            concurrency=concurrency,
            cron_jobs=settings.get("cron_jobs"),
            startup=settings.get("startup"),
            shutdown=settings.get("shutdown"),
        )
        await w.start()

    asyncio.run(run_worker())


if __name__ == "__main__":
    app()
