"""Run the HTTP service."""

import typer

from src.shortlinks.runtime.context import get_config


def serve(
    host: str | None = typer.Option(None, "--host", help="Interface to bind (default: app.host)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to bind (default: app.port)"),
    reload: bool = typer.Option(False, "--reload", help="Reload on source changes"),
) -> None:
    """Start the API server."""
    import uvicorn

    config = get_config().app
    uvicorn.run(
        "src.shortlinks.api.http.app:app",
        host=host or config.host,
        port=port or config.port,
        reload=reload,
        access_log=False,
    )
