"""CLI commands for Inkwell."""

import asyncio
import sys
from datetime import timedelta
from pathlib import Path

import click

from inkwell.config import Settings, get_settings
from inkwell.lib.exceptions import ConfigurationError
from inkwell.lib.observability import configure_logging

LOG_LEVELS = ["debug", "info", "warning", "error"]


def _load_settings() -> Settings:
    try:
        return get_settings()
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.version_option(package_name="inkwell")
def cli():
    """Inkwell - a minimal blog service."""
    pass


def _hypercorn_config(host: str, port: int, workers: int, log_level: str):
    from hypercorn.config import Config

    config = Config()
    config.application_path = "inkwell.asgi:app"
    config.bind = [f"{host}:{port}"]
    config.workers = workers
    config.loglevel = log_level.upper()
    config.include_server_header = False
    return config


def _serve_until_signalled(app, config) -> None:
    """Run hypercorn in this process until SIGINT or SIGTERM."""
    import signal

    from hypercorn.asyncio import serve as hypercorn_serve

    loop = asyncio.new_event_loop()
    stop = asyncio.Event()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, stop.set)
    try:
        loop.run_until_complete(hypercorn_serve(app, config, shutdown_trigger=stop.wait))
    finally:
        loop.close()


@cli.command()
@click.option("--host", default="0.0.0.0", help="Host to bind to")
@click.option("--port", default=8080, type=int, help="Port to bind to")
@click.option("--reload", is_flag=True, help="Restart when source files change")
@click.option("--workers", default=1, type=int, help="Number of worker processes")
@click.option("--log-level", default="info", type=click.Choice(LOG_LEVELS), help="Logging level")
def serve(host, port, reload, workers, log_level):
    """Serve the blog over HTTP."""
    configure_logging(log_level)

    # Fail before binding when DATABASE_URL is missing
    _load_settings()

    if reload:
        from hypercorn.run import run

        config = _hypercorn_config(host, port, 1, log_level)
        config.use_reloader = True
        run(config)
        return

    from inkwell.asgi import create_app

    config = _hypercorn_config(host, port, workers, log_level)
    click.echo(f"Inkwell listening on http://{host}:{port}")
    _serve_until_signalled(create_app(), config)


def _run_alembic(args: list[str]) -> None:
    """Build an Alembic Config programmatically and run the given command."""
    from alembic.config import CommandLine, Config

    cfg = Config()
    cfg.set_main_option("script_location", str(Path(__file__).parent / "alembic"))

    cmd = CommandLine()
    options = cmd.parser.parse_args(args)
    if not hasattr(options, "cmd"):
        cmd.parser.error("too few arguments")
    else:
        cfg.cmd_opts = options
        fn, positional, kwarg = options.cmd
        fn(
            cfg,
            *[getattr(options, k, None) for k in positional],
            **{k: getattr(options, k, None) for k in kwarg},
        )


@cli.command(
    context_settings=dict(
        ignore_unknown_options=True,
        allow_extra_args=True,
    )
)
@click.pass_context
def db(ctx):
    """Run database migrations via Alembic.

    \b
    Examples:
        inkwell db upgrade head    # Create or update the blog_posts table
        inkwell db current         # Show current revision
        inkwell db history         # Show migration history
    """
    if not ctx.args:
        click.echo(ctx.get_help())
        return

    _load_settings()
    _run_alembic(ctx.args)


async def _sweep_orphans(settings: Settings, *, delete: bool, min_age: timedelta) -> list[str]:
    from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

    from inkwell.db.services import asset_service
    from inkwell.lib.storage import LocalAssetStore

    store = LocalAssetStore(Path(settings.uploads.directory), url_prefix=settings.uploads.url_prefix)
    engine = create_async_engine(settings.database_url)
    try:
        async with AsyncSession(engine) as session:
            if delete:
                return await asset_service.remove_orphans(session, store, min_age=min_age)
            return await asset_service.find_orphans(session, store, min_age=min_age)
    finally:
        await engine.dispose()


@cli.command()
@click.option("--delete", is_flag=True, help="Remove the orphaned files instead of listing them")
@click.option(
    "--min-age",
    default=3600,
    type=click.IntRange(min=0),
    help="Only consider files older than this many seconds",
)
def orphans(delete, min_age):
    """Find stored assets that no post references.

    Files are orphaned when a submission fails after its image or avatar was
    written. Recent files are skipped because their post may still be
    committing.
    """
    configure_logging("warning")
    settings = _load_settings()

    names = asyncio.run(
        _sweep_orphans(settings, delete=delete, min_age=timedelta(seconds=min_age))
    )
    for name in names:
        click.echo(name)

    verb = "Removed" if delete else "Found"
    click.echo(f"{verb} {len(names)} orphaned file(s)", err=True)


def main() -> None:
    try:
        cli()
    except ConfigurationError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
