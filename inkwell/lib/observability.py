"""Optional Pydantic Logfire tracing for the ingest pipeline.

When the ``logfire`` section is enabled and the package is installed, the
ASGI app, the SQLAlchemy engine and the avatar client are instrumented and
each ingestion step is traced as an ``ingest.*`` span. Otherwise every
helper here does nothing and plain ``logging`` output is all there is.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator

if TYPE_CHECKING:
    import httpx

    from inkwell.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# The configured logfire module; None while tracing is off
_logfire = None


def configure_logging(level: str = "info") -> None:
    """Set up stdlib logging for the server and CLI commands."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def is_available() -> bool:
    return _logfire is not None


def configure(settings: Settings) -> None:
    """Turn tracing on according to ``settings.logfire``."""
    global _logfire

    options = settings.logfire
    if not options.enabled:
        return

    try:
        import logfire
    except ImportError:
        logging.getLogger(__name__).warning(
            "logfire is enabled in settings but not installed; tracing disabled"
        )
        return

    logfire.configure(
        service_name=options.service_name,
        environment=options.environment or None,
        console=logfire.ConsoleOptions() if options.console else False,
        send_to_logfire="if-token-present",
    )
    _logfire = logfire


def instrument_app(app):
    """Return ``app`` wrapped for request tracing, or unchanged."""
    if _logfire is None:
        return app
    return _logfire.instrument_asgi(app)


def instrument_sqlalchemy(engine) -> None:
    if _logfire is not None:
        _logfire.instrument_sqlalchemy(engine=engine)


def instrument_httpx(client: httpx.AsyncClient) -> None:
    """Trace outbound avatar fetches made through ``client`` only."""
    if _logfire is not None:
        _logfire.instrument_httpx(client)


@contextmanager
def span(name: str, **attrs: Any) -> Iterator[Any]:
    """Trace the enclosed block; yields the span, or None when tracing is off."""
    if _logfire is None:
        yield None
        return
    with _logfire.span(name, **attrs) as current:
        yield current


def exception(msg: str, **kwargs: Any) -> bool:
    """Report the active exception to logfire.

    Returns False when tracing is off so the caller can fall back to
    ``logging``.
    """
    if _logfire is None:
        return False
    _logfire.exception(msg, **kwargs)
    return True
