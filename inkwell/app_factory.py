"""Configuration helpers used by :func:`inkwell.asgi.create_app`."""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable

from advanced_alchemy.config import EngineConfig
from advanced_alchemy.extensions.litestar import AsyncSessionConfig, SQLAlchemyAsyncConfig
from litestar.contrib.jinja import JinjaTemplateEngine
from litestar.exceptions import HTTPException
from litestar.template import TemplateConfig

from inkwell.db.base import Base
from inkwell.lib.exceptions import (
    BlogError,
    blog_error_handler,
    http_exception_handler,
    internal_server_error_handler,
)

if TYPE_CHECKING:
    from inkwell.config import Settings

# Litestar resolves handlers along the exception's MRO, most specific first
EXCEPTION_HANDLERS: dict[type[Exception], Any] = {
    BlogError: blog_error_handler,
    HTTPException: http_exception_handler,
    Exception: internal_server_error_handler,
}


def create_db_config(settings: Settings) -> SQLAlchemyAsyncConfig:
    """Build the SQLAlchemy plugin config with a bounded connection pool.

    SQLite URLs get the driver's default pool; everything else gets a fixed
    size pool whose checkout suspends callers once it is exhausted.
    """
    if settings.is_sqlite:
        engine_config = EngineConfig(echo=settings.db.echo)
    else:
        engine_config = EngineConfig(
            pool_size=settings.db.pool_size,
            max_overflow=settings.db.pool_overflow,
            pool_timeout=settings.db.pool_timeout,
            pool_pre_ping=settings.db.pool_pre_ping,
            echo=settings.db.echo,
        )

    return SQLAlchemyAsyncConfig(
        connection_string=settings.database_url,
        metadata=Base.metadata,
        create_all=settings.db.create_all,
        session_config=AsyncSessionConfig(expire_on_commit=False),
        engine_config=engine_config,
    )


def get_template_directories() -> list[Path]:
    """Return [./templates/, inkwell/templates/]; the working directory overrides."""
    return [
        Path(os.getcwd()) / "templates",
        Path(__file__).parent / "templates",
    ]


def build_template_engine_callback(extra_globals: dict[str, Any] | None = None) -> Callable:
    """Build a template engine callback that sets globals."""

    def configure_engine(engine: JinjaTemplateEngine):
        engine.engine.globals.update({
            "now": datetime.now,
            **(extra_globals or {}),
        })

    return configure_engine


def create_template_config(directories: list[Path], engine_callback: Callable) -> TemplateConfig:
    """Create template config using the given template directories."""
    return TemplateConfig(
        directory=directories,
        engine=JinjaTemplateEngine,
        engine_callback=engine_callback,
    )
