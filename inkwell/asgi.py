"""ASGI application factory for Inkwell.

``create_app()`` wires the blog controller to its collaborators: the
SQLAlchemy plugin (which owns the bounded connection pool), the local asset
store, and the httpx client used for avatar fetches. Stored assets are
served by :class:`~inkwell.middleware.uploads.UploadFilesMiddleware` in
front of the Litestar app.

Servers load ``inkwell.asgi:app``, which is built on first access so that
importing this module never requires ``DATABASE_URL``.
"""

from __future__ import annotations

import logging
from pathlib import Path

import httpx
from advanced_alchemy.extensions.litestar import SQLAlchemyPlugin
from litestar import Litestar
from litestar.types import ASGIApp

from inkwell.app_factory import (
    EXCEPTION_HANDLERS,
    build_template_engine_callback,
    create_db_config,
    create_template_config,
    get_template_directories,
)
from inkwell.config import Settings, get_settings
from inkwell.controllers import BlogController
from inkwell.lib import observability
from inkwell.lib.avatar import AvatarFetcher
from inkwell.lib.storage import LocalAssetStore
from inkwell.middleware import UploadFilesMiddleware

logger = logging.getLogger(__name__)


def create_avatar_client(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the shared client for outbound avatar fetches."""
    return httpx.AsyncClient(
        timeout=settings.avatar.timeout,
        follow_redirects=settings.avatar.follow_redirects,
        headers={"User-Agent": settings.avatar.user_agent},
        transport=transport,
    )


def create_app(
    settings: Settings | None = None,
    *,
    avatar_transport: httpx.AsyncBaseTransport | None = None,
) -> ASGIApp:
    """Create and configure the Inkwell application.

    Args:
        settings: Settings to use instead of :func:`get_settings`.
        avatar_transport: Transport for the avatar client; tests pass an
            ``httpx.MockTransport`` here.
    """
    settings = settings or get_settings()

    observability.configure(settings)

    db_config = create_db_config(settings)

    upload_dir = Path(settings.uploads.directory)
    asset_store = LocalAssetStore(upload_dir, url_prefix=settings.uploads.url_prefix)

    def _upload_url(reference: str) -> str:
        return f"/{reference.lstrip('/')}" if reference else ""

    template_config = create_template_config(
        get_template_directories(),
        build_template_engine_callback(extra_globals={"upload_url": _upload_url}),
    )

    async def on_startup(app: Litestar) -> None:
        """Create the upload directory and open the avatar client."""
        upload_dir.mkdir(parents=True, exist_ok=True)

        client = create_avatar_client(settings, transport=avatar_transport)
        observability.instrument_httpx(client)
        app.state.avatar_client = client
        app.state.avatar_fetcher = AvatarFetcher(
            client,
            asset_store,
            max_size=settings.avatar.max_size,
            verify_content=settings.uploads.verify_image_content,
        )

        observability.instrument_sqlalchemy(db_config.get_engine())
        logger.info("Storing uploads in %s", upload_dir.resolve())

    async def on_shutdown(app: Litestar) -> None:
        """Close the avatar client."""
        client = app.state.get("avatar_client")
        if client is not None:
            await client.aclose()

    app = Litestar(
        route_handlers=[BlogController],
        on_startup=[on_startup],
        on_shutdown=[on_shutdown],
        plugins=[SQLAlchemyPlugin(config=db_config)],
        template_config=template_config,
        exception_handlers=EXCEPTION_HANDLERS,
        request_max_body_size=settings.uploads.max_request_size,
        debug=settings.debug,
    )
    app.state.settings = settings
    app.state.asset_store = asset_store

    return UploadFilesMiddleware(
        observability.instrument_app(app),
        directory=upload_dir,
        url_prefix=settings.uploads.url_prefix,
    )


_app: ASGIApp | None = None


def __getattr__(name: str) -> ASGIApp:
    global _app
    if name == "app":
        if _app is None:
            _app = create_app()
        return _app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
