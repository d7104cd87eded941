"""ASGI middleware for serving stored assets."""

from __future__ import annotations

import asyncio
import mimetypes
from pathlib import Path

from litestar.types import ASGIApp, Receive, Scope, Send


async def _send_not_found(send: Send) -> None:
    await send({
        "type": "http.response.start",
        "status": 404,
        "headers": [(b"content-type", b"text/plain")],
    })
    await send({"type": "http.response.body", "body": b"Not Found"})


class UploadFilesMiddleware:
    """Serve files from the upload directory at ``/{url_prefix}/{name}``.

    Names are flat (no subdirectories). Anyone who knows a name can read the
    file; the random UUID names are the only access control.
    """

    def __init__(self, app: ASGIApp, directory: Path, url_prefix: str = "app/uploads") -> None:
        self.app = app
        self._directory = Path(directory)
        self._prefix = f"/{url_prefix.strip('/')}/"

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or not scope["path"].startswith(self._prefix):
            await self.app(scope, receive, send)
            return

        if scope["method"] not in ("GET", "HEAD"):
            await self.app(scope, receive, send)
            return

        name = scope["path"][len(self._prefix):]

        # Security: reject nesting, hidden temp files and null bytes
        if not name or "/" in name or name.startswith(".") or "\x00" in name:
            await _send_not_found(send)
            return

        base_path = self._directory.resolve()
        try:
            resolved = (base_path / name).resolve()
        except (OSError, ValueError):
            await _send_not_found(send)
            return

        if not resolved.is_relative_to(base_path) or not resolved.is_file():
            await _send_not_found(send)
            return

        content = await asyncio.to_thread(resolved.read_bytes)
        media_type = mimetypes.guess_type(name)[0] or "application/octet-stream"

        await send({
            "type": "http.response.start",
            "status": 200,
            "headers": [
                (b"content-type", media_type.encode()),
                (b"content-length", str(len(content)).encode()),
                (b"x-content-type-options", b"nosniff"),
            ],
        })
        body = b"" if scope["method"] == "HEAD" else content
        await send({"type": "http.response.body", "body": body})
