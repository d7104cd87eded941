"""Shared pytest fixtures."""

from pathlib import Path

import httpx
import pytest
import yaml
from litestar.testing import TestClient
from sqlalchemy import create_engine, select

from inkwell.asgi import create_app
from inkwell.config import DatabaseConfig, Settings, UploadConfig
from inkwell.db.models.post import Post
from inkwell.lib.imaging import PNG_SIGNATURE

AVATAR_URL = "https://avatars.example/alice.png"


@pytest.fixture
def png_bytes() -> bytes:
    """Bytes that carry a PNG signature followed by an IHDR chunk header."""
    return PNG_SIGNATURE + b"\x00\x00\x00\rIHDR" + b"\x00" * 17


@pytest.fixture
def upload_dir(tmp_path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "blog.db"


@pytest.fixture
def settings(db_path, upload_dir) -> Settings:
    """Settings backed by a throwaway SQLite file; tables are created at startup."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{db_path}",
        db=DatabaseConfig(create_all=True),
        uploads=UploadConfig(directory=str(upload_dir)),
    )


@pytest.fixture
def remote_files(png_bytes) -> dict[str, bytes]:
    """URL -> body served by the fake avatar host. Unknown URLs return 404."""
    return {AVATAR_URL: png_bytes}


@pytest.fixture
def avatar_transport(remote_files) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        body = remote_files.get(str(request.url))
        if body is None:
            return httpx.Response(404, text="not found")
        return httpx.Response(200, content=body)

    return httpx.MockTransport(handler)


@pytest.fixture
def client(settings, avatar_transport):
    """Test client for the full application, lifespan included."""
    app = create_app(settings, avatar_transport=avatar_transport)
    with TestClient(app=app) as test_client:
        yield test_client


@pytest.fixture
def fetch_posts(db_path):
    """Read blog_posts rows directly, in insertion order."""
    engine = create_engine(f"sqlite:///{db_path}")

    def _fetch():
        with engine.connect() as conn:
            return conn.execute(select(Post).order_by(Post.id)).all()

    yield _fetch
    engine.dispose()


@pytest.fixture
def temp_app_yaml(tmp_path):
    """Create a temporary app.yaml file for testing."""
    config_path = tmp_path / "app.yaml"

    def _create_config(config: dict):
        with open(config_path, "w") as f:
            yaml.safe_dump(config, f)
        return config_path

    return _create_config


MULTIPART_BOUNDARY = "inkwell-test-boundary"


@pytest.fixture
def build_multipart():
    """Encode fields in the given order as a multipart/form-data body.

    Each field is ``(name, value)`` for a text part or
    ``(name, filename, data)`` for a file part. Values may be str or bytes.
    Returns ``(body, content_type)``.
    """

    def _build(*fields, boundary: str = MULTIPART_BOUNDARY):
        body = bytearray()
        for field in fields:
            if len(field) == 3:
                name, filename, value = field
                disposition = f'form-data; name="{name}"; filename="{filename}"'
                headers = f"Content-Disposition: {disposition}\r\nContent-Type: application/octet-stream\r\n"
            else:
                name, value = field
                headers = f'Content-Disposition: form-data; name="{name}"\r\n'
            if isinstance(value, str):
                value = value.encode()
            body += f"--{boundary}\r\n{headers}\r\n".encode() + value + b"\r\n"
        body += f"--{boundary}--\r\n".encode()
        return bytes(body), f"multipart/form-data; boundary={boundary}"

    return _build
