"""Tests for serving stored assets in front of the application."""

import httpx
import pytest
import pytest_asyncio

from inkwell.middleware import UploadFilesMiddleware


async def inner_app(scope, receive, send):
    await send({
        "type": "http.response.start",
        "status": 200,
        "headers": [(b"content-type", b"text/plain")],
    })
    await send({"type": "http.response.body", "body": b"inner"})


@pytest.fixture
def upload_dir(tmp_path):
    directory = tmp_path / "uploads"
    directory.mkdir()
    (directory / "cat.png").write_bytes(b"\x89PNG\r\n\x1a\nimage")
    (directory / ".cat.png.tmp").write_bytes(b"partial")
    (tmp_path / "secret.txt").write_text("secret")
    return directory


@pytest_asyncio.fixture
async def client(upload_dir):
    app = UploadFilesMiddleware(inner_app, directory=upload_dir, url_prefix="app/uploads")
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


class TestServeUploads:
    @pytest.mark.asyncio
    async def test_serves_file(self, client):
        resp = await client.get("/app/uploads/cat.png")

        assert resp.status_code == 200
        assert resp.content == b"\x89PNG\r\n\x1a\nimage"
        assert resp.headers["content-type"] == "image/png"
        assert resp.headers["x-content-type-options"] == "nosniff"

    @pytest.mark.asyncio
    async def test_head_has_no_body(self, client):
        resp = await client.head("/app/uploads/cat.png")

        assert resp.status_code == 200
        assert resp.content == b""

    @pytest.mark.asyncio
    async def test_missing_file(self, client):
        resp = await client.get("/app/uploads/dog.png")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_hidden_file(self, client):
        resp = await client.get("/app/uploads/.cat.png.tmp")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_nested_path(self, client):
        resp = await client.get("/app/uploads/sub/cat.png")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_encoded_traversal(self, client):
        resp = await client.get("/app/uploads/..%2Fsecret.txt")
        assert resp.status_code == 404


class TestPassThrough:
    @pytest.mark.asyncio
    async def test_other_paths_reach_app(self, client):
        resp = await client.get("/home")
        assert resp.text == "inner"

    @pytest.mark.asyncio
    async def test_other_methods_reach_app(self, client):
        resp = await client.post("/app/uploads/cat.png")
        assert resp.text == "inner"
