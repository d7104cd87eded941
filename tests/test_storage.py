"""Tests for the local filesystem asset store."""

import asyncio
import os
import time
from datetime import timedelta

import pytest

from inkwell.lib.exceptions import AssetWriteError
from inkwell.lib.storage import AssetStore, LocalAssetStore


@pytest.fixture
def store(tmp_path):
    return LocalAssetStore(tmp_path)


def age(path, seconds):
    past = time.time() - seconds
    os.utime(path, (past, past))


class TestStore:
    def test_satisfies_protocol(self, store):
        assert isinstance(store, AssetStore)

    @pytest.mark.asyncio
    async def test_writes_bytes_under_uuid_name(self, store, tmp_path):
        asset = await store.store(b"data", "png")

        stem, ext = asset.name.rsplit(".", 1)
        assert ext == "png"
        assert len(stem) == 36
        assert asset.size == 4
        assert asset.reference == f"app/uploads/{asset.name}"
        assert (tmp_path / asset.name).read_bytes() == b"data"

    @pytest.mark.asyncio
    async def test_no_temp_files_left(self, store, tmp_path):
        await store.store(b"data", "png")
        assert [p.name for p in tmp_path.iterdir() if p.name.startswith(".")] == []

    @pytest.mark.asyncio
    async def test_concurrent_writes_get_distinct_names(self, store, tmp_path):
        payloads = [f"payload-{i}".encode() for i in range(25)]

        assets = await asyncio.gather(*(store.store(p, "png") for p in payloads))

        assert len({a.name for a in assets}) == len(payloads)
        for asset, payload in zip(assets, payloads):
            assert (tmp_path / asset.name).read_bytes() == payload

    @pytest.mark.asyncio
    async def test_missing_directory_is_write_error(self, tmp_path):
        store = LocalAssetStore(tmp_path / "does-not-exist")

        with pytest.raises(AssetWriteError) as exc_info:
            await store.store(b"data", "png")
        assert str(exc_info.value).startswith("File operation error: ")

    def test_custom_url_prefix(self, tmp_path):
        store = LocalAssetStore(tmp_path, url_prefix="/media/")
        assert store.reference_for("a.png") == "media/a.png"


class TestReferences:
    def test_name_for_round_trip(self, store):
        assert store.name_for(store.reference_for("a.png")) == "a.png"

    def test_name_for_foreign_reference(self, store):
        assert store.name_for("elsewhere/a.png") is None

    def test_name_for_nested_reference(self, store):
        assert store.name_for("app/uploads/sub/a.png") is None


class TestListAndRemove:
    @pytest.mark.asyncio
    async def test_list_skips_hidden_files(self, store, tmp_path):
        (tmp_path / "b.png").write_bytes(b"b")
        (tmp_path / "a.png").write_bytes(b"a")
        (tmp_path / ".a.png.tmp").write_bytes(b"partial")

        assert await store.list_names() == ["a.png", "b.png"]

    @pytest.mark.asyncio
    async def test_list_filters_by_age(self, store, tmp_path):
        (tmp_path / "old.png").write_bytes(b"old")
        (tmp_path / "new.png").write_bytes(b"new")
        age(tmp_path / "old.png", 7200)

        assert await store.list_names(older_than=timedelta(hours=1)) == ["old.png"]

    @pytest.mark.asyncio
    async def test_list_missing_directory(self, tmp_path):
        store = LocalAssetStore(tmp_path / "nope")
        assert await store.list_names() == []

    @pytest.mark.asyncio
    async def test_remove(self, store, tmp_path):
        (tmp_path / "a.png").write_bytes(b"a")

        await store.remove("a.png")
        await store.remove("a.png")

        assert not (tmp_path / "a.png").exists()

    @pytest.mark.asyncio
    async def test_remove_rejects_paths(self, store):
        with pytest.raises(AssetWriteError):
            await store.remove("../a.png")
