"""Durable storage for post images and avatars."""

from inkwell.lib.storage.base import AssetStore, StoredAsset
from inkwell.lib.storage.local import LocalAssetStore

__all__ = ["AssetStore", "LocalAssetStore", "StoredAsset"]
