"""Shared building blocks: errors, storage, avatar fetching, observability."""
