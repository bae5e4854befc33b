"""Shared test fixtures and in-memory store implementations."""

from .mock_repositories import InMemoryBlobStore, InMemoryShareRepository

__all__ = ["InMemoryBlobStore", "InMemoryShareRepository"]
