"""Shared test fixtures for Proveit."""

from __future__ import annotations

import hashlib
import threading
from collections.abc import Callable
from typing import Any

import pytest

from proveit.core.errors import FetchError
from proveit.models.manifest import Manifest

# 59-character CIDv1 (base32) content addresses
METADATA_CID = "bafybeigdyrzt5sfp7udm7hu76uh7y26nf3efuylqabf3oclgtqy55fbzdi"
IMAGE_CID = "bafybeihkoviema7g3gxyt6la7vd5ho32ictqbilu3wnlo3rs7ewhnp7lly"


class FakeFetcher:
    """In-memory ``ContentFetcher`` keyed by ``(address, path)``.

    Values may be a dict (JSON), bytes, or an exception instance to raise.
    A list of values is consumed one per call, which lets tests script
    failures followed by success.
    """

    def __init__(self, content: dict[tuple[str, str], Any] | None = None) -> None:
        self.content: dict[tuple[str, str], Any] = dict(content or {})
        self.calls: list[tuple[str, str, str, float]] = []
        self._lock = threading.Lock()

    def url_for(self, address: str, path: str) -> str:
        return f"https://gateway.test/ipfs/{address}/{path}"

    def fetch_json(self, address: str, path: str, timeout: float) -> dict[str, Any]:
        return self._lookup("json", address, path, timeout)

    def fetch_bytes(self, address: str, path: str, timeout: float) -> bytes:
        return self._lookup("bytes", address, path, timeout)

    def paths_fetched(self, kind: str | None = None) -> list[str]:
        return [c[2] for c in self.calls if kind is None or c[0] == kind]

    def _lookup(self, kind: str, address: str, path: str, timeout: float) -> Any:
        with self._lock:
            self.calls.append((kind, address, path, timeout))
            key = (address, path)
            if key not in self.content:
                raise FetchError(address, path, "404 Not Found", url=self.url_for(address, path))
            value = self.content[key]
            if isinstance(value, list):
                value = value.pop(0) if len(value) > 1 else value[0]
        if isinstance(value, BaseException):
            raise value
        return value


def sha(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def build_collection(
    images: list[bytes],
    *,
    declared: dict[int, str] | None = None,
) -> tuple[FakeFetcher, str]:
    """Publish ``images`` to a FakeFetcher; return it and the true provenance hash.

    ``declared`` overrides the metadata hash of individual tokens.
    """
    declared = declared or {}
    content: dict[tuple[str, str], Any] = {}
    digests = []
    for token_id, data in enumerate(images):
        digest = sha(data)
        digests.append(digest)
        content[(METADATA_CID, str(token_id))] = {
            "name": f"Piece #{token_id}",
            "image": f"ipfs://{IMAGE_CID}/{token_id}.png",
            "hash": declared.get(token_id, digest),
            "attributes": [],
        }
        content[(IMAGE_CID, f"{token_id}.png")] = data
    provenance = sha("".join(digests).encode("utf-8"))
    return FakeFetcher(content), provenance


@pytest.fixture
def make_manifest() -> Callable[..., Manifest]:
    """Factory fixture: build a Manifest with sensible defaults."""

    def _factory(total: int = 2, provenance_hash: str = "0" * 64, **overrides: Any) -> Manifest:
        defaults: dict[str, Any] = {
            "total": total,
            "baseUri": f"ipfs://{METADATA_CID}/",
            "provenanceHash": provenance_hash,
            "metadata": {"name": "Test Collection"},
        }
        defaults.update(overrides)
        return Manifest.from_dict(defaults)

    return _factory


@pytest.fixture
def images() -> list[bytes]:
    """Three small distinct 'images'."""
    return [b"\x01\x02", b"\x03\x04", b"\x89PNG\r\n\x1a\n" + bytes(range(32))]


@pytest.fixture
def metadata_cid() -> str:
    """Content address the test collection's metadata lives under."""
    return METADATA_CID


@pytest.fixture
def image_cid() -> str:
    """Content address the test collection's images live under."""
    return IMAGE_CID


@pytest.fixture
def make_fetcher() -> Callable[..., FakeFetcher]:
    """Factory fixture: an empty or pre-filled in-memory fetcher."""
    return FakeFetcher


@pytest.fixture
def publish() -> Callable[..., tuple[FakeFetcher, str]]:
    """Factory fixture: publish images and return ``(fetcher, provenance)``."""
    return build_collection
