"""SHA-256 digests for image content and the aggregate provenance hash.

Two digest domains exist and must not be mixed:

- image digests are computed over the raw image bytes;
- the aggregate digest is computed over the UTF-8 bytes of the per-image
  hex digest *strings*, concatenated in token order with no separator.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable

# SHA-256 of the empty byte string: the aggregate of an empty collection.
EMPTY_DIGEST = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def digest_image(data: bytes) -> str:
    """Digest of one asset's raw image bytes."""
    return sha256_hex(data)


def concatenate_digests(digests: Iterable[str]) -> str:
    return "".join(digests)


def aggregate_digests(digests: Iterable[str]) -> str:
    """Fold per-item digests into the provenance hash.

    Order-sensitive: the result commits to both content and token order.
    """
    return sha256_hex(concatenate_digests(digests).encode("utf-8"))
