"""Content-address extraction from IPFS-style URIs.

A content address (CIDv1, base32) is a fixed-length path segment.  URIs
may carry it behind a gateway prefix (``https://gw/ipfs/<cid>/...``) or
use the native scheme (``ipfs://<cid>/...``); either way the address is
the rightmost segment of the expected length.
"""

from __future__ import annotations

from proveit.core.errors import NoAddressFoundError

CONTENT_ADDRESS_LENGTH = 59


def extract_content_address(uri: str) -> str:
    """Return the last ``/``-separated segment of content-address length.

    Raises ``NoAddressFoundError`` when no segment qualifies.
    """
    candidates = [
        segment for segment in uri.split("/") if len(segment) == CONTENT_ADDRESS_LENGTH
    ]
    if not candidates:
        raise NoAddressFoundError(uri)
    return candidates[-1]
