"""Content network access: the ``ContentFetcher`` protocol and an HTTP gateway.

The proof engine only depends on ``ContentFetcher``.  Any gateway that
serves the same content-addressing scheme is substitutable, so the
concrete ``GatewayFetcher`` is just the default backend.

Both operations take a timeout in seconds.  A timeout surfaces as
``FetchTimeoutError`` so that retry policies can tell it apart from
permanent failures (``FetchError``).
"""

from __future__ import annotations

import json
import logging
import time
import urllib.error
import urllib.request
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from proveit.core.errors import FetchError, FetchTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_GATEWAY = "https://ipfs.io/ipfs/"
DEFAULT_USER_AGENT = "proveit/1.0.0"
READ_CHUNK_SIZE = 64 * 1024


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class ContentFetcher(Protocol):
    """Resolves a content address plus path to content.

    Any object with matching ``fetch_json`` / ``fetch_bytes`` methods
    satisfies this protocol.
    """

    def url_for(self, address: str, path: str) -> str:
        """Human-readable locator, used in results and error messages."""
        ...

    def fetch_json(self, address: str, path: str, timeout: float) -> dict[str, Any]:
        """Fetch and decode a JSON object.

        Raises ``FetchError`` on transport failure, a non-JSON body, or a
        JSON value that is not an object.
        """
        ...

    def fetch_bytes(self, address: str, path: str, timeout: float) -> bytes:
        """Fetch raw bytes, regardless of the declared content type.

        ``timeout`` bounds the whole transfer, not each socket read.
        """
        ...


# ---------------------------------------------------------------------------
# HTTP gateway implementation
# ---------------------------------------------------------------------------


class GatewayFetcher:
    """Fetches content over HTTP(S) from a single IPFS gateway.

    Parameters
    ----------
    gateway_url:
        Gateway prefix, e.g. ``https://ipfs.io/ipfs/``.  A trailing slash
        is optional.
    user_agent:
        ``User-Agent`` header sent with every request.
    clock:
        Monotonic time source for the per-request deadline.
    """

    def __init__(
        self,
        gateway_url: str = DEFAULT_GATEWAY,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.gateway_url = gateway_url.rstrip("/")
        self.user_agent = user_agent
        self._clock = clock

    def url_for(self, address: str, path: str) -> str:
        """Build ``<gateway>/<address>/<path>``."""
        return f"{self.gateway_url}/{address}/{path.lstrip('/')}"

    def fetch_json(self, address: str, path: str, timeout: float) -> dict[str, Any]:
        body = self._get(address, path, timeout, accept="application/json")
        try:
            data = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise FetchError(
                address, path, f"invalid JSON body: {exc}", url=self.url_for(address, path)
            ) from exc
        if not isinstance(data, dict):
            raise FetchError(
                address,
                path,
                f"expected a JSON object, got {type(data).__name__}",
                url=self.url_for(address, path),
            )
        return data

    def fetch_bytes(self, address: str, path: str, timeout: float) -> bytes:
        return self._get(address, path, timeout, accept="*/*")

    def _get(self, address: str, path: str, timeout: float, *, accept: str) -> bytes:
        url = self.url_for(address, path)
        req = urllib.request.Request(
            url,
            headers={"Accept": accept, "User-Agent": self.user_agent},
        )
        logger.debug("GET %s (timeout=%.1fs)", url, timeout)
        # urlopen's timeout applies per socket operation; a slow trickle of
        # bytes is caught by checking the deadline between chunks.
        deadline = self._clock() + timeout
        chunks: list[bytes] = []
        try:
            with urllib.request.urlopen(req, timeout=timeout) as resp:  # nosec B310
                while True:
                    chunk = resp.read(READ_CHUNK_SIZE)
                    if not chunk:
                        break
                    chunks.append(chunk)
                    if self._clock() > deadline:
                        raise FetchTimeoutError(
                            address, path, f"transfer exceeded {timeout}s", url=url
                        )
        except urllib.error.HTTPError as exc:
            raise FetchError(address, path, f"HTTP {exc.code} {exc.reason}", url=url) from exc
        except urllib.error.URLError as exc:
            if isinstance(exc.reason, TimeoutError):
                raise FetchTimeoutError(
                    address, path, f"timed out after {timeout}s", url=url
                ) from exc
            raise FetchError(address, path, exc.reason, url=url) from exc
        except TimeoutError as exc:
            raise FetchTimeoutError(
                address, path, f"timed out after {timeout}s", url=url
            ) from exc
        except OSError as exc:
            raise FetchError(address, path, exc, url=url) from exc
        return b"".join(chunks)
