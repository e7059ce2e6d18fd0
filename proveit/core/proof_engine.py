"""Proof engine: per-item verification and the aggregate provenance proof.

Proof 1 (per item): for every token id ``0..total-1`` the image bytes are
fetched from the content network, hashed, and compared with the hash
declared in the token's metadata.

Proof 2 (aggregate): the per-item digests, in token order, are folded
into one digest and compared with the manifest's provenance hash.

Any failure aborts the whole run; there is no partial success.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import TYPE_CHECKING, TypeVar

from pydantic import ValidationError

from proveit.core.content_address import extract_content_address
from proveit.core.errors import (
    FetchError,
    FetchTimeoutError,
    InvalidManifestError,
    ProofKind,
    ProofMismatchError,
    ProveitError,
)
from proveit.core.hasher import aggregate_digests, digest_image
from proveit.core.proof_machine import ProofStateMachine
from proveit.models.manifest import ItemMetadata, Manifest
from proveit.models.proof import ItemResult, ProofState, VerificationResult

if TYPE_CHECKING:
    from proveit.bridge.fetcher import ContentFetcher
    from proveit.config import ProveitConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT_SECONDS = 25.0


class _RunAbandoned(Exception):
    """Internal: a worker noticed the run was aborted and stopped early."""


class ProofEngine:
    """Verifies a collection against its committed provenance hash.

    Parameters
    ----------
    fetcher:
        Content network backend (see ``proveit.bridge.fetcher``).
    metadata_timeout:
        Seconds to wait for a token's metadata.
    image_timeout:
        Seconds to wait for a token's image bytes.
    max_workers:
        ``1`` verifies items strictly one after another.  Larger values
        fetch and digest items on a thread pool; digests are still
        aggregated in token order.
    timeout_retries:
        How many times a timed-out fetch is retried.  Only
        ``FetchTimeoutError`` is retried.
    retry_backoff:
        Base delay in seconds; attempt ``n`` waits ``retry_backoff * 2**n``.
    on_item:
        Called with each ``ItemResult`` in token order as items pass.
    """

    def __init__(
        self,
        fetcher: ContentFetcher,
        *,
        metadata_timeout: float = DEFAULT_TIMEOUT_SECONDS,
        image_timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_workers: int = 1,
        timeout_retries: int = 0,
        retry_backoff: float = 1.0,
        on_item: Callable[[ItemResult], None] | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        if timeout_retries < 0:
            raise ValueError(f"timeout_retries must be >= 0, got {timeout_retries}")
        self.fetcher = fetcher
        self.metadata_timeout = metadata_timeout
        self.image_timeout = image_timeout
        self.max_workers = max_workers
        self.timeout_retries = timeout_retries
        self.retry_backoff = retry_backoff
        self.on_item = on_item
        self._sleep = sleep
        self._clock = clock
        self._machine: ProofStateMachine | None = None

    @classmethod
    def from_config(
        cls,
        fetcher: ContentFetcher,
        settings: ProveitConfig,
        *,
        on_item: Callable[[ItemResult], None] | None = None,
    ) -> ProofEngine:
        """Build an engine from ``ProveitConfig`` values."""
        return cls(
            fetcher,
            metadata_timeout=settings.metadata_timeout_seconds,
            image_timeout=settings.image_timeout_seconds,
            max_workers=settings.max_workers,
            timeout_retries=settings.timeout_retries,
            retry_backoff=settings.retry_backoff_seconds,
            on_item=on_item,
        )

    @property
    def machine(self) -> ProofStateMachine | None:
        """State machine of the most recent run (``None`` before any run)."""
        return self._machine

    # ------------------------------------------------------------------
    # Full run
    # ------------------------------------------------------------------

    def verify(self, manifest: Manifest) -> VerificationResult:
        """Run both proofs over ``manifest``.

        Returns the ``VerificationResult`` on success.  Raises the single
        ``ProveitError`` that caused the run to abort otherwise.
        """
        start = self._clock()
        total = manifest.total
        machine = ProofStateMachine(total if _is_count(total) else 0)
        self._machine = machine

        try:
            if not _is_count(total):
                raise InvalidManifestError(
                    f"Manifest total must be a non-negative integer, got {total!r}"
                )
            logger.info("Proving %d items against %s", total, manifest.provenance_hash)

            if self.max_workers == 1 or total <= 1:
                items = self._verify_sequential(manifest, machine)
            else:
                items = self._verify_parallel(manifest, machine)

            machine.transition(ProofState.AGGREGATING)
            aggregate = aggregate_digests(item.digest for item in items)
            logger.info("Aggregate digest: %s", aggregate)
            if aggregate != manifest.provenance_hash:
                raise ProofMismatchError(
                    ProofKind.AGGREGATE,
                    expected=manifest.provenance_hash,
                    actual=aggregate,
                )
            machine.transition(ProofState.AGGREGATE_CHECKED)
        except ProveitError as exc:
            machine.abort(str(exc))
            logger.error("Proof aborted: %s", exc)
            raise

        elapsed = abs(self._clock() - start)
        machine.transition(ProofState.DONE)
        logger.info("Provenance proved for %d items in %.4fs", total, elapsed)
        return VerificationResult(
            items=tuple(items),
            aggregate_digest=aggregate,
            expected_provenance_hash=manifest.provenance_hash,
            aggregate_matched=True,
            elapsed_seconds=elapsed,
        )

    def _verify_sequential(
        self, manifest: Manifest, machine: ProofStateMachine
    ) -> list[ItemResult]:
        items: list[ItemResult] = []
        for token_id in range(manifest.total):
            result = self.verify_item(manifest, token_id, machine=machine)
            items.append(result)
            self._emit(result)
        return items

    def _verify_parallel(
        self, manifest: Manifest, machine: ProofStateMachine
    ) -> list[ItemResult]:
        """Fetch and digest items on a pool, joining results by token id."""
        total = manifest.total
        slots: list[ItemResult | None] = [None] * total
        abandoned = threading.Event()
        next_to_emit = 0

        executor = ThreadPoolExecutor(
            max_workers=min(self.max_workers, total),
            thread_name_prefix="proveit",
        )
        futures: dict[Future[ItemResult], int] = {
            executor.submit(
                self._verify_pooled_item, manifest, token_id, machine, abandoned
            ): token_id
            for token_id in range(total)
        }
        pending = set(futures)
        try:
            while pending:
                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                # Surface the lowest failing token id among this batch.
                for future in sorted(done, key=futures.__getitem__):
                    if isinstance(future.exception(), _RunAbandoned):
                        # The worker that set the flag reports the real failure.
                        continue
                    slots[futures[future]] = future.result()
                while next_to_emit < total and slots[next_to_emit] is not None:
                    self._emit(slots[next_to_emit])
                    next_to_emit += 1
        except BaseException:
            abandoned.set()
            executor.shutdown(wait=False, cancel_futures=True)
            raise
        executor.shutdown(wait=True)

        return [slot for slot in slots if slot is not None]

    def _verify_pooled_item(
        self,
        manifest: Manifest,
        token_id: int,
        machine: ProofStateMachine,
        abandoned: threading.Event,
    ) -> ItemResult:
        # Set the flag from the failing worker so that it cannot pick up a
        # queued item before the main thread has cancelled the queue.
        try:
            return self.verify_item(manifest, token_id, machine=machine, abandoned=abandoned)
        except BaseException:
            abandoned.set()
            raise

    def _emit(self, result: ItemResult) -> None:
        logger.info("Hashed %d.png: %s", result.token_id, result.digest)
        if self.on_item is not None:
            self.on_item(result)

    # ------------------------------------------------------------------
    # Single item (Proof 1)
    # ------------------------------------------------------------------

    def verify_item(
        self,
        manifest: Manifest,
        token_id: int,
        *,
        machine: ProofStateMachine | None = None,
        abandoned: threading.Event | None = None,
    ) -> ItemResult:
        """Fetch, digest and check one token's image.

        Raises ``ProofMismatchError`` (kind ``PER_ITEM``) when the image
        digest differs from the metadata hash.
        """
        if abandoned is not None and abandoned.is_set():
            raise _RunAbandoned(str(token_id))
        if machine is None:
            machine = ProofStateMachine(token_id + 1)

        machine.transition(ProofState.FETCHING, token_id=token_id)
        metadata_address = extract_content_address(manifest.base_uri)
        metadata_path = str(token_id)
        metadata = self._fetch_metadata(metadata_address, metadata_path, abandoned)

        image_address = extract_content_address(metadata.image)
        image_path = f"{token_id}.png"
        image_url = self.fetcher.url_for(image_address, image_path)
        image_bytes = self._with_retry(
            self.fetcher.fetch_bytes, image_address, image_path, self.image_timeout, abandoned
        )

        machine.transition(ProofState.DIGESTING, token_id=token_id)
        digest = digest_image(image_bytes)
        if digest != metadata.hash:
            raise ProofMismatchError(
                ProofKind.PER_ITEM,
                expected=metadata.hash,
                actual=digest,
                token_id=token_id,
                url=image_url,
            )

        machine.transition(ProofState.ITEM_CHECKED, token_id=token_id)
        return ItemResult(
            token_id=token_id,
            digest=digest,
            expected_digest=metadata.hash,
            matched=True,
            image_url=image_url,
        )

    def _fetch_metadata(
        self, address: str, path: str, abandoned: threading.Event | None
    ) -> ItemMetadata:
        data = self._with_retry(
            self.fetcher.fetch_json, address, path, self.metadata_timeout, abandoned
        )
        try:
            return ItemMetadata.model_validate(data)
        except ValidationError as exc:
            raise FetchError(
                address,
                path,
                f"metadata is missing 'image' or 'hash': {exc.error_count()} error(s)",
                url=self.fetcher.url_for(address, path),
            ) from exc

    def _with_retry(
        self,
        fetch: Callable[[str, str, float], T],
        address: str,
        path: str,
        timeout: float,
        abandoned: threading.Event | None,
    ) -> T:
        """Call ``fetch``, retrying only on ``FetchTimeoutError``."""
        attempt = 0
        while True:
            if abandoned is not None and abandoned.is_set():
                raise _RunAbandoned(f"{address}/{path}")
            try:
                return fetch(address, path, timeout)
            except FetchTimeoutError:
                if attempt >= self.timeout_retries:
                    raise
                delay = self.retry_backoff * (2**attempt)
                attempt += 1
                logger.warning(
                    "Timeout fetching %s/%s; retry %d/%d in %.1fs",
                    address,
                    path,
                    attempt,
                    self.timeout_retries,
                    delay,
                )
                self._sleep(delay)


def _is_count(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0
