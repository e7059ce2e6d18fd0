"""Error taxonomy for proof runs.

Every error is terminal to the run: a verification either fully succeeds
or fails with exactly one of these.
"""

from __future__ import annotations

from enum import Enum


class ProofKind(str, Enum):
    """Which of the two proofs a mismatch belongs to."""

    PER_ITEM = "per_item"  # Proof 1: image digest vs metadata hash
    AGGREGATE = "aggregate"  # Proof 2: aggregate digest vs provenance hash


class ProveitError(RuntimeError):
    """Base class for all verification failures."""


class InvalidManifestError(ProveitError):
    """Raised when the manifest is missing required fields or is malformed."""


class NoAddressFoundError(ProveitError):
    """Raised when a URI contains no segment of content-address length."""

    def __init__(self, uri: str) -> None:
        self.uri = uri
        super().__init__(f"No content address found in URI: {uri!r}")


class FetchError(ProveitError):
    """Raised when content cannot be retrieved or parsed from the network."""

    def __init__(
        self,
        address: str,
        path: str,
        cause: BaseException | str,
        *,
        url: str = "",
    ) -> None:
        self.address = address
        self.path = path
        self.cause = cause
        self.url = url
        location = url or f"{address}/{path}"
        super().__init__(f"Failed to fetch {location}: {cause}")


class FetchTimeoutError(FetchError):
    """Raised when a fetch exceeds its timeout.

    Kept distinct from other transport failures so callers can retry
    timeouts without retrying permanent resolution failures.
    """


class ProofMismatchError(ProveitError):
    """Raised when content verifiably does not match its commitment."""

    def __init__(
        self,
        kind: ProofKind,
        expected: str,
        actual: str,
        *,
        token_id: int | None = None,
        url: str = "",
    ) -> None:
        self.kind = kind
        self.expected = expected
        self.actual = actual
        self.token_id = token_id
        self.url = url
        if kind == ProofKind.PER_ITEM:
            message = (
                f"Image hash does not match metadata hash for token {token_id}"
                f"{f' ({url})' if url else ''}: {actual} != {expected}"
            )
        else:
            message = f"Provenance hash did not match: {expected} != {actual}"
        super().__init__(message)


class InvalidProofTransitionError(ProveitError):
    """Raised when a requested proof state transition is not valid."""
