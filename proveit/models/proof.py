"""Proof run models: item results, verdicts, and the proof state machine table."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ProofState(str, Enum):
    """States of a single verification run."""

    IDLE = "idle"
    FETCHING = "fetching"
    DIGESTING = "digesting"
    ITEM_CHECKED = "item_checked"
    AGGREGATING = "aggregating"
    AGGREGATE_CHECKED = "aggregate_checked"
    DONE = "done"
    ABORTED = "aborted"


# Item phases are tracked per token id; the remaining states are run-level.
ITEM_STATES: frozenset[ProofState] = frozenset(
    {ProofState.FETCHING, ProofState.DIGESTING, ProofState.ITEM_CHECKED}
)

# Valid state transitions: enforced by ProofStateMachine.
# DONE and ABORTED are terminal.
VALID_TRANSITIONS: dict[ProofState, set[ProofState]] = {
    ProofState.IDLE: {ProofState.FETCHING, ProofState.AGGREGATING, ProofState.ABORTED},
    ProofState.FETCHING: {ProofState.DIGESTING, ProofState.ABORTED},
    ProofState.DIGESTING: {ProofState.ITEM_CHECKED, ProofState.ABORTED},
    ProofState.ITEM_CHECKED: {
        ProofState.FETCHING,
        ProofState.AGGREGATING,
        ProofState.ABORTED,
    },
    ProofState.AGGREGATING: {ProofState.AGGREGATE_CHECKED, ProofState.ABORTED},
    ProofState.AGGREGATE_CHECKED: {ProofState.DONE},
    ProofState.DONE: set(),
    ProofState.ABORTED: set(),
}


class ProofTransition(BaseModel):
    """Records a single state transition of a proof run."""

    model_config = ConfigDict(frozen=True)

    from_state: ProofState
    to_state: ProofState
    token_id: int | None = None  # set for item phases
    reason: str = ""  # populated when entering ABORTED
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class ItemResult(BaseModel):
    """Outcome of Proof 1 for one token."""

    model_config = ConfigDict(frozen=True)

    token_id: int
    digest: str  # SHA-256 hex of the image bytes
    expected_digest: str  # hash declared in the token metadata
    matched: bool
    image_url: str = ""


class VerificationResult(BaseModel):
    """Terminal value of a successful verification run.

    ``items`` is ordered by token id, which is also the order the digests
    were folded into ``aggregate_digest``.
    """

    model_config = ConfigDict(frozen=True)

    items: tuple[ItemResult, ...] = ()
    aggregate_digest: str
    expected_provenance_hash: str
    aggregate_matched: bool
    elapsed_seconds: float = 0.0

    @property
    def digests(self) -> list[str]:
        """Per-item digests in token order."""
        return [item.digest for item in self.items]

    @property
    def concatenated_digests(self) -> str:
        """The exact string the aggregate digest was computed over."""
        return "".join(self.digests)

    @property
    def all_items_matched(self) -> bool:
        return all(item.matched for item in self.items)
