"""Proof run state machine.

Enforces:
- Valid state transitions only (VALID_TRANSITIONS table)
- Item phases (fetching -> digesting -> item_checked) tracked per token id
- No aggregation until every declared item has been checked
- DONE and ABORTED are terminal
- Every transition recorded in an ordered history
"""

from __future__ import annotations

import threading

from proveit.core.errors import InvalidProofTransitionError
from proveit.models.proof import (
    ITEM_STATES,
    VALID_TRANSITIONS,
    ProofState,
    ProofTransition,
)

_TERMINAL = frozenset({ProofState.DONE, ProofState.ABORTED})


class ProofStateMachine:
    """State machine for one verification run.

    Safe to drive from several worker threads; item phases of different
    tokens may interleave, but each token's own phases are strictly ordered.

    Parameters
    ----------
    total:
        Number of items the run must check before it may aggregate.
    """

    def __init__(self, total: int) -> None:
        self._total = total
        self._state = ProofState.IDLE
        self._items: dict[int, ProofState] = {}
        self._history: list[ProofTransition] = []
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> ProofState:
        return self._state

    @property
    def is_terminal(self) -> bool:
        return self._state in _TERMINAL

    @property
    def history(self) -> list[ProofTransition]:
        with self._lock:
            return list(self._history)

    def item_state(self, token_id: int) -> ProofState:
        with self._lock:
            return self._items.get(token_id, ProofState.IDLE)

    @property
    def checked_count(self) -> int:
        with self._lock:
            return self._count_checked()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def transition(
        self,
        target: ProofState,
        *,
        token_id: int | None = None,
        reason: str = "",
    ) -> ProofTransition:
        """Move the run (or one of its items) to ``target``.

        Item phases require ``token_id``; run-level states must not carry one.
        """
        with self._lock:
            if self._state in _TERMINAL:
                raise InvalidProofTransitionError(
                    f"Proof run already {self._state.value}; cannot enter {target.value}"
                )
            if target in ITEM_STATES:
                return self._item_transition(target, token_id)
            if token_id is not None:
                raise InvalidProofTransitionError(
                    f"{target.value} is a run-level state and takes no token id"
                )
            return self._run_transition(target, reason)

    def abort(self, reason: str) -> ProofTransition | None:
        """Enter ABORTED unless the run is already terminal."""
        with self._lock:
            if self._state in _TERMINAL:
                return None
            return self._record(self._state, ProofState.ABORTED, None, reason)

    def _item_transition(self, target: ProofState, token_id: int | None) -> ProofTransition:
        if token_id is None or not 0 <= token_id < self._total:
            raise InvalidProofTransitionError(
                f"{target.value} requires a token id in [0, {self._total}), got {token_id}"
            )
        if self._state not in (ProofState.IDLE, *ITEM_STATES):
            raise InvalidProofTransitionError(
                f"Cannot process token {token_id} while run is {self._state.value}"
            )
        current = self._items.get(token_id, ProofState.IDLE)
        # A token that has been checked is finished; it cannot be fetched again.
        if current == ProofState.ITEM_CHECKED or target not in VALID_TRANSITIONS[current]:
            raise InvalidProofTransitionError(
                f"Cannot transition token {token_id} from {current.value} to {target.value}"
            )
        self._items[token_id] = target
        return self._record(current, target, token_id, "")

    def _run_transition(self, target: ProofState, reason: str) -> ProofTransition:
        allowed = VALID_TRANSITIONS.get(self._state, set())
        if target not in allowed:
            raise InvalidProofTransitionError(
                f"Cannot transition run from {self._state.value} to {target.value}. "
                f"Allowed: {sorted(s.value for s in allowed)}"
            )
        checked = self._count_checked()
        if target == ProofState.AGGREGATING and checked != self._total:
            raise InvalidProofTransitionError(
                f"Cannot aggregate: {checked}/{self._total} items checked"
            )
        return self._record(self._state, target, None, reason)

    def _count_checked(self) -> int:
        # Caller holds _lock.
        return sum(1 for s in self._items.values() if s == ProofState.ITEM_CHECKED)

    def _record(
        self,
        from_state: ProofState,
        to_state: ProofState,
        token_id: int | None,
        reason: str,
    ) -> ProofTransition:
        entry = ProofTransition(
            from_state=from_state,
            to_state=to_state,
            token_id=token_id,
            reason=reason,
        )
        self._history.append(entry)
        self._state = to_state
        return entry
