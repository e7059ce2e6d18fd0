"""Proveit data models: all Pydantic v2, all frozen (immutable)."""

from proveit.models.proof import (
    ITEM_STATES,
    VALID_TRANSITIONS,
    ItemResult,
    ProofState,
    ProofTransition,
    VerificationResult,
)
from proveit.models.manifest import (
    ItemMetadata,
    Manifest,
    load_manifest,
    normalize_import_dir,
)

__all__ = [
    # proof
    "ProofState",
    "ProofTransition",
    "ITEM_STATES",
    "VALID_TRANSITIONS",
    "ItemResult",
    "VerificationResult",
    # manifest
    "Manifest",
    "ItemMetadata",
    "load_manifest",
    "normalize_import_dir",
]
