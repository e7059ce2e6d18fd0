"""Proveit: provenance-hash verification for content-addressed art collections.

Fetches every item's metadata and image from IPFS, checks each image
digest against its metadata (Proof 1), then folds the digests in token
order and checks the result against the committed provenance hash
(Proof 2).
"""

__version__ = "1.0.0"
__description__ = (
    "Verify generative-art assets on IPFS against a pre-reveal provenance hash"
)

from proveit.core.proof_engine import ProofEngine
from proveit.bridge.fetcher import ContentFetcher, GatewayFetcher
from proveit.models.manifest import Manifest, load_manifest

__all__ = [
    "ProofEngine",
    "ContentFetcher",
    "GatewayFetcher",
    "Manifest",
    "load_manifest",
    "__version__",
]
