"""Collection manifest and token metadata models.

The manifest is produced by the collection's import tooling and is the
only local input to a proof run.  Token metadata is fetched per item from
the content network.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from proveit.core.errors import InvalidManifestError

logger = logging.getLogger(__name__)

DEFAULT_MANIFEST_FILENAME = "manifest.json"


class Manifest(BaseModel):
    """Immutable proof input: item count, metadata location, committed hash.

    ``metadata`` is only checked for presence; its content is not consumed.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    total: int = Field(ge=0, strict=True)
    base_uri: str = Field(alias="baseUri", min_length=1)
    provenance_hash: str = Field(alias="provenanceHash", min_length=1)
    metadata: Any = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Manifest:
        """Validate a decoded manifest, raising ``InvalidManifestError``."""
        if not isinstance(data, Mapping):
            raise InvalidManifestError(
                f"Manifest must be a JSON object, got {type(data).__name__}"
            )
        if data.get("metadata") is None:
            raise InvalidManifestError("Manifest is missing its 'metadata' section")
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            fields = ", ".join(
                ".".join(str(p) for p in err["loc"]) or "<root>" for err in exc.errors()
            )
            raise InvalidManifestError(f"Invalid manifest fields: {fields}") from exc


class ItemMetadata(BaseModel):
    """Per-token metadata as published on the content network.

    Only ``image`` and ``hash`` matter for the proof; the usual NFT
    metadata keys (name, attributes, ...) are ignored.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    image: str
    hash: str


def normalize_import_dir(path: str) -> str:
    """Strip a single trailing path separator (but never reduce ``/`` to ``''``)."""
    if len(path) > 1 and path[-1] in ("/", "\\"):
        return path[:-1]
    return path


def load_manifest(
    import_dir: str | Path,
    filename: str = DEFAULT_MANIFEST_FILENAME,
) -> Manifest:
    """Read and validate ``<import_dir>/<filename>``.

    Raises
    ------
    InvalidManifestError
        If the file is missing or unreadable, is not valid JSON, or does
        not carry the required fields.
    """
    manifest_path = Path(normalize_import_dir(str(import_dir))) / filename
    try:
        raw = manifest_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise InvalidManifestError(
            f"Failed to load manifest file {manifest_path}: {exc}"
        ) from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InvalidManifestError(
            f"Manifest file {manifest_path} is not valid JSON: {exc}"
        ) from exc

    manifest = Manifest.from_dict(data)
    logger.debug(
        "Loaded manifest %s: total=%d base_uri=%s",
        manifest_path,
        manifest.total,
        manifest.base_uri,
    )
    return manifest
