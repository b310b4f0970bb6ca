"""Artifact records, filters, digests and the per-run artifact registry."""

from .artifact import (
    EXTRA_CHECKSUM,
    EXTRA_CHECKSUMS,
    EXTRA_ID,
    EXTRA_REFRESH,
    Artifact,
    ArtifactFilter,
    ArtifactType,
    ExtraTypeError,
    and_,
    by_ids,
    by_type,
    get_extra,
    or_,
)
from .digest import SUPPORTED_ALGORITHMS, file_digest, new_hasher
from .registry import METADATA_FILENAME, ArtifactRegistry

__all__ = [
    "EXTRA_CHECKSUM",
    "EXTRA_CHECKSUMS",
    "EXTRA_ID",
    "EXTRA_REFRESH",
    "METADATA_FILENAME",
    "SUPPORTED_ALGORITHMS",
    "Artifact",
    "ArtifactFilter",
    "ArtifactRegistry",
    "ArtifactType",
    "ExtraTypeError",
    "and_",
    "by_ids",
    "by_type",
    "file_digest",
    "get_extra",
    "new_hasher",
    "or_",
]
