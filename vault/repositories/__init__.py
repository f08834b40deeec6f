"""Repository layer for metadata access."""

from vault.repositories.metadata_index import MetadataIndex

__all__ = [
    "MetadataIndex",
]
