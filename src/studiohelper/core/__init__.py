"""Core module - Shared config, crypto and chunking."""

from studiohelper.core.chunking import CHUNK_SIZE, Chunk, count_chunks, split_chunks
from studiohelper.core.config import (
    MAX_CONCURRENT_UPLOADS,
    StudioConfig,
)
from studiohelper.core.crypto import (
    DecryptionError,
    compute_sha1,
    derive_key,
    generate_salt,
    seal,
    unseal,
)

__all__ = [
    # Chunking
    "CHUNK_SIZE",
    "Chunk",
    "count_chunks",
    "split_chunks",
    # Config
    "MAX_CONCURRENT_UPLOADS",
    "StudioConfig",
    # Crypto
    "DecryptionError",
    "compute_sha1",
    "derive_key",
    "generate_salt",
    "seal",
    "unseal",
]
