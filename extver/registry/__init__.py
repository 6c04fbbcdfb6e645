"""
Registry (marketplace) access.

RegistryClient is the seam: TfxRegistryClient talks to the marketplace through
the tfx CLI, StaticRegistryClient answers from memory.
"""

from .client import (
    NotPublished,
    Published,
    RegistryClient,
    RegistryRecord,
    StaticRegistryClient,
    Unknown,
)
from .tfx import TfxRegistryClient, is_valid_identifier

__all__ = [
    "NotPublished",
    "Published",
    "RegistryClient",
    "RegistryRecord",
    "StaticRegistryClient",
    "TfxRegistryClient",
    "Unknown",
    "is_valid_identifier",
]
