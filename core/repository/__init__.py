"""Repository façades owning the record cache and its persistence.

Updates:
  v0.2.0 - 2026-09-11 - Add local-only repository backed by the blob store.
  v0.1.0 - 2026-08-31 - Replace SQLite mixins with the cloud-synced façade.
"""

from __future__ import annotations

from .base import PromptRepositoryBase, sort_canonical
from .cloud import CloudPromptRepository
from .local import LocalPromptRepository, sample_prompts

__all__ = [
    "CloudPromptRepository",
    "LocalPromptRepository",
    "PromptRepositoryBase",
    "sample_prompts",
    "sort_canonical",
]
