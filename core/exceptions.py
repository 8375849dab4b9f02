"""Common exception classes for core package.

All exceptions ultimately inherit from :class:`PromptPlaygroundError`, allowing
the repository façade to catch a single base class at its boundary while still
distinguishing individual error categories when composing user-facing messages.

Updates:
  v0.3.0 - 2026-09-12 - Add PurchaseError for the support tip workflow.
  v0.2.0 - 2026-09-01 - Add remote record database client error hierarchy.
  v0.1.0 - 2026-08-20 - Created module with remote, generation, and persistence errors.
"""

from __future__ import annotations


class PromptPlaygroundError(Exception):
    """Base exception for Prompt Playground failures."""


# ---------------------------------------------------------------------------
# Remote store adapter errors
# ---------------------------------------------------------------------------


class RemoteUnavailable(PromptPlaygroundError):
    """Raised when no authorized remote session exists or the store is unreachable."""


class RemoteWriteError(PromptPlaygroundError):
    """Raised when creating, updating, or deleting a remote record fails."""


class DecodeError(PromptPlaygroundError):
    """Raised when a remote record is missing required fields or holds bad values."""


# ---------------------------------------------------------------------------
# Remote record database client errors
# ---------------------------------------------------------------------------


class RemoteDatabaseError(PromptPlaygroundError):
    """Base class for failures reported by a remote record database client."""


class RemoteAuthenticationError(RemoteDatabaseError):
    """Raised when the remote database rejects the current session."""


class RemoteRecordNotFound(RemoteDatabaseError):
    """Raised when a remote record handle does not exist (or was already deleted)."""


# ---------------------------------------------------------------------------
# Generation backend errors
# ---------------------------------------------------------------------------


class GenerationUnavailable(PromptPlaygroundError):
    """Raised when no text generation backend is configured or installed."""


class GenerationError(PromptPlaygroundError):
    """Raised when a generation call was attempted but failed."""


# ---------------------------------------------------------------------------
# Local persistence and commerce errors
# ---------------------------------------------------------------------------


class PersistenceError(PromptPlaygroundError):
    """Raised when the local blob store cannot be read or written."""


class PurchaseError(PromptPlaygroundError):
    """Raised when the commerce backend fails to list, sell, or restore products."""


__all__ = [
    "DecodeError",
    "GenerationError",
    "GenerationUnavailable",
    "PersistenceError",
    "PromptPlaygroundError",
    "PurchaseError",
    "RemoteAuthenticationError",
    "RemoteDatabaseError",
    "RemoteRecordNotFound",
    "RemoteUnavailable",
    "RemoteWriteError",
]
