"""
Exceptions raised by the sync pipeline.

Every error derives from DNSSyncError so the engine can turn any of them into
a failed SyncResult. Errors that an operator may bypass with force sync carry
``force_sync_downgradable = True``.
"""

from typing import List, Optional


class DNSSyncError(Exception):
    """Base class for all sync errors."""

    force_sync_downgradable = False


class InputError(DNSSyncError):
    """Missing or unreadable registry file, or malformed change metadata."""

    force_sync_downgradable = True


class PatchReconstructionError(DNSSyncError):
    """Deleted file content could not be rebuilt from the change patch."""


class ValidationError(DNSSyncError):
    """Registry record does not match the domain record schema."""

    force_sync_downgradable = True

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.errors = list(errors or [])
        if self.errors:
            message = f"{message}: {'; '.join(self.errors)}"
        super().__init__(message)


class ProviderError(DNSSyncError):
    """Base class for DNS provider failures."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ProviderTransientError(ProviderError):
    """Network error, timeout or 5xx answer; safe to retry."""


class ProviderFatalError(ProviderError):
    """Unrecoverable provider error, including exhausted retries."""


class ProviderConflictError(ProviderError):
    """Mutation conflicts with existing provider state."""
