"""
Error taxonomy for the artisan sync pipeline

Run-level errors (AuthError, FetchError) fail the whole sync run;
RecordReconcileError only skips one artisan; PushError fails one stats push.
"""
from typing import Any, Optional


class PartnerAPIError(Exception):
    """Base error for calls to the partner API"""

    def __init__(self, message: str, status: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.status = status
        self.payload = payload


class AuthError(PartnerAPIError):
    """Partner rejected the integration credentials or returned no token"""


class FetchError(PartnerAPIError):
    """Fetching a page of artisans failed"""


class SyncPageLimitError(FetchError):
    """Partner kept returning data past the configured page cap"""


class PushError(PartnerAPIError):
    """Pushing call statistics to the partner failed"""


class RecordReconcileError(Exception):
    """One artisan record could not be mapped into the local hierarchy"""

    def __init__(self, artisan_id: Any, message: str):
        super().__init__(f"Artisan {artisan_id}: {message}")
        self.artisan_id = artisan_id
