"""
Domain Exceptions
Error taxonomy for the scan-to-reward pipeline.

Every exception carries a machine readable ``code`` and the HTTP status
used when it escapes to an API endpoint.
"""

from typing import Any, Optional


class EcoScanError(Exception):
    """Base class for all domain errors."""
    code = "error"
    status_code = 500

    def __init__(self, message: str, details: Any = None):
        self.message = message
        self.details = details
        super().__init__(self.message)


class ProductNotFound(EcoScanError):
    """Manually entered barcode has no catalog match."""
    code = "product_not_found"
    status_code = 404

    def __init__(self, barcode: str):
        self.barcode = barcode
        super().__init__(
            "This product is not in our database yet",
            details={"barcode": barcode},
        )


class DetectorUnavailable(EcoScanError):
    """No camera, no permission, or the device is held by another session."""
    code = "detector_unavailable"
    status_code = 503


class LedgerWriteError(EcoScanError):
    """The scan event (or the credit transaction) could not be written."""
    code = "ledger_write_error"
    status_code = 500


class ProfileNotFound(EcoScanError):
    """No profile row for an authenticated user."""
    code = "profile_not_found"
    status_code = 404

    def __init__(self, user_id: Any):
        self.user_id = user_id
        super().__init__(f"Profile {user_id} not found", details={"user_id": str(user_id)})


class LedgerConflict(EcoScanError):
    """Concurrent update kept winning the race for the same profile."""
    code = "ledger_conflict"
    status_code = 409

    def __init__(self, user_id: Any, attempts: Optional[int] = None):
        self.user_id = user_id
        self.attempts = attempts
        message = "Your score is being updated elsewhere, please retry"
        super().__init__(message, details={"user_id": str(user_id), "attempts": attempts})


class InvalidScanState(EcoScanError):
    """A scan session was driven through a transition it does not allow."""
    code = "invalid_scan_state"
    status_code = 409
