"""
Error Taxonomy

Every failure the services report to a caller is one of these exceptions.
Each carries the HTTP status and a machine-readable code, so the API layer
renders all of them through a single exception handler as an ErrorResponse.

    QRMenuError
    ├── ValidationFailedError      (422) rejected before any write
    ├── AuthenticationError        (401)
    ├── PlanRequiredError          (403) premium-only capability
    ├── NotFoundError              (404)
    │   └── MenuNotFoundError      (404) unknown QR token
    ├── ConflictError              (409)
    │   ├── InvalidTransitionError (409) status outside the order flow
    │   └── TableNumberConflictError
    └── StoreWriteError            (500) write rejected, nothing applied
        └── OrderSubmissionError   (500) order + items not persisted

Author: Khalil Bannouri
Version: 1.0.0
"""

from typing import Optional


class QRMenuError(Exception):
    """Base class for all expected application errors."""

    status_code: int = 400
    code: str = "error"

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class ValidationFailedError(QRMenuError):
    status_code = 422
    code = "validation_error"


class AuthenticationError(QRMenuError):
    status_code = 401
    code = "not_authenticated"


class PlanRequiredError(QRMenuError):
    """Raised when a basic-plan owner calls a premium-only operation."""

    status_code = 403
    code = "plan_required"

    def __init__(self, required_plan: str, feature: str):
        super().__init__(
            f"{feature} requires the {required_plan} plan",
            detail=f"Upgrade to {required_plan} to use {feature}.",
        )
        self.required_plan = required_plan
        self.feature = feature


class NotFoundError(QRMenuError):
    status_code = 404
    code = "not_found"


class MenuNotFoundError(NotFoundError):
    """The QR token does not address any table."""

    code = "menu_not_found"

    def __init__(self, token: str):
        super().__init__(
            "Menu not found",
            detail="The QR code is invalid or has expired.",
        )
        self.token = token


class ConflictError(QRMenuError):
    status_code = 409
    code = "conflict"


class InvalidTransitionError(ConflictError):
    code = "invalid_transition"

    def __init__(self, current: str, target: str):
        super().__init__(
            f"Cannot move order from '{current}' to '{target}'",
        )
        self.current = current
        self.target = target


class TableNumberConflictError(ConflictError):
    code = "table_number_conflict"


class StoreWriteError(QRMenuError):
    status_code = 500
    code = "write_failed"


class OrderSubmissionError(StoreWriteError):
    code = "order_submission_failed"
