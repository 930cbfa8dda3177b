"""
Custom Exceptions for HostelPay
===============================

Use these instead of generic Exception so the API layer can map each
failure to a status code and callers can tell a degraded write from a
lost one.

Usage:
    from hostelpay.core.exceptions import StudentNotFoundError, PersistenceFailure

    if student is None:
        raise StudentNotFoundError(student_id)

Remote-store trouble is represented by RemoteUnavailableError and never
leaves the sync coordinator; PersistenceFailure is the only storage error
a caller ever sees.
"""

from typing import Optional, Any, Dict


class HostelError(Exception):
    """Base exception for all HostelPay errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Authentication Errors
# ============================================

class AuthenticationError(HostelError):
    """Admin authentication failed"""

    status_code = 401

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message, code="AUTH_FAILED")


class TokenExpiredError(AuthenticationError):
    """Token or its session has expired"""

    def __init__(self):
        super().__init__("Token has expired")
        self.code = "TOKEN_EXPIRED"


class InvalidTokenError(AuthenticationError):
    """Token is invalid, revoked or unknown"""

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message)
        self.code = "INVALID_TOKEN"


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(HostelError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with ID '{resource_id}' not found",
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class StudentNotFoundError(ResourceNotFoundError):
    def __init__(self, student_id: str):
        super().__init__("Student", student_id)


class ExpenseNotFoundError(ResourceNotFoundError):
    def __init__(self, expense_id: str):
        super().__init__("Expense", expense_id)


class NotificationNotFoundError(ResourceNotFoundError):
    def __init__(self, notification_id: str):
        super().__init__("Notification", notification_id)


class PaymentNotFoundError(ResourceNotFoundError):
    def __init__(self, payment_id: str):
        super().__init__("Payment", payment_id)


class AdminNotFoundError(ResourceNotFoundError):
    def __init__(self, admin_id: str):
        super().__init__("Admin", admin_id)


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(HostelError):
    """Input validation failed"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class DuplicateMobileError(ValidationError):
    """A student with this mobile number already exists"""

    def __init__(self, mobile: str):
        super().__init__(f"A student with mobile {mobile} already exists", field="mobile")
        self.code = "DUPLICATE_MOBILE"


class InvalidPaymentTransitionError(HostelError):
    """Payment tracking status cannot move in the requested direction"""

    status_code = 409

    def __init__(self, payment_id: str, current: str, target: str):
        super().__init__(
            f"Payment '{payment_id}' cannot move from {current} to {target}",
            code="INVALID_PAYMENT_TRANSITION",
            details={"payment_id": payment_id, "current": current, "target": target}
        )


# ============================================
# Storage Errors
# ============================================

class StorageError(HostelError):
    """Base class for storage errors"""

    status_code = 503


class RecordNotFound(StorageError):
    """A record store has no document with the requested id"""

    status_code = 404

    def __init__(self, collection: str, record_id: str):
        super().__init__(
            f"No '{collection}' record with id '{record_id}'",
            code="RECORD_NOT_FOUND",
            details={"collection": collection, "record_id": record_id}
        )


class RemoteUnavailableError(StorageError):
    """Remote store unreachable, timed out or not configured"""

    def __init__(self, message: str = "Remote store unavailable", collection: Optional[str] = None):
        super().__init__(message, code="REMOTE_UNAVAILABLE")
        if collection:
            self.details["collection"] = collection


class PersistenceFailure(StorageError):
    """Both the remote store and the local cache failed to persist a change"""

    def __init__(self, collection: str, operation: str, reason: str = ""):
        message = f"Could not save {collection} ({operation})"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message,
            code="PERSISTENCE_FAILURE",
            details={"collection": collection, "operation": operation}
        )


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: HostelError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "error": error.to_dict()
    }
