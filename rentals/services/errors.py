"""Billing domain errors with stable codes.

Every error carries a machine-readable code that callers surface verbatim,
and the HTTP status an outer API layer should map it to.
"""

from typing import Any, Dict

HTTP_400_BAD_REQUEST = 400
HTTP_404_NOT_FOUND = 404
HTTP_409_CONFLICT = 409


class BillingError(Exception):
    """Base billing error."""

    def __init__(self, message: str, code: str, http_status: int = HTTP_400_BAD_REQUEST):
        self.message = message
        self.code = code
        self.http_status = http_status
        super().__init__(message)


class LeaseNotFoundError(BillingError):
    def __init__(self, message: str = "Lease not found"):
        super().__init__(message, "LEASE_NOT_FOUND", HTTP_404_NOT_FOUND)


class InvoiceNotFoundError(BillingError):
    def __init__(self, message: str = "Invoice not found"):
        super().__init__(message, "INVOICE_NOT_FOUND", HTTP_404_NOT_FOUND)


class InvoiceItemNotFoundError(BillingError):
    def __init__(self, message: str = "Invoice item not found"):
        super().__init__(message, "INVOICE_ITEM_NOT_FOUND", HTTP_404_NOT_FOUND)


class InvalidStatusError(BillingError):
    """Item is not waiting for a meter reading."""

    def __init__(self, message: str = "Invoice item does not need a meter reading"):
        super().__init__(message, "INVALID_STATUS")


class InvalidItemError(BillingError):
    """Item is missing data needed to price it."""

    def __init__(self, message: str = "Invoice item has no unit price"):
        super().__init__(message, "INVALID_ITEM")


class InvalidReadingError(BillingError):
    def __init__(self, message: str = "meter_end must be greater than or equal to meter_start"):
        super().__init__(message, "INVALID_READING")


class PendingReadingsError(BillingError):
    def __init__(self, message: str = "Invoice has items waiting for meter readings"):
        super().__init__(message, "PENDING_READINGS")


class InvoiceAlreadyPaidError(BillingError):
    def __init__(self, message: str = "Invoice is already settled"):
        super().__init__(message, "INVOICE_ALREADY_PAID")


class InvoiceVoidedError(BillingError):
    def __init__(self, message: str = "Invoice is void"):
        super().__init__(message, "INVOICE_VOID")


class InvalidChargeError(BillingError):
    def __init__(self, message: str = "Invalid lease charge"):
        super().__init__(message, "INVALID_CHARGE")


class DuplicateInvoiceError(BillingError):
    """An invoice for the same lease period already exists."""

    def __init__(self, message: str = "Invoice for this lease period already exists"):
        super().__init__(message, "DUPLICATE_INVOICE", HTTP_409_CONFLICT)


def error_response(error: BillingError) -> Dict[str, Any]:
    """Create a standardized error response body."""
    return {
        "error": {
            "code": error.code,
            "message": error.message,
        }
    }


__all__ = [
    "BillingError",
    "LeaseNotFoundError",
    "InvoiceNotFoundError",
    "InvoiceItemNotFoundError",
    "InvalidStatusError",
    "InvalidItemError",
    "InvalidReadingError",
    "PendingReadingsError",
    "InvoiceAlreadyPaidError",
    "InvoiceVoidedError",
    "InvalidChargeError",
    "DuplicateInvoiceError",
    "error_response",
]
