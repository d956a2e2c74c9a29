"""Unit tests for billing error codes."""

import pytest

from rentals.services.errors import (
    BillingError,
    DuplicateInvoiceError,
    InvalidChargeError,
    InvalidItemError,
    InvalidReadingError,
    InvalidStatusError,
    InvoiceAlreadyPaidError,
    InvoiceItemNotFoundError,
    InvoiceNotFoundError,
    InvoiceVoidedError,
    LeaseNotFoundError,
    PendingReadingsError,
    error_response,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    "error_class,code,http_status",
    [
        (LeaseNotFoundError, "LEASE_NOT_FOUND", 404),
        (InvoiceNotFoundError, "INVOICE_NOT_FOUND", 404),
        (InvoiceItemNotFoundError, "INVOICE_ITEM_NOT_FOUND", 404),
        (InvalidStatusError, "INVALID_STATUS", 400),
        (InvalidItemError, "INVALID_ITEM", 400),
        (InvalidReadingError, "INVALID_READING", 400),
        (PendingReadingsError, "PENDING_READINGS", 400),
        (InvoiceAlreadyPaidError, "INVOICE_ALREADY_PAID", 400),
        (InvoiceVoidedError, "INVOICE_VOID", 400),
        (InvalidChargeError, "INVALID_CHARGE", 400),
        (DuplicateInvoiceError, "DUPLICATE_INVOICE", 409),
    ],
)
def test_error_codes(error_class, code, http_status):
    error = error_class()
    assert isinstance(error, BillingError)
    assert error.code == code
    assert error.http_status == http_status
    assert str(error) == error.message


@pytest.mark.unit
def test_error_response_body():
    error = InvalidReadingError("meter_end (5) must be greater than or equal to meter_start (10)")
    assert error_response(error) == {
        "error": {
            "code": "INVALID_READING",
            "message": "meter_end (5) must be greater than or equal to meter_start (10)",
        }
    }
