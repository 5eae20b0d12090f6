from django.core.exceptions import ValidationError

GENERIC_FAILURE_MESSAGE = "Operation failed. Please try again."


class LedgerError(Exception):
    """Base for failures raised by the payment write-path."""
    public_message = GENERIC_FAILURE_MESSAGE


class TenantRequired(LedgerError):
    """Raised when a tenant-scoped read or write runs without a tenant."""
    pass


class TenantMismatch(LedgerError):
    """Raised when a referenced row belongs to another tenant."""
    pass


class ReferenceNotFound(LedgerError):
    """Raised when a referenced row (party, bank account, tenant) is missing."""

    def __init__(self, object_type, object_id):
        self.object_type = object_type
        self.object_id = object_id
        super().__init__(f"{object_type} {object_id} not found")

    @property
    def public_message(self):
        return f"{self.object_type} not found"


class NoOutstandingInvoices(LedgerError):
    """Raised when a payment targets a party with nothing left to settle"""

    def __init__(self, party):
        self.party = party
        super().__init__(f"No outstanding invoices found for {party}")

    @property
    def public_message(self):
        return f"{self.party} has no unpaid or partially paid invoices"


class StorageFailure(LedgerError):
    """Raised when the database aborts the unit of work. Safe to resubmit,
    but resubmitting records a second payment batch."""
    pass


def public_message(exc):
    # Validation and business-rule failures are actionable for the user;
    # security and infrastructure failures stay generic
    if isinstance(exc, ValidationError):
        return "; ".join(exc.messages)
    if isinstance(exc, (TenantMismatch, TenantRequired, StorageFailure)):
        return GENERIC_FAILURE_MESSAGE
    if isinstance(exc, LedgerError):
        return exc.public_message
    return GENERIC_FAILURE_MESSAGE
