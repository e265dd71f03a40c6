"""Custom exceptions for PawnLedger."""


class PawnLedgerError(Exception):
    """Base exception for all PawnLedger errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class ValidationError(PawnLedgerError):
    """Raised when input is rejected before anything is written."""
    pass


class DuplicateBillNumberError(ValidationError):
    """Raised when a bill number is already used by a different loan."""

    def __init__(self, bill_number: str, existing_loan_id: str = None):
        details = {'bill_number': bill_number}
        if existing_loan_id:
            details['existing_loan_id'] = existing_loan_id
        super().__init__(f"Bill number '{bill_number}' already exists", details)


class InvalidLoanTypeError(ValidationError):
    """Raised when a loan type has no configured interest rate."""

    def __init__(self, loan_type, loan_id: str = None):
        details = {'loan_type': loan_type}
        if loan_id:
            details['loan_id'] = loan_id
        super().__init__(f"Invalid loan type '{loan_type}'", details)


class NotFoundError(PawnLedgerError):
    """Raised when a referenced record does not exist."""
    pass


class CustomerNotFoundError(NotFoundError):
    """Raised when a customer cannot be found."""

    def __init__(self, customer_id: str):
        super().__init__(f"Customer '{customer_id}' not found", {'customer_id': customer_id})


class LoanNotFoundError(NotFoundError):
    """Raised when a loan cannot be found."""

    def __init__(self, loan_id: str = None, bill_number: str = None):
        details = {}
        if loan_id:
            details['loan_id'] = loan_id
        if bill_number:
            details['bill_number'] = bill_number

        message = "Loan not found"
        if bill_number:
            message = f"Loan with bill number '{bill_number}' not found"
        elif loan_id:
            message = f"Loan '{loan_id}' not found"

        super().__init__(message, details)


class PaymentNotFoundError(NotFoundError):
    """Raised when a payment cannot be found."""

    def __init__(self, payment_id: str):
        super().__init__(f"Payment '{payment_id}' not found", {'payment_id': payment_id})


class StorageError(PawnLedgerError):
    """Raised when reading or writing a collection fails."""
    pass


class TransactionError(StorageError):
    """Raised when a local batch write fails to complete."""
    pass


class RemoteSyncError(StorageError):
    """Raised when the remote mirror is unreachable or rejects a request."""

    def __init__(self, message: str, path: str = None, status_code: int = None):
        details = {}
        if path:
            details['path'] = path
        if status_code is not None:
            details['status_code'] = status_code
        super().__init__(message, details)


class ConfigurationError(PawnLedgerError):
    """Raised when remote sync is requested without complete configuration."""
    pass
