"""Loan service for PawnLedger.

This service handles loan records:
- Creation and update with bill number uniqueness
- Lookup by id or bill number
- Deletion cascading to payments and interest history
"""
from pawnledger.config import (
    CUSTOMERS,
    INTEREST_HISTORY,
    INTEREST_RATES,
    LOANS,
    PAYMENTS,
)
from pawnledger.data_structures import Loan, new_id, parse_amount, parse_date
from pawnledger.exceptions import (
    CustomerNotFoundError,
    DuplicateBillNumberError,
    InvalidLoanTypeError,
    LoanNotFoundError,
    ValidationError,
)
from pawnledger.logging import get_logger

logger = get_logger(__name__)

# Changing any of these invalidates the recorded interest history
ACCRUAL_FIELDS = ('loan_type', 'principal_amount', 'start_date')


class LoanService:
    """Handles loan CRUD operations.

    Every mutation reads the full loans collection, transforms it and writes
    it back; deletes write all affected collections in one batch.
    """

    def __init__(self, record_store):
        """Initialize LoanService.

        Args:
            record_store: RecordStore instance for data persistence.
        """
        self.store = record_store

    def get_loans(self, customer_id=None):
        """All loans, optionally only those of one customer."""
        loans = [Loan.from_record(r) for r in self.store.read_collection(LOANS)]
        if customer_id is not None:
            loans = [l for l in loans if l.customer_id == customer_id]
        return loans

    def get_loan(self, loan_id):
        """Raises LoanNotFoundError if there is no loan with this id."""
        for record in self.store.read_collection(LOANS):
            if record['id'] == loan_id:
                return Loan.from_record(record)
        raise LoanNotFoundError(loan_id)

    def find_by_bill_number(self, bill_number):
        for record in self.store.read_collection(LOANS):
            if record.get('billNumber') == bill_number:
                return Loan.from_record(record)
        raise LoanNotFoundError(bill_number=bill_number)

    def _validate(self, loan, loans):
        if not loan.customer_id:
            raise ValidationError("Customer is required", {'field': 'customerId'})
        if not loan.bill_number:
            raise ValidationError("Bill number is required", {'field': 'billNumber'})
        if loan.loan_type not in INTEREST_RATES:
            raise InvalidLoanTypeError(loan.loan_type, loan.id)
        if loan.principal_amount is None or loan.principal_amount <= 0:
            raise ValidationError("Principal amount must be positive",
                                  {'field': 'principalAmount', 'value': loan.principal_amount})

        customer_ids = {c['id'] for c in self.store.read_collection(CUSTOMERS)}
        if loan.customer_id not in customer_ids:
            raise CustomerNotFoundError(loan.customer_id)

        # Case-sensitive exact match, ignoring the loan being updated
        for other in loans:
            if other.get('billNumber') == loan.bill_number and other['id'] != loan.id:
                raise DuplicateBillNumberError(loan.bill_number, other['id'])

    def create_loan(self, customer_id, bill_number, loan_type, principal_amount, start_date,
                    ornament_weight_grams=0.0):
        """Create a new loan.

        Args:
            customer_id: ID of the owning customer.
            bill_number: Pledge bill number, unique across all loans.
            loan_type: "gold" or "silver".
            principal_amount: Amount lent, must be positive.
            start_date: Date the loan starts accruing.
            ornament_weight_grams: Weight of the pledged ornaments.

        Returns:
            The created Loan.

        Raises:
            ValidationError: On missing fields, bad type or duplicate bill number.
            CustomerNotFoundError: If the customer does not exist.
        """
        loan = Loan(
            id=new_id(),
            customer_id=customer_id,
            bill_number=bill_number,
            loan_type=loan_type,
            ornament_weight_grams=parse_amount(ornament_weight_grams or 0, "ornamentWeightGrams"),
            principal_amount=parse_amount(principal_amount, "principalAmount"),
            start_date=parse_date(start_date, "startDate"),
        )
        loans = self.store.read_collection(LOANS)
        self._validate(loan, loans)

        loans.append(loan.to_record())
        self.store.write_collection(LOANS, loans)
        logger.info("Created loan %s (bill %s) for customer %s", loan.id, bill_number, customer_id)
        return loan

    def update_loan(self, loan_id, **changes):
        """Update fields of an existing loan.

        Keyword names follow the Loan attributes (bill_number, loan_type, ...).
        If the loan type, principal or start date change, the loan's interest
        history is cleared in the same batch so it is rebuilt on next accrual.

        Returns:
            The updated Loan.

        Raises:
            LoanNotFoundError: If the loan does not exist.
            ValidationError: If the result is invalid; nothing is written.
        """
        current = self.get_loan(loan_id)
        unknown = (set(changes) - set(vars(current))) | ({"id"} & set(changes))
        if unknown:
            raise ValidationError("Unknown loan fields", {'fields': sorted(unknown)})

        updated = Loan(**{**vars(current), **changes})
        updated.start_date = parse_date(updated.start_date, "startDate")
        updated.principal_amount = parse_amount(updated.principal_amount, "principalAmount")
        updated.ornament_weight_grams = parse_amount(updated.ornament_weight_grams or 0,
                                                     "ornamentWeightGrams")

        loans = self.store.read_collection(LOANS)
        self._validate(updated, loans)

        batch = {LOANS: [updated.to_record() if r['id'] == loan_id else r for r in loans]}
        if any(getattr(current, f) != getattr(updated, f) for f in ACCRUAL_FIELDS):
            history = self.store.read_collection(INTEREST_HISTORY)
            batch[INTEREST_HISTORY] = [h for h in history if h.get('loanId') != loan_id]
            logger.info("Accrual terms of loan %s changed; interest history reset", loan_id)

        self.store.write_collections(batch)
        return updated

    def cascade_batch(self, loan_ids):
        """Collections rewritten without the given loans and their dependents."""
        loan_ids = set(loan_ids)
        return {
            LOANS: [r for r in self.store.read_collection(LOANS) if r['id'] not in loan_ids],
            PAYMENTS: [r for r in self.store.read_collection(PAYMENTS)
                       if r.get('loanId') not in loan_ids],
            INTEREST_HISTORY: [r for r in self.store.read_collection(INTEREST_HISTORY)
                               if r.get('loanId') not in loan_ids],
        }

    def delete_loan(self, loan_id):
        """Delete a loan together with its payments and interest history.

        Raises:
            LoanNotFoundError: If the loan does not exist.
        """
        self.get_loan(loan_id)
        self.store.write_collections(self.cascade_batch([loan_id]))
        logger.info("Deleted loan %s", loan_id)
