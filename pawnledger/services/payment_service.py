"""Payment service for PawnLedger.

Payments are recorded as-is against a loan. Their amounts are not checked
against the outstanding balance: over-payment drives the computed balance
to zero.
"""
from pawnledger.config import LOANS, PAYMENTS
from pawnledger.data_structures import Payment, new_id, parse_amount, parse_date
from pawnledger.exceptions import LoanNotFoundError, PaymentNotFoundError, ValidationError
from pawnledger.logging import get_logger

logger = get_logger(__name__)


class PaymentService:
    """Handles payment CRUD operations."""

    def __init__(self, record_store):
        """Initialize PaymentService.

        Args:
            record_store: RecordStore instance for data persistence.
        """
        self.store = record_store

    def get_payments(self, loan_id=None):
        """Payments in stored order, optionally only those of one loan."""
        payments = [Payment.from_record(r) for r in self.store.read_collection(PAYMENTS)]
        if loan_id is not None:
            payments = [p for p in payments if p.loan_id == loan_id]
        return payments

    def get_payment(self, payment_id):
        for record in self.store.read_collection(PAYMENTS):
            if record['id'] == payment_id:
                return Payment.from_record(record)
        raise PaymentNotFoundError(payment_id)

    def total_paid(self, loan_id):
        return sum(p.amount for p in self.get_payments(loan_id))

    def _build(self, payment_id, loan_id, date, payment_type, amount):
        if not loan_id:
            raise ValidationError("Loan is required", {'field': 'loanId'})
        if not payment_type:
            raise ValidationError("Payment type is required", {'field': 'type'})
        date = parse_date(date, "date")
        amount = parse_amount(amount, "amount")

        if not any(r['id'] == loan_id for r in self.store.read_collection(LOANS)):
            raise LoanNotFoundError(loan_id)

        return Payment(id=payment_id, loan_id=loan_id, date=date, type=payment_type,
                       amount=amount)

    def create_payment(self, loan_id, date, payment_type, amount):
        """Record a payment against a loan.

        Args:
            loan_id: ID of the loan being paid.
            date: Payment date.
            payment_type: Category tag, e.g. "interest" or "redemption".
            amount: Amount paid.

        Returns:
            The created Payment.

        Raises:
            ValidationError: On missing fields.
            LoanNotFoundError: If the loan does not exist.
        """
        payment = self._build(new_id(), loan_id, date, payment_type, amount)

        payments = self.store.read_collection(PAYMENTS)
        payments.append(payment.to_record())
        self.store.write_collection(PAYMENTS, payments)
        logger.info("Recorded %s payment of %.2f on loan %s", payment_type, payment.amount, loan_id)
        return payment

    def update_payment(self, payment_id, loan_id, date, payment_type, amount):
        self.get_payment(payment_id)
        payment = self._build(payment_id, loan_id, date, payment_type, amount)

        payments = [payment.to_record() if r['id'] == payment_id else r
                    for r in self.store.read_collection(PAYMENTS)]
        self.store.write_collection(PAYMENTS, payments)
        return payment

    def delete_payment(self, payment_id):
        """Delete a single payment. Nothing else is affected."""
        self.get_payment(payment_id)
        payments = [r for r in self.store.read_collection(PAYMENTS) if r['id'] != payment_id]
        self.store.write_collection(PAYMENTS, payments)
        logger.info("Deleted payment %s", payment_id)
