"""Business logic engine for PawnLedger.

This module provides the LedgerEngine class, a facade over the service
classes in pawnledger/services/. A presentation layer holds one engine and
calls into it; nothing in here renders or prompts.

Service Classes:
    - CustomerService: Customer CRUD with cascading delete
    - LoanService: Loan CRUD with bill number uniqueness and cascading delete
    - PaymentService: Payment CRUD
    - InterestAccrualEngine: Outstanding balance and interest history
"""
from pawnledger.config import LedgerConfig, RemoteMode
from pawnledger.database import DatabaseManager
from pawnledger.logging import get_logger, setup_logging
from pawnledger.services import CustomerService, InterestAccrualEngine, LoanService, PaymentService
from pawnledger.storage import RecordStore

logger = get_logger(__name__)


class LedgerEngine:
    """Entry point for ledger operations.

    Attributes:
        store: RecordStore shared by every service.
        customers: CustomerService instance (lazy-loaded).
        loans: LoanService instance (lazy-loaded).
        payments: PaymentService instance (lazy-loaded).
        interest_engine: InterestAccrualEngine instance (lazy-loaded).
    """

    def __init__(self, record_store):
        self.store = record_store
        self._customers = None
        self._loans = None
        self._payments = None
        self._interest_engine = None

    @classmethod
    def from_config(cls, config: LedgerConfig = None):
        """Build an engine with its database and, in remote mode, its mirror.

        Also applies the configured log level and format.
        """
        config = config or LedgerConfig.from_env()
        setup_logging(config.log_level, config.log_format)
        mode = config.resolve_storage_mode()

        mirror = None
        if isinstance(mode, RemoteMode):
            from pawnledger.remote import GitHubMirror
            mirror = GitHubMirror(mode.github, timeout=config.remote_timeout,
                                  retries=config.remote_retries)
        elif mode.reason:
            logger.warning("Remote storage requested but disabled: %s", mode.reason)

        db = DatabaseManager(config.db_path)
        return cls(RecordStore(db, mode, mirror=mirror))

    @property
    def loans(self):
        """Lazy-load LoanService instance."""
        if self._loans is None:
            self._loans = LoanService(self.store)
        return self._loans

    @property
    def customers(self):
        """Lazy-load CustomerService instance."""
        if self._customers is None:
            self._customers = CustomerService(self.store, self.loans)
        return self._customers

    @property
    def payments(self):
        """Lazy-load PaymentService instance."""
        if self._payments is None:
            self._payments = PaymentService(self.store)
        return self._payments

    @property
    def interest_engine(self):
        """Lazy-load InterestAccrualEngine instance."""
        if self._interest_engine is None:
            self._interest_engine = InterestAccrualEngine(self.store)
        return self._interest_engine

    @property
    def reports(self):
        from pawnledger.reports import ReportGenerator
        return ReportGenerator(self)

    # --- Delegation Methods ---

    def compute_outstanding_balance(self, loan, as_of_date=None):
        """Outstanding balance of a loan (a Loan or a loan id)."""
        if isinstance(loan, str):
            loan = self.loans.get_loan(loan)
        return self.interest_engine.compute_outstanding_balance(loan, as_of_date)

    def create_customer(self, name, mobile="", address="", government_id=""):
        return self.customers.create_customer(name, mobile, address, government_id)

    def update_customer(self, customer_id, name, mobile="", address="", government_id=""):
        return self.customers.update_customer(customer_id, name, mobile, address, government_id)

    def delete_customer(self, customer_id):
        return self.customers.delete_customer(customer_id)

    def create_loan(self, customer_id, bill_number, loan_type, principal_amount, start_date,
                    ornament_weight_grams=0.0):
        return self.loans.create_loan(customer_id, bill_number, loan_type, principal_amount,
                                      start_date, ornament_weight_grams)

    def update_loan(self, loan_id, **changes):
        return self.loans.update_loan(loan_id, **changes)

    def delete_loan(self, loan_id):
        return self.loans.delete_loan(loan_id)

    def create_payment(self, loan_id, date, payment_type, amount):
        return self.payments.create_payment(loan_id, date, payment_type, amount)

    def update_payment(self, payment_id, loan_id, date, payment_type, amount):
        return self.payments.update_payment(payment_id, loan_id, date, payment_type, amount)

    def delete_payment(self, payment_id):
        return self.payments.delete_payment(payment_id)

    def sync_to_remote(self):
        return self.store.sync_to_remote()

    def sync_from_remote(self):
        return self.store.sync_from_remote()

    def close(self):
        self.store.db.close()
