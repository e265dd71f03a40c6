"""Services package for PawnLedger business logic.

Each service owns one concern and works on plain records through a
RecordStore; the LedgerEngine facade wires them together.
"""

from .interest_engine import InterestAccrualEngine, accrue, elapsed_months, rate_for
from .customer_service import CustomerService
from .loan_service import LoanService
from .payment_service import PaymentService

__all__ = ['InterestAccrualEngine', 'CustomerService', 'LoanService', 'PaymentService',
           'accrue', 'elapsed_months', 'rate_for']
