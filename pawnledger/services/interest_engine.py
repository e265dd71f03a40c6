"""Interest accrual service for PawnLedger.

Interest accrues monthly as simple interest on the current principal. Every
12 months the interest accrued in that cycle is capitalized (added to the
principal). Elapsed months are counted with a fixed 30.44-day month rather
than calendar arithmetic, so a loan gains a month every 30.44 days
regardless of month lengths.

Each computation walks every month from the loan's start using the loan's
original principal. The interest-history collection is a record of that
walk: entries are created for months not seen before and flagged when they
close a capitalization cycle, but they are never read back as an input.
"""
import math
import threading
from datetime import date

from dateutil.relativedelta import relativedelta

from pawnledger.config import (
    CAPITALIZATION_CYCLE_MONTHS,
    DAYS_PER_MONTH,
    INTEREST_HISTORY,
    INTEREST_RATES,
    PAYMENTS,
)
from pawnledger.data_structures import AccrualResult, InterestHistoryEntry, new_id, to_date
from pawnledger.exceptions import InvalidLoanTypeError
from pawnledger.logging import get_logger

logger = get_logger(__name__)


def rate_for(loan_type, loan_id=None):
    """Monthly interest rate for a loan type.

    Raises:
        InvalidLoanTypeError: If the loan type has no configured rate.
    """
    try:
        return INTEREST_RATES[loan_type]
    except (KeyError, TypeError):
        raise InvalidLoanTypeError(loan_type, loan_id)


def elapsed_months(start_date, as_of_date):
    """Whole 30.44-day months between two dates, never negative."""
    days = (to_date(as_of_date) - to_date(start_date)).days
    return max(0, math.floor(days / DAYS_PER_MONTH))


def accrual_month_start(start_date, month_index):
    """First day of the calendar month that a 1-based month index falls in."""
    accrual_date = to_date(start_date) + relativedelta(months=month_index - 1)
    return accrual_date.replace(day=1)


def accrue(loan, as_of_date, history=()):
    """Walk a loan's months up to ``as_of_date`` without touching storage.

    Args:
        loan: Loan to accrue.
        as_of_date: Date the balance is computed for.
        history: Existing InterestHistoryEntry objects for this loan. They
            are copied, not mutated.

    Returns:
        AccrualResult with the principal after capitalization, interest
        accrued since the last capitalization, and the merged history.

    Raises:
        InvalidLoanTypeError: If the loan type has no configured rate.
    """
    rate = rate_for(loan.loan_type, loan.id)
    months = elapsed_months(loan.start_date, as_of_date)

    merged = [InterestHistoryEntry(**vars(entry)) for entry in history]
    seen = {entry.calendar_key for entry in merged}
    changed = False

    principal = loan.principal_amount
    accrued = 0.0
    cycle_months = 0

    for month in range(1, months + 1):
        monthly_interest = principal * rate
        accrued += monthly_interest
        cycle_months += 1

        anchor = accrual_month_start(loan.start_date, month)
        if (anchor.year, anchor.month) not in seen:
            merged.append(InterestHistoryEntry(
                id=new_id(),
                loan_id=loan.id,
                date=anchor,
                month=month,
                principal_at_accrual=principal,
                monthly_interest_amount=monthly_interest,
                accumulated_interest=accrued,
            ))
            seen.add((anchor.year, anchor.month))
            changed = True

        if cycle_months == CAPITALIZATION_CYCLE_MONTHS:
            principal += accrued
            for entry in merged:
                if entry.month == month and not entry.capitalized:
                    entry.capitalized = True
                    entry.new_principal = principal
                    changed = True
            accrued = 0.0
            cycle_months = 0

    return AccrualResult(
        loan_id=loan.id,
        elapsed_months=months,
        principal=principal,
        accrued_since_capitalization=accrued,
        history=merged,
        history_changed=changed,
    )


class InterestAccrualEngine:
    """Computes outstanding balances and keeps the interest history current."""

    def __init__(self, record_store):
        """Initialize InterestAccrualEngine.

        Args:
            record_store: RecordStore holding payments and interest history.
        """
        self.store = record_store
        self._history_lock = threading.Lock()

    def interest_history(self, loan_id):
        """Persisted history entries for a loan, oldest first."""
        entries = [InterestHistoryEntry.from_record(r)
                   for r in self.store.read_collection(INTEREST_HISTORY)
                   if r.get('loanId') == loan_id]
        return sorted(entries, key=lambda e: (e.date, e.month))

    def total_payments(self, loan_id):
        return sum(float(p.get('amount') or 0)
                   for p in self.store.read_collection(PAYMENTS)
                   if p.get('loanId') == loan_id)

    def accrue_and_record(self, loan, as_of_date=None):
        """Accrue a loan and persist any new or newly capitalized history entries.

        The read-merge-write of the history collection holds a lock shared by
        all loans, since a write for one loan rewrites every other loan's entries.

        Returns:
            AccrualResult for the loan.

        Raises:
            InvalidLoanTypeError: Before anything is read or written.
        """
        rate_for(loan.loan_type, loan.id)
        as_of = to_date(as_of_date) if as_of_date is not None else date.today()

        with self._history_lock:
            all_history = self.store.read_collection(INTEREST_HISTORY)
            own = [InterestHistoryEntry.from_record(r) for r in all_history
                   if r.get('loanId') == loan.id]

            result = accrue(loan, as_of, own)

            if result.history_changed:
                others = [r for r in all_history if r.get('loanId') != loan.id]
                self.store.write_collection(
                    INTEREST_HISTORY, others + [e.to_record() for e in result.history]
                )
                logger.debug("Recorded interest history for loan %s (%d entries)",
                             loan.id, len(result.history))
        return result

    def compute_outstanding_balance(self, loan, as_of_date=None):
        """Outstanding balance of a loan as of a date (default: today).

        Principal after capitalization plus interest accrued in the current
        cycle, minus every payment recorded against the loan, floored at 0.

        Raises:
            InvalidLoanTypeError: If the loan type is not gold or silver.
        """
        result = self.accrue_and_record(loan, as_of_date)
        outstanding = result.gross_balance - self.total_payments(loan.id)
        return max(0.0, outstanding)
