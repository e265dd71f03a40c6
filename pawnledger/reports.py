"""
Report generation module for PawnLedger.
Builds the data behind the loan report and the loans/payments overviews.
Rendering is left to the caller.
"""
from dataclasses import dataclass
from datetime import date

import pandas as pd

from pawnledger.config import CAPITALIZATION_CYCLE_MONTHS, INTEREST_RATES, UNKNOWN_PLACEHOLDER
from pawnledger.data_structures import Loan, to_date
from pawnledger.services.interest_engine import elapsed_months

HISTORY_COLUMNS = ['date', 'month', 'cycle', 'principal', 'monthly_interest',
                   'accumulated_interest', 'capitalized', 'new_principal']


@dataclass
class LoanReport:
    loan: Loan
    customer_name: str
    monthly_rate: float
    outstanding: float
    total_paid: float
    months_active: int
    interest_accrued: float
    history: pd.DataFrame


class ReportGenerator:
    def __init__(self, engine):
        """
        Args:
            engine: LedgerEngine giving access to the services.
        """
        self.engine = engine

    def _history_df(self, loan_id):
        entries = self.engine.interest_engine.interest_history(loan_id)
        if not entries:
            return pd.DataFrame(columns=HISTORY_COLUMNS)

        df = pd.DataFrame([{
            'date': e.date,
            'month': e.month,
            'cycle': (e.month - 1) // CAPITALIZATION_CYCLE_MONTHS + 1,
            'principal': e.principal_at_accrual,
            'monthly_interest': e.monthly_interest_amount,
            'accumulated_interest': e.accumulated_interest,
            'capitalized': e.capitalized,
            'new_principal': e.new_principal,
        } for e in entries], columns=HISTORY_COLUMNS)
        return df.sort_values(by=['date', 'month']).reset_index(drop=True)

    def loan_report(self, loan_id, as_of=None):
        """Figures and interest history for one loan.

        Interest accrued is derived as outstanding + paid - principal, so it
        understates interest once payments exceed the balance.
        """
        as_of = to_date(as_of) if as_of is not None else date.today()
        loan = self.engine.loans.get_loan(loan_id)

        outstanding = self.engine.compute_outstanding_balance(loan, as_of)
        total_paid = self.engine.payments.total_paid(loan_id)

        return LoanReport(
            loan=loan,
            customer_name=self.engine.customers.get_customer_name(loan.customer_id),
            monthly_rate=INTEREST_RATES.get(loan.loan_type, 0.0),
            outstanding=outstanding,
            total_paid=total_paid,
            months_active=elapsed_months(loan.start_date, as_of),
            interest_accrued=outstanding + total_paid - loan.principal_amount,
            history=self._history_df(loan_id),
        )

    def loans_overview(self, as_of=None):
        """One row per loan with its customer's name and outstanding balance."""
        as_of = to_date(as_of) if as_of is not None else date.today()
        names = {c.id: c.name for c in self.engine.customers.get_customers()}

        rows = []
        for loan in self.engine.loans.get_loans():
            rows.append({
                'loan_id': loan.id,
                'bill_number': loan.bill_number,
                'customer': names.get(loan.customer_id, UNKNOWN_PLACEHOLDER),
                'loan_type': loan.loan_type,
                'ornament_weight_grams': loan.ornament_weight_grams,
                'principal': loan.principal_amount,
                'start_date': loan.start_date,
                'outstanding': self.engine.compute_outstanding_balance(loan, as_of),
            })
        return pd.DataFrame(rows, columns=['loan_id', 'bill_number', 'customer', 'loan_type',
                                           'ornament_weight_grams', 'principal', 'start_date',
                                           'outstanding'])

    def payments_overview(self):
        """All payments, newest first, with bill number and customer name."""
        loans = {l.id: l for l in self.engine.loans.get_loans()}
        names = {c.id: c.name for c in self.engine.customers.get_customers()}

        rows = []
        for payment in self.engine.payments.get_payments():
            loan = loans.get(payment.loan_id)
            rows.append({
                'payment_id': payment.id,
                'date': payment.date,
                'bill_number': loan.bill_number if loan else UNKNOWN_PLACEHOLDER,
                'customer': names.get(loan.customer_id, UNKNOWN_PLACEHOLDER) if loan else UNKNOWN_PLACEHOLDER,
                'type': payment.type,
                'amount': payment.amount,
            })
        df = pd.DataFrame(rows, columns=['payment_id', 'date', 'bill_number', 'customer',
                                         'type', 'amount'])
        if df.empty:
            return df
        return df.sort_values(by='date', ascending=False, kind='stable').reset_index(drop=True)

    def customer_summary(self, customer_id, as_of=None):
        """Loan count, total principal and total outstanding for a customer."""
        customer = self.engine.customers.get_customer(customer_id)
        loans = self.engine.loans.get_loans(customer_id)
        return {
            'customer_id': customer.id,
            'name': customer.name,
            'loan_count': len(loans),
            'total_principal': sum(l.principal_amount for l in loans),
            'total_outstanding': sum(self.engine.compute_outstanding_balance(l, as_of) for l in loans),
        }
