"""Record types persisted in the PawnLedger collections.

Each record converts to and from the camelCase JSON object stored in its
collection via ``to_record`` / ``from_record``.
"""
import math
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser

from pawnledger.config import DATE_FORMAT_STORAGE
from pawnledger.exceptions import ValidationError


def new_id() -> str:
    """Generate a unique record id."""
    return uuid.uuid4().hex


def to_date(value) -> date:
    """Coerce a date, datetime, or ISO string into a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date_parser.isoparse(str(value)).date()


def format_date(value) -> str:
    return to_date(value).strftime(DATE_FORMAT_STORAGE)


def parse_date(value, field_name) -> date:
    """Coerce user input into a date, raising ValidationError if it is not one."""
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required", {'field': field_name})
    try:
        return to_date(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"{field_name} is not a valid date", {'field': field_name, 'value': value})


def parse_amount(value, field_name) -> float:
    """Coerce user input into a finite float, raising ValidationError otherwise."""
    try:
        amount = float(value)
    except (TypeError, ValueError):
        amount = math.nan
    if not math.isfinite(amount):
        raise ValidationError(f"{field_name} must be a number", {'field': field_name, 'value': value})
    return amount


@dataclass
class Customer:
    id: str
    name: str
    mobile: str = ""
    address: str = ""
    government_id: str = ""

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Customer":
        return cls(
            id=record['id'],
            name=record.get('name', ""),
            mobile=record.get('mobile', ""),
            address=record.get('address', ""),
            government_id=record.get('governmentId', ""),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'mobile': self.mobile,
            'address': self.address,
            'governmentId': self.government_id,
        }


@dataclass
class Loan:
    """A pledge loan secured by gold or silver ornaments."""
    id: str
    customer_id: str
    bill_number: str
    loan_type: str
    ornament_weight_grams: float
    principal_amount: float
    start_date: date

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Loan":
        return cls(
            id=record['id'],
            customer_id=record.get('customerId'),
            bill_number=record.get('billNumber'),
            loan_type=record.get('loanType'),
            ornament_weight_grams=float(record.get('ornamentWeightGrams') or 0),
            principal_amount=float(record.get('principalAmount') or 0),
            start_date=to_date(record['startDate']),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'customerId': self.customer_id,
            'billNumber': self.bill_number,
            'loanType': self.loan_type,
            'ornamentWeightGrams': self.ornament_weight_grams,
            'principalAmount': self.principal_amount,
            'startDate': format_date(self.start_date),
        }


@dataclass
class Payment:
    id: str
    loan_id: str
    date: date
    type: str
    amount: float

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Payment":
        return cls(
            id=record['id'],
            loan_id=record.get('loanId'),
            date=to_date(record['date']),
            type=record.get('type', ""),
            amount=float(record.get('amount') or 0),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'loanId': self.loan_id,
            'date': format_date(self.date),
            'type': self.type,
            'amount': self.amount,
        }


@dataclass
class InterestHistoryEntry:
    """One month of accrued interest for a loan.

    ``month`` is the 1-based sequence index since the loan started, not a
    calendar month. ``date`` is the first day of the calendar month that
    index falls in.
    """
    id: str
    loan_id: str
    date: date
    month: int
    principal_at_accrual: float
    monthly_interest_amount: float
    accumulated_interest: float
    capitalized: bool = False
    new_principal: Optional[float] = None

    @property
    def calendar_key(self):
        return (self.date.year, self.date.month)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "InterestHistoryEntry":
        return cls(
            id=record['id'],
            loan_id=record.get('loanId'),
            date=to_date(record['date']),
            month=int(record.get('month', 0)),
            principal_at_accrual=float(record.get('principalAtAccrual', 0)),
            monthly_interest_amount=float(record.get('monthlyInterestAmount', 0)),
            accumulated_interest=float(record.get('accumulatedInterestSinceLastCapitalization', 0)),
            capitalized=bool(record.get('capitalized', False)),
            new_principal=record.get('newPrincipal'),
        )

    def to_record(self) -> Dict[str, Any]:
        record = {
            'id': self.id,
            'loanId': self.loan_id,
            'date': format_date(self.date),
            'month': self.month,
            'principalAtAccrual': self.principal_at_accrual,
            'monthlyInterestAmount': self.monthly_interest_amount,
            'accumulatedInterestSinceLastCapitalization': self.accumulated_interest,
            'capitalized': self.capitalized,
        }
        if self.new_principal is not None:
            record['newPrincipal'] = self.new_principal
        return record


@dataclass
class AccrualResult:
    """Outcome of walking a loan's months up to an as-of date."""
    loan_id: str
    elapsed_months: int
    principal: float
    accrued_since_capitalization: float
    history: List[InterestHistoryEntry] = field(default_factory=list)
    history_changed: bool = False

    @property
    def gross_balance(self) -> float:
        return self.principal + self.accrued_since_capitalization
