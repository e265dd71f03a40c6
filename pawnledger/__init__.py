"""PawnLedger: customers, pledge loans, payments and interest accrual."""

from pawnledger.engine import LedgerEngine

__all__ = ['LedgerEngine']
__version__ = "1.0.0"
