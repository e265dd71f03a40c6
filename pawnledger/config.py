"""Centralized configuration for PawnLedger.

This module contains the business rule constants used by the accrual engine
and ledger services, plus the runtime configuration that decides whether
collections are mirrored to a remote repository.
"""
import os
from dataclasses import dataclass, field
from typing import Optional, Union

# =============================================================================
# INTEREST RULES
# =============================================================================

# Monthly simple interest rate per loan type (2% gold, 3% silver)
INTEREST_RATES = {
    "gold": 0.02,
    "silver": 0.03,
}

# Fixed month length used to turn elapsed days into elapsed months
DAYS_PER_MONTH = 30.44

# Accrued interest is added to principal every 12 months
CAPITALIZATION_CYCLE_MONTHS = 12

# =============================================================================
# COLLECTIONS
# =============================================================================

CUSTOMERS = "customers"
LOANS = "loans"
PAYMENTS = "payments"
INTEREST_HISTORY = "interest_history"

COLLECTIONS = (CUSTOMERS, LOANS, PAYMENTS, INTEREST_HISTORY)

# File names inside the remote repository
REMOTE_FILES = {
    CUSTOMERS: "data/customers.json",
    LOANS: "data/loans.json",
    PAYMENTS: "data/payments.json",
    INTEREST_HISTORY: "data/interest_history.json",
}

# =============================================================================
# FORMATS & DEFAULTS
# =============================================================================

# Date format for storage (ISO 8601)
DATE_FORMAT_STORAGE = "%Y-%m-%d"

# Placeholder shown when a referenced customer or loan no longer exists
UNKNOWN_PLACEHOLDER = "Unknown"

DEFAULT_DB_PATH = "pawnledger.db"
DEFAULT_BRANCH = "main"
DEFAULT_REMOTE_TIMEOUT = 10.0
DEFAULT_REMOTE_RETRIES = 3
GITHUB_API_URL = "https://api.github.com"


@dataclass
class GitHubConfig:
    """Credentials and location of the remote mirror repository."""

    owner: Optional[str] = None
    repo: Optional[str] = None
    token: Optional[str] = None
    branch: Optional[str] = DEFAULT_BRANCH

    def missing_fields(self) -> list:
        """Names of the fields that are required but empty."""
        return [name for name in ("owner", "repo", "token", "branch") if not getattr(self, name)]

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()


@dataclass(frozen=True)
class LocalMode:
    """Persist to the local database only.

    ``reason`` explains why remote mode is off when it was requested but
    could not be enabled.
    """

    reason: Optional[str] = None


@dataclass(frozen=True)
class RemoteMode:
    """Persist locally and mirror every write to the configured repository."""

    github: GitHubConfig


StorageMode = Union[LocalMode, RemoteMode]


@dataclass
class LedgerConfig:
    """Main configuration for PawnLedger."""

    db_path: str = DEFAULT_DB_PATH
    storage_mode: str = "local"
    github: GitHubConfig = field(default_factory=GitHubConfig)
    remote_timeout: float = DEFAULT_REMOTE_TIMEOUT
    remote_retries: int = DEFAULT_REMOTE_RETRIES
    log_level: str = "INFO"
    log_format: str = "standard"

    def resolve_storage_mode(self) -> StorageMode:
        """Turn the requested mode and credentials into a StorageMode.

        Remote mode with incomplete credentials falls back to local-only,
        keeping the reason so sync actions can report it.
        """
        if self.storage_mode != "github":
            return LocalMode()
        missing = self.github.missing_fields()
        if missing:
            return LocalMode(reason=f"missing GitHub settings: {', '.join(missing)}")
        return RemoteMode(github=self.github)

    @classmethod
    def from_env(cls) -> "LedgerConfig":
        """Create config from environment variables."""
        github = GitHubConfig(
            owner=os.getenv("PAWNLEDGER_GITHUB_OWNER"),
            repo=os.getenv("PAWNLEDGER_GITHUB_REPO"),
            token=os.getenv("PAWNLEDGER_GITHUB_TOKEN"),
            branch=os.getenv("PAWNLEDGER_GITHUB_BRANCH", DEFAULT_BRANCH),
        )

        return cls(
            db_path=os.getenv("PAWNLEDGER_DB", DEFAULT_DB_PATH),
            storage_mode=os.getenv("PAWNLEDGER_STORAGE_MODE", "local").lower(),
            github=github,
            remote_timeout=float(os.getenv("PAWNLEDGER_REMOTE_TIMEOUT", str(DEFAULT_REMOTE_TIMEOUT))),
            remote_retries=int(os.getenv("PAWNLEDGER_REMOTE_RETRIES", str(DEFAULT_REMOTE_RETRIES))),
            log_level=os.getenv("PAWNLEDGER_LOG_LEVEL", "INFO"),
            log_format=os.getenv("PAWNLEDGER_LOG_FORMAT", "standard").lower(),
        )
