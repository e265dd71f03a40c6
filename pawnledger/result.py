"""Result pattern for consistent return types in PawnLedger.

Record store writes report their outcome through ``Result`` instead of
raising when only the remote mirror failed: the local write already
happened, so the caller gets a value describing how far it got.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, TypeVar, Generic

T = TypeVar('T')


@dataclass
class Result(Generic[T]):
    """Represents the outcome of an operation.

    Attributes:
        success: Whether the operation succeeded.
        value: The return value (may be set on failure too, e.g. a sync status).
        error: Error message on failure, None on success.
        error_type: Type/category of error (e.g., "SYNC", "VALIDATION").

    Usage:
        result = store.write_collection("loans", loans)
        if not result:
            notify(result.error)
    """
    success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @classmethod
    def ok(cls, value: T = None) -> 'Result[T]':
        """Create a successful result."""
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: str, error_type: str = None, value: T = None) -> 'Result[T]':
        """Create a failure result.

        Args:
            error: Error message describing what went wrong.
            error_type: Optional error category for programmatic handling.
            value: Optional partial outcome to hand back to the caller.

        Returns:
            A Result with success=False and error details.
        """
        return cls(success=False, value=value, error=error, error_type=error_type)

    def __bool__(self) -> bool:
        return self.success

    def unwrap(self) -> T:
        """Get the value, raising an exception if the operation failed.

        Raises:
            ValueError: If the operation failed.
        """
        if not self.success:
            raise ValueError(f"Result unwrap failed: {self.error}")
        return self.value

    def unwrap_or(self, default: T) -> T:
        """Get the value or a default if the operation failed."""
        return self.value if self.success else default


class SyncStatus(str, Enum):
    """How far a collection write got."""
    LOCAL = "local"          # local-only mode, nothing to mirror
    SYNCED = "synced"        # written locally and mirrored
    UNSYNCED = "unsynced"    # written locally, mirror failed


class ErrorType:
    """Error type tags carried by failed Results."""
    SYNC = "SYNC"
