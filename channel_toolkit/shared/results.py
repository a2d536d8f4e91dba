"""
Result types for explicit success/failure tracking.

Fatal encoding errors are raised as exceptions; everything that crosses an
I/O boundary (proving, archive reads, on-chain reads) reports back through
Result so that partial outcomes and advisories are never silently dropped.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class ErrorSeverity(Enum):
    """Severity levels for processing errors."""

    WARNING = "warning"  # Advisory, processing continues
    ERROR = "error"  # Skip this item, continue others
    CRITICAL = "critical"  # Stop processing entirely


@dataclass
class ProcessingError:
    """
    A single processing error with context.

    Attributes:
        source: Component that generated the error (e.g., "circuit_input", "ledger")
        message: Human-readable error description
        severity: How severe the error is (affects control flow)
        context: Additional context like channel_id, proof_key, tree_size
        exception: Original exception if available
    """

    source: str
    message: str
    severity: ErrorSeverity
    context: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[Exception] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "source": self.source,
            "message": self.message,
            "severity": self.severity.value,
            "context": self.context,
        }


@dataclass
class Result(Generic[T]):
    """
    Result type that carries success/failure information.

    Attributes:
        success: Whether the operation completed
        data: The result data if successful
        errors: Errors encountered (warnings may be present on success)
        is_partial: Completed, but some items were skipped or failed
    """

    success: bool
    data: Optional[T] = None
    errors: List[ProcessingError] = field(default_factory=list)
    is_partial: bool = False

    @classmethod
    def ok(cls, data: T) -> "Result[T]":
        """Create a successful result with data."""
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: ProcessingError) -> "Result[T]":
        """Create a failed result with an error."""
        return cls(success=False, errors=[error])

    @classmethod
    def fail_with_message(
        cls,
        source: str,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: Optional[Dict[str, Any]] = None,
        exception: Optional[Exception] = None,
    ) -> "Result[T]":
        """Create a failed result with a message (convenience method)."""
        error = ProcessingError(
            source=source,
            message=message,
            severity=severity,
            context=context or {},
            exception=exception,
        )
        return cls(success=False, errors=[error])

    @classmethod
    def partial_success(
        cls, data: T, errors: List[ProcessingError]
    ) -> "Result[T]":
        """Create a completed result built from only part of its inputs."""
        return cls(
            success=True, data=data, errors=list(errors), is_partial=True
        )

    def unwrap(self) -> T:
        """Return data, or raise RuntimeError with the joined error messages."""
        if not self.success:
            raise RuntimeError("; ".join(self.get_error_messages()))
        return self.data

    def add_error(self, error: ProcessingError) -> "Result[T]":
        """Add an error to the result (for warnings on success)."""
        self.errors.append(error)
        return self

    def add_warning(
        self,
        source: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> "Result[T]":
        """Add a warning to the result (convenience method)."""
        self.errors.append(
            ProcessingError(
                source=source,
                message=message,
                severity=ErrorSeverity.WARNING,
                context=context or {},
            )
        )
        return self

    def has_errors(self) -> bool:
        """Check if result has any ERROR or CRITICAL level errors."""
        return any(
            e.severity in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)
            for e in self.errors
        )

    def has_warnings(self) -> bool:
        """Check if result has any WARNING level errors."""
        return any(e.severity == ErrorSeverity.WARNING for e in self.errors)

    def get_error_messages(self) -> List[str]:
        """Get all error messages as strings."""
        return [e.message for e in self.errors]


@dataclass
class ReconciliationSummary:
    """
    Summary of one ledger reconciliation run.

    Separates snapshots where the participant's entry was absent from
    snapshots that could not be read at all; both leave the running
    balance untouched, but only the second means the history may be stale.
    """

    channel_id: str
    mpt_key: str

    snapshots_total: int = 0
    snapshots_processed: int = 0
    snapshots_missing_entry: int = 0
    snapshots_failed: int = 0
    items_emitted: int = 0

    missing_entry_sequences: List[int] = field(default_factory=list)
    failed_sequences: List[int] = field(default_factory=list)
    errors: List[ProcessingError] = field(default_factory=list)

    def record_missing_entry(self, sequence_number: int) -> None:
        self.snapshots_missing_entry += 1
        self.missing_entry_sequences.append(sequence_number)

    def record_failure(
        self, sequence_number: int, error: ProcessingError
    ) -> None:
        self.snapshots_failed += 1
        self.failed_sequences.append(sequence_number)
        self.errors.append(error)

    def is_complete(self) -> bool:
        """True when every snapshot was read (absent entries are fine)."""
        return self.snapshots_failed == 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert summary to dictionary for JSON serialization."""
        return {
            "channel_id": self.channel_id,
            "mpt_key": self.mpt_key,
            "counts": {
                "snapshots_total": self.snapshots_total,
                "snapshots_processed": self.snapshots_processed,
                "snapshots_missing_entry": self.snapshots_missing_entry,
                "snapshots_failed": self.snapshots_failed,
                "items_emitted": self.items_emitted,
            },
            "missing_entry_sequences": self.missing_entry_sequences,
            "failed_sequences": self.failed_sequences,
            "errors": [e.to_dict() for e in self.errors],
        }
