"""
Outcome records for synchronization passes and access grant transitions.

Every operation returns a result describing what it did, so the scheduler and
event listener can log a summary without re-deriving state.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from brickmesh.models.enums import OperationType


@dataclass
class ExecutionResult:
    """Result of a single operation on one resource."""

    success: bool
    operation: OperationType
    resource_type: str
    resource_name: str
    message: str = ""
    duration_seconds: float = 0.0
    changes: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """String representation of the result."""
        status = "OK" if self.success else "FAILED"
        return (
            f"[{status}] {self.operation.value} {self.resource_type} "
            f"{self.resource_name}: {self.message}"
        )


@dataclass
class SyncResult:
    """Result of one asset synchronization pass."""

    watermark_before: int
    watermark_after: Optional[int] = None
    results: List[ExecutionResult] = field(default_factory=list)
    skipped: bool = False
    duration_seconds: float = 0.0

    def add(self, result: ExecutionResult) -> None:
        self.results.append(result)

    def count(self, operation: OperationType) -> int:
        return sum(1 for r in self.results if r.operation == operation)

    @property
    def writes(self) -> int:
        """Number of registry writes (upserts and deletes) issued by the pass."""
        return sum(
            1 for r in self.results
            if r.operation in (OperationType.CREATE, OperationType.UPDATE, OperationType.DELETE)
        )

    def get_summary(self) -> str:
        """
        Get a summary of the pass.

        Returns:
            Summary string
        """
        if self.skipped:
            return "Synchronization skipped: another pass is in progress"

        lines = [
            "Synchronization Summary:",
            f"  Watermark: {self.watermark_before} -> {self.watermark_after}",
            f"  Created: {self.count(OperationType.CREATE)}",
            f"  Updated: {self.count(OperationType.UPDATE)}",
            f"  Deleted: {self.count(OperationType.DELETE)}",
            f"  Unchanged: {self.count(OperationType.NO_OP)}",
            f"  Duration: {self.duration_seconds:.1f}s",
        ]
        return "\n".join(lines)
