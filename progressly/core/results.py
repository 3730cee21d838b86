from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class OperationResult:
    """Outcome of a business operation. Routes turn a failure into a 4xx response."""

    success: bool
    error: Optional[str] = None
    data: Any = None
    not_found: bool = field(default=False, repr=False)

    @classmethod
    def ok(cls, data: Any = None) -> "OperationResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, not_found: bool = False) -> "OperationResult":
        return cls(success=False, error=error, not_found=not_found)

    def to_dict(self) -> dict:
        if self.success:
            return {"success": True}
        return {"success": False, "error": self.error}
