from typing import Any, Dict, List, Optional
from pydantic import BaseModel

from app.core.exceptions import AppException


class ErrorInfo(BaseModel):
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None


class ItemOutcome(BaseModel):
    """Result of one item inside a bulk operation."""
    item_id: int
    success: bool
    result_id: Optional[int] = None
    error: Optional[ErrorInfo] = None

    @classmethod
    def ok(cls, item_id: int, result_id: Optional[int] = None) -> "ItemOutcome":
        return cls(item_id=item_id, success=True, result_id=result_id)

    @classmethod
    def fail(cls, item_id: int, exc: AppException) -> "ItemOutcome":
        return cls(
            item_id=item_id,
            success=False,
            error=ErrorInfo(code=exc.error_code, message=exc.message, details=exc.details),
        )


class BulkResult(BaseModel):
    succeeded: int = 0
    failed: int = 0
    results: List[ItemOutcome] = []

    @classmethod
    def from_outcomes(cls, outcomes: List[ItemOutcome]) -> "BulkResult":
        ok = sum(1 for o in outcomes if o.success)
        return cls(succeeded=ok, failed=len(outcomes) - ok, results=outcomes)
