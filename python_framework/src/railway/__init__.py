"""
Railway-Oriented Programming (ROP) framework.

Explicit, composable error handling — adapters return Result instead of
raising, and each failure's ErrorCode tells the caller whether to skip the
item or abort the run.

    from railway import Result, ErrorCode

    def require_leaf(leaf: bytes | None) -> Result[bytes]:
        if leaf is None:
            return Result.failure(ErrorCode.VALIDATION_ERROR, "chain without end-entity")
        return Result.success(leaf)
"""

from railway.result import Result, Success, Failure
from railway.failure import ErrorCode, FailureDescription
from railway.execution import (
    ExecutionContext,
    NoOpExecutionContext,
    LoggingExecutionContext,
)
from railway.assertions import ResultAssertions

__all__ = [
    "Result",
    "Success",
    "Failure",
    "ErrorCode",
    "FailureDescription",
    "ExecutionContext",
    "NoOpExecutionContext",
    "LoggingExecutionContext",
    "ResultAssertions",
]

__version__ = "1.1.0"
