"""
Failure description — structured error information for the failure track.

Every failure carries an ErrorCode. The code decides how the pipeline reacts:
fatal codes unwind to the top of the run, local codes are absorbed where they
occur (the item is skipped and processing continues).
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, unique
from typing import Optional


@unique
class ErrorCode(Enum):
    """
    Structured error codes for the failure track.

    Fatal (abort the run): STORE, CONFIGURATION, TECHNICAL, UNKNOWN.
    Local (skip the item): VALIDATION, TRANSPORT, PROTOCOL.
    """

    # --- Local errors: the current item is dropped ---
    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Item failed a domain rule (e.g. chain without end-entity)."""

    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    """Network-level failure talking to a remote service."""

    PROTOCOL_ERROR = "PROTOCOL_ERROR"
    """Remote service answered, but not with an acceptable response."""

    # --- Fatal errors: the whole run stops ---
    STORE_ERROR = "STORE_ERROR"
    """Backing store unreachable or query failure."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    """System misconfiguration."""

    TECHNICAL_ERROR = "TECHNICAL_ERROR"
    """Unexpected exception escaping a computation."""

    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    """Unclassified failure."""

    @property
    def is_fatal(self) -> bool:
        """True when a failure with this code must abort the whole run."""
        return self not in _LOCAL_CODES


_LOCAL_CODES = frozenset(
    {ErrorCode.VALIDATION_ERROR, ErrorCode.TRANSPORT_ERROR, ErrorCode.PROTOCOL_ERROR}
)


@dataclass(frozen=True, slots=True)
class FailureDescription:
    """
    Immutable failure descriptor carrying error code, message, optional exception, and timestamp.

    >>> desc = FailureDescription(ErrorCode.VALIDATION_ERROR, "chain without end-entity")
    >>> desc.code
    <ErrorCode.VALIDATION_ERROR: 'VALIDATION_ERROR'>
    >>> desc.is_fatal
    False
    """

    code: ErrorCode
    message: str
    exception: Optional[BaseException] = field(default=None, repr=False)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_fatal(self) -> bool:
        return self.code.is_fatal

    def full_stack_trace(self) -> str:
        """Message followed by the formatted exception chain, if any."""
        if self.exception is None:
            return self.message
        tb = "".join(
            traceback.format_exception(
                type(self.exception), self.exception, self.exception.__traceback__
            )
        )
        return f"{self.message}\n{tb}"

    def __str__(self) -> str:
        if self.exception is None:
            return f"{self.code.value}: {self.message}"
        return f"{self.code.value}: {self.message} ({self.exception})"
