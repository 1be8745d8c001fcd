"""Invoice Engine Error Taxonomy

Every failure of the engine is per-operation. Domain functions raise these
exceptions; use cases catch them and turn them into ``Result`` errors so that
nothing reaches the caller as an uncaught exception.
"""

from typing import List, Optional


class InvoiceEngineError(Exception):
    """Base class for recoverable engine failures"""

    code = "INVOICE_ENGINE_ERROR"

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.reason = reason


class LineItemIssue:
    """One problem found on one line item"""

    __slots__ = ("index", "field", "message")

    def __init__(self, index: Optional[int], field: str, message: str):
        self.index = index
        self.field = field
        self.message = message

    def to_dict(self) -> dict:
        return {"index": self.index, "field": self.field, "message": self.message}

    def __eq__(self, other) -> bool:
        if not isinstance(other, LineItemIssue):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"LineItemIssue(index={self.index}, field={self.field!r}, message={self.message!r})"


class ValidationError(InvoiceEngineError):
    """
    Input rejected before any state mutation

    ``issues`` lists every problem found, one entry per offending field, so a
    caller can report all of them at once instead of one at a time.
    """

    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        issues: Optional[List[LineItemIssue]] = None,
        reason: Optional[str] = None,
    ):
        super().__init__(message, reason)
        self.issues = list(issues or [])


class IllegalTransitionError(InvoiceEngineError):
    """Status transition not permitted from the current state"""

    code = "ILLEGAL_TRANSITION"

    def __init__(self, action: str, current: str, reason: Optional[str] = None):
        message = f"Cannot {action} an invoice in state {current}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, reason)
        self.action = action
        self.current = current


class ConflictError(InvoiceEngineError):
    """A concurrent writer changed the invoice first; refetch and retry"""

    code = "CONFLICT"


class NumberingFallbackWarning(UserWarning):
    """The numbering subsystem failed and a timestamp-derived number was used"""
