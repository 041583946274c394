"""
Typed failures raised by the order/payment/delivery core.

Every error carries a stable ``kind`` that the HTTP layer reports back to the
caller. Only ``ConcurrencyConflict`` is transient; the transaction runner
retries it before letting it escape.
"""

from typing import Optional


class CoreError(Exception):
    kind = "core_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.kind, "detail": self.message}


class ValidationError(CoreError):
    kind = "validation_error"


class NotFoundError(ValidationError):
    kind = "not_found"

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class InvalidTransitionError(CoreError):
    kind = "invalid_transition"

    def __init__(self, message: str, current: Optional[str] = None, target: Optional[str] = None):
        super().__init__(message)
        self.current = current
        self.target = target

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["current"] = self.current
        data["target"] = self.target
        return data


class InsufficientFundsError(CoreError):
    kind = "insufficient_funds"


class BalanceCapExceededError(CoreError):
    kind = "balance_cap_exceeded"


class PromotionInvalidError(CoreError):
    kind = "promotion_invalid"

    def __init__(self, predicate: str, message: str):
        super().__init__(message)
        self.predicate = predicate

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["predicate"] = self.predicate
        return data


class PromotionExhaustedError(CoreError):
    kind = "promotion_exhausted"


class ConcurrencyConflict(CoreError):
    kind = "concurrency_conflict"


class LockOrderError(RuntimeError):
    """Raised when a unit of work takes entity locks out of the global order."""
