"""
Error taxonomy shared by the store, the repositories and the lifecycle controller.

Only ``PersistenceError`` is meant to escape to callers as an exception. The
``LifecycleFailure`` family is raised inside the controller and handed back as
the ``error`` of an ``OrderResult`` so callers can branch without try/except.
"""
from typing import Optional


class PersistenceError(Exception):
    """The backing storage rejected a write or the write could not be verified."""

    def __init__(self, message: str, collection: Optional[str] = None):
        super().__init__(message)
        self.collection = collection


class LifecycleFailure(Exception):
    """Base class for business-rule failures returned by the controller."""

    code = "lifecycle_failure"

    def __init__(self, message: str, order_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.order_id = order_id

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "order_id": self.order_id}


class ValidationError(LifecycleFailure):
    code = "validation_error"


class OrderNotFound(LifecycleFailure):
    code = "order_not_found"

    def __init__(self, order_id: str):
        super().__init__(f"Order not found: {order_id}", order_id=order_id)


class InvalidTransition(LifecycleFailure):
    code = "invalid_transition"

    def __init__(self, order_id: str, current: str, target: str):
        super().__init__(f"Cannot move order {order_id} from {current} to {target}", order_id=order_id)
        self.current = current
        self.target = target
