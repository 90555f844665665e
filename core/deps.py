from fastapi import Depends, HTTPException, status

from core.errors import LifecycleFailure, OrderNotFound, ValidationError
from core.store import RecordStore, record_store
from services.catalog import Catalog
from services.notifications import Notifier
from services.order_lifecycle import OrderLifecycleController, OrderResult
from services.order_repository import OrderRepository
from services.payment_simulator import PaymentSimulator

_payment_simulator = PaymentSimulator()


def get_store() -> RecordStore:
    return record_store


def get_payment_simulator() -> PaymentSimulator:
    return _payment_simulator


def get_repository(store: RecordStore = Depends(get_store)) -> OrderRepository:
    return OrderRepository(store)


def get_catalog(store: RecordStore = Depends(get_store)) -> Catalog:
    return Catalog(store)


def get_controller(
    store: RecordStore = Depends(get_store),
    payments: PaymentSimulator = Depends(get_payment_simulator),
) -> OrderLifecycleController:
    return OrderLifecycleController(
        repository=OrderRepository(store),
        catalog=Catalog(store),
        payments=payments,
        notifier=Notifier(store),
    )


def _status_for(failure: LifecycleFailure) -> int:
    if isinstance(failure, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(failure, OrderNotFound):
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_409_CONFLICT


def unwrap(result: OrderResult):
    """Order from a controller result, or the matching HTTP error."""
    if result.error is not None:
        raise HTTPException(status_code=_status_for(result.error), detail=result.error.to_dict())
    return result.order
