"""
Inventory service: the business rules over the inventory item store.

``InventoryService`` validates candidates, stamps ``last_updated``, keeps
quantities non-negative and orchestrates the CRUD module. It is built per
request around a database session and holds no other state.

Every public operation returns a ``Result``. Expected failures (validation,
missing items) and storage errors come back as ``Result.error``; nothing is
raised to the caller. Bulk create is best-effort: each candidate is validated
and stored on its own and the outcome list reports every candidate in order.
"""
import inspect
from datetime import datetime, timezone
from decimal import Decimal
from functools import wraps
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import crud, models, schemas, validators
from .errors import Result, ServiceError
from .observers import OperationObserver

Candidate = Union[schemas.ItemCandidate, Dict[str, Any]]


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_item(record: Optional[models.InventoryItem]) -> Optional[schemas.Item]:
    """
    Copy a persisted record into its external representation.

    Args:
        record: ORM record, or None

    Returns:
        The item schema, or None when there is no record
    """
    if record is None:
        return None
    return schemas.Item(
        id=record.id,
        name=record.name,
        quantity=record.quantity,
        price=record.price,
        category=record.category,
        last_updated=record.last_updated,
    )


def _to_items(records: Iterable[models.InventoryItem]) -> List[schemas.Item]:
    return [to_item(record) for record in records if record is not None]


def _coerce(candidate: Candidate) -> Union[schemas.ItemCandidate, ServiceError]:
    if isinstance(candidate, schemas.ItemCandidate):
        return candidate
    try:
        return schemas.ItemCandidate.model_validate(candidate)
    except PydanticValidationError as e:
        errors = {}
        for err in e.errors():
            field = str(err["loc"][0]) if err["loc"] else "item"
            errors.setdefault(field, err["msg"])
        return ServiceError.validation(errors)


def operation(name: str) -> Callable:
    """
    Wrap a service method with observer notifications and storage error handling.

    A ``SQLAlchemyError`` rolls the session back and becomes a
    ``storage_failure`` result.
    """
    def decorator(method: Callable) -> Callable:
        signature = inspect.signature(method)

        @wraps(method)
        def wrapper(self, *args, **kwargs) -> Result:
            bound = signature.bind(self, *args, **kwargs)
            details = {key: value for key, value in bound.arguments.items() if key != "self"}
            self.observer.started(name, details)

            try:
                result = method(self, *args, **kwargs)
            except SQLAlchemyError as e:
                self.db.rollback()
                result = Result.failure(ServiceError.storage_failure(str(e)))

            if result.ok:
                self.observer.succeeded(name, result.value)
            else:
                self.observer.failed(name, result.error)
            return result

        return wrapper

    return decorator


class InventoryService:
    """
    Operations over inventory items.

    Args:
        db: Database session used for every storage call
        observer: Notified around each operation; defaults to a no-op
        clock: Returns the current naive UTC time; used for ``last_updated``
    """

    def __init__(
        self,
        db: Session,
        observer: Optional[OperationObserver] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.observer = observer or OperationObserver()
        self.clock = clock

    def _stamp(self, previous: Optional[datetime] = None) -> datetime:
        # last_updated never moves backwards, even if the clock does
        now = self.clock()
        if previous is not None and previous > now:
            return previous
        return now

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    @operation("list_items")
    def list_items(self) -> Result[List[schemas.Item]]:
        return Result.success(_to_items(crud.all_items(self.db)))

    @operation("get_item")
    def get_item(self, item_id: int) -> Result[schemas.Item]:
        item = to_item(crud.get(self.db, item_id))
        if item is None:
            return Result.failure(ServiceError.not_found(item_id))
        return Result.success(item)

    @operation("find_by_name")
    def find_by_name(self, text: str) -> Result[List[schemas.Item]]:
        return Result.success(_to_items(crud.query_name_contains(self.db, text)))

    @operation("filter_by_category")
    def filter_by_category(self, text: str) -> Result[List[schemas.Item]]:
        return Result.success(_to_items(crud.query_category_contains(self.db, text)))

    @operation("filter_by_price_range")
    def filter_by_price_range(self, min_price: Decimal, max_price: Decimal) -> Result[List[schemas.Item]]:
        errors = validators.validate_price_range(min_price, max_price)
        if errors:
            return Result.failure(ServiceError.validation(errors, "Invalid price range"))
        return Result.success(_to_items(crud.query_price_between(self.db, min_price, max_price)))

    @operation("low_stock")
    def low_stock(self, threshold: int) -> Result[List[schemas.Item]]:
        # quantity is never negative, so nothing can be below a threshold <= 0
        if threshold <= 0:
            return Result.success([])
        return Result.success(_to_items(crud.query_quantity_less_than(self.db, threshold)))

    @operation("summary")
    def summary(self, threshold: int) -> Result[schemas.InventorySummary]:
        totals = crud.stock_totals(self.db, threshold)
        return Result.success(schemas.InventorySummary(threshold=threshold, **totals))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def _create(self, candidate: Candidate) -> Result[schemas.Item]:
        coerced = _coerce(candidate)
        if isinstance(coerced, ServiceError):
            return Result.failure(coerced)

        errors = validators.validate_candidate(coerced)
        if errors:
            return Result.failure(ServiceError.validation(errors))

        record = crud.insert(
            self.db,
            {
                "name": coerced.name,
                "quantity": coerced.quantity,
                "price": coerced.price,
                "category": coerced.category,
                "last_updated": self._stamp(),
            },
        )
        return Result.success(to_item(record))

    @operation("create_item")
    def create_item(self, candidate: Candidate) -> Result[schemas.Item]:
        return self._create(candidate)

    @operation("bulk_create")
    def bulk_create(self, candidates: List[Candidate]) -> Result[List[schemas.BulkCreateOutcome]]:
        """
        Create many items, best-effort.

        Each candidate succeeds or fails on its own; the returned list has one
        outcome per candidate, in input order.
        """
        outcomes = []
        for index, candidate in enumerate(candidates):
            try:
                created = self._create(candidate)
            except SQLAlchemyError as e:
                self.db.rollback()
                created = Result.failure(ServiceError.storage_failure(str(e)))

            if created.ok:
                outcomes.append(schemas.BulkCreateOutcome(index=index, item=created.value))
            else:
                outcomes.append(
                    schemas.BulkCreateOutcome(index=index, error=schemas.ErrorDetail(**created.error.to_dict()))
                )
        return Result.success(outcomes)

    @operation("update_item")
    def update_item(self, item_id: int, candidate: Candidate) -> Result[schemas.Item]:
        existing = crud.get(self.db, item_id)
        if existing is None:
            return Result.failure(ServiceError.not_found(item_id))

        coerced = _coerce(candidate)
        if isinstance(coerced, ServiceError):
            return Result.failure(coerced)

        errors = validators.validate_candidate(coerced)
        if errors:
            return Result.failure(ServiceError.validation(errors))

        record = crud.update(
            self.db,
            item_id,
            {
                "name": coerced.name,
                "quantity": coerced.quantity,
                "price": coerced.price,
                "category": coerced.category,
                "last_updated": self._stamp(existing.last_updated),
            },
        )
        if record is None:
            return Result.failure(ServiceError.not_found(item_id))
        return Result.success(to_item(record))

    @operation("restock_item")
    def restock_item(self, item_id: int, delta: int) -> Result[schemas.Item]:
        existing = crud.get(self.db, item_id)
        if existing is None:
            return Result.failure(ServiceError.not_found(item_id))

        errors = validators.validate_restock(existing.quantity, delta)
        if errors:
            return Result.failure(ServiceError.validation(errors, "Invalid restock"))

        record = crud.add_quantity(self.db, item_id, delta, self._stamp(existing.last_updated))
        if record is not None:
            return Result.success(to_item(record))

        # The conditional update matched nothing: the item vanished or a
        # concurrent write moved the stored quantity out of range for this delta.
        current = crud.get(self.db, item_id)
        if current is None:
            return Result.failure(ServiceError.not_found(item_id))
        return Result.failure(
            ServiceError.validation(validators.validate_restock(current.quantity, delta), "Invalid restock")
        )

    @operation("delete_item")
    def delete_item(self, item_id: int) -> Result[int]:
        if not crud.delete(self.db, item_id):
            return Result.failure(ServiceError.not_found(item_id))
        return Result.success(item_id)

    @operation("bulk_delete")
    def bulk_delete(self, item_ids: List[int]) -> Result[List[int]]:
        return Result.success(crud.delete_many(self.db, item_ids))
