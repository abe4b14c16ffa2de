"""
CRUD (Create, Read, Update, Delete) operations for the Inventory service.

This module contains all database operations for inventory management. It
knows nothing about validation or timestamps; callers pass fully prepared
field values and receive ORM records (or None / empty lists when nothing
matches). SQLAlchemy errors propagate to the caller.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from . import models

def _storable(value: int) -> bool:
    return -models.INTEGER_MAX - 1 <= value <= models.INTEGER_MAX

def get(db: Session, item_id: int) -> Optional[models.InventoryItem]:
    """
    Retrieve a single inventory item by ID.

    Args:
        db: Database session
        item_id: ID of the inventory item to retrieve

    Returns:
        InventoryItem object or None if not found
    """
    if not _storable(item_id):
        return None
    return db.query(models.InventoryItem).filter(models.InventoryItem.id == item_id).first()

def all_items(db: Session) -> List[models.InventoryItem]:
    """
    Retrieve every inventory item ordered by ID.

    Args:
        db: Database session

    Returns:
        List of InventoryItem objects
    """
    return db.query(models.InventoryItem).order_by(models.InventoryItem.id).all()

def insert(db: Session, fields: Dict[str, Any]) -> models.InventoryItem:
    """
    Create a new inventory item in the database.

    Args:
        db: Database session
        fields: Column values for the new row (without ``id``)

    Returns:
        Created InventoryItem object, with its assigned ID
    """
    db_item = models.InventoryItem(**fields)
    db.add(db_item)
    db.commit()
    db.refresh(db_item)
    return db_item

def update(db: Session, item_id: int, fields: Dict[str, Any]) -> Optional[models.InventoryItem]:
    """
    Overwrite columns of an existing inventory item.

    Args:
        db: Database session
        item_id: ID of the inventory item to update
        fields: Column values to write

    Returns:
        Updated InventoryItem object or None if not found
    """
    db_item = get(db, item_id)
    if db_item is None:
        return None

    for key, value in fields.items():
        setattr(db_item, key, value)

    db.commit()
    db.refresh(db_item)
    return db_item

def add_quantity(db: Session, item_id: int, delta: int, stamped_at: datetime) -> Optional[models.InventoryItem]:
    """
    Atomically add ``delta`` to an item's quantity.

    The new quantity is computed by the database from the stored value in a
    single conditional UPDATE, so concurrent restocks cannot lose updates.

    Args:
        db: Database session
        item_id: ID of the inventory item to adjust
        delta: Amount to add (negative to consume)
        stamped_at: Value written to ``last_updated``

    Returns:
        Updated InventoryItem object, or None if the item does not exist or
        the result would fall outside 0 .. INTEGER_MAX
    """
    if not (_storable(item_id) and _storable(delta)):
        return None

    quantity = models.InventoryItem.quantity
    matched = (
        db.query(models.InventoryItem)
        .filter(
            models.InventoryItem.id == item_id,
            quantity >= -delta,
            quantity <= models.INTEGER_MAX - delta,
        )
        .update(
            {quantity: quantity + delta, models.InventoryItem.last_updated: stamped_at},
            synchronize_session=False,
        )
    )
    db.commit()
    if not matched:
        return None
    return get(db, item_id)

def delete(db: Session, item_id: int) -> bool:
    """
    Delete an inventory item from the database.

    Args:
        db: Database session
        item_id: ID of the inventory item to delete

    Returns:
        True if item was deleted, False if not found
    """
    db_item = get(db, item_id)
    if db_item is None:
        return False

    db.delete(db_item)
    db.commit()
    return True

def delete_many(db: Session, item_ids: Iterable[int]) -> List[int]:
    """
    Delete every inventory item whose ID is listed.

    Args:
        db: Database session
        item_ids: IDs to delete; unknown IDs are ignored

    Returns:
        IDs actually deleted, in request order without duplicates
    """
    requested = [item_id for item_id in dict.fromkeys(item_ids) if _storable(item_id)]
    if not requested:
        return []

    found = {
        row.id
        for row in db.query(models.InventoryItem.id).filter(models.InventoryItem.id.in_(requested)).all()
    }
    if not found:
        return []

    db.query(models.InventoryItem).filter(models.InventoryItem.id.in_(found)).delete(synchronize_session="fetch")
    db.commit()
    return [item_id for item_id in requested if item_id in found]

def query_name_contains(db: Session, text: str) -> List[models.InventoryItem]:
    """Case-insensitive substring match against ``name``."""
    return (
        db.query(models.InventoryItem)
        .filter(models.InventoryItem.name.icontains(text, autoescape=True))
        .order_by(models.InventoryItem.id)
        .all()
    )

def query_category_contains(db: Session, text: str) -> List[models.InventoryItem]:
    """Case-insensitive substring match against ``category``."""
    return (
        db.query(models.InventoryItem)
        .filter(models.InventoryItem.category.icontains(text, autoescape=True))
        .order_by(models.InventoryItem.id)
        .all()
    )

def query_price_between(db: Session, min_price: Decimal, max_price: Decimal) -> List[models.InventoryItem]:
    """Items with ``min_price <= price <= max_price``."""
    return (
        db.query(models.InventoryItem)
        .filter(models.InventoryItem.price.between(min_price, max_price))
        .order_by(models.InventoryItem.price, models.InventoryItem.id)
        .all()
    )

def query_quantity_less_than(db: Session, threshold: int) -> List[models.InventoryItem]:
    """Items with ``quantity < threshold``, lowest stock first."""
    threshold = min(threshold, models.INTEGER_MAX + 1)
    return (
        db.query(models.InventoryItem)
        .filter(models.InventoryItem.quantity < threshold)
        .order_by(models.InventoryItem.quantity, models.InventoryItem.id)
        .all()
    )

def stock_totals(db: Session, threshold: int) -> Dict[str, Any]:
    """
    Aggregate counts over the whole inventory.

    Args:
        db: Database session
        threshold: Quantity below which an item counts as low stock

    Returns:
        dict with total_items, total_quantity, out_of_stock, low_stock and
        total_value
    """
    threshold = min(threshold, models.INTEGER_MAX + 1)
    total_items = db.query(func.count(models.InventoryItem.id)).scalar()
    total_quantity = db.query(func.sum(models.InventoryItem.quantity)).scalar() or 0

    out_of_stock = db.query(func.count(models.InventoryItem.id)).filter(
        models.InventoryItem.quantity == 0
    ).scalar()

    low_stock = db.query(func.count(models.InventoryItem.id)).filter(
        models.InventoryItem.quantity < threshold
    ).scalar()

    # Summed in Python: SQLite would return a float for price * quantity
    rows = db.query(models.InventoryItem.price, models.InventoryItem.quantity).all()
    total_value = sum((Decimal(price) * quantity for price, quantity in rows), Decimal("0"))

    return {
        "total_items": total_items,
        "total_quantity": int(total_quantity),
        "out_of_stock": out_of_stock,
        "low_stock": low_stock,
        "total_value": total_value,
    }
