"""
SQLAlchemy ORM models for the Inventory service.

Defines the database schema for inventory-related tables.
"""
from sqlalchemy import Column, Integer, String, DateTime, Numeric
from .database import Base

# Largest value an Integer column holds on every supported database
INTEGER_MAX = 2**31 - 1

class InventoryItem(Base):
    """
    Inventory item model representing one stock-keeping record.

    Attributes:
        id (int): Primary key, auto-incremented and never reused
        name (str): Display name of the item
        quantity (int): Units currently in stock, never negative
        price (Decimal): Unit price, exact to two decimal places
        category (str): Free-text category used for filtering
        last_updated (datetime): UTC time of the most recent accepted write
    """
    __tablename__ = "inventory_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String, nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=0)
    price = Column(Numeric(10, 2), nullable=False)
    category = Column(String, nullable=False, index=True)
    last_updated = Column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<InventoryItem id={self.id} name={self.name!r} quantity={self.quantity}>"
