"""
Pydantic schemas for request/response validation in the Inventory service.

These schemas define the structure of data for API requests and responses.
Candidate fields are deliberately loose (all optional, no range constraints):
range and presence checks belong to the service so that every violated field
is reported together.
"""
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

class ItemCandidate(BaseModel):
    """Schema for creating or fully replacing an inventory item."""
    name: Optional[str] = None
    quantity: Optional[int] = None
    price: Optional[Decimal] = None
    category: Optional[str] = None

class Item(BaseModel):
    """
    Schema for inventory item responses, includes all database fields.

    Attributes:
        id (int): Inventory item's unique identifier
        name (str): Item name
        quantity (int): Units in stock
        price (Decimal): Unit price
        category (str): Item category
        last_updated (datetime): When the item was last written
    """
    id: int
    name: str
    quantity: int
    price: Decimal
    category: str
    last_updated: Optional[datetime] = None

    class Config:
        from_attributes = True

class RestockRequest(BaseModel):
    """Quantity adjustment; negative values consume stock."""
    delta: int

class ErrorDetail(BaseModel):
    """Serialized service error."""
    kind: str
    message: str
    errors: Dict[str, str] = Field(default_factory=dict)

class BulkCreateRequest(BaseModel):
    items: List[ItemCandidate] = Field(default_factory=list)

class BulkCreateOutcome(BaseModel):
    """Result for one candidate of a bulk create, in request order."""
    index: int
    item: Optional[Item] = None
    error: Optional[ErrorDetail] = None

class BulkCreateResponse(BaseModel):
    created_count: int
    failed_count: int
    results: List[BulkCreateOutcome]

class BulkDeleteRequest(BaseModel):
    ids: List[int] = Field(default_factory=list)

class BulkDeleteResponse(BaseModel):
    deleted_ids: List[int]

class InventorySummary(BaseModel):
    """
    Aggregate view over the whole inventory.

    Attributes:
        total_items (int): Number of items
        total_quantity (int): Sum of all quantities
        out_of_stock (int): Items with quantity 0
        low_stock (int): Items with quantity below the threshold
        threshold (int): Threshold used for ``low_stock``
        total_value (Decimal): Sum of price * quantity
    """
    total_items: int
    total_quantity: int
    out_of_stock: int
    low_stock: int
    threshold: int
    total_value: Decimal

class ImportSummary(BaseModel):
    created_count: int
    skipped_count: int
    errors: List[str]
