"""
    Inventory Service API

    This module implements a FastAPI-based microservice for managing inventory items.
    It provides endpoints for creating, reading, updating, restocking and deleting
    items, bulk operations, search and filter queries, and CSV import/export,
    with SQL database persistence.

    The service exposes:
    - CRUD endpoints under /items
    - Restock, bulk create/delete, search, filter, low-stock and summary endpoints
    - Health endpoint: Provides service health status for monitoring and orchestration

    Business rules live in ``service.InventoryService``; every route here only
    binds HTTP input to a service call and maps its ``Result`` to a response.
"""
from decimal import Decimal, InvalidOperation
from typing import List
import csv
import io
import os
from fastapi import FastAPI, Depends, HTTPException, Response, status, UploadFile, File
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from . import models, schemas, auth
from .database import engine, get_db
from .errors import ErrorKind, Result
from .logging_config import setup_logging
from .observers import CompositeObserver, LoggingObserver, OperationObserver, WebhookObserver
from .service import InventoryService

LOW_STOCK_THRESHOLD = int(os.getenv("LOW_STOCK_THRESHOLD", "10"))

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 422,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.STORAGE_FAILURE: status.HTTP_503_SERVICE_UNAVAILABLE,
}

setup_logging()

# Create database tables
models.Base.metadata.create_all(bind=engine)

app = FastAPI(title="inventory-service")


def get_observer() -> OperationObserver:
    """Observer attached to every request's service; override in tests."""
    return CompositeObserver(LoggingObserver(), WebhookObserver())


def get_service(
    db: Session = Depends(get_db),
    observer: OperationObserver = Depends(get_observer),
) -> InventoryService:
    return InventoryService(db, observer=observer)


def unwrap(result: Result):
    """
    Return a successful result's value or raise the matching HTTP error.

    Raises:
        HTTPException: 422 for validation errors, 404 for missing items,
            503 for storage failures; ``detail`` is the serialized error
    """
    if result.ok:
        return result.value
    raise HTTPException(status_code=STATUS_BY_KIND[result.error.kind], detail=result.error.to_dict())


@app.get("/healthz", response_model=dict)
def health():
    """
    Health check endpoint for the inventory service.

    Returns:
        dict: ``{"status": "healthy"}`` while the service is operational.
    """
    return {"status": "healthy"}

@app.get("/items", response_model=List[schemas.Item])
def list_items(
    service: InventoryService = Depends(get_service),
    current_user: auth.CurrentUser = Depends(auth.get_current_user)
):
    """List all inventory items ordered by ID (authenticated users only)."""
    return unwrap(service.list_items())

@app.post("/items", response_model=schemas.Item, status_code=status.HTTP_201_CREATED)
def create_item(
    item: schemas.ItemCandidate,
    service: InventoryService = Depends(get_service),
    current_user: auth.CurrentUser = Depends(auth.require_writer)
):
    """
    Create a new inventory item (write roles only).

    Args:
        item: Inventory item data to create
        service: Inventory service (injected)
        current_user: Current user with a write role (injected)

    Returns:
        Created inventory item

    Raises:
        HTTPException: 422 listing every invalid field
    """
    return unwrap(service.create_item(item))

@app.post("/items/bulk", response_model=schemas.BulkCreateResponse, status_code=status.HTTP_201_CREATED)
def bulk_create_items(
    body: schemas.BulkCreateRequest,
    response: Response,
    service: InventoryService = Depends(get_service),
    current_user: auth.CurrentUser = Depends(auth.require_writer)
):
    """
    Create many items at once, best-effort (write roles only).

    Every item is validated and stored independently; one bad item never
    blocks the others. The response lists an outcome per submitted item in
    the same order. Status is 201 when all succeeded, 207 otherwise.
    """
    outcomes = unwrap(service.bulk_create(body.items))
    failed = sum(1 for outcome in outcomes if outcome.error is not None)
    if failed:
        response.status_code = status.HTTP_207_MULTI_STATUS
    return schemas.BulkCreateResponse(
        created_count=len(outcomes) - failed,
        failed_count=failed,
        results=outcomes,
    )

@app.post("/items/bulk-delete", response_model=schemas.BulkDeleteResponse)
def bulk_delete_items(
    body: schemas.BulkDeleteRequest,
    service: InventoryService = Depends(get_service),
    current_user: auth.CurrentUser = Depends(auth.require_writer)
):
    """Delete every listed item that exists; unknown IDs are ignored (write roles only)."""
    return schemas.BulkDeleteResponse(deleted_ids=unwrap(service.bulk_delete(body.ids)))

@app.get("/items/search", response_model=List[schemas.Item])
def search_items_by_name(
    name: str,
    service: InventoryService = Depends(get_service),
    current_user: auth.CurrentUser = Depends(auth.get_current_user)
):
    """Items whose name contains ``name``, ignoring case."""
    return unwrap(service.find_by_name(name))

@app.get("/items/filter/category", response_model=List[schemas.Item])
def filter_items_by_category(
    category: str,
    service: InventoryService = Depends(get_service),
    current_user: auth.CurrentUser = Depends(auth.get_current_user)
):
    """Items whose category contains ``category``, ignoring case."""
    return unwrap(service.filter_by_category(category))

@app.get("/items/filter/price", response_model=List[schemas.Item])
def filter_items_by_price(
    min_price: Decimal,
    max_price: Decimal,
    service: InventoryService = Depends(get_service),
    current_user: auth.CurrentUser = Depends(auth.get_current_user)
):
    """
    Items priced between ``min_price`` and ``max_price``, inclusive.

    Raises:
        HTTPException: 422 if ``min_price`` is greater than ``max_price``
    """
    return unwrap(service.filter_by_price_range(min_price, max_price))

@app.get("/items/low-stock", response_model=List[schemas.Item])
def low_stock_items(
    threshold: int = LOW_STOCK_THRESHOLD,
    service: InventoryService = Depends(get_service),
    current_user: auth.CurrentUser = Depends(auth.get_current_user)
):
    """Items with quantity strictly below ``threshold``, lowest first."""
    return unwrap(service.low_stock(threshold))

@app.get("/items/summary", response_model=schemas.InventorySummary)
def inventory_summary(
    threshold: int = LOW_STOCK_THRESHOLD,
    service: InventoryService = Depends(get_service),
    current_user: auth.CurrentUser = Depends(auth.get_current_user)
):
    """
    Get inventory analytics (authenticated users).

    Returns:
        Totals, out-of-stock and low-stock counts, and total stock value
    """
    return unwrap(service.summary(threshold))

@app.get("/items/export/csv")
def export_inventory_csv(
    service: InventoryService = Depends(get_service),
    current_user: auth.CurrentUser = Depends(auth.get_current_user)
):
    """
    Export all inventory items to CSV (authenticated users).

    Returns:
        CSV file with columns: id, name, quantity, price, category, last_updated
    """
    items = unwrap(service.list_items())

    output = io.StringIO()
    writer = csv.writer(output)

    writer.writerow(['id', 'name', 'quantity', 'price', 'category', 'last_updated'])

    for item in items:
        writer.writerow([
            item.id,
            item.name,
            item.quantity,
            item.price,
            item.category,
            item.last_updated.isoformat() if item.last_updated else ''
        ])

    output.seek(0)
    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=inventory.csv"}
    )

@app.post("/items/import/csv", response_model=schemas.ImportSummary)
def import_inventory_csv(
    file: UploadFile = File(...),
    service: InventoryService = Depends(get_service),
    current_user: auth.CurrentUser = Depends(auth.require_writer)
):
    """
    Import inventory items from CSV (write roles only).

    Expected CSV columns: name, quantity, price, category. Rows that cannot be
    parsed or fail validation are skipped; the rest are created.

    Returns:
        Summary with created_count, skipped_count, and the first 10 errors
    """
    if not file.filename or not file.filename.endswith('.csv'):
        raise HTTPException(status_code=400, detail="File must be a CSV")

    try:
        content = file.file.read().decode('utf-8')
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="File must be UTF-8 encoded CSV")
    reader = csv.DictReader(io.StringIO(content))

    errors = []
    candidates = []
    row_numbers = []

    for row_num, row in enumerate(reader, start=2):  # start=2 because row 1 is header
        quantity_str = (row.get('quantity') or '').strip()
        price_str = (row.get('price') or '').strip()
        try:
            quantity = int(quantity_str) if quantity_str else None
        except ValueError:
            errors.append(f"Row {row_num}: Invalid quantity '{quantity_str}'")
            continue
        try:
            price = Decimal(price_str) if price_str else None
        except InvalidOperation:
            errors.append(f"Row {row_num}: Invalid price '{price_str}'")
            continue

        candidates.append(schemas.ItemCandidate(
            name=row.get('name'),
            quantity=quantity,
            price=price,
            category=row.get('category'),
        ))
        row_numbers.append(row_num)

    outcomes = unwrap(service.bulk_create(candidates))

    created_count = 0
    for outcome in outcomes:
        if outcome.error is None:
            created_count += 1
            continue
        problems = "; ".join(outcome.error.errors.values()) or outcome.error.message
        errors.append(f"Row {row_numbers[outcome.index]}: {problems}")

    return schemas.ImportSummary(
        created_count=created_count,
        skipped_count=len(errors),
        errors=errors[:10]  # Return first 10 errors to avoid huge responses
    )

@app.get("/items/{item_id}", response_model=schemas.Item)
def get_item(
    item_id: int,
    service: InventoryService = Depends(get_service),
    current_user: auth.CurrentUser = Depends(auth.get_current_user)
):
    """
    Get a single inventory item by ID (authenticated users only).

    Raises:
        HTTPException: 404 if item not found
    """
    return unwrap(service.get_item(item_id))

@app.put("/items/{item_id}", response_model=schemas.Item)
def update_item(
    item_id: int,
    item: schemas.ItemCandidate,
    service: InventoryService = Depends(get_service),
    current_user: auth.CurrentUser = Depends(auth.require_writer)
):
    """
    Replace an existing inventory item (write roles only).

    All fields are required; this is a full replace, not a patch.

    Raises:
        HTTPException: 404 if item not found, 422 listing every invalid field
    """
    return unwrap(service.update_item(item_id, item))

@app.patch("/items/{item_id}/restock", response_model=schemas.Item)
def restock_item(
    item_id: int,
    body: schemas.RestockRequest,
    service: InventoryService = Depends(get_service),
    current_user: auth.CurrentUser = Depends(auth.require_writer)
):
    """
    Add ``delta`` units to an item's stock; negative deltas consume stock (write roles only).

    Raises:
        HTTPException: 404 if item not found, 422 if stock would go negative
    """
    return unwrap(service.restock_item(item_id, body.delta))

@app.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(
    item_id: int,
    service: InventoryService = Depends(get_service),
    current_user: auth.CurrentUser = Depends(auth.require_writer)
):
    """
    Delete an inventory item (write roles only).

    Returns:
        None (204 No Content)

    Raises:
        HTTPException: 404 if item not found
    """
    unwrap(service.delete_item(item_id))
