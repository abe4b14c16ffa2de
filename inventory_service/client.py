"""
HTTP client for communicating with the Inventory service.

Other services use these functions to read items, check stock availability
and adjust stock through the restock endpoint.
"""
import os
import httpx
from typing import List, Optional, Tuple

# Use internal Docker network hostname
INVENTORY_SERVICE_URL = os.getenv("INVENTORY_SERVICE_URL", "http://inventory:8000")
TIMEOUT = 5.0  # seconds


def _client(transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=INVENTORY_SERVICE_URL, timeout=TIMEOUT, transport=transport)


def _headers(token: Optional[str]) -> Optional[dict]:
    return {"Authorization": f"Bearer {token}"} if token else None


async def get_all_items(
    token: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[dict]:
    """
    Retrieve all inventory items from the Inventory service.

    Returns:
        List of inventory items

    Raises:
        httpx.HTTPError: If there's a network error or the service is unavailable
    """
    async with _client(transport) as client:
        response = await client.get("/items", headers=_headers(token))
        response.raise_for_status()
        return response.json()


async def get_item(
    item_id: int,
    token: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Optional[dict]:
    """
    Fetch one inventory item.

    Args:
        item_id: The item to fetch

    Returns:
        Inventory item data if found, None otherwise

    Raises:
        httpx.HTTPError: If there's a network error or the service is unavailable
    """
    async with _client(transport) as client:
        response = await client.get(f"/items/{item_id}", headers=_headers(token))
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return response.json()


async def find_low_stock(
    threshold: int,
    token: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[dict]:
    """
    Items whose quantity is below ``threshold``.

    Raises:
        httpx.HTTPError: If there's a network error or the service is unavailable
    """
    async with _client(transport) as client:
        response = await client.get("/items/low-stock", params={"threshold": threshold}, headers=_headers(token))
        response.raise_for_status()
        return response.json()


async def check_stock_availability(
    item_id: int,
    required_qty: int,
    token: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Tuple[bool, int]:
    """
    Check if there's sufficient stock for an order.

    Args:
        item_id: The item to check
        required_qty: Quantity required

    Returns:
        Tuple of (available: bool, current_stock: int)

    Raises:
        httpx.HTTPError: If there's a network error or the service is unavailable
    """
    item = await get_item(item_id, token, transport)
    if item is None:
        return False, 0

    current_qty = item.get('quantity', 0)
    return current_qty >= required_qty, current_qty


async def restock_item(
    item_id: int,
    delta: int,
    token: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Tuple[bool, Optional[str]]:
    """
    Adjust an item's stock; the service applies the change atomically.

    Used to reserve stock for orders (negative delta) and to restore it on
    cancellation (positive delta).

    Args:
        item_id: The item to adjust
        delta: Amount to add; negative to consume

    Returns:
        Tuple of (success: bool, error_message: Optional[str])
    """
    try:
        async with _client(transport) as client:
            response = await client.patch(
                f"/items/{item_id}/restock",
                json={"delta": delta},
                headers=_headers(token),
            )
    except httpx.HTTPError as e:
        return False, f"Inventory service error: {str(e)}"

    if response.status_code == 200:
        return True, None
    if response.status_code == 404:
        return False, f"Item {item_id} not found"
    return False, f"Failed to restock item {item_id}: {response.text}"
