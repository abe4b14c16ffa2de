"""
Operation observers for the Inventory service.

The service notifies an observer around every operation instead of logging
inline. ``LoggingObserver`` writes the audit trail, ``WebhookObserver`` lets
external systems subscribe to inventory changes, and ``CompositeObserver``
combines several of them.
"""
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import httpx
from pydantic import BaseModel

from .errors import ErrorKind, ServiceError

logger = logging.getLogger(__name__)

# Webhook URLs (in production, these would be stored in a database)
WEBHOOK_URLS = [url.strip() for url in os.getenv("WEBHOOK_URLS", "").split(",") if url.strip()]
TIMEOUT = 5.0  # seconds

MUTATING_OPERATIONS = frozenset(
    {"create_item", "update_item", "restock_item", "delete_item", "bulk_create", "bulk_delete"}
)


def to_jsonable(value: Any) -> Any:
    """Convert operation results (models, lists of models, scalars) to JSON-safe data."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (list, tuple)):
        return [to_jsonable(entry) for entry in value]
    return value


class OperationObserver:
    """Base observer; every hook is a no-op."""

    def started(self, operation: str, details: Dict[str, Any]) -> None:
        pass

    def succeeded(self, operation: str, value: Any) -> None:
        pass

    def failed(self, operation: str, error: ServiceError) -> None:
        pass


class LoggingObserver(OperationObserver):
    """Audit trail through the standard logging module."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logging.getLogger("inventory_service.audit")

    def started(self, operation: str, details: Dict[str, Any]) -> None:
        self.log.info(f"{operation} started: {details}")

    def succeeded(self, operation: str, value: Any) -> None:
        if isinstance(value, list):
            self.log.info(f"{operation} succeeded: {len(value)} result(s)")
        else:
            self.log.info(f"{operation} succeeded: {value}")

    def failed(self, operation: str, error: ServiceError) -> None:
        if error.kind is ErrorKind.STORAGE_FAILURE:
            self.log.error(f"{operation} failed: {error.message}")
        else:
            self.log.warning(f"{operation} rejected ({error.kind.value}): {error.message} {error.errors or ''}".rstrip())


class WebhookObserver(OperationObserver):
    """
    Send a webhook notification after every successful change.

    Args:
        urls: Target URLs; defaults to ``WEBHOOK_URLS``
        client: HTTP client to reuse; a short-lived one is opened per
            notification when omitted
        timeout: Request timeout in seconds for short-lived clients
    """

    def __init__(
        self,
        urls: Optional[Iterable[str]] = None,
        client: Optional[httpx.Client] = None,
        timeout: float = TIMEOUT,
    ):
        self.urls: List[str] = list(WEBHOOK_URLS if urls is None else urls)
        self.client = client
        self.timeout = timeout

    def succeeded(self, operation: str, value: Any) -> None:
        if operation not in MUTATING_OPERATIONS or not self.urls:
            return

        payload = {
            "event": f"inventory.{operation}",
            "data": to_jsonable(value),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if self.client is not None:
            self._send_all(self.client, payload)
        else:
            with httpx.Client(timeout=self.timeout) as client:
                self._send_all(client, payload)

    def _send_all(self, client: httpx.Client, payload: Dict[str, Any]) -> None:
        for url in self.urls:
            self.send_single_webhook(client, url, payload)

    def send_single_webhook(self, client: httpx.Client, url: str, payload: Dict[str, Any]) -> None:
        """
        Send a webhook to a single URL.

        Delivery failures are logged; they never fail the inventory operation.

        Args:
            client: HTTP client
            url: Webhook URL
            payload: Event payload
        """
        try:
            response = client.post(url, json=payload, headers={"Content-Type": "application/json"})
        except Exception as e:
            logger.error(f"Webhook error for {url}: {type(e).__name__}: {e}")
            return

        if response.status_code >= 400:
            logger.warning(f"Webhook failed for {url}: HTTP {response.status_code}")


class CompositeObserver(OperationObserver):
    """Forward every notification to each wrapped observer in order."""

    def __init__(self, *observers: OperationObserver):
        self.observers = list(observers)

    def started(self, operation: str, details: Dict[str, Any]) -> None:
        for observer in self.observers:
            observer.started(operation, details)

    def succeeded(self, operation: str, value: Any) -> None:
        for observer in self.observers:
            observer.succeeded(operation, value)

    def failed(self, operation: str, error: ServiceError) -> None:
        for observer in self.observers:
            observer.failed(operation, error)
