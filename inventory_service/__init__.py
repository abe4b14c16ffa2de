"""
Inventory service package.

``service.InventoryService`` holds the business rules, ``crud`` the storage
operations, and ``main.app`` the FastAPI application::

    uvicorn inventory_service.main:app --reload
"""
