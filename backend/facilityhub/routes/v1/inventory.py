# backend/facilityhub/routes/v1/inventory.py
"""
Inventory routes - API v1

Endpoints:
    POST / - Create an inventory item with its starting stock
    GET /low-stock - Items below the low-stock threshold
    GET /{item_id} - Item with its committed quantity
    GET /{item_id}/history - Quantity ledger
    POST /{item_id}/return - Return units into stock
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.params import Path

from ...api.dependencies import get_inventory_service, get_optional_user_id
from ...core.constants import DEFAULT_QUERY_LIMIT, MAX_QUERY_LIMIT
from ...core.exceptions import DomainException
from ...schemas.inventory import (
    InventoryHistoryResponse,
    InventoryItemCreate,
    InventoryItemDetailResponse,
    InventoryItemResponse,
    InventoryReturnRequest,
)
from ...services.inventory_service import InventoryService
from .bookings import ULID_PATH_PATTERN, handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["inventory-v1"])


@router.post("", response_model=InventoryItemResponse, status_code=status.HTTP_201_CREATED)
async def create_inventory_item(
    item_data: InventoryItemCreate = Body(...),
    user_id: Optional[str] = Depends(get_optional_user_id),
    inventory_service: InventoryService = Depends(get_inventory_service),
) -> InventoryItemResponse:
    try:
        item = await asyncio.to_thread(inventory_service.create_item, item_data, user_id)
        return InventoryItemResponse.model_validate(item)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/low-stock", response_model=List[InventoryItemResponse])
async def get_low_stock_items(
    threshold: Optional[int] = Query(None, ge=0),
    inventory_service: InventoryService = Depends(get_inventory_service),
) -> List[InventoryItemResponse]:
    try:
        items = await asyncio.to_thread(inventory_service.get_low_stock_items, threshold)
        return [InventoryItemResponse.model_validate(item) for item in items]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{item_id}", response_model=InventoryItemDetailResponse)
async def get_inventory_item(
    item_id: str = Path(..., description="Inventory item ULID", pattern=ULID_PATH_PATTERN),
    inventory_service: InventoryService = Depends(get_inventory_service),
) -> InventoryItemDetailResponse:
    """Item details with the quantity currently held by active bookings."""
    try:
        item = await asyncio.to_thread(inventory_service.get_item, item_id)
        committed = await asyncio.to_thread(inventory_service.get_committed_quantity, item_id)
        response = InventoryItemDetailResponse.model_validate(item)
        response.committed_quantity = committed
        return response
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{item_id}/history", response_model=List[InventoryHistoryResponse])
async def get_inventory_history(
    item_id: str = Path(..., description="Inventory item ULID", pattern=ULID_PATH_PATTERN),
    limit: int = Query(DEFAULT_QUERY_LIMIT, ge=1, le=MAX_QUERY_LIMIT),
    inventory_service: InventoryService = Depends(get_inventory_service),
) -> List[InventoryHistoryResponse]:
    try:
        entries = await asyncio.to_thread(inventory_service.get_history, item_id, limit)
        return [InventoryHistoryResponse.model_validate(entry) for entry in entries]
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{item_id}/return", response_model=InventoryItemResponse)
async def return_inventory_item(
    item_id: str = Path(..., description="Inventory item ULID", pattern=ULID_PATH_PATTERN),
    return_data: InventoryReturnRequest = Body(...),
    user_id: Optional[str] = Depends(get_optional_user_id),
    inventory_service: InventoryService = Depends(get_inventory_service),
) -> InventoryItemResponse:
    try:
        item = await asyncio.to_thread(
            inventory_service.return_item,
            item_id,
            return_data.quantity,
            return_data.condition,
            return_data.notes,
            user_id,
        )
        return InventoryItemResponse.model_validate(item)
    except DomainException as e:
        handle_domain_exception(e)
