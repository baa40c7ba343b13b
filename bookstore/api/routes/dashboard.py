"""
Dashboard API Routes

Inventory aggregates for the dashboard view.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from bookstore.api.dependencies import get_credential, get_inventory_service
from bookstore.api.schemas import (
    DashboardEnvelope,
    DashboardStatsResponse,
    ErrorResponse,
)
from bookstore.inventory.service import InventoryService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get(
    "/stats",
    response_model=DashboardEnvelope,
    responses={401: {"model": ErrorResponse, "description": "Missing or invalid token"}},
)
def get_dashboard_stats(
    credential: Optional[str] = Depends(get_credential),
    service: InventoryService = Depends(get_inventory_service),
):
    """
    Get dashboard statistics.

    Includes:
    - Total books
    - Books with fewer than 5 copies
    - Highest price (0 when the inventory is empty)
    - Number of distinct categories
    """
    stats = service.dashboard_stats(credential)
    return DashboardEnvelope(data=DashboardStatsResponse(**stats.to_dict()))
