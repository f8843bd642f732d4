"""Dashboard endpoint: everything the compliance overview renders in one payload."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.v1.auth import get_completion_client, get_current_shop, get_scan_store
from app.schemas.auth import CurrentShop
from app.schemas.scan import DashboardResponse
from app.services.ai_analyzer import CompletionClient
from app.services.dashboard import hydrate_dashboard
from app.services.scan_store import ScanStore

router = APIRouter()


@router.get("", response_model=DashboardResponse)
async def get_dashboard(
    shop: Annotated[CurrentShop, Depends(get_current_shop)],
    store: Annotated[ScanStore, Depends(get_scan_store)],
    completion_client: Annotated[CompletionClient | None, Depends(get_completion_client)],
) -> DashboardResponse:
    """Recent scans, schedules, score history, high-risk alerts and AI connectivity."""
    return await hydrate_dashboard(store, shop.domain, completion_client)
