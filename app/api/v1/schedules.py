"""Rescan schedule endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.v1.auth import get_current_shop, get_scan_store
from app.schemas.auth import CurrentShop
from app.schemas.scan import ScheduleOut, ScheduleRequest
from app.services.scan_store import ScanStore
from app.services.schedules import save_scan_schedule

router = APIRouter()


@router.post("", response_model=ScheduleOut)
def post_schedule(
    body: ScheduleRequest,
    shop: Annotated[CurrentShop, Depends(get_current_shop)],
    store: Annotated[ScanStore, Depends(get_scan_store)],
) -> ScheduleOut:
    """Create or update the rescan cadence of one product."""
    return save_scan_schedule(store, shop.domain, body.product_id, body.market, body.frequency)


@router.get("", response_model=list[ScheduleOut])
def list_schedules(
    shop: Annotated[CurrentShop, Depends(get_current_shop)],
    store: Annotated[ScanStore, Depends(get_scan_store)],
) -> list[ScheduleOut]:
    return store.list_schedules(shop.domain)
