"""Scan endpoints: run a full catalog scan, rescan one product, list, fetch and export scans."""

import logging
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from app.api.v1.auth import (
    get_admin_client,
    get_completion_client,
    get_current_shop,
    get_registered_shop,
    get_scan_store,
)
from app.core.config import get_settings
from app.schemas.auth import CurrentShop, RegisteredShop
from app.schemas.scan import RescanRequest, ScanRecord, ScanRequest, ScanSummary, ScansListResponse
from app.services.ai_analyzer import CompletionClient
from app.services.catalog import ShopifyAdminClient, ShopifyApiError
from app.services.export import build_scan_csv, build_scan_pdf, export_filename, filter_by_market
from app.services.scan_store import ScanStore
from app.services.scanner import ScanConflictError, ScanError, rescan_single_product, run_full_scan

logger = logging.getLogger(__name__)
router = APIRouter()


def _shopify_error(e: ShopifyApiError, shop_domain: str) -> HTTPException:
    logger.error(
        "Shopify Admin API call failed",
        extra={"shop_domain": shop_domain, "status_code": e.status_code, "reason": e.message[:500]},
    )
    return HTTPException(status_code=502, detail=e.message)


@router.post("", response_model=ScanRecord)
async def post_scan(
    body: ScanRequest,
    shop: Annotated[RegisteredShop, Depends(get_registered_shop)],
    admin: Annotated[ShopifyAdminClient, Depends(get_admin_client)],
    store: Annotated[ScanStore, Depends(get_scan_store)],
    completion_client: Annotated[CompletionClient | None, Depends(get_completion_client)],
) -> ScanRecord:
    """
    Scan every product in the shop's catalog for one market.

    Per-product AI failures do not fail the request; those products come back
    with status "error" and their heuristic violations.
    """
    try:
        return await run_full_scan(admin, store, shop.domain, body.market, completion_client, get_settings())
    except ScanError as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    except ShopifyApiError as e:
        raise _shopify_error(e, shop.domain) from e


@router.get("", response_model=ScansListResponse)
def list_scans(
    shop: Annotated[CurrentShop, Depends(get_current_shop)],
    store: Annotated[ScanStore, Depends(get_scan_store)],
    limit: Annotated[int, Query(ge=1, le=50)] = 5,
) -> ScansListResponse:
    """Most recent scans for the shop, without per-product results."""
    scans = store.list_recent_scans(shop.domain, limit=limit)
    return ScansListResponse(scans=[ScanSummary.model_validate(s.model_dump()) for s in scans])


def _get_owned_scan(store: ScanStore, scan_id: str, shop_domain: str) -> ScanRecord:
    scan = store.get_scan(scan_id)
    if scan is None or scan.shop_domain != shop_domain:
        raise HTTPException(status_code=404, detail="Scan not found")
    return scan


@router.get("/{scan_id}", response_model=ScanRecord)
def get_scan(
    scan_id: str,
    shop: Annotated[CurrentShop, Depends(get_current_shop)],
    store: Annotated[ScanStore, Depends(get_scan_store)],
) -> ScanRecord:
    return _get_owned_scan(store, scan_id, shop.domain)


@router.post("/{scan_id}/rescan", response_model=ScanRecord)
async def post_rescan(
    scan_id: str,
    body: RescanRequest,
    shop: Annotated[RegisteredShop, Depends(get_registered_shop)],
    admin: Annotated[ShopifyAdminClient, Depends(get_admin_client)],
    store: Annotated[ScanStore, Depends(get_scan_store)],
    completion_client: Annotated[CompletionClient | None, Depends(get_completion_client)],
) -> ScanRecord:
    """Re-analyze one product in an existing scan and return the updated scan."""
    try:
        return await rescan_single_product(
            admin, store, scan_id, body.product_id, shop.domain, completion_client, get_settings()
        )
    except ScanConflictError as e:
        raise HTTPException(status_code=409, detail=e.message) from e
    except ScanError as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    except ShopifyApiError as e:
        raise _shopify_error(e, shop.domain) from e


@router.get("/{scan_id}/export")
def export_scan(
    scan_id: str,
    market: Annotated[str, Query(min_length=1, max_length=16)],
    shop: Annotated[CurrentShop, Depends(get_current_shop)],
    store: Annotated[ScanStore, Depends(get_scan_store)],
    export_format: Annotated[str, Query(alias="format", max_length=8)] = "csv",
) -> Response:
    """
    Export the scan's findings for one market.

    format=pdf returns a per-product report; any other value returns CSV
    (one row per violation).
    """
    scan = _get_owned_scan(store, scan_id, shop.domain)
    market_key = market.strip().lower()
    findings = filter_by_market(scan.results, market_key)
    timestamp = datetime.now(timezone.utc).isoformat()

    if export_format.strip().lower() == "pdf":
        content: str | bytes = build_scan_pdf(findings, shop.domain, market_key, scan.started_at)
        media_type, extension = "application/pdf", "pdf"
    else:
        content = build_scan_csv(findings)
        media_type, extension = "text/csv", "csv"

    filename = export_filename(shop.domain, market_key, timestamp, extension)
    logger.info(
        "Scan exported",
        extra={"scan_id": scan.id, "shop_domain": shop.domain, "format": extension, "findings": len(findings)},
    )
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
