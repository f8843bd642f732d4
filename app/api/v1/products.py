"""Product update endpoints: write AI-rewritten descriptions back to Shopify."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from app.api.v1.auth import get_admin_client
from app.core.config import get_settings
from app.schemas.products import ApplyBulkRequest, ApplyBulkResponse, ApplyDescriptionRequest, ApplyResult
from app.services.apply_fixes import ApplyFixError, apply_descriptions, apply_product_description
from app.services.catalog import ShopifyAdminClient, ShopifyApiError

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/apply", response_model=ApplyResult)
async def post_apply(
    body: ApplyDescriptionRequest,
    admin: Annotated[ShopifyAdminClient, Depends(get_admin_client)],
) -> ApplyResult:
    """Replace one product's description (each line becomes a paragraph)."""
    try:
        await apply_product_description(admin, body.product_id, body.description)
    except ApplyFixError as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    except ShopifyApiError as e:
        logger.error(
            "Product update failed",
            extra={"shop_domain": admin.shop_domain, "status_code": e.status_code, "reason": e.message[:500]},
        )
        raise HTTPException(status_code=502, detail=e.message) from e
    return ApplyResult(product_id=body.product_id, success=True)


@router.post("/apply-bulk", response_model=ApplyBulkResponse)
async def post_apply_bulk(
    body: ApplyBulkRequest,
    admin: Annotated[ShopifyAdminClient, Depends(get_admin_client)],
) -> ApplyBulkResponse:
    """Apply many descriptions with bounded concurrency; failures are reported per item."""
    results = await apply_descriptions(admin, body.items, max_concurrency=get_settings().APPLY_MAX_CONCURRENCY)
    succeeded = sum(1 for r in results if r.success)
    logger.info(
        "Bulk description apply completed",
        extra={"shop_domain": admin.shop_domain, "succeeded": succeeded, "failed": len(results) - succeeded},
    )
    return ApplyBulkResponse(results=results, succeeded=succeeded, failed=len(results) - succeeded)
