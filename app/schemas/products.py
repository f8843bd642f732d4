"""Pydantic schemas for applying rewritten product descriptions."""

from pydantic import BaseModel, Field


class ApplyDescriptionRequest(BaseModel):
    """Request body for POST /api/v1/products/apply."""

    product_id: str = Field(..., min_length=1, max_length=255, description="Product GID to update.")
    description: str = Field(..., min_length=1, description="Plain-text description; one paragraph per line.")


class ApplyBulkRequest(BaseModel):
    """Request body for POST /api/v1/products/apply-bulk."""

    items: list[ApplyDescriptionRequest] = Field(..., min_length=1, max_length=250)


class ApplyResult(BaseModel):
    """Outcome of one description update."""

    product_id: str
    success: bool
    error: str | None = None


class ApplyBulkResponse(BaseModel):
    results: list[ApplyResult]
    succeeded: int
    failed: int
