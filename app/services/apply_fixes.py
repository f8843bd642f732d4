"""Write AI-rewritten descriptions back to Shopify via the productUpdate mutation."""

import asyncio
import logging

from app.schemas.products import ApplyDescriptionRequest, ApplyResult
from app.services.catalog import AdminGraphQLClient, ShopifyApiError

logger = logging.getLogger(__name__)

PRODUCT_UPDATE_MUTATION = """
mutation UpdateProduct($input: ProductInput!) {
  productUpdate(input: $input) {
    product {
      id
    }
    userErrors {
      field
      message
    }
  }
}
"""

DEFAULT_MAX_CONCURRENCY = 4


class ApplyFixError(Exception):
    """Raised when Shopify rejects a product update (userErrors) or the description is empty."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


def description_to_html(description: str) -> str:
    """Each non-blank line becomes a <p> paragraph; empty input gives '<p></p>'."""
    paragraphs = [line.strip() for line in description.split("\n") if line.strip()]
    return "".join(f"<p>{line}</p>" for line in paragraphs) or "<p></p>"


async def apply_product_description(admin: AdminGraphQLClient, product_id: str, description: str) -> None:
    """Replace a product's description. Raises ApplyFixError on user errors, ShopifyApiError on API failure."""
    if not product_id or not product_id.strip():
        raise ApplyFixError("Missing product or description")
    if not description or not description.strip():
        raise ApplyFixError("Missing product or description")

    body = await admin.graphql(
        PRODUCT_UPDATE_MUTATION,
        {"input": {"id": product_id, "descriptionHtml": description_to_html(description)}},
    )
    payload = (body.get("data") or {}).get("productUpdate") or {}
    user_errors = payload.get("userErrors") or []
    if user_errors:
        first = user_errors[0] if isinstance(user_errors[0], dict) else {}
        raise ApplyFixError(str(first.get("message") or "Shopify rejected the product update."))
    logger.info("Applied rewritten description", extra={"product_id": product_id})


async def apply_descriptions(
    admin: AdminGraphQLClient,
    items: list[ApplyDescriptionRequest],
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> list[ApplyResult]:
    """
    Apply many descriptions with at most max_concurrency updates in flight.

    One failed update does not stop the others; results are in input order.
    """
    semaphore = asyncio.Semaphore(max(1, max_concurrency))

    async def apply_with_semaphore(item: ApplyDescriptionRequest) -> ApplyResult:
        async with semaphore:
            try:
                await apply_product_description(admin, item.product_id, item.description)
            except (ApplyFixError, ShopifyApiError) as e:
                logger.warning(
                    "Product update failed",
                    extra={"product_id": item.product_id, "reason": e.message[:200]},
                )
                return ApplyResult(product_id=item.product_id, success=False, error=e.message)
            return ApplyResult(product_id=item.product_id, success=True)

    outcomes = await asyncio.gather(*(apply_with_semaphore(item) for item in items), return_exceptions=True)

    results: list[ApplyResult] = []
    for item, outcome in zip(items, outcomes):
        if isinstance(outcome, BaseException):
            logger.error(
                "Product update raised unexpectedly",
                extra={"product_id": item.product_id, "reason": str(outcome)[:200]},
            )
            results.append(ApplyResult(product_id=item.product_id, success=False, error="Update failed."))
        else:
            results.append(outcome)
    return results
