"""Fetch catalog products from the Shopify Admin GraphQL API (cursor pagination, single-product lookup)."""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING, Any, Protocol

import httpx

from app.schemas.catalog import Product

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50

_PRODUCT_FIELDS = """
      id
      legacyResourceId
      title
      handle
      descriptionHtml
      onlineStoreUrl
      tags
      featuredImage {
        url
        altText
      }
      metafields(first: 10) {
        edges {
          node {
            namespace
            key
            value
          }
        }
      }
"""

PRODUCTS_QUERY = (
    """
query CatalogProducts($first: Int!, $after: String) {
  products(first: $first, after: $after, sortKey: UPDATED_AT) {
    nodes {"""
    + _PRODUCT_FIELDS
    + """    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
"""
)

PRODUCT_QUERY = (
    """
query CatalogProduct($id: ID!) {
  product(id: $id) {"""
    + _PRODUCT_FIELDS
    + """  }
}
"""
)


class ShopifyApiError(Exception):
    """Raised when the Admin API call fails (unreachable, auth, non-2xx, or GraphQL errors without data)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class AdminGraphQLClient(Protocol):
    async def graphql(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run a query and return the decoded body ({data, errors?})."""
        ...


class ShopifyAdminClient:
    """Admin GraphQL over httpx for one shop's offline access token."""

    def __init__(self, shop_domain: str, access_token: str, settings: Settings) -> None:
        self.shop_domain = shop_domain
        self._access_token = access_token
        self._url = f"https://{shop_domain}/admin/api/{settings.SHOPIFY_API_VERSION}/graphql.json"
        self._timeout = settings.SHOPIFY_REQUEST_TIMEOUT_SEC

    async def graphql(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        headers = {
            "X-Shopify-Access-Token": self._access_token,
            "Content-Type": "application/json",
        }
        payload: dict[str, Any] = {"query": query, "variables": variables or {}}
        start = time.perf_counter()
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(self._url, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            raise ShopifyApiError("Shopify Admin API request timed out.") from e
        except httpx.HTTPError as e:
            raise ShopifyApiError(f"Shopify Admin API request failed: {e!s}") from e
        elapsed = time.perf_counter() - start

        if resp.status_code == 401:
            raise ShopifyApiError("Shopify authentication failed (invalid or revoked access token).", 401)
        if resp.status_code >= 400:
            detail = resp.text[:500] if resp.text else "Unknown error"
            raise ShopifyApiError(f"Shopify returned {resp.status_code}: {detail}", resp.status_code)
        try:
            body = resp.json()
        except json.JSONDecodeError as e:
            raise ShopifyApiError("Shopify response body is not valid JSON.", resp.status_code) from e
        if not isinstance(body, dict):
            raise ShopifyApiError("Shopify response body is not a JSON object.", resp.status_code)

        errors = body.get("errors")
        if errors and not body.get("data"):
            detail = json.dumps(errors)[:500]
            raise ShopifyApiError(f"Shopify GraphQL errors: {detail}", resp.status_code)

        logger.debug(
            "Shopify GraphQL request completed",
            extra={"shop_domain": self.shop_domain, "latency_seconds": elapsed},
        )
        return body


async def fetch_all_products(client: AdminGraphQLClient, page_size: int = DEFAULT_PAGE_SIZE) -> list[Product]:
    """
    Every product in the catalog, following cursors until hasNextPage is false.

    Order is the API's (most recently updated first). A response without a
    products connection ends pagination.
    """
    products: list[Product] = []
    cursor: str | None = None
    while True:
        body = await client.graphql(PRODUCTS_QUERY, {"first": page_size, "after": cursor})
        connection = (body.get("data") or {}).get("products")
        if not connection:
            break
        for node in connection.get("nodes") or []:
            if isinstance(node, dict) and node.get("id"):
                products.append(Product.from_node(node))
        page_info = connection.get("pageInfo") or {}
        cursor = page_info.get("endCursor")
        if not page_info.get("hasNextPage") or not cursor:
            break
    logger.info("Fetched catalog products", extra={"product_count": len(products)})
    return products


async def fetch_product_by_id(client: AdminGraphQLClient, product_id: str) -> Product | None:
    """One product by GID; None when the API returns no such product."""
    body = await client.graphql(PRODUCT_QUERY, {"id": product_id})
    node = (body.get("data") or {}).get("product")
    if not isinstance(node, dict) or not node.get("id"):
        return None
    return Product.from_node(node)
