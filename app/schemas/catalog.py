"""Pydantic schemas for Shopify catalog products as returned by the Admin GraphQL API."""

from typing import Any

from pydantic import BaseModel, Field


class Metafield(BaseModel):
    """Product metafield (namespace, key, value) included in scanned text."""

    namespace: str = ""
    key: str = ""
    value: str = ""


class Product(BaseModel):
    """Catalog product fields used by the compliance scan."""

    id: str = Field(..., min_length=1, description="Product GID (gid://shopify/Product/...).")
    legacy_resource_id: str | None = None
    title: str = ""
    handle: str | None = None
    description_html: str = ""
    online_store_url: str | None = None
    tags: list[str] = Field(default_factory=list)
    featured_image_url: str | None = None
    metafields: list[Metafield] = Field(default_factory=list)

    @classmethod
    def from_node(cls, node: dict[str, Any]) -> "Product":
        """Build a Product from a GraphQL product node (camelCase keys, edges for metafields)."""
        image = node.get("featuredImage") or {}
        edges = (node.get("metafields") or {}).get("edges") or []
        metafields = [
            Metafield(
                namespace=str(n.get("namespace") or ""),
                key=str(n.get("key") or ""),
                value=str(n.get("value") or ""),
            )
            for n in (e.get("node") or {} for e in edges if isinstance(e, dict))
            if n
        ]
        legacy_id = node.get("legacyResourceId")
        return cls(
            id=str(node.get("id") or ""),
            legacy_resource_id=str(legacy_id) if legacy_id is not None else None,
            title=str(node.get("title") or ""),
            handle=node.get("handle"),
            description_html=str(node.get("descriptionHtml") or ""),
            online_store_url=node.get("onlineStoreUrl"),
            tags=[str(t) for t in (node.get("tags") or [])],
            featured_image_url=image.get("url") if isinstance(image, dict) else None,
            metafields=metafields,
        )
