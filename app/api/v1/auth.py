"""Shop authentication dependencies and the Shopify/OpenAI client dependencies built from them."""

from typing import Annotated

import jwt
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import get_db
from app.core.security import decode_access_token, normalize_shop_domain
from app.schemas.auth import CurrentShop, RegisteredShop
from app.services.ai_analyzer import CompletionClient, build_completion_client
from app.services.catalog import ShopifyAdminClient
from app.services.scan_store import ScanStore

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_shop(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    x_shop_domain: Annotated[str | None, Header()] = None,
) -> CurrentShop:
    """
    Dependency: resolve the calling shop. Raises 401 if missing or invalid.

    With AUTH_ENABLED the shop is the `sub` of a Bearer JWT; otherwise (dev) it
    is read from the X-Shop-Domain header.
    """
    if not get_settings().AUTH_ENABLED:
        domain = normalize_shop_domain(x_shop_domain)
        if domain is None:
            raise _unauthorized("X-Shop-Domain header with a myshopify.com domain is required")
        return CurrentShop(domain=domain)

    if credentials is None:
        raise _unauthorized("Not authenticated")
    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.PyJWTError:
        raise _unauthorized("Invalid or expired token")
    domain = normalize_shop_domain(payload.get("sub"))
    if domain is None:
        raise _unauthorized("Invalid token payload")
    return CurrentShop(domain=domain)


def get_scan_store(db: Annotated[Session, Depends(get_db)]) -> ScanStore:
    return ScanStore(db)


def get_registered_shop(
    shop: Annotated[CurrentShop, Depends(get_current_shop)],
    store: Annotated[ScanStore, Depends(get_scan_store)],
) -> RegisteredShop:
    """Dependency: the calling shop must have an Admin API token stored. Raises 403 otherwise."""
    row = store.get_shop(shop.domain)
    if row is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Shop is not registered. Run app.scripts.register_shop first.",
        )
    return RegisteredShop(domain=row.domain, access_token=row.access_token)


def get_admin_client(
    shop: Annotated[RegisteredShop, Depends(get_registered_shop)],
) -> ShopifyAdminClient:
    return ShopifyAdminClient(shop.domain, shop.access_token, get_settings())


def get_completion_client() -> CompletionClient | None:
    return build_completion_client(get_settings())
