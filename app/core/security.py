"""Session tokens for shops: JWT creation/verification (sub = shop domain)."""

import re
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from app.core.config import settings

# Shopify permanent domains: <handle>.myshopify.com
SHOP_DOMAIN_PATTERN = re.compile(r"^[a-z0-9][a-z0-9\-]*\.myshopify\.com$")
SHOP_DOMAIN_MAX_LEN = 255


def normalize_shop_domain(raw: str | None) -> str | None:
    """Lower-case and strip a shop domain; None if it is not a valid myshopify.com host."""
    if not raw or not isinstance(raw, str):
        return None
    domain = raw.strip().lower()
    if domain.startswith("https://"):
        domain = domain[len("https://"):]
    domain = domain.rstrip("/")
    if len(domain) > SHOP_DOMAIN_MAX_LEN or not SHOP_DOMAIN_PATTERN.match(domain):
        return None
    return domain


def create_access_token(shop_domain: str) -> str:
    """Create a JWT access token for a shop with sub, exp and iat."""
    now = datetime.now(UTC)
    expire = now + timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    payload: dict[str, Any] = {
        "sub": shop_domain,
        "exp": expire,
        "iat": now,
    }
    secret = settings.JWT_SECRET.get_secret_value()
    return jwt.encode(
        payload,
        secret,
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and validate JWT; return payload (sub, exp, iat).
    Raises jwt.PyJWTError on invalid or expired token.
    """
    secret = settings.JWT_SECRET.get_secret_value()
    return jwt.decode(
        token,
        secret,
        algorithms=[settings.JWT_ALGORITHM],
    )
