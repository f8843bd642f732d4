"""Request/response schemas for shop authentication."""

from pydantic import BaseModel, Field


class TokenResponse(BaseModel):
    """Session JWT issued for a registered shop."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")


class CurrentShop(BaseModel):
    """Authenticated shop for dependency injection."""

    domain: str


class RegisteredShop(CurrentShop):
    """Authenticated shop with its Admin API token loaded (never serialized to clients)."""

    access_token: str = Field(..., repr=False, exclude=True)
