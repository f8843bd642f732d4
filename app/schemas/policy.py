"""Response schema for the market policy endpoint."""

from pydantic import BaseModel

from app.schemas.compliance import MarketLawReference, PolicyRule


class MarketPolicyResponse(BaseModel):
    """Rules applied to a market and its law focus."""

    market: str
    law: MarketLawReference
    rules: list[PolicyRule]
