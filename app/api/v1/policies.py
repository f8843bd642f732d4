"""Policy rules endpoint: the keyword rules and law focus applied to a market."""

from fastapi import APIRouter

from app.schemas.policy import MarketPolicyResponse
from app.services.policy_rules import get_market_law_reference, get_policy_rules, list_markets

router = APIRouter()


@router.get("", response_model=list[str])
def get_markets() -> list[str]:
    """Market codes with a dedicated law reference."""
    return list_markets()


@router.get("/{market}", response_model=MarketPolicyResponse)
def get_market_policy(market: str) -> MarketPolicyResponse:
    """Rules for a market (defaults plus market-specific). Unknown markets get the defaults."""
    key = market.strip().lower()
    return MarketPolicyResponse(
        market=key,
        law=get_market_law_reference(key),
        rules=get_policy_rules(key),
    )
