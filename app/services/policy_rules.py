"""Static policy rule table and market law references.

Rules are keyword lists per policy category. Every market gets the default
rules; some markets add their own on top.
"""

from app.schemas.compliance import MarketLawReference, PolicyRule

DEFAULT_MARKET = "default"

POLICY_RULES: dict[str, tuple[PolicyRule, ...]] = {
    "default": (
        PolicyRule(
            category="Medical Claims",
            severity="high",
            description="Unsubstantiated medical or therapeutic promises",
            keywords=("cure", "miracle", "heal instantly", "reverse disease", "prescription strength"),
        ),
        PolicyRule(
            category="CBD / Controlled Substances",
            severity="high",
            description="Mentions of CBD, THC, or other restricted substances",
            keywords=("cbd", "thc", "cannabis", "hemp extract"),
        ),
        PolicyRule(
            category="Superlatives & Guarantees",
            severity="medium",
            description="Absolutes that often trigger Google Ads policy warnings",
            keywords=("best", "guaranteed", "100% success", "risk-free"),
        ),
        PolicyRule(
            category="Weight Loss Claims",
            severity="medium",
            description="Bold weight loss promises",
            keywords=("burn fat", "rapid weight loss", "lose inches", "detox"),
        ),
    ),
    "uk": (
        PolicyRule(
            category="Medicinal Claims (MHRA)",
            severity="high",
            description="UK MHRA regulated medicinal language",
            keywords=("mhra approved", "nhs backed", "treats", "clinical cure"),
        ),
    ),
    "us": (
        PolicyRule(
            category="FDA Compliance",
            severity="high",
            description="Statements implying FDA approval",
            keywords=("fda approved", "fda cleared"),
        ),
    ),
    "eu": (
        PolicyRule(
            category="CE Marking",
            severity="medium",
            description="Missing CE or EU certification references",
            keywords=("ce mark", "ce certified"),
        ),
    ),
    "au": (
        PolicyRule(
            category="TGA Advertising",
            severity="high",
            description="Australia TGA restricted wording",
            keywords=("tga approved", "australian register of therapeutic goods"),
        ),
    ),
}

MARKET_LAW_REFERENCES: dict[str, MarketLawReference] = {
    "uk": MarketLawReference(
        law="UK CAP Code, ASA guidance & DfT product marketing rules",
        url="https://www.gov.uk/government/publications/e-scooter-trials-guidance-for-users",
    ),
    "us": MarketLawReference(
        law="US FTC truth-in-advertising & FDA marketing guidance",
        url="https://www.ftc.gov/business-guidance/advertising-marketing",
    ),
    "eu": MarketLawReference(
        law="EU Consumer Protection Regulation & Google Merchant Center EU policies",
        url="https://europa.eu/youreurope/business/product-requirements/index_en.htm",
    ),
    "au": MarketLawReference(
        law="Australia ACCC advertising rules & TGA code",
        url="https://www.tga.gov.au/resources/resource/guidance/advertising-code",
    ),
    "ca": MarketLawReference(
        law="Canada Competition Bureau advertising standards",
        url="https://www.competitionbureau.gc.ca/eic/site/cb-bc.nsf/eng/03031.html",
    ),
    "default": MarketLawReference(
        law="Local consumer protection and Google Ads policies",
        url="https://support.google.com/adspolicy",
    ),
}


def _market_key(market: str | None) -> str:
    if not market or not isinstance(market, str):
        return DEFAULT_MARKET
    return market.strip().lower() or DEFAULT_MARKET


def get_policy_rules(market: str | None) -> list[PolicyRule]:
    """Default rules followed by the market's own rules. Unknown markets get only the defaults."""
    key = _market_key(market)
    rules = list(POLICY_RULES[DEFAULT_MARKET])
    if key != DEFAULT_MARKET:
        rules.extend(POLICY_RULES.get(key, ()))
    return rules


def get_market_law_reference(market: str | None) -> MarketLawReference:
    """Law focus for a market, falling back to the default reference."""
    return MARKET_LAW_REFERENCES.get(_market_key(market), MARKET_LAW_REFERENCES[DEFAULT_MARKET])


def list_markets() -> list[str]:
    """Market codes with their own law reference, plus default."""
    return sorted(MARKET_LAW_REFERENCES)
