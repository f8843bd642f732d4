"""Pydantic schemas for policy rules, compliance violations, per-product findings, and stored finding versions."""

from typing import Annotated, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

# Canonical violation severity (display casing, as stored in scan results).
SeverityLevel = Literal["High", "Medium", "Low"]

# Rule table severity (lower-case, as authored in the rule table).
RuleSeverity = Literal["high", "medium", "low"]

FindingStatus = Literal["flagged", "clean", "error"]

SEVERITY_LEVELS: tuple[SeverityLevel, ...] = ("High", "Medium", "Low")

# Version tag written into every stored finding; legacy rows carry none.
FINDING_SCHEMA_VERSION = 2

# Merchant-facing message recorded on a finding when the AI stage gives up.
AI_FAILURE_MESSAGE = "AI scan failed. Please retry."


class PolicyRule(BaseModel):
    """One keyword rule for a policy category; immutable once loaded."""

    model_config = ConfigDict(frozen=True)

    category: str = Field(..., min_length=1, description="Policy category (e.g. Medical Claims).")
    severity: RuleSeverity = Field(..., description="Rule severity: high, medium, or low.")
    keywords: tuple[str, ...] = Field(..., min_length=1, description="Lower-case keywords, matched as substrings.")
    description: str = Field(..., min_length=1, description="What the rule guards against.")


class MarketLawReference(BaseModel):
    """Law focus and reference URL for a market."""

    model_config = ConfigDict(frozen=True)

    law: str
    url: str | None = None


class PolicyMatch(BaseModel):
    """A rule that matched product text, with the keywords that hit."""

    rule: PolicyRule
    matching_keywords: list[str] = Field(..., min_length=1)


class ComplianceViolation(BaseModel):
    """A single policy or law issue found on a product."""

    issue: str = Field(..., min_length=1, description="What is wrong, in merchant-facing words.")
    policy: str = Field(..., description="Ads policy the issue falls under.")
    law: str = Field(..., description="Local law or guidance for the market.")
    severity: SeverityLevel
    risk_score: float = Field(..., ge=0, le=1, description="Risk in [0, 1]; feeds the compliance score.")
    suggestion: str = Field(default="", description="Suggested rewrite or action.")
    why_matters: str = Field(default="", description="Why the issue matters for ad eligibility.")
    rule_ref: str = Field(default="general", description="Rule or policy reference used for alert keys.")
    source_url: str | None = Field(default=None, description="Reference URL for the law or policy.")


class AiRewrite(BaseModel):
    """Compliant rewrite suggested by the model."""

    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    description: str | None = None


class ComplianceFinding(BaseModel):
    """Result of one scan pass over one product."""

    schema_version: Literal[2] = FINDING_SCHEMA_VERSION
    product_id: str = Field(..., min_length=1, description="Shopify product GID.")
    legacy_resource_id: str | None = None
    product_title: str = ""
    product_handle: str | None = None
    thumbnail_url: str | None = None
    original_description: str = ""
    original_html: str | None = None
    market: str
    shop_domain: str = ""
    violations: list[ComplianceViolation] = Field(default_factory=list)
    compliance_score: int = Field(..., ge=0, le=100)
    status: FindingStatus
    error_message: str | None = None
    ai_rewrite: AiRewrite | None = None


class StoredFindingV1(BaseModel):
    """Legacy stored finding: plain issue strings, no structured violation data."""

    model_config = ConfigDict(extra="ignore")

    schema_version: Literal[1] = 1
    product_id: str = Field(..., min_length=1, validation_alias=AliasChoices("product_id", "productId"))
    product_title: str = Field(default="", validation_alias=AliasChoices("product_title", "productTitle"))
    market: str | None = None
    issues: list[str] = Field(default_factory=list)
    status: str | None = None
    error_message: str | None = Field(default=None, validation_alias=AliasChoices("error_message", "errorMessage"))


class StoredFindingV2(ComplianceFinding):
    """Current stored finding; violations may still need re-normalizing. Accepts camelCase keys."""

    model_config = ConfigDict(extra="ignore")

    product_id: str = Field(..., min_length=1, validation_alias=AliasChoices("product_id", "productId"))
    legacy_resource_id: str | None = Field(
        default=None, validation_alias=AliasChoices("legacy_resource_id", "legacyResourceId")
    )
    product_title: str = Field(default="", validation_alias=AliasChoices("product_title", "productTitle"))
    product_handle: str | None = Field(default=None, validation_alias=AliasChoices("product_handle", "productHandle"))
    thumbnail_url: str | None = Field(default=None, validation_alias=AliasChoices("thumbnail_url", "thumbnailUrl"))
    original_description: str = Field(
        default="", validation_alias=AliasChoices("original_description", "originalDescription")
    )
    original_html: str | None = Field(default=None, validation_alias=AliasChoices("original_html", "originalHtml"))
    shop_domain: str = Field(default="", validation_alias=AliasChoices("shop_domain", "shopDomain"))
    ai_rewrite: AiRewrite | None = Field(default=None, validation_alias=AliasChoices("ai_rewrite", "aiRewrite"))


StoredFinding = Annotated[
    StoredFindingV1 | StoredFindingV2,
    Field(discriminator="schema_version"),
]


class AiAnalysis(BaseModel):
    """Outcome of the AI stage for one product."""

    violations: list[ComplianceViolation] = Field(default_factory=list)
    rewrite: AiRewrite | None = None
    error_message: str | None = None
