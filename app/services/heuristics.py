"""Keyword heuristics: match product text against policy rules and build violations from the hits."""

import re

from app.schemas.catalog import Product
from app.schemas.compliance import ComplianceViolation, PolicyMatch, PolicyRule, SeverityLevel
from app.services.normalize import severity_to_risk_score
from app.services.policy_rules import get_market_law_reference

_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")

_RULE_SEVERITY: dict[str, SeverityLevel] = {
    "high": "High",
    "medium": "Medium",
    "low": "Low",
}


def strip_html(html: str | None) -> str:
    """Replace tags with spaces, collapse whitespace, trim."""
    if not html:
        return ""
    return _WHITESPACE_RE.sub(" ", _TAG_RE.sub(" ", html)).strip()


def build_product_text(product: Product) -> str:
    """Lower-cased text searched by the heuristics: title, plain description, tags, metafields."""
    metafield_text = " ".join(f"{m.namespace} {m.key} {m.value}" for m in product.metafields)
    parts = [
        product.title,
        strip_html(product.description_html),
        " ".join(product.tags),
        metafield_text,
    ]
    return "\n".join(parts).lower()


def detect_policy_matches(text: str, rules: list[PolicyRule]) -> list[PolicyMatch]:
    """
    Substring search of each rule's keywords in text (case-insensitive, no word boundaries).

    Rules are returned in input order with their hits in keyword order; rules with
    no hits are omitted.
    """
    haystack = (text or "").lower()
    matches: list[PolicyMatch] = []
    for rule in rules:
        hits = [kw for kw in rule.keywords if kw.lower() in haystack]
        if hits:
            matches.append(PolicyMatch(rule=rule, matching_keywords=hits))
    return matches


def build_heuristic_violations(
    matches: list[PolicyMatch],
    market: str,
    product_title: str,
) -> list[ComplianceViolation]:
    """One violation per matched rule, with law and source from the market's reference."""
    law_reference = get_market_law_reference(market)
    violations: list[ComplianceViolation] = []
    for match in matches:
        rule = match.rule
        severity = _RULE_SEVERITY.get(rule.severity, "Medium")
        first_keyword = match.matching_keywords[0] if match.matching_keywords else product_title
        violations.append(
            ComplianceViolation(
                issue=f"{rule.description}. Flagged terms: {', '.join(match.matching_keywords)}.",
                policy=f"Google Ads – {rule.category}",
                law=law_reference.law,
                severity=severity,
                risk_score=severity_to_risk_score(severity),
                suggestion=f"Rephrase references to {first_keyword} to align with {law_reference.law}.",
                why_matters=f"This violates {rule.category} guidance in {law_reference.law}.",
                rule_ref=rule.category,
                source_url=law_reference.url,
            )
        )
    return violations
