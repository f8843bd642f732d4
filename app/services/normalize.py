"""Normalize raw violation payloads (AI output, stored scan results) to canonical violations and findings."""

import logging
import math
from typing import Any

from pydantic import TypeAdapter, ValidationError

from app.schemas.compliance import (
    AI_FAILURE_MESSAGE,
    ComplianceFinding,
    ComplianceViolation,
    FindingStatus,
    SeverityLevel,
    StoredFinding,
    StoredFindingV1,
)
from app.services.policy_rules import get_market_law_reference

logger = logging.getLogger(__name__)

# Defaults for violation fields when the raw payload omits them.
_DEFAULT_ISSUE = "Potential compliance issue"
_DEFAULT_POLICY = "Google Ads restricted content"
_DEFAULT_SUGGESTION = "Update this content to comply."
_DEFAULT_WHY_MATTERS = "Impacts ad eligibility"
_DEFAULT_RULE_REF = "general"
_DEFAULT_SEVERITY: SeverityLevel = "Medium"

# Fixed severity -> risk score table for heuristically derived violations.
SEVERITY_RISK_SCORES: dict[SeverityLevel, float] = {
    "High": 0.92,
    "Medium": 0.6,
    "Low": 0.3,
}

# Risk score used when the reported score is NaN (matches the Medium default).
NAN_RISK_SCORE = 0.5

# Each unit of risk costs this many compliance points.
RISK_PENALTY_WEIGHT = 35

_stored_finding_adapter: TypeAdapter[StoredFinding] = TypeAdapter(StoredFinding)


def normalize_severity(value: Any) -> SeverityLevel:
    """Case-insensitive: high -> High, low -> Low, anything else (or non-string) -> Medium."""
    if not isinstance(value, str):
        return _DEFAULT_SEVERITY
    normalized = value.strip().lower()
    if normalized == "high":
        return "High"
    if normalized == "low":
        return "Low"
    return _DEFAULT_SEVERITY


def severity_to_risk_score(severity: SeverityLevel) -> float:
    return SEVERITY_RISK_SCORES.get(severity, SEVERITY_RISK_SCORES[_DEFAULT_SEVERITY])


def clamp_risk_score(score: float) -> float:
    """Clamp to [0, 1]; NaN becomes 0.5."""
    if math.isnan(score):
        return NAN_RISK_SCORE
    return min(1.0, max(0.0, float(score)))


def _first_text(raw: dict[str, Any], *keys: str) -> str | None:
    """First non-empty value among keys, coerced to str."""
    for key in keys:
        value = raw.get(key)
        if value is None:
            continue
        text = value if isinstance(value, str) else str(value)
        if text.strip():
            return text
    return None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def normalize_violation(raw: dict[str, Any] | None, market: str) -> ComplianceViolation:
    """
    Coerce a raw violation dict into a ComplianceViolation.

    Accepts camelCase (model output, stored results) and snake_case keys. Missing
    law and source URL fall back to the market's reference; risk score comes from
    the payload when numeric, else from severity, and is always clamped.
    """
    law_reference = get_market_law_reference(market)
    if not raw or not isinstance(raw, dict):
        return ComplianceViolation(
            issue=_DEFAULT_ISSUE,
            policy=_DEFAULT_POLICY,
            law=law_reference.law,
            severity=_DEFAULT_SEVERITY,
            risk_score=NAN_RISK_SCORE,
            suggestion="Review this content for compliance.",
            why_matters="Potential policy gap",
            rule_ref=_DEFAULT_RULE_REF,
        )

    severity = normalize_severity(raw.get("severity"))
    reported = raw.get("riskScore", raw.get("risk_score"))
    risk_source = float(reported) if _is_number(reported) else severity_to_risk_score(severity)
    policy = _first_text(raw, "policy") or _DEFAULT_POLICY

    return ComplianceViolation(
        issue=_first_text(raw, "issue", "reason") or _DEFAULT_ISSUE,
        policy=policy,
        law=_first_text(raw, "law") or law_reference.law,
        severity=severity,
        risk_score=clamp_risk_score(risk_source),
        suggestion=_first_text(raw, "suggestion", "replacement") or _DEFAULT_SUGGESTION,
        why_matters=_first_text(raw, "whyMatters", "why_matters", "context") or _DEFAULT_WHY_MATTERS,
        rule_ref=_first_text(raw, "ruleRef", "rule_ref", "policy") or _DEFAULT_RULE_REF,
        source_url=_first_text(raw, "sourceUrl", "source_url", "policyUrl", "policy_url") or law_reference.url,
    )


def _violation_key(violation: ComplianceViolation) -> str:
    return f"{violation.issue}|{violation.policy}|{violation.law}"


def dedupe_violations(violations: list[ComplianceViolation]) -> list[ComplianceViolation]:
    """Drop violations whose (issue, policy, law) was already seen; first occurrence wins, order kept."""
    seen: set[str] = set()
    result: list[ComplianceViolation] = []
    for violation in violations:
        key = _violation_key(violation)
        if key in seen:
            continue
        seen.add(key)
        result.append(violation)
    return result


def calculate_compliance_score(violations: list[ComplianceViolation]) -> int:
    """100 minus 35 points per unit of risk, rounded and clamped to [0, 100]."""
    if not violations:
        return 100
    penalty = sum(v.risk_score * RISK_PENALTY_WEIGHT for v in violations)
    return max(0, min(100, round(100 - penalty)))


def finding_status(violations: list[ComplianceViolation], error_message: str | None) -> FindingStatus:
    """error overrides flagged/clean; flagged iff there are violations."""
    if error_message:
        return "error"
    return "flagged" if violations else "clean"


def detect_stored_version(record: dict[str, Any]) -> int:
    """
    Resolve the schema version of a stored finding.

    Records written by this service carry schema_version. Untagged records are
    legacy (version 1) when they hold an issues list and no violations; any other
    untagged record is treated as the current shape.
    """
    version = record.get("schema_version")
    if isinstance(version, int) and not isinstance(version, bool):
        return version
    if "issues" in record and "violations" not in record:
        return 1
    return 2


def migrate_stored_finding(record: dict[str, Any], market: str) -> ComplianceFinding:
    """
    Upgrade a stored finding (any known version) to the current ComplianceFinding.

    Violations are re-normalized, then score and status are recomputed; a stored
    error status is kept because the AI failure it records is not derivable from
    violations. Raises ValueError for records that cannot be read as any version.
    """
    version = detect_stored_version(record)
    was_error = record.get("status") == "error"
    stored_message = record.get("error_message") or record.get("errorMessage")
    error_message = (stored_message or AI_FAILURE_MESSAGE) if was_error else None

    payload = {**record, "schema_version": version}
    if version == 2:
        # Violations, score and status are rebuilt below; only identity fields must validate.
        payload.update(violations=[], compliance_score=100, status="clean", error_message=None)
        payload.setdefault("market", market)
    try:
        stored = _stored_finding_adapter.validate_python(payload)
    except ValidationError as e:
        raise ValueError(f"Unreadable stored finding (schema_version={version}): {e}") from e

    if isinstance(stored, StoredFindingV1):
        finding_market = stored.market or market
        violations = dedupe_violations(
            [
                normalize_violation({"issue": text}, finding_market)
                for text in stored.issues
                if isinstance(text, str) and text.strip()
            ]
        )
        return ComplianceFinding(
            product_id=stored.product_id,
            product_title=stored.product_title,
            market=finding_market,
            violations=violations,
            compliance_score=calculate_compliance_score(violations),
            status=finding_status(violations, error_message),
            error_message=error_message,
        )

    raw_violations = record.get("violations") or []
    violations = [
        normalize_violation(raw, stored.market)
        for raw in raw_violations
        if isinstance(raw, dict)
    ]
    fields = stored.model_dump(exclude={"violations", "compliance_score", "status", "error_message"})
    return ComplianceFinding(
        **fields,
        violations=violations,
        compliance_score=calculate_compliance_score(violations),
        status=finding_status(violations, error_message),
        error_message=error_message,
    )


def migrate_stored_results(records: list[Any] | None, market: str) -> list[ComplianceFinding]:
    """
    Migrate a scan's stored results array; unreadable entries are logged and skipped.

    Callers that write results back must compare against the stored count first
    (see ScanRecord.unreadable_results) so skipped entries are never dropped.
    """
    findings: list[ComplianceFinding] = []
    for index, record in enumerate(records or []):
        if not isinstance(record, dict):
            logger.warning("Skipping non-object stored finding", extra={"index": index})
            continue
        try:
            findings.append(migrate_stored_finding(record, market))
        except ValueError as e:
            logger.warning(
                "Skipping unreadable stored finding",
                extra={"index": index, "reason": str(e)[:200]},
            )
    return findings
