"""Unit tests for app.services.normalize: severity, risk, violations, score, stored-finding migration."""

import math
import unittest

from app.schemas.compliance import AI_FAILURE_MESSAGE, ComplianceViolation
from app.services.normalize import (
    calculate_compliance_score,
    clamp_risk_score,
    dedupe_violations,
    detect_stored_version,
    finding_status,
    migrate_stored_finding,
    migrate_stored_results,
    normalize_severity,
    normalize_violation,
)


def _violation(
    issue: str = "Claim",
    policy: str = "Policy",
    law: str = "Law",
    risk_score: float = 0.6,
    **kwargs: object,
) -> ComplianceViolation:
    """Build a minimal ComplianceViolation for tests."""
    defaults: dict[str, object] = {"severity": "Medium"}
    defaults.update(kwargs)
    return ComplianceViolation(issue=issue, policy=policy, law=law, risk_score=risk_score, **defaults)


class TestNormalizeSeverity(unittest.TestCase):
    def test_known_values_case_insensitive(self) -> None:
        self.assertEqual(normalize_severity("HIGH"), "High")
        self.assertEqual(normalize_severity("low"), "Low")
        self.assertEqual(normalize_severity("Medium"), "Medium")

    def test_unknown_and_non_string_default_to_medium(self) -> None:
        self.assertEqual(normalize_severity("critical"), "Medium")
        self.assertEqual(normalize_severity(3), "Medium")
        self.assertEqual(normalize_severity(None), "Medium")


class TestClampRiskScore(unittest.TestCase):
    def test_clamps_to_unit_interval(self) -> None:
        self.assertEqual(clamp_risk_score(1.7), 1.0)
        self.assertEqual(clamp_risk_score(-0.2), 0.0)
        self.assertEqual(clamp_risk_score(0.42), 0.42)

    def test_nan_and_infinities(self) -> None:
        self.assertEqual(clamp_risk_score(math.nan), 0.5)
        self.assertEqual(clamp_risk_score(math.inf), 1.0)
        self.assertEqual(clamp_risk_score(-math.inf), 0.0)


class TestNormalizeViolation(unittest.TestCase):
    """Raw AI or stored payloads are coerced into canonical violations."""

    def test_empty_payload_gives_generic_medium_violation(self) -> None:
        v = normalize_violation(None, "uk")
        self.assertEqual(v.issue, "Potential compliance issue")
        self.assertEqual(v.severity, "Medium")
        self.assertEqual(v.risk_score, 0.5)
        self.assertEqual(v.rule_ref, "general")
        self.assertEqual(v.law, "UK CAP Code, ASA guidance & DfT product marketing rules")
        self.assertEqual(normalize_violation({}, "uk").issue, "Potential compliance issue")

    def test_camel_case_payload(self) -> None:
        v = normalize_violation(
            {
                "issue": "Claims to cure acne",
                "policy": "Healthcare",
                "severity": "high",
                "riskScore": 0.8,
                "whyMatters": "Misleading",
                "ruleRef": "HC-1",
                "policyUrl": "https://example.com/p",
            },
            "us",
        )
        self.assertEqual(v.severity, "High")
        self.assertEqual(v.risk_score, 0.8)
        self.assertEqual(v.why_matters, "Misleading")
        self.assertEqual(v.rule_ref, "HC-1")
        self.assertEqual(v.source_url, "https://example.com/p")
        self.assertEqual(v.law, "US FTC truth-in-advertising & FDA marketing guidance")

    def test_fallback_keys_and_defaults(self) -> None:
        v = normalize_violation(
            {"reason": "Bad claim", "replacement": "Say less", "context": "Ads disapproval", "severity": "low"},
            "eu",
        )
        self.assertEqual(v.issue, "Bad claim")
        self.assertEqual(v.suggestion, "Say less")
        self.assertEqual(v.why_matters, "Ads disapproval")
        self.assertEqual(v.policy, "Google Ads restricted content")
        self.assertEqual(v.rule_ref, "general")
        self.assertEqual(v.risk_score, 0.3)
        self.assertEqual(v.source_url, "https://europa.eu/youreurope/business/product-requirements/index_en.htm")

    def test_rule_ref_falls_back_to_policy(self) -> None:
        v = normalize_violation({"issue": "x", "policy": "Healthcare"}, "us")
        self.assertEqual(v.rule_ref, "Healthcare")

    def test_non_numeric_risk_uses_severity(self) -> None:
        self.assertEqual(normalize_violation({"issue": "x", "severity": "high", "riskScore": "0.1"}, "us").risk_score, 0.92)
        self.assertEqual(normalize_violation({"issue": "x", "riskScore": True}, "us").risk_score, 0.6)

    def test_reported_risk_is_clamped(self) -> None:
        self.assertEqual(normalize_violation({"issue": "x", "riskScore": 4}, "us").risk_score, 1.0)
        self.assertEqual(normalize_violation({"issue": "x", "riskScore": float("nan")}, "us").risk_score, 0.5)

    def test_snake_case_payload(self) -> None:
        v = normalize_violation({"issue": "x", "risk_score": 0.25, "why_matters": "w", "rule_ref": "r"}, "au")
        self.assertEqual((v.risk_score, v.why_matters, v.rule_ref), (0.25, "w", "r"))


class TestDedupeViolations(unittest.TestCase):
    def test_first_occurrence_wins_and_order_kept(self) -> None:
        a = _violation(issue="A", risk_score=0.9)
        b = _violation(issue="B")
        a_again = _violation(issue="A", risk_score=0.1)
        out = dedupe_violations([a, b, a_again])
        self.assertEqual([v.issue for v in out], ["A", "B"])
        self.assertEqual(out[0].risk_score, 0.9)

    def test_key_includes_policy_and_law(self) -> None:
        out = dedupe_violations([_violation(law="L1"), _violation(law="L2"), _violation(policy="P2")])
        self.assertEqual(len(out), 3)


class TestComplianceScore(unittest.TestCase):
    def test_no_violations_is_100(self) -> None:
        self.assertEqual(calculate_compliance_score([]), 100)

    def test_penalty_per_risk_unit(self) -> None:
        # 100 - 0.92*35 = 67.8
        self.assertEqual(calculate_compliance_score([_violation(risk_score=0.92)]), 68)
        # 100 - (0.92 + 0.6)*35 = 46.8
        self.assertEqual(
            calculate_compliance_score([_violation(risk_score=0.92), _violation(issue="B", risk_score=0.6)]),
            47,
        )

    def test_floor_at_zero(self) -> None:
        many = [_violation(issue=str(i), risk_score=1.0) for i in range(5)]
        self.assertEqual(calculate_compliance_score(many), 0)

    def test_finding_status(self) -> None:
        self.assertEqual(finding_status([], None), "clean")
        self.assertEqual(finding_status([_violation()], None), "flagged")
        self.assertEqual(finding_status([], "boom"), "error")
        self.assertEqual(finding_status([_violation()], "boom"), "error")


class TestStoredFindingMigration(unittest.TestCase):
    """Stored results of any known version come back as current findings."""

    def test_detect_version(self) -> None:
        self.assertEqual(detect_stored_version({"schema_version": 2}), 2)
        self.assertEqual(detect_stored_version({"product_id": "p", "issues": ["x"]}), 1)
        self.assertEqual(detect_stored_version({"product_id": "p", "violations": []}), 2)
        self.assertEqual(detect_stored_version({"product_id": "p"}), 2)

    def test_legacy_issues_become_medium_violations(self) -> None:
        finding = migrate_stored_finding(
            {"product_id": "gid://shopify/Product/1", "product_title": "Tea", "issues": ["Detox claim", " "]},
            "uk",
        )
        self.assertEqual(finding.schema_version, 2)
        self.assertEqual(finding.market, "uk")
        self.assertEqual(len(finding.violations), 1)
        self.assertEqual(finding.violations[0].issue, "Detox claim")
        self.assertEqual(finding.violations[0].severity, "Medium")
        self.assertEqual(finding.compliance_score, 79)  # 100 - 0.6*35
        self.assertEqual(finding.status, "flagged")

    def test_current_record_violations_renormalized_and_score_recomputed(self) -> None:
        record = {
            "schema_version": 2,
            "product_id": "gid://shopify/Product/2",
            "product_title": "Gummies",
            "market": "us",
            "compliance_score": 12,
            "status": "clean",
            "violations": [{"issue": "CBD", "severity": "HIGH", "riskScore": 2}],
            "unknown_field": "ignored",
        }
        finding = migrate_stored_finding(record, "default")
        self.assertEqual(finding.market, "us")
        self.assertEqual(finding.violations[0].severity, "High")
        self.assertEqual(finding.violations[0].risk_score, 1.0)
        self.assertEqual(finding.compliance_score, 65)
        self.assertEqual(finding.status, "flagged")

    def test_error_status_preserved(self) -> None:
        finding = migrate_stored_finding(
            {"schema_version": 2, "product_id": "p", "market": "us", "status": "error", "violations": []},
            "us",
        )
        self.assertEqual(finding.status, "error")
        self.assertEqual(finding.error_message, AI_FAILURE_MESSAGE)

    def test_migration_is_idempotent(self) -> None:
        first = migrate_stored_finding({"product_id": "p", "issues": ["A"], "market": "eu"}, "eu")
        second = migrate_stored_finding(first.model_dump(mode="json"), "eu")
        self.assertEqual(first, second)

    def test_unreadable_entries_skipped(self) -> None:
        findings = migrate_stored_results(
            [{"product_id": "ok", "violations": []}, {"violations": []}, "junk", {"schema_version": 9}],
            "us",
        )
        self.assertEqual([f.product_id for f in findings], ["ok"])

    def test_legacy_camel_case_record(self) -> None:
        record = {
            "productId": "gid://shopify/Product/2",
            "productTitle": "Detox tea",
            "issues": ["Detox claim"],
            "status": "error",
            "errorMessage": "Timed out",
        }
        self.assertEqual(detect_stored_version(record), 1)
        finding = migrate_stored_finding(record, "uk")
        self.assertEqual(finding.product_id, "gid://shopify/Product/2")
        self.assertEqual(finding.product_title, "Detox tea")
        self.assertEqual(finding.status, "error")
        self.assertEqual(finding.error_message, "Timed out")

    def test_current_camel_case_record(self) -> None:
        record = {
            "productId": "gid://shopify/Product/3",
            "legacyResourceId": "3",
            "productTitle": "CBD gummies",
            "productHandle": "cbd-gummies",
            "originalDescription": "Calming gummies",
            "shopDomain": "example.myshopify.com",
            "market": "us",
            "complianceScore": 0,
            "status": "flagged",
            "violations": [{"issue": "CBD", "severity": "high", "whyMatters": "Restricted"}],
            "aiRewrite": {"title": "Hemp gummies"},
        }
        finding = migrate_stored_finding(record, "default")
        self.assertEqual(finding.product_id, "gid://shopify/Product/3")
        self.assertEqual(finding.legacy_resource_id, "3")
        self.assertEqual(finding.product_handle, "cbd-gummies")
        self.assertEqual(finding.original_description, "Calming gummies")
        self.assertEqual(finding.shop_domain, "example.myshopify.com")
        self.assertEqual(finding.ai_rewrite.title, "Hemp gummies")
        self.assertEqual(finding.violations[0].why_matters, "Restricted")
        self.assertEqual(finding.compliance_score, 68)  # 100 - 0.92*35

    def test_none_results(self) -> None:
        self.assertEqual(migrate_stored_results(None, "us"), [])


if __name__ == "__main__":
    unittest.main()
