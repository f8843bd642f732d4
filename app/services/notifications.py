"""Dashboard alerts derived from high-risk violations in recent scans."""

from app.schemas.compliance import ComplianceViolation
from app.schemas.scan import DashboardNotification, ScanRecord

NOTIFICATION_LIMIT = 20

# Violations at or above this risk alert even when not High severity.
ALERT_RISK_THRESHOLD = 0.75


def is_alerting(violation: ComplianceViolation) -> bool:
    return violation.severity == "High" or violation.risk_score >= ALERT_RISK_THRESHOLD


def build_notifications(scans: list[ScanRecord], limit: int = NOTIFICATION_LIMIT) -> list[DashboardNotification]:
    """
    One notification per alerting violation, newest scan first, at most limit.

    Ids are scan_id-product_id-rule_ref; when two violations share an id only
    the first is kept.
    """
    seen: set[str] = set()
    notifications: list[DashboardNotification] = []
    for scan in scans:
        created_at = scan.completed_at or scan.started_at
        for finding in scan.results:
            for violation in finding.violations:
                if not is_alerting(violation):
                    continue
                notification_id = f"{scan.id}-{finding.product_id}-{violation.rule_ref}"
                if notification_id in seen:
                    continue
                seen.add(notification_id)
                notifications.append(
                    DashboardNotification(
                        id=notification_id,
                        title=f"{violation.severity} risk on {finding.product_title}",
                        detail=violation.why_matters,
                        severity="critical" if violation.severity == "High" else "warning",
                        created_at=created_at,
                    )
                )
    # sorted() is stable with reverse=True, so equal timestamps keep input order.
    notifications = sorted(notifications, key=lambda n: n.created_at, reverse=True)
    return notifications[: max(0, limit)]
