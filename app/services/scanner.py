"""Scan orchestration: full catalog scans and single-product rescans.

Each product goes through the keyword heuristics, then the AI analyzer (with
the heuristic hits as hints). Violations from both are merged, scored and
persisted through the scan store.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Protocol

from app.schemas.catalog import Product
from app.schemas.compliance import ComplianceFinding, PolicyRule
from app.schemas.scan import ScanRecord, ScanStatus
from app.services import ai_analyzer
from app.services.ai_analyzer import CompletionClient
from app.services.catalog import AdminGraphQLClient, fetch_all_products, fetch_product_by_id
from app.services.heuristics import (
    build_heuristic_violations,
    build_product_text,
    detect_policy_matches,
    strip_html,
)
from app.services.normalize import calculate_compliance_score, dedupe_violations, finding_status
from app.services.policy_rules import get_policy_rules

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


class ScanError(Exception):
    """Base for scan failures surfaced to the caller."""

    default_message = "Scan failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NoProductsError(ScanError):
    default_message = "No products found to scan."


class ScanNotFoundError(ScanError):
    """Scan does not exist or belongs to another shop."""

    default_message = "Scan not found"


class ProductNotFoundError(ScanError):
    default_message = "Product not found"


class ScanConflictError(ScanError):
    """Scan exists but cannot take a rescan in its current state."""

    default_message = "Scan cannot be rescanned"


class ScanStoreProtocol(Protocol):
    def create_scan(self, shop_domain: str, market: str) -> ScanRecord: ...

    def get_scan(self, scan_id: str) -> ScanRecord | None: ...

    def save_scan_results(
        self,
        scan_id: str,
        results: list[ComplianceFinding],
        compliance_score: int,
        violations: int,
        status: ScanStatus = "complete",
    ) -> ScanRecord: ...

    def mark_scan_failed(self, scan_id: str) -> None: ...

    def replace_scan_results(
        self,
        scan_id: str,
        findings: list[ComplianceFinding],
        product_id: str | None = None,
    ) -> int: ...

    def record_history(
        self,
        scan_id: str,
        shop_domain: str,
        market: str,
        findings: list[ComplianceFinding],
    ) -> None: ...


async def analyze_product(
    product: Product,
    rules: list[PolicyRule],
    market: str,
    shop_domain: str,
    completion_client: CompletionClient | None,
    *,
    max_attempts: int = 3,
    backoff_base_seconds: float = 0.5,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> ComplianceFinding:
    """
    Heuristics then AI for one product; returns its finding.

    Heuristic violations come first and win on duplicates. When the AI stage
    gives up, the finding keeps the heuristic violations with status "error".
    """
    matches = detect_policy_matches(build_product_text(product), rules)
    heuristic_violations = build_heuristic_violations(matches, market, product.title)
    hints = [f"{v.policy}: {v.issue}" for v in heuristic_violations]

    plain_description = strip_html(product.description_html)
    analysis = await ai_analyzer.analyze_product(
        completion_client,
        market,
        product.title,
        plain_description,
        product.online_store_url,
        hints,
        max_attempts=max_attempts,
        backoff_base_seconds=backoff_base_seconds,
        sleep=sleep,
    )

    violations = dedupe_violations(heuristic_violations + analysis.violations)
    return ComplianceFinding(
        product_id=product.id,
        legacy_resource_id=product.legacy_resource_id,
        product_title=product.title,
        product_handle=product.handle,
        thumbnail_url=product.featured_image_url,
        original_description=plain_description,
        original_html=product.description_html,
        market=market,
        shop_domain=shop_domain,
        violations=violations,
        compliance_score=calculate_compliance_score(violations),
        status=finding_status(violations, analysis.error_message),
        error_message=analysis.error_message,
        ai_rewrite=analysis.rewrite,
    )


def build_aggregate_metrics(findings: list[ComplianceFinding]) -> tuple[int, int]:
    """(rounded mean compliance score, total violation count); (0, 0) for no findings."""
    if not findings:
        return 0, 0
    mean_score = sum(f.compliance_score for f in findings) / len(findings)
    total_violations = sum(len(f.violations) for f in findings)
    return round(mean_score), total_violations


def upsert_finding(results: list[ComplianceFinding], finding: ComplianceFinding) -> list[ComplianceFinding]:
    """New list with finding replacing the entry for its product, or appended if absent."""
    updated = list(results)
    for index, existing in enumerate(updated):
        if existing.product_id == finding.product_id:
            updated[index] = finding
            return updated
    updated.append(finding)
    return updated


def _analyzer_options(settings: "Settings") -> dict[str, Any]:
    return {
        "max_attempts": settings.AI_MAX_ATTEMPTS,
        "backoff_base_seconds": settings.ai_backoff_base_seconds,
    }


async def run_full_scan(
    admin: AdminGraphQLClient,
    store: ScanStoreProtocol,
    shop_domain: str,
    market: str,
    completion_client: CompletionClient | None,
    settings: "Settings",
) -> ScanRecord:
    """
    Scan every product of the shop for one market.

    Raises NoProductsError (nothing persisted) when the catalog is empty.
    Products are analyzed one at a time. An unexpected failure during analysis
    marks the scan failed and propagates.
    """
    products = await fetch_all_products(admin, page_size=settings.SCAN_PAGE_SIZE)
    if not products:
        raise NoProductsError()

    rules = get_policy_rules(market)
    scan = store.create_scan(shop_domain, market)
    logger.info(
        "Scan started",
        extra={"scan_id": scan.id, "shop_domain": shop_domain, "market": market, "product_count": len(products)},
    )

    options = _analyzer_options(settings)
    findings: list[ComplianceFinding] = []
    try:
        for product in products:
            findings.append(
                await analyze_product(product, rules, market, shop_domain, completion_client, **options)
            )
    except Exception:
        logger.exception("Scan failed", extra={"scan_id": scan.id, "shop_domain": shop_domain})
        store.mark_scan_failed(scan.id)
        raise

    compliance_score, total_violations = build_aggregate_metrics(findings)
    record = store.save_scan_results(scan.id, findings, compliance_score, total_violations)
    store.replace_scan_results(scan.id, findings)
    store.record_history(scan.id, shop_domain, market, findings)

    logger.info(
        "Scan completed",
        extra={
            "scan_id": scan.id,
            "shop_domain": shop_domain,
            "product_count": len(findings),
            "compliance_score": compliance_score,
            "violations": total_violations,
            "ai_errors": sum(1 for f in findings if f.status == "error"),
        },
    )
    return record


async def rescan_single_product(
    admin: AdminGraphQLClient,
    store: ScanStoreProtocol,
    scan_id: str,
    product_id: str,
    shop_domain: str,
    completion_client: CompletionClient | None,
    settings: "Settings",
) -> ScanRecord:
    """
    Re-analyze one product inside an existing scan and refresh the scan's aggregates.

    A scan owned by another shop is reported as not found. The scan's own
    market is used. Only complete scans can be rescanned, and only when every
    stored finding could be read back, so the write never drops other products.
    Concurrent rescans of the same scan are last-writer-wins.
    """
    scan = store.get_scan(scan_id)
    if scan is None or scan.shop_domain != shop_domain:
        raise ScanNotFoundError()
    if scan.status != "complete":
        raise ScanConflictError(f"Scan is {scan.status}; only complete scans can be rescanned")
    if scan.unreadable_results:
        logger.error(
            "Rescan refused: stored findings unreadable",
            extra={"scan_id": scan.id, "shop_domain": shop_domain, "unreadable": scan.unreadable_results},
        )
        raise ScanConflictError(
            f"Scan has {scan.unreadable_results} unreadable stored finding(s); run a full scan instead"
        )

    product = await fetch_product_by_id(admin, product_id)
    if product is None:
        raise ProductNotFoundError()

    finding = await analyze_product(
        product,
        get_policy_rules(scan.market),
        scan.market,
        shop_domain,
        completion_client,
        **_analyzer_options(settings),
    )
    results = upsert_finding(scan.results, finding)
    compliance_score, total_violations = build_aggregate_metrics(results)
    record = store.save_scan_results(scan.id, results, compliance_score, total_violations)
    store.replace_scan_results(scan.id, [finding], product_id=finding.product_id)
    store.record_history(scan.id, shop_domain, scan.market, [finding])

    logger.info(
        "Product rescanned",
        extra={
            "scan_id": scan.id,
            "shop_domain": shop_domain,
            "product_id": finding.product_id,
            "status": finding.status,
            "compliance_score": finding.compliance_score,
        },
    )
    return record
