"""
CLI entrypoint for a full catalog scan of one registered shop. Run from cron, e.g.:

  python -m app.run_scan example.myshopify.com uk

Or nightly: 0 3 * * * cd /path/to/policy-copilot && .venv/bin/python -m app.run_scan example.myshopify.com
"""

from dotenv import load_dotenv

load_dotenv()

import argparse
import asyncio
import logging
import sys

from app.core.config import get_settings
from app.core.database import session_scope
from app.core.security import normalize_shop_domain
from app.services.ai_analyzer import build_completion_client
from app.services.catalog import ShopifyAdminClient, ShopifyApiError
from app.services.scan_store import ScanStore
from app.services.scanner import ScanError, run_full_scan

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Scan every product of the shop for one market and log the aggregates."""
    parser = argparse.ArgumentParser(description="Run a compliance scan for a registered shop.")
    parser.add_argument("shop", help="Shop domain (<handle>.myshopify.com)")
    parser.add_argument("market", nargs="?", default="default", help="Market code (e.g. uk, us, eu)")
    args = parser.parse_args(argv)

    shop_domain = normalize_shop_domain(args.shop)
    if shop_domain is None:
        print("Shop must be a <handle>.myshopify.com domain.", file=sys.stderr)
        return 1

    settings = get_settings()
    with session_scope() as db:
        store = ScanStore(db)
        shop = store.get_shop(shop_domain)
        if shop is None:
            print(f"Shop '{shop_domain}' is not registered.", file=sys.stderr)
            return 1
        admin = ShopifyAdminClient(shop.domain, shop.access_token, settings)
        try:
            record = asyncio.run(
                run_full_scan(
                    admin,
                    store,
                    shop_domain,
                    args.market.strip().lower(),
                    build_completion_client(settings),
                    settings,
                )
            )
        except (ScanError, ShopifyApiError) as e:
            logger.error("Scan failed: %s", e.message)
            return 1
        except Exception as e:
            logger.exception("Scan job failed: %s", e)
            return 1

    logger.info(
        "Scan completed: scan_id=%s products=%s compliance_score=%s violations=%s",
        record.id,
        record.products_scanned,
        record.compliance_score,
        record.violations,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
