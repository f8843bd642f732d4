"""
Register a shop's Admin API access token and print a session token for it. Run from project root:
  python -m app.scripts.register_shop SHOP_DOMAIN ACCESS_TOKEN [--country GB] [--currency GBP]
Example:
  python -m app.scripts.register_shop example.myshopify.com shpat_xxx
"""
import argparse
import sys

from app.core.database import SessionLocal
from app.core.security import create_access_token, normalize_shop_domain
from app.services.scan_store import ScanStore


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Register a Shopify shop (no OAuth install flow).")
    parser.add_argument("shop", help="Shop domain (<handle>.myshopify.com)")
    parser.add_argument("access_token", help="Offline Admin API access token")
    parser.add_argument("--plan", default=None)
    parser.add_argument("--country", default=None)
    parser.add_argument("--currency", default=None)
    args = parser.parse_args(argv)

    shop_domain = normalize_shop_domain(args.shop)
    if shop_domain is None:
        print("Shop must be a <handle>.myshopify.com domain.", file=sys.stderr)
        return 1
    access_token = args.access_token.strip()
    if not access_token:
        print("Access token must be non-empty.", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        ScanStore(db).upsert_shop(
            shop_domain,
            access_token,
            plan=args.plan,
            country=args.country,
            currency=args.currency,
        )
        print(f"Registered shop '{shop_domain}'.")
        print(f"Session token: {create_access_token(shop_domain)}")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
