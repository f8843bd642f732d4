"""
Policy Copilot API entrypoint: Shopify catalog compliance scans against Google
Ads policies and market advertising law. Only wiring and middleware live here.
"""

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1 import router as v1_router
from app.core.config import settings
from app.services.policy_rules import list_markets

app = FastAPI(
    title="Policy Copilot API",
    description="Scan a Shopify catalog for ad policy and consumer-law risks, rescan products and export reports.",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(v1_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
def root() -> dict[str, object]:
    """Discovery payload: where to start a scan and which markets have rule sets."""
    return {
        "message": "Policy Copilot API",
        "scans": f"{settings.API_V1_PREFIX}/scans",
        "markets": list_markets(),
        "docs": "/docs",
    }
