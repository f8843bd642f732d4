"""Dashboard hydration: recent scans, schedules, trend history, alerts and AI connectivity for a shop."""

from app.schemas.scan import DashboardResponse
from app.services.ai_analyzer import CompletionClient, check_connection
from app.services.notifications import build_notifications
from app.services.scan_store import HISTORY_LIMIT, RECENT_SCANS_LIMIT, ScanStore


async def hydrate_dashboard(
    store: ScanStore,
    shop_domain: str,
    completion_client: CompletionClient | None,
) -> DashboardResponse:
    scans = store.list_recent_scans(shop_domain, limit=RECENT_SCANS_LIMIT)
    return DashboardResponse(
        scans=scans,
        schedules=store.list_schedules(shop_domain),
        history=store.list_history(shop_domain, limit=HISTORY_LIMIT),
        notifications=build_notifications(scans),
        ai_connected=await check_connection(completion_client),
    )
