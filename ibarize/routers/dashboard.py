from typing import Literal

from fastapi import APIRouter, Depends, Query, Response
from structlog import get_logger

from ibarize.dependencies.auth import require_broker
from ibarize.dependencies.services import get_api, get_dashboard
from ibarize.routers.common import action_response
from ibarize.schemas.dashboard import (
    ActionResult,
    BrokerSettings,
    BulkActionRequest,
    DashboardListResponse,
    Overview,
    Toast,
    User,
)
from ibarize.schemas.property import PropertyPayload
from ibarize.services.api import ApiError, ApiService
from ibarize.services.dashboard import DashboardService
from ibarize.services.filters import PropertyFilters, active_filter_count
from ibarize.services.reporting import export_properties

logger = get_logger()
router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"], dependencies=[Depends(require_broker)])

def _failed_result(description: str) -> ActionResult:
    return ActionResult(toast=Toast(title="Error", description=description, variant="destructive"))

async def _ensure_loaded(dashboard: DashboardService, refresh: bool = False):
    if refresh or not dashboard.loaded:
        action_response(await dashboard.load())

@router.get("/properties", response_model=DashboardListResponse)
async def list_properties(
    q: str = "",
    refresh: bool = False,
    filters: PropertyFilters = Depends(),
    dashboard: DashboardService = Depends(get_dashboard),
):
    await _ensure_loaded(dashboard, refresh)
    items = dashboard.filtered(q, filters)
    logger.info("Filtered dashboard properties", shown=len(items), total=len(dashboard.properties))
    return {
        "total": len(dashboard.properties),
        "shown": len(items),
        "active_filters": active_filter_count(q, filters),
        "items": items,
    }

@router.post("/properties", response_model=ActionResult, status_code=201)
async def add_property(payload: PropertyPayload, dashboard: DashboardService = Depends(get_dashboard)):
    return action_response(await dashboard.add(payload))

@router.put("/properties/{property_id}", response_model=ActionResult)
async def edit_property(property_id: str, payload: PropertyPayload, dashboard: DashboardService = Depends(get_dashboard)):
    return action_response(await dashboard.edit(property_id, payload))

@router.delete("/properties/{property_id}", response_model=ActionResult)
async def delete_property(property_id: str, dashboard: DashboardService = Depends(get_dashboard)):
    return action_response(await dashboard.delete(property_id))

@router.post("/properties/bulk", response_model=ActionResult)
async def bulk_action(request: BulkActionRequest, dashboard: DashboardService = Depends(get_dashboard)):
    ids = request.ids or None
    return action_response(await dashboard.bulk(request.action, ids))

@router.get("/selection")
async def get_selection(dashboard: DashboardService = Depends(get_dashboard)):
    return {"selected": dashboard.selected}

@router.post("/selection/{property_id}/toggle")
async def toggle_selection(property_id: str, dashboard: DashboardService = Depends(get_dashboard)):
    return {"selected": dashboard.toggle_select(property_id)}

@router.post("/selection/all")
async def select_all(
    q: str = "",
    filters: PropertyFilters = Depends(),
    dashboard: DashboardService = Depends(get_dashboard),
):
    return {"selected": dashboard.select_all(dashboard.filtered(q, filters))}

@router.get("/comparison")
async def get_comparison(dashboard: DashboardService = Depends(get_dashboard)):
    return {"items": dashboard.comparison}

@router.post("/comparison/{property_id}", response_model=ActionResult)
async def add_to_comparison(property_id: str, dashboard: DashboardService = Depends(get_dashboard)):
    return action_response(dashboard.add_to_comparison(property_id))

@router.delete("/comparison/{property_id}")
async def remove_from_comparison(property_id: str, dashboard: DashboardService = Depends(get_dashboard)):
    return {"items": dashboard.remove_from_comparison(property_id)}

@router.delete("/comparison")
async def clear_comparison(dashboard: DashboardService = Depends(get_dashboard)):
    dashboard.clear_comparison()
    return {"items": []}

@router.get("/overview", response_model=Overview)
async def overview(dashboard: DashboardService = Depends(get_dashboard)):
    await _ensure_loaded(dashboard)
    return dashboard.overview()

@router.get("/settings", response_model=BrokerSettings)
async def get_settings(dashboard: DashboardService = Depends(get_dashboard)):
    return dashboard.settings

@router.put("/settings", response_model=ActionResult)
async def save_settings(new_settings: BrokerSettings, dashboard: DashboardService = Depends(get_dashboard)):
    return action_response(await dashboard.save_settings(new_settings))

@router.get("/export")
async def export(
    fmt: Literal["json", "csv", "pdf"] = Query("json", alias="format"),
    q: str = "",
    filters: PropertyFilters = Depends(),
    dashboard: DashboardService = Depends(get_dashboard),
):
    await _ensure_loaded(dashboard)
    body, media_type, filename = export_properties(dashboard.filtered(q, filters), fmt)
    return Response(
        content=body,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

@router.get("/user", response_model=User)
async def get_user(api: ApiService = Depends(get_api)):
    try:
        return await api.get_user()
    except ApiError as e:
        logger.error("Error fetching broker profile", error=str(e))
        return action_response(_failed_result("Failed to load profile."))

@router.put("/user")
async def update_user(user: dict, api: ApiService = Depends(get_api)):
    try:
        return await api.update_user(user)
    except ApiError as e:
        logger.error("Error updating broker profile", error=str(e))
        return action_response(_failed_result("Failed to update profile."))