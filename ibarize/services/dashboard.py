import asyncio
from datetime import datetime, timezone
from typing import Dict, List, Optional

import pandas as pd
from structlog import get_logger

from ibarize.schemas.dashboard import ActionResult, Analytics, BrokerSettings, Overview, Toast
from ibarize.schemas.property import PropertyPayload, validate_for_submit
from ibarize.services.api import ApiError, ApiService
from ibarize.services.filters import PropertyFilters, filter_properties

logger = get_logger()

MAX_COMPARISON = 3

BULK_STATUS = {
    "status_active": ("active", "Activated {n} properties successfully!"),
    "status_pending": ("pending", "Set {n} properties to pending successfully!"),
    "status_sold": ("sold", "Marked {n} properties as sold successfully!"),
}

def _ok(description: str, title: str = "Success") -> Toast:
    return Toast(title=title, description=description)

def _failed(description: str, title: str = "Error") -> Toast:
    return Toast(title=title, description=description, variant="destructive")

class DashboardService:
    """Broker dashboard: a transient copy of the backend list plus the actions that edit it.

    Every action talks to the backend first and only touches the local list once the call
    succeeded. Failures are logged and come back as destructive toasts; nothing is raised.
    """

    def __init__(self, api: ApiService):
        self.api = api
        self.properties: List[dict] = []
        self.analytics: Optional[dict] = None
        self.selected: List[str] = []
        self.comparison: List[dict] = []
        self.settings = BrokerSettings()
        self.loaded = False

    def _find(self, property_id: str) -> Optional[dict]:
        return next((p for p in self.properties if p.get("id") == property_id), None)

    async def load(self) -> ActionResult:
        try:
            properties, analytics = await asyncio.gather(self.api.get_properties(), self.api.get_analytics())
        except ApiError as e:
            logger.error("Dashboard load failed", error=str(e))
            return ActionResult(toast=_failed("Failed to load data from server."))
        self.properties = properties
        self.analytics = analytics
        self.loaded = True
        logger.info("Loaded dashboard data", total_properties=len(properties))
        return ActionResult(data=self.properties)

    def filtered(self, query: str = "", filters: PropertyFilters | None = None) -> List[dict]:
        return filter_properties(self.properties, query, filters)

    async def add(self, payload: PropertyPayload) -> ActionResult:
        problem = validate_for_submit(payload)
        if problem:
            return ActionResult(toast=_failed(problem, title="Validation Error"))
        data = payload.model_dump(mode="json")
        try:
            response = await self.api.create_property(data)
        except ApiError as e:
            logger.error("Add property failed", error=str(e))
            return ActionResult(toast=_failed("Failed to add property."))
        new_property = {**data, "id": str(response["id"]), "createdAt": datetime.now(timezone.utc).isoformat()}
        self.properties = [*self.properties, new_property]
        logger.info("Added property", property_id=new_property["id"])
        return ActionResult(toast=_ok("Property added successfully!"), data=new_property)

    async def edit(self, property_id: str, payload: PropertyPayload) -> ActionResult:
        existing = self._find(property_id)
        if existing is None:
            return ActionResult(toast=_failed("Property not found.", title="Not Found"))
        problem = validate_for_submit(payload)
        if problem:
            return ActionResult(toast=_failed(problem, title="Validation Error"))
        data = payload.model_dump(mode="json")
        try:
            await self.api.update_property(property_id, data)
        except ApiError as e:
            logger.error("Update property failed", property_id=property_id, error=str(e))
            return ActionResult(toast=_failed("Failed to update property."))
        updated = {**data, "id": property_id, "createdAt": existing.get("createdAt")}
        self.properties = [updated if p.get("id") == property_id else p for p in self.properties]
        logger.info("Updated property", property_id=property_id)
        return ActionResult(toast=_ok("Property updated successfully!"), data=updated)

    async def delete(self, property_id: str) -> ActionResult:
        try:
            await self.api.delete_property(property_id)
        except ApiError as e:
            logger.error("Delete property failed", property_id=property_id, error=str(e))
            return ActionResult(toast=_failed("Failed to delete property."))
        self.properties = [p for p in self.properties if p.get("id") != property_id]
        self.selected = [i for i in self.selected if i != property_id]
        self.comparison = [p for p in self.comparison if p.get("id") != property_id]
        logger.info("Deleted property", property_id=property_id)
        return ActionResult(toast=_ok("Property deleted successfully!"))

    # Selection
    def toggle_select(self, property_id: str) -> List[str]:
        if property_id in self.selected:
            self.selected = [i for i in self.selected if i != property_id]
        else:
            self.selected = [*self.selected, property_id]
        return self.selected

    def select_all(self, visible: List[dict]) -> List[str]:
        if len(self.selected) == len(visible):
            self.selected = []
        else:
            self.selected = [p["id"] for p in visible]
        return self.selected

    async def bulk(self, action: str, ids: Optional[List[str]] = None) -> ActionResult:
        targets = list(ids) if ids is not None else list(self.selected)
        if not targets:
            return ActionResult()
        n = len(targets)
        try:
            if action == "delete":
                await asyncio.gather(*(self.api.delete_property(i) for i in targets))
                self.properties = [p for p in self.properties if p.get("id") not in targets]
                toast = _ok(f"Deleted {n} properties successfully!")
            elif action in BULK_STATUS:
                status, message = BULK_STATUS[action]
                await asyncio.gather(*(self.api.update_property(i, {"status": status}) for i in targets))
                self.properties = [
                    {**p, "status": status} if p.get("id") in targets else p for p in self.properties
                ]
                toast = _ok(message.format(n=n))
            else:
                return ActionResult(toast=_failed(f"Unknown bulk action: {action}"))
        except ApiError as e:
            logger.error("Bulk action failed", action=action, count=n, error=str(e))
            return ActionResult(toast=_failed("Failed to perform bulk action."))
        self.selected = []
        logger.info("Bulk action applied", action=action, count=n)
        return ActionResult(toast=toast)

    # Comparison
    def add_to_comparison(self, property_id: str) -> ActionResult:
        prop = self._find(property_id)
        if prop is None:
            return ActionResult(toast=_failed("Property not found.", title="Not Found"))
        if len(self.comparison) >= MAX_COMPARISON:
            return ActionResult(toast=_failed(
                f"You can compare up to {MAX_COMPARISON} properties at once",
                title="Comparison Limit Reached",
            ))
        if any(p.get("id") == property_id for p in self.comparison):
            return ActionResult(data=self.comparison)
        self.comparison = [*self.comparison, prop]
        return ActionResult(
            toast=_ok(f"{prop.get('title')} added to comparison", title="Added to Comparison"),
            data=self.comparison,
        )

    def remove_from_comparison(self, property_id: str) -> List[dict]:
        self.comparison = [p for p in self.comparison if p.get("id") != property_id]
        return self.comparison

    def clear_comparison(self):
        self.comparison = []

    async def save_settings(self, new_settings: BrokerSettings) -> ActionResult:
        try:
            await self.api.update_settings(new_settings.model_dump(mode="json"))
        except ApiError as e:
            logger.error("Save settings failed", error=str(e))
            return ActionResult(toast=_failed("Failed to save settings."))
        self.settings = new_settings
        return ActionResult(toast=_ok("Settings saved successfully!"), data=self.settings)

    def overview(self) -> Overview:
        df = pd.DataFrame(self.properties, columns=["id", "status", "featured", "price", "type"])
        status_counts: Dict[str, int] = df["status"].value_counts().to_dict() if len(df) else {}
        by_type = {str(k): int(v) for k, v in df["type"].value_counts().items()} if len(df) else {}
        prices = pd.to_numeric(df["price"], errors="coerce")
        average = float(prices.mean()) if prices.notna().any() else 0.0
        return Overview(
            total=len(df),
            active=int(status_counts.get("active", 0)),
            pending=int(status_counts.get("pending", 0)),
            sold=int(status_counts.get("sold", 0)),
            featured=int(df["featured"].fillna(False).astype(bool).sum()) if len(df) else 0,
            average_price=round(average, 2),
            by_type=by_type,
            analytics=Analytics.model_validate(self.analytics) if isinstance(self.analytics, dict) else None,
        )
