from fastapi import APIRouter, Depends, HTTPException
from postgrest.exceptions import APIError
from questboard.dependencies.auth import caller_profile, service_supabase_client, user_supabase_client
from questboard.schemas.quest import UpdateKpiValue
from questboard.services.ownership import db_error, get_owned_quest
from questboard.services.quest_progress import read_quest_progress, store_quest_progress
from questboard.utils.parsing import parse_number
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def _step(value) -> float:
    # increment/decrement fall back to 1 on a missing, zero or garbled amount
    try:
        return parse_number(value) or 1.0
    except ValueError:
        return 1.0


def next_kpi_value(current: float, target, operation: str, value) -> float:
    """Apply a set/increment/decrement, floored at 0 and capped at a positive target."""
    if operation == "set":
        try:
            new_value = parse_number(value)
        except ValueError:
            new_value = None
        if new_value is None:
            raise ValueError("Invalid value. Must be a number.")
    elif operation == "increment":
        new_value = current + _step(value)
    elif operation == "decrement":
        new_value = current - _step(value)
    else:
        raise ValueError("Invalid operation. Must be 'set', 'increment', or 'decrement'.")

    new_value = max(0.0, new_value)
    if target is not None and float(target) > 0:
        new_value = min(new_value, float(target))
    return new_value


@router.put("/{kpi_id}/update")
def update_kpi_value(
    kpi_id: str,
    payload: UpdateKpiValue,
    context=Depends(user_supabase_client),
    profile=Depends(caller_profile),
    admin=Depends(service_supabase_client),
):
    supabase = context["supabase"]

    try:
        kpi_res = admin \
            .table("kpis") \
            .select("id, quest_id, value, name, target, unit") \
            .eq("id", kpi_id) \
            .limit(1) \
            .execute()
    except APIError as e:
        logger.error(f"KPI lookup failed for {kpi_id}: {e.message}")
        raise HTTPException(status_code=404, detail="KPI not found")
    if not kpi_res.data:
        raise HTTPException(status_code=404, detail="KPI not found")
    kpi = kpi_res.data[0]

    get_owned_quest(admin, kpi["quest_id"], profile["id"], status_code=403)

    current = float(kpi["value"] or 0)
    try:
        new_value = next_kpi_value(current, kpi.get("target"), payload.operation, payload.value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        supabase.table("kpis").update({"value": new_value}).eq("id", kpi_id).execute()
    except APIError as e:
        raise db_error("Failed to update KPI value", e)

    progress = None
    try:
        progress = read_quest_progress(admin, kpi["quest_id"])
        store_quest_progress(supabase, kpi["quest_id"], progress)
    except APIError as e:
        logger.warning(f"KPI {kpi_id} updated but progress update failed: {e.message}")
        degraded = {
            "kpiId": kpi_id,
            "value": new_value,
            "message": "KPI updated successfully, but progress update failed",
        }
        if progress is not None:
            degraded["progress"] = progress
        return degraded

    return {
        "kpiId": kpi_id,
        "value": new_value,
        "progress": progress,
        "kpi": {
            "id": kpi["id"],
            "name": kpi["name"],
            "value": new_value,
            "target": float(kpi["target"]) if kpi.get("target") else None,
            "unit": kpi.get("unit"),
        },
        "message": "KPI and quest progress updated successfully",
    }
