from fastapi import APIRouter, Depends, HTTPException
from postgrest.exceptions import APIError
from questboard.dependencies.auth import caller_profile, service_supabase_client, user_supabase_client
from questboard.schemas.quest import AddKpis, CreateQuest, QuestFields, QUEST_STATUSES
from questboard.services.ownership import db_error, get_owned_quest
from questboard.services.quest_progress import (
    calculate_quest_progress,
    ensure_numbers,
    kpi_rows,
    progress_update,
    read_quest_progress,
    recompute_quest_progress,
    store_quest_progress,
)
from questboard.utils.parsing import trim_or_none
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


# -------- Create quest (with optional KPIs) --------
@router.post("", status_code=201)
def create_quest(
    payload: CreateQuest,
    profile=Depends(caller_profile),
    admin=Depends(service_supabase_client),
):
    quest = payload.quest
    if not quest or not quest.title or not quest.title.strip():
        raise HTTPException(status_code=400, detail="Missing required field: title is required")

    kpis = payload.kpis or []
    for kpi in kpis:
        if kpi.name and not kpi.name.strip():
            raise HTTPException(status_code=400, detail="KPI names cannot be empty")
    try:
        ensure_numbers(kpis)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if quest.status is not None and quest.status not in QUEST_STATUSES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid status. Must be one of: {', '.join(QUEST_STATUSES)}"
        )

    quest_data = {
        "profile_id": profile["id"],
        "title": quest.title.strip(),
        "description": trim_or_none(quest.description),
        "status": quest.status or "active",
    }

    try:
        created = admin.table("quests").insert(quest_data).execute()
    except APIError as e:
        raise db_error("Failed to create quest", e)
    if not created.data:
        raise HTTPException(status_code=500, detail={"error": "Failed to create quest", "details": "Unknown error"})

    created_quest = created.data[0]
    created_kpis = []

    rows = kpi_rows(created_quest["id"], kpis)
    if rows:
        try:
            created_kpis = admin.table("kpis").insert(rows).execute().data or []
        except APIError as e:
            # No transactions over PostgREST, so undo the quest by hand
            try:
                admin.table("quests").delete().eq("id", created_quest["id"]).execute()
            except APIError as rollback_error:
                logger.warning(f"Failed to remove quest {created_quest['id']} after KPI insert error: {rollback_error.message}")
            raise db_error("Failed to create KPIs", e)

        if created_kpis:
            update = progress_update(calculate_quest_progress(created_kpis))
            try:
                admin.table("quests").update(update).eq("id", created_quest["id"]).execute()
                created_quest.update(update)
            except APIError as e:
                logger.warning(f"Failed to update initial quest progress: {e.message}")

    logger.info(f"Created quest {created_quest['id']} with {len(created_kpis)} KPIs")
    return {
        "quest": created_quest,
        "kpis": created_kpis,
        "username": profile.get("username"),
    }


# -------- Edit quest --------
@router.put("/{quest_id}")
def update_quest(
    quest_id: str,
    payload: QuestFields,
    context=Depends(user_supabase_client),
    profile=Depends(caller_profile),
    admin=Depends(service_supabase_client),
):
    supabase = context["supabase"]
    get_owned_quest(admin, quest_id, profile["id"])

    provided = payload.model_fields_set
    update_data = {}

    if "title" in provided:
        if not payload.title or not payload.title.strip():
            raise HTTPException(status_code=400, detail="Title cannot be empty")
        update_data["title"] = payload.title.strip()

    if "description" in provided:
        update_data["description"] = trim_or_none(payload.description)

    if "status" in provided:
        if payload.status not in QUEST_STATUSES:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid status. Must be one of: {', '.join(QUEST_STATUSES)}"
            )
        update_data["status"] = payload.status

    if not update_data:
        raise HTTPException(status_code=400, detail="No fields to update")

    try:
        response = supabase.table("quests").update(update_data).eq("id", quest_id).execute()
    except APIError as e:
        raise db_error("Failed to update quest", e)

    if not response.data:
        raise HTTPException(status_code=500, detail="Failed to update quest")
    return {"quest": response.data[0]}


# -------- Delete quest --------
@router.delete("/{quest_id}")
def delete_quest(
    quest_id: str,
    context=Depends(user_supabase_client),
    profile=Depends(caller_profile),
    admin=Depends(service_supabase_client),
):
    supabase = context["supabase"]
    get_owned_quest(admin, quest_id, profile["id"])

    # KPIs go with it through ON DELETE CASCADE
    try:
        supabase.table("quests").delete().eq("id", quest_id).execute()
    except APIError as e:
        raise db_error("Failed to delete quest", e)

    return {"message": "Quest deleted successfully"}


# -------- Add KPIs to a quest --------
@router.post("/{quest_id}/kpis", status_code=201)
def add_kpis(
    quest_id: str,
    payload: AddKpis,
    context=Depends(user_supabase_client),
    profile=Depends(caller_profile),
    admin=Depends(service_supabase_client),
):
    supabase = context["supabase"]
    get_owned_quest(admin, quest_id, profile["id"])

    if not payload.kpis:
        raise HTTPException(status_code=400, detail="At least one KPI is required")

    try:
        ensure_numbers(payload.kpis)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    rows = kpi_rows(quest_id, payload.kpis)
    if not rows:
        raise HTTPException(status_code=400, detail="At least one KPI with a name is required")

    try:
        inserted = supabase.table("kpis").insert(rows).execute().data or []
    except APIError as e:
        raise db_error("Failed to create KPIs", e)

    progress = None
    try:
        progress = read_quest_progress(admin, quest_id)
        store_quest_progress(supabase, quest_id, progress)
    except APIError as e:
        logger.warning(f"KPIs added to quest {quest_id} but progress update failed: {e.message}")
        degraded = {
            "kpis": inserted,
            "message": "KPIs created successfully, but progress update failed",
        }
        if progress is not None:
            degraded["progress"] = progress
        return degraded

    return {
        "kpis": inserted,
        "progress": progress,
        "message": "KPIs created successfully",
    }


# -------- Recalculate progress --------
@router.post("/{quest_id}/progress")
def refresh_progress(
    quest_id: str,
    context=Depends(user_supabase_client),
    profile=Depends(caller_profile),
    admin=Depends(service_supabase_client),
):
    supabase = context["supabase"]
    get_owned_quest(admin, quest_id, profile["id"])

    try:
        progress = recompute_quest_progress(admin, supabase, quest_id)
    except APIError as e:
        raise db_error("Failed to update quest progress", e)

    return {
        "questId": quest_id,
        "progress": progress,
        "message": "Quest progress updated successfully",
    }
