from fastapi import APIRouter, Depends, HTTPException
from postgrest.exceptions import APIError
from typing import List
from questboard.dependencies.auth import caller_profile, service_supabase_client, user_supabase_client
from questboard.routes.kpis import next_kpi_value
from questboard.schemas.post import CreatePost, KpiIncrement, UpdatePost
from questboard.services.ownership import db_error, get_owned_post, get_owned_quest
from questboard.services.quest_progress import recompute_quest_progress
from questboard.utils.parsing import parse_number
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def apply_kpi_increments(admin, supabase, profile_id: str, increments: List[KpiIncrement]):
    """
    Add each increment to its KPI, capped at the KPI's target.

    Increments that are malformed, point at an unknown KPI or at someone else's
    quest are skipped. Returns the updated KPI ids and the quests they belong to.
    """
    updated_kpis, touched_quests = [], []
    for increment in increments:
        if not increment.kpi_id or not increment.quest_id:
            continue
        try:
            amount = parse_number(increment.value_to_add)
        except ValueError:
            continue
        if amount is None or amount <= 0:
            continue

        try:
            kpi_res = admin \
                .table("kpis") \
                .select("id, quest_id, value, target") \
                .eq("id", increment.kpi_id) \
                .eq("quest_id", increment.quest_id) \
                .limit(1) \
                .execute()
        except APIError as e:
            logger.warning(f"KPI {increment.kpi_id} lookup failed: {e.message}")
            continue
        if not kpi_res.data:
            logger.warning(f"KPI {increment.kpi_id} not found on quest {increment.quest_id}")
            continue
        kpi = kpi_res.data[0]

        try:
            get_owned_quest(admin, increment.quest_id, profile_id)
        except HTTPException:
            logger.warning(f"Quest {increment.quest_id} does not belong to profile {profile_id}")
            continue

        new_value = next_kpi_value(float(kpi["value"] or 0), kpi.get("target"), "increment", amount)
        try:
            supabase.table("kpis").update({"value": new_value}).eq("id", increment.kpi_id).execute()
        except APIError as e:
            logger.warning(f"Failed to update KPI {increment.kpi_id}: {e.message}")
            continue

        updated_kpis.append(increment.kpi_id)
        if increment.quest_id not in touched_quests:
            touched_quests.append(increment.quest_id)

    return updated_kpis, touched_quests


# -------- Create post (with optional KPI increments) --------
@router.post("", status_code=201)
def create_post(
    payload: CreatePost,
    context=Depends(user_supabase_client),
    profile=Depends(caller_profile),
    admin=Depends(service_supabase_client),
):
    supabase = context["supabase"]

    if not payload.title or not payload.title.strip() or not payload.content or not payload.content.strip():
        raise HTTPException(status_code=400, detail="Title and content are required")

    if payload.quest_id:
        get_owned_quest(admin, payload.quest_id, profile["id"])

    post_data = {
        "profile_id": profile["id"],
        "quest_id": payload.quest_id or None,
        "title": payload.title.strip(),
        "content": payload.content.strip(),
        "is_published": payload.published is True,
    }

    # Insert through the caller's client so the posts RLS policy applies
    try:
        created = supabase.table("posts").insert(post_data).execute()
    except APIError as e:
        raise db_error("Failed to create post", e)
    if not created.data:
        raise HTTPException(status_code=500, detail={"error": "Failed to create post", "details": "Unknown error"})

    updated_kpis, touched_quests = apply_kpi_increments(admin, supabase, profile["id"], payload.kpi_updates or [])

    for quest_id in touched_quests:
        try:
            recompute_quest_progress(admin, supabase, quest_id)
        except APIError as e:
            logger.warning(f"Failed to update progress for quest {quest_id}: {e.message}")

    logger.info(f"Created post {created.data[0]['id']}, updated {len(updated_kpis)} KPIs")
    return {
        "post": created.data[0],
        "updatedKpis": updated_kpis,
        "username": profile.get("username"),
    }


# -------- Edit post --------
@router.put("/{post_id}")
def update_post(
    post_id: str,
    payload: UpdatePost,
    context=Depends(user_supabase_client),
    profile=Depends(caller_profile),
    admin=Depends(service_supabase_client),
):
    supabase = context["supabase"]
    get_owned_post(admin, post_id, profile["id"])

    provided = payload.model_fields_set
    update_data = {}

    if "title" in provided:
        if not payload.title or not payload.title.strip():
            raise HTTPException(status_code=400, detail="Title cannot be empty")
        update_data["title"] = payload.title.strip()

    if "content" in provided:
        if not payload.content or not payload.content.strip():
            raise HTTPException(status_code=400, detail="Content cannot be empty")
        update_data["content"] = payload.content.strip()

    if "published" in provided:
        update_data["is_published"] = payload.published is True

    if not update_data:
        raise HTTPException(status_code=400, detail="No fields to update")

    try:
        response = supabase.table("posts").update(update_data).eq("id", post_id).execute()
    except APIError as e:
        raise db_error("Failed to update post", e)

    if not response.data:
        raise HTTPException(status_code=500, detail="Failed to update post")
    return {"post": response.data[0]}


# -------- Delete post --------
@router.delete("/{post_id}")
def delete_post(
    post_id: str,
    profile=Depends(caller_profile),
    admin=Depends(service_supabase_client),
):
    get_owned_post(admin, post_id, profile["id"])

    # Likes go with it through ON DELETE CASCADE
    try:
        admin.table("posts").delete().eq("id", post_id).execute()
    except APIError as e:
        raise db_error("Failed to delete post", e)

    return {"message": "Post deleted successfully"}
