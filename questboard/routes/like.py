from fastapi import APIRouter, Depends, HTTPException
from postgrest.exceptions import APIError
from questboard.dependencies.auth import caller_profile, service_supabase_client
from questboard.schemas.social import ToggleLike
from questboard.services.ownership import db_error
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

# table, column holding the liked object, column holding the liker
LIKE_TABLES = {
    "post": ("post_likes", "post_id", "profile_id"),
    "profile": ("profile_likes", "profile_id", "liker_profile_id"),
}


def _lookup(admin, table: str, columns: str, target_id: str, not_found: str):
    try:
        found = admin.table(table).select(columns).eq("id", target_id).limit(1).execute()
    except APIError as e:
        logger.error(f"{table} lookup failed for {target_id}: {e.message}")
        raise HTTPException(status_code=404, detail=not_found)
    if not found.data:
        raise HTTPException(status_code=404, detail=not_found)
    return found.data[0]


def _check_target(admin, like_type: str, target_id: str, liker_id: str):
    if like_type == "profile":
        if target_id == liker_id:
            raise HTTPException(status_code=400, detail="Cannot like your own profile")
        _lookup(admin, "profiles", "id", target_id, "Profile not found")
        return

    post = _lookup(admin, "posts", "id, profile_id", target_id, "Post not found")
    if post["profile_id"] == liker_id:
        raise HTTPException(status_code=400, detail="Cannot like your own post")


def like_count(admin, table: str, target_column: str, target_id: str) -> int:
    try:
        count_res = admin.table(table).select("id", count="exact").eq(target_column, target_id).execute()
    except APIError as e:
        logger.warning(f"Like count failed for {target_id}: {e.message}")
        return 0
    return count_res.count or 0


@router.post("/toggle")
def toggle_like(
    payload: ToggleLike,
    profile=Depends(caller_profile),
    admin=Depends(service_supabase_client),
):
    if not payload.type or not payload.target_id:
        raise HTTPException(status_code=400, detail="type and targetId are required")
    if payload.type not in LIKE_TABLES:
        raise HTTPException(status_code=400, detail="type must be 'post' or 'profile'")

    like_type, target_id = payload.type, payload.target_id
    _check_target(admin, like_type, target_id, profile["id"])

    table, target_column, liker_column = LIKE_TABLES[like_type]
    try:
        existing = admin \
            .table(table) \
            .select("id") \
            .eq(target_column, target_id) \
            .eq(liker_column, profile["id"]) \
            .limit(1) \
            .execute()
    except APIError as e:
        raise db_error(f"Failed to check {like_type} like", e)

    if existing.data:
        try:
            admin.table(table).delete().eq("id", existing.data[0]["id"]).execute()
        except APIError as e:
            raise db_error(f"Failed to unlike {like_type}", e)
        is_liked, action = False, "unliked"
    else:
        try:
            admin.table(table).insert({target_column: target_id, liker_column: profile["id"]}).execute()
        except APIError as e:
            raise db_error(f"Failed to like {like_type}", e)
        is_liked, action = True, "liked"

    return {
        "isLiked": is_liked,
        "action": action,
        "likeCount": like_count(admin, table, target_column, target_id),
    }
