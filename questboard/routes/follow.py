from fastapi import APIRouter, Depends, HTTPException
from postgrest.exceptions import APIError
from questboard.dependencies.auth import caller_profile, service_supabase_client
from questboard.schemas.social import ToggleFollow
from questboard.services.ownership import db_error
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def follower_count(admin, profile_id: str) -> int:
    # the toggle already happened, so a failed count reads as 0
    try:
        response = admin \
            .table("follows") \
            .select("id", count="exact") \
            .eq("following_id", profile_id) \
            .execute()
    except APIError as e:
        logger.warning(f"Follower count failed for {profile_id}: {e.message}")
        return 0
    return response.count or 0


@router.post("/toggle")
def toggle_follow(
    payload: ToggleFollow,
    profile=Depends(caller_profile),
    admin=Depends(service_supabase_client),
):
    target_id = payload.profile_id
    if not target_id:
        raise HTTPException(status_code=400, detail="profileId is required")

    if profile["id"] == target_id:
        raise HTTPException(status_code=400, detail="Cannot follow yourself")

    try:
        target = admin.table("profiles").select("id, is_public").eq("id", target_id).limit(1).execute()
    except APIError as e:
        logger.error(f"Target profile lookup failed for {target_id}: {e.message}")
        raise HTTPException(status_code=404, detail="Target profile not found")
    if not target.data:
        raise HTTPException(status_code=404, detail="Target profile not found")

    try:
        existing = admin \
            .table("follows") \
            .select("id") \
            .eq("follower_id", profile["id"]) \
            .eq("following_id", target_id) \
            .limit(1) \
            .execute()
    except APIError as e:
        raise db_error("Failed to check follow status", e)

    if existing.data:
        try:
            admin.table("follows").delete().eq("id", existing.data[0]["id"]).execute()
        except APIError as e:
            raise db_error("Failed to unfollow", e)
        is_following, action = False, "unfollowed"
    else:
        try:
            admin.table("follows").insert({
                "follower_id": profile["id"],
                "following_id": target_id,
            }).execute()
        except APIError as e:
            raise db_error("Failed to follow", e)
        is_following, action = True, "followed"

    logger.info(f"Profile {profile['id']} {action} {target_id}")
    return {
        "isFollowing": is_following,
        "action": action,
        "followerCount": follower_count(admin, target_id),
    }
