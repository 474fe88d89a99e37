from fastapi import HTTPException
from postgrest.exceptions import APIError
import logging

logger = logging.getLogger(__name__)


def get_owned_quest(admin, quest_id: str, profile_id: str, status_code: int = 404):
    """Fetch a quest only if it belongs to the given profile."""
    try:
        quest_res = admin \
            .table("quests") \
            .select("id, profile_id, status") \
            .eq("id", quest_id) \
            .eq("profile_id", profile_id) \
            .limit(1) \
            .execute()
    except APIError as e:
        logger.error(f"Quest ownership lookup failed for {quest_id}: {e.message}")
        raise HTTPException(status_code=status_code, detail="Quest not found or access denied")

    if not quest_res.data:
        raise HTTPException(status_code=status_code, detail="Quest not found or access denied")
    return quest_res.data[0]


def get_owned_post(admin, post_id: str, profile_id: str):
    """Fetch a post only if it belongs to the given profile."""
    try:
        post_res = admin \
            .table("posts") \
            .select("id, profile_id") \
            .eq("id", post_id) \
            .eq("profile_id", profile_id) \
            .limit(1) \
            .execute()
    except APIError as e:
        logger.error(f"Post ownership lookup failed for {post_id}: {e.message}")
        raise HTTPException(status_code=404, detail="Post not found or access denied")

    if not post_res.data:
        raise HTTPException(status_code=404, detail="Post not found or access denied")
    return post_res.data[0]


def db_error(message: str, error: APIError, status_code: int = 500) -> HTTPException:
    """500 with the PostgREST error passed through to the client."""
    logger.error(f"{message}: {error.message}")
    return HTTPException(
        status_code=status_code,
        detail={
            "error": message,
            "details": error.message,
            "code": error.code,
            "hint": error.hint,
        },
    )
