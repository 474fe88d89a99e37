from fastapi import APIRouter, Depends, Query
from postgrest.exceptions import APIError
from typing import Optional
from questboard.dependencies.auth import service_supabase_client
from questboard.services.leaderboard_scores import compute_user_scores
from questboard.services.ownership import db_error
from questboard.utils.parsing import parse_year
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

LEADERBOARD_LIMIT = 100
TABLE_MISSING = "PGRST205"


def _with_profiles(admin, scores):
    ids = [s["profile_id"] for s in scores]
    if not ids:
        return scores
    profiles = admin \
        .table("profiles") \
        .select("id, username, display_name, avatar_url, bio, is_public") \
        .in_("id", ids) \
        .execute().data or []
    by_id = {p["id"]: p for p in profiles}
    return [{**s, "profiles": by_id.get(s["profile_id"])} for s in scores]


@router.get("")
def get_leaderboard(
    branch: Optional[str] = Query(None),
    year: Optional[str] = Query(None),
    admin=Depends(service_supabase_client),
):
    branch = branch.strip() if branch and branch.strip() else None
    year_num = parse_year(year)

    query = admin \
        .table("user_scores") \
        .select(
            "profile_id, total_score, normalized_score, quest_score, post_score, "
            "engagement_score, kpi_score, rank, branch, year, section, computed_at, "
            "profiles!user_scores_profile_id_fkey(username, display_name, avatar_url, bio, is_public)",
            count="exact",
        ) \
        .order("normalized_score", desc=True) \
        .limit(LEADERBOARD_LIMIT)
    if branch:
        query = query.eq("branch", branch)
    if year_num:
        query = query.eq("year", year_num)

    try:
        response = query.execute()
        return {"leaderboard": response.data or [], "total": response.count or 0}
    except APIError as e:
        if e.code != TABLE_MISSING:
            raise db_error("Failed to fetch leaderboard", e)
        logger.warning("user_scores table not found, computing scores in process")

    try:
        scores = compute_user_scores(admin)
    except APIError as e:
        raise db_error("Failed to compute leaderboard", e)
    if branch:
        scores = [s for s in scores if s["branch"] == branch]
    if year_num:
        scores = [s for s in scores if s["year"] == year_num]
    try:
        scores = _with_profiles(admin, scores[:LEADERBOARD_LIMIT])
    except APIError as e:
        raise db_error("Failed to fetch leaderboard profiles", e)
    return {"leaderboard": scores, "total": len(scores)}
