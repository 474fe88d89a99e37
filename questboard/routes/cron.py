from fastapi import APIRouter, Depends, Header, HTTPException
from postgrest.exceptions import APIError
from datetime import datetime, timezone
from typing import Optional
from questboard.dependencies.auth import service_supabase_client
from questboard.services.leaderboard_scores import compute_user_scores
from questboard.services.ownership import db_error
import os
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

FUNCTION_MISSING = "42883"
SCORE_COLUMNS = [
    "profile_id", "total_score", "normalized_score", "quest_score", "post_score",
    "engagement_score", "kpi_score", "rank", "branch", "year", "section",
]


def verify_cron_secret(authorization: Optional[str] = Header(None)):
    cron_secret = os.getenv("CRON_SECRET")
    if cron_secret and authorization != f"Bearer {cron_secret}":
        raise HTTPException(
            status_code=401,
            detail="Unauthorized. Provide Authorization: Bearer <CRON_SECRET> header.",
        )


@router.api_route("/update-scores", methods=["GET", "POST"], dependencies=[Depends(verify_cron_secret)])
def update_scores(admin=Depends(service_supabase_client)):
    """Refresh the user_scores table that backs the leaderboard."""
    logger.info("Starting user scores computation")

    try:
        entries = admin.rpc("compute_user_scores", {}).execute().data or []
    except APIError as e:
        if e.code != FUNCTION_MISSING:
            raise db_error("Failed to compute scores", e)
        logger.warning("compute_user_scores function not found, computing in process")
        try:
            entries = compute_user_scores(admin)
        except APIError as scoring_error:
            raise db_error("Failed to compute scores", scoring_error)
        if entries:
            now = datetime.now(timezone.utc).isoformat()
            rows = [{**{k: s[k] for k in SCORE_COLUMNS}, "computed_at": now} for s in entries]
            try:
                admin.table("user_scores").upsert(rows, on_conflict="profile_id").execute()
            except APIError as store_error:
                raise db_error("Failed to store scores", store_error)

    logger.info(f"Computed scores for {len(entries)} users")
    return {
        "success": True,
        "entries_updated": len(entries),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "message": f"Computed scores for {len(entries)} users",
    }
