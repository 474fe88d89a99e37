from fastapi import APIRouter, Depends, HTTPException, Query
from postgrest.exceptions import APIError
from typing import Optional
from questboard.dependencies.auth import service_supabase_client
from questboard.services.ownership import db_error
from questboard.utils.parsing import parse_year
import math
import re
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

PROFILES_PER_PAGE = 12
MAX_PER_PAGE = 50
TABLE_MISSING = "PGRST205"
SEARCH_COLUMNS = ["username", "display_name", "bio"]


def _int_param(value: Optional[str], default: int) -> int:
    try:
        return int(value.strip()) if value and value.strip() else default
    except ValueError:
        return default


def search_filter(text: str) -> str:
    """PostgREST or-filter matching `text` anywhere in the searchable columns."""
    # commas and parentheses would split the or() expression
    text = re.sub(r"[,()]", " ", text)
    text = re.sub(r"([*\\%_])", r"\\\1", text)
    return ",".join(f"{column}.ilike.*{text}*" for column in SEARCH_COLUMNS)


@router.get("/users")
def explore_users(
    branch: Optional[str] = Query(None),
    year: Optional[str] = Query(None),
    section: Optional[str] = Query(None),
    q: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    admin=Depends(service_supabase_client),
):
    branch = branch.strip() if branch and branch.strip() else None
    year_num = parse_year(year)
    section_num = int(section.strip()) if section and section.strip() in ("1", "2") else None
    search = q.strip() if q and q.strip() else None

    page_num = max(1, _int_param(page, 1))
    per_page = min(MAX_PER_PAGE, max(1, _int_param(limit, PROFILES_PER_PAGE)))
    offset = (page_num - 1) * per_page

    query = admin \
        .table("profiles") \
        .select(
            "id, username, display_name, bio, avatar_url, branch, year, section, is_public, created_at",
            count="exact",
        ) \
        .eq("is_public", True)
    if branch:
        query = query.eq("branch", branch)
    if year_num:
        query = query.eq("year", year_num)
    if section_num:
        query = query.eq("section", section_num)
    if search:
        query = query.or_(search_filter(search))

    try:
        response = query \
            .order("created_at", desc=True) \
            .range(offset, offset + per_page - 1) \
            .execute()
    except APIError as e:
        if e.code == TABLE_MISSING:
            logger.error(f"profiles table not found: {e.message}")
            raise HTTPException(
                status_code=503,
                detail={
                    "error": "Database tables not found",
                    "details": "The profiles table does not exist. Database migrations have not been run.",
                    "code": e.code,
                },
            )
        raise db_error("Failed to fetch profiles", e)

    total = response.count or 0
    total_pages = math.ceil(total / per_page) if total else 0
    return {
        "profiles": response.data or [],
        "pagination": {
            "page": page_num,
            "limit": per_page,
            "total": total,
            "totalPages": total_pages,
            "hasNextPage": page_num < total_pages,
            "hasPrevPage": page_num > 1,
        },
        "filters": {
            "branch": branch,
            "year": year_num,
            "section": section_num,
            "searchQuery": search,
        },
    }
