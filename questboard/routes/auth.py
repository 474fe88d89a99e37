from fastapi import APIRouter, Depends, HTTPException
from postgrest.exceptions import APIError
from questboard.dependencies.auth import service_supabase_client, user_supabase_client
from questboard.schemas.profile import CreateProfile
from questboard.services.ownership import db_error
from questboard.utils.parsing import parse_number, trim_or_none
import re
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{3,30}$")


def _validated(value, allowed: range, message: str):
    if value is None:
        return None
    try:
        number = int(parse_number(value))
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail=message)
    if number not in allowed:
        raise HTTPException(status_code=400, detail=message)
    return number


@router.post("/create-profile", status_code=201)
def create_profile(
    profile: CreateProfile,
    context=Depends(user_supabase_client),
    admin=Depends(service_supabase_client),
):
    # Identity comes from the session, the body only carries profile fields
    user_id = context["user_id"]
    email = getattr(context["user"], "email", None) or ""

    if not profile.username:
        raise HTTPException(status_code=400, detail={"error": "Missing required fields", "details": "Missing: username"})

    username = profile.username.strip()
    if not USERNAME_PATTERN.match(username):
        raise HTTPException(
            status_code=400,
            detail="Username must be 3-30 characters and contain only letters, numbers, underscores, and hyphens",
        )
    username = username.lower()

    year = _validated(profile.year, range(1, 5), "Year must be between 1 and 4")
    section = _validated(profile.section, range(1, 3), "Section must be 1 or 2")

    try:
        existing = admin.table("profiles").select("id").eq("username", username).limit(1).execute()
    except APIError as e:
        raise db_error("Failed to check username availability", e)
    if existing.data:
        raise HTTPException(status_code=409, detail="Username already taken")

    try:
        existing = admin.table("profiles").select("id").eq("user_id", user_id).limit(1).execute()
    except APIError as e:
        raise db_error("Failed to check existing profile", e)
    if existing.data:
        raise HTTPException(status_code=409, detail="Profile already exists for this user")

    profile_data = {
        "user_id": user_id,
        "email": email.lower().strip(),
        "username": username,
        "display_name": trim_or_none(profile.display_name),
        "branch": profile.branch or None,
        "section": section,
        "year": year,
        "avatar_url": profile.avatar_url or None,
        "is_public": True,
        "bio": None,
    }

    try:
        response = admin.table("profiles").insert(profile_data).execute()
    except APIError as e:
        if e.code == "23505":
            if "user_id" in (e.message or ""):
                raise HTTPException(status_code=409, detail="Profile already exists for this user")
            raise HTTPException(status_code=409, detail="Username already taken")
        raise db_error("Failed to create profile", e)

    logger.info(f"Created profile {username} for user {user_id}")
    return {"profile": response.data[0]}
