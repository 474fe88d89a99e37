from fastapi import APIRouter, Depends, HTTPException
from postgrest.exceptions import APIError
from questboard.dependencies.auth import caller_profile, service_supabase_client
from questboard.schemas.profile import UpdateProfile, SOCIAL_COLUMNS
from questboard.services.ownership import db_error
from questboard.utils.parsing import parse_int, trim_or_none
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

SOCIAL_WARNING = (
    "Social media links could not be saved because the database columns don't exist yet. "
    "Please run the migration '008_add_social_media_fields.sql' to enable this feature."
)


def build_profile_update(payload: UpdateProfile) -> dict:
    """Column updates for the fields present in the request, in their stored form."""
    provided = payload.model_fields_set
    update_data = {}

    for field in ("bio", "display_name", "avatar_url"):
        if field in provided:
            update_data[field] = getattr(payload, field)

    if "hide_profile" in provided:
        update_data["is_public"] = not payload.hide_profile

    if "branch" in provided:
        update_data["branch"] = payload.branch or None

    for field in ("section", "year"):
        if field in provided:
            try:
                update_data[field] = parse_int(getattr(payload, field))
            except (TypeError, ValueError):
                raise HTTPException(status_code=400, detail=f"Invalid {field}: must be a number")

    for field in SOCIAL_COLUMNS:
        if field in provided:
            update_data[field] = trim_or_none(getattr(payload, field))

    return update_data


def is_missing_column(error: APIError) -> bool:
    message = error.message or ""
    return error.code == "42703" or "column" in message or "does not exist" in message


@router.get("/me")
def get_my_profile(profile=Depends(caller_profile), admin=Depends(service_supabase_client)):
    try:
        response = admin.table("profiles").select("*").eq("id", profile["id"]).limit(1).execute()
    except APIError as e:
        raise db_error("Failed to fetch profile", e)
    if not response.data:
        raise HTTPException(status_code=404, detail="Profile not found")
    return {"profile": response.data[0]}


@router.put("/update")
def update_profile(
    payload: UpdateProfile,
    profile=Depends(caller_profile),
    admin=Depends(service_supabase_client),
):
    update_data = build_profile_update(payload)
    logger.info(f"Updating profile {profile['id']} with fields: {sorted(update_data)}")

    try:
        response = admin.table("profiles").update(update_data).eq("id", profile["id"]).execute()
        return {"profile": response.data[0] if response.data else None}
    except APIError as e:
        social_fields = [key for key in update_data if key in SOCIAL_COLUMNS]
        if not (is_missing_column(e) and social_fields):
            raise db_error("Failed to update profile", e)
        logger.warning(f"Profile social columns missing, retrying without them: {e.message}")

    basic_data = {key: value for key, value in update_data.items() if key not in SOCIAL_COLUMNS}
    try:
        response = admin.table("profiles").update(basic_data).eq("id", profile["id"]).execute()
    except APIError as e:
        raise db_error("Failed to update profile", e)

    return {
        "profile": response.data[0] if response.data else None,
        "warning": SOCIAL_WARNING,
    }
