from fastapi import Depends, Header, HTTPException
from functools import lru_cache
from typing import Optional
from supabase import ClientOptions, create_client
from postgrest.exceptions import APIError
import os
import time
import logging

logger = logging.getLogger(__name__)

PROFILE_MISSING = "Profile not found. Please complete your profile first."


async def user_supabase_client(authorization: Optional[str] = Header(None)):
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Unauthorized")

    token = authorization.split(" ")[1]

    supabase_url = os.getenv("SUPABASE_URL")
    supabase_key = os.getenv("SUPABASE_KEY")

    if not supabase_url or not supabase_key:
        logger.error("Supabase URL or Key not found in environment variables")
        raise HTTPException(status_code=500, detail="Server configuration error")

    try:
        start_time = time.time()
        supabase = create_client(supabase_url, supabase_key)

        logger.info("Validating token with Supabase")
        user_res = supabase.auth.get_user(token)
        end_time = time.time()
        logger.info(f"Token validation completed in {end_time - start_time:.2f} seconds")
    except Exception as e:
        logger.error(f"Supabase token validation error: {str(e)}")
        if "timed out" in str(e).lower():
            raise HTTPException(
                status_code=504,
                detail="Connection to authentication service timed out. Please try again later."
            )
        raise HTTPException(status_code=401, detail={"error": "Unauthorized", "details": str(e)})

    if not user_res or not user_res.user:
        logger.warning("User not found after successful token validation")
        raise HTTPException(status_code=401, detail="Unauthorized")

    # Writes through this client run under the caller's row-level security
    supabase.postgrest.auth(token)

    logger.info(f"Successfully authenticated user: {user_res.user.id}")
    return {
        "supabase": supabase,
        "user_id": user_res.user.id,
        "user": user_res.user,
        "token": token,
    }


@lru_cache
def _service_client(supabase_url: str, service_key: str):
    return create_client(
        supabase_url,
        service_key,
        options=ClientOptions(auto_refresh_token=False, persist_session=False),
    )


def service_supabase_client():
    """Service-role client. Bypasses RLS, so callers must check ownership first."""
    supabase_url = os.getenv("SUPABASE_URL")
    service_key = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

    if not supabase_url or not service_key:
        logger.error("Missing Supabase admin credentials")
        raise HTTPException(status_code=500, detail="Server configuration error")

    return _service_client(supabase_url, service_key)


def caller_profile(
    context=Depends(user_supabase_client),
    admin=Depends(service_supabase_client),
):
    """Resolve the profile row owned by the authenticated user."""
    try:
        response = admin \
            .table("profiles") \
            .select("id, user_id, username") \
            .eq("user_id", context["user_id"]) \
            .limit(1) \
            .execute()
    except APIError as e:
        logger.error(f"Profile lookup failed: {e.message}")
        raise HTTPException(status_code=404, detail=PROFILE_MISSING)

    if not response.data:
        raise HTTPException(status_code=404, detail=PROFILE_MISSING)

    profile = response.data[0]
    if profile["user_id"] != context["user_id"]:
        raise HTTPException(status_code=403, detail="Forbidden")
    return profile
