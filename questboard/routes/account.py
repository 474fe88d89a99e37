from fastapi import APIRouter, Depends, HTTPException
from questboard.dependencies.auth import service_supabase_client, user_supabase_client
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


@router.delete("/delete")
def delete_account(context=Depends(user_supabase_client), admin=Depends(service_supabase_client)):
    """
    Delete the caller's auth identity.

    The id always comes from the validated session, never from the request,
    so a caller can only remove their own account. The profile and everything
    hanging off it go through ON DELETE CASCADE.
    """
    user_id = context["user_id"]

    try:
        admin.auth.admin.delete_user(user_id)
    except Exception as e:
        logger.error(f"Error deleting user {user_id}: {str(e)}")
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to delete account", "details": str(e)},
        )

    logger.info(f"Deleted account for user {user_id}")
    return {"message": "Account deleted successfully"}
