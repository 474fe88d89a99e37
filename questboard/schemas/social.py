from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


# --- Follows ---
class ToggleFollow(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    profile_id: Optional[str] = Field(None, alias="profileId")


# --- Likes ---
class ToggleLike(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    type: Optional[str] = Field(None, description="Either 'post' or 'profile'")
    target_id: Optional[str] = Field(None, alias="targetId")
