from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional

SOCIAL_COLUMNS = ["instagram_url", "linkedin_url", "github_url"]


# --- Profiles (auth.users.id -> profiles.user_id) ---
class UpdateProfile(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    bio: Optional[str] = None
    display_name: Optional[str] = Field(None, alias="displayName")
    avatar_url: Optional[str] = Field(None, alias="avatarUrl")
    hide_profile: Optional[bool] = Field(None, alias="hideProfile")
    branch: Optional[str] = None
    section: Any = None
    year: Any = None
    instagram_url: Optional[str] = Field(None, alias="instagramUrl")
    linkedin_url: Optional[str] = Field(None, alias="linkedinUrl")
    github_url: Optional[str] = Field(None, alias="githubUrl")


class CreateProfile(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    username: Optional[str] = None
    display_name: Optional[str] = Field(None, alias="displayName")
    branch: Optional[str] = None
    section: Any = None
    year: Any = None
    avatar_url: Optional[str] = Field(None, alias="avatarUrl")
