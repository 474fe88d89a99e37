from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Optional


# --- KPI increments carried by a post ---
class KpiIncrement(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    kpi_id: Optional[str] = Field(None, alias="kpiId")
    quest_id: Optional[str] = Field(None, alias="questId")
    value_to_add: Any = Field(None, alias="valueToAdd")


# --- Posts ---
class CreatePost(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title: Optional[str] = None
    content: Optional[str] = None
    published: Any = None
    quest_id: Optional[str] = Field(None, alias="questId")
    kpi_updates: Optional[List[KpiIncrement]] = Field(None, alias="kpiUpdates")


class UpdatePost(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    content: Optional[str] = None
    published: Any = None
