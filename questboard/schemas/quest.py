from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Optional
from questboard.utils.parsing import parse_number

QUEST_STATUSES = ["active", "completed", "paused", "archived"]


# --- Quests ---
class QuestFields(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None


# --- KPIs ---
class KpiInput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    value: Any = None
    target: Any = None
    unit: Optional[str] = None

    def value_number(self) -> float:
        number = parse_number(self.value)
        return 0.0 if number is None else number

    def target_number(self) -> Optional[float]:
        return parse_number(self.target)


class CreateQuest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    quest: Optional[QuestFields] = None
    kpis: Optional[List[KpiInput]] = None


class AddKpis(BaseModel):
    model_config = ConfigDict(extra="ignore")

    kpis: Optional[List[KpiInput]] = None


class UpdateKpiValue(BaseModel):
    model_config = ConfigDict(extra="ignore")

    value: Any = None
    operation: Optional[str] = Field(None, description="One of 'set', 'increment', 'decrement'")
