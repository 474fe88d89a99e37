import math
import logging
from typing import Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

COMPLETED = "completed"


def calculate_quest_progress(kpis: Optional[Iterable[Dict]]) -> int:
    """
    Average completion percentage of the KPIs that have a positive target.

    Each KPI contributes value / target * 100, capped at 100. KPIs without a
    target are ignored. Returns an integer in [0, 100]; 0 when nothing counts.
    """
    if not kpis:
        return 0

    percentages = []
    for kpi in kpis:
        target = kpi.get("target")
        if target is None or float(target) <= 0:
            continue
        value = kpi.get("value")
        value = float(value) if value is not None else 0.0
        percentages.append(min(value / float(target) * 100, 100.0))

    if not percentages:
        return 0

    average = sum(percentages) / len(percentages)
    average = max(0.0, min(100.0, average))
    # Half-up rounding, 49.5 -> 50
    return int(math.floor(average + 0.5))


def progress_update(progress: int) -> Dict:
    update = {"progress": progress}
    if progress >= 100:
        update["status"] = COMPLETED
    return update


def read_quest_progress(reader, quest_id: str) -> int:
    """Progress of a quest computed from every KPI it currently has."""
    kpis_res = reader \
        .table("kpis") \
        .select("value, target") \
        .eq("quest_id", quest_id) \
        .execute()
    return calculate_quest_progress(kpis_res.data or [])


def store_quest_progress(writer, quest_id: str, progress: int) -> None:
    writer.table("quests").update(progress_update(progress)).eq("id", quest_id).execute()
    logger.info(f"Quest {quest_id} progress set to {progress}")


def recompute_quest_progress(reader, writer, quest_id: str) -> int:
    """
    Reload every KPI of a quest, store the new progress and return it.

    `reader` is used for the KPI read and `writer` for the quest update so the
    write goes through the caller's row-level security. Raises APIError if
    either query fails.
    """
    progress = read_quest_progress(reader, quest_id)
    store_quest_progress(writer, quest_id, progress)
    return progress


def kpi_rows(quest_id: str, kpis: List) -> List[Dict]:
    """Rows for the kpis table from request KPIs, dropping the unnamed ones."""
    rows = []
    for kpi in kpis:
        if not kpi.name or not kpi.name.strip():
            continue
        rows.append({
            "quest_id": quest_id,
            "name": kpi.name.strip(),
            "value": kpi.value_number(),
            "target": kpi.target_number(),
            "unit": kpi.unit.strip() if kpi.unit and kpi.unit.strip() else None,
        })
    return rows


def ensure_numbers(kpis: List) -> None:
    """Raise ValueError naming the first KPI value or target that is not numeric."""
    for kpi in kpis:
        try:
            kpi.value_number()
        except ValueError:
            raise ValueError(f"Invalid KPI value: {kpi.value} must be a number")
        try:
            kpi.target_number()
        except ValueError:
            raise ValueError(f"Invalid KPI target: {kpi.target} must be a number")
