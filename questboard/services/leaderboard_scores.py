from collections import Counter, defaultdict
from typing import Dict, List
import logging

logger = logging.getLogger(__name__)

QUEST_POINTS = {"completed": 50, "active": 10, "paused": 5}
PUBLISHED_POST_POINTS = 5
POST_LIKE_POINTS = 2
PROFILE_LIKE_POINTS = 3
FOLLOWER_POINTS = 5


def kpi_points(value, target) -> int:
    value = float(value or 0)
    target = float(target) if target else None
    if target and target > 0:
        if value >= target:
            return 10
        if value > 0 and value / target >= 0.8:
            return 5
    return 1 if value > 0 else 0


def compute_user_scores(supabase) -> List[Dict]:
    """
    Score every public profile from its quests, posts, KPIs and social activity.

    Used when the database has no compute_user_scores function or no
    user_scores table. Returns rows shaped like user_scores, best first.
    """
    profiles = supabase \
        .table("profiles") \
        .select("id, branch, year, section, is_public") \
        .eq("is_public", True) \
        .execute().data or []
    if not profiles:
        return []

    profile_ids = [p["id"] for p in profiles]

    quests = supabase.table("quests").select("id, profile_id, status").in_("profile_id", profile_ids).execute().data or []
    posts = supabase.table("posts").select("id, profile_id, is_published").in_("profile_id", profile_ids).execute().data or []

    quest_ids = [q["id"] for q in quests]
    kpis = supabase.table("kpis").select("id, quest_id, value, target").in_("quest_id", quest_ids).execute().data if quest_ids else []

    published = [p for p in posts if p.get("is_published")]
    post_owner = {p["id"]: p["profile_id"] for p in published}
    post_likes = supabase.table("post_likes").select("post_id").in_("post_id", list(post_owner)).execute().data if post_owner else []
    post_like_counts = Counter(post_owner[like["post_id"]] for like in post_likes or [] if like["post_id"] in post_owner)

    profile_likes = supabase.table("profile_likes").select("profile_id").in_("profile_id", profile_ids).execute().data or []
    profile_like_counts = Counter(like["profile_id"] for like in profile_likes)

    follows = supabase.table("follows").select("following_id").in_("following_id", profile_ids).execute().data or []
    follower_counts = Counter(follow["following_id"] for follow in follows)

    quests_by_profile = defaultdict(list)
    for quest in quests:
        quests_by_profile[quest["profile_id"]].append(quest)

    published_counts = Counter(p["profile_id"] for p in published)

    kpis_by_quest = defaultdict(list)
    for kpi in kpis or []:
        kpis_by_quest[kpi["quest_id"]].append(kpi)

    scores = []
    for profile in profiles:
        pid = profile["id"]
        profile_quests = quests_by_profile[pid]
        quest_kpis = [kpi for quest in profile_quests for kpi in kpis_by_quest[quest["id"]]]

        quest_score = sum(QUEST_POINTS.get(q["status"], 0) for q in profile_quests)
        post_score = published_counts[pid] * PUBLISHED_POST_POINTS + post_like_counts[pid] * POST_LIKE_POINTS
        kpi_score = sum(kpi_points(kpi.get("value"), kpi.get("target")) for kpi in quest_kpis)
        engagement_score = profile_like_counts[pid] * PROFILE_LIKE_POINTS + follower_counts[pid] * FOLLOWER_POINTS

        scores.append({
            "profile_id": pid,
            "total_score": quest_score + post_score + kpi_score + engagement_score,
            "normalized_score": 0.0,
            "quest_score": quest_score,
            "post_score": post_score,
            "engagement_score": engagement_score,
            "kpi_score": kpi_score,
            "rank": 0,
            "branch": profile.get("branch"),
            "year": profile.get("year"),
            "section": str(profile["section"]) if profile.get("section") else None,
            "quest_count": len(profile_quests),
            "post_count": published_counts[pid],
            "kpi_count": len(quest_kpis),
            "follower_count": follower_counts[pid],
            "profile_like_count": profile_like_counts[pid],
        })

    totals = [s["total_score"] for s in scores]
    low, spread = min(totals), max(totals) - min(totals)
    for score in scores:
        score["normalized_score"] = (score["total_score"] - low) / spread * 100 if spread > 0 else 0.0

    scores.sort(key=lambda s: s["total_score"], reverse=True)
    for rank, score in enumerate(scores, start=1):
        score["rank"] = rank

    logger.info(f"Computed leaderboard scores for {len(scores)} profiles")
    return scores
