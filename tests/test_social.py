"""
Tests for follow and like toggles.
"""

import pytest

from conftest import ALICE, BOB
from fake_supabase import api_error


class TestFollowToggle:
    def test_follow_then_unfollow_restores_count(self, client, db):
        db.table("follows").insert({"follower_id": "profile-zed", "following_id": BOB}).execute()

        first = client.post("/api/follow/toggle", json={"profileId": BOB})
        assert first.status_code == 200
        assert first.json() == {"isFollowing": True, "action": "followed", "followerCount": 2}

        second = client.post("/api/follow/toggle", json={"profileId": BOB})
        assert second.json() == {"isFollowing": False, "action": "unfollowed", "followerCount": 1}

    def test_profile_id_required(self, client):
        response = client.post("/api/follow/toggle", json={})
        assert response.status_code == 400
        assert response.json() == {"error": "profileId is required"}

    def test_cannot_follow_self(self, client, db):
        response = client.post("/api/follow/toggle", json={"profileId": ALICE})
        assert response.status_code == 400
        assert db.rows("follows") == []

    def test_unknown_target(self, client):
        response = client.post("/api/follow/toggle", json={"profileId": "profile-ghost"})
        assert response.status_code == 404

    def test_follow_lookup_failure_is_reported(self, client, db):
        db.failures[("follows", "select")] = api_error("XX000", "connection reset")
        response = client.post("/api/follow/toggle", json={"profileId": BOB})
        assert response.status_code == 500
        assert response.json()["error"] == "Failed to check follow status"
        assert ("follows", "insert") not in db.calls


class TestLikeToggle:
    def test_like_and_unlike_profile(self, client, db):
        liked = client.post("/api/like/toggle", json={"type": "profile", "targetId": BOB})
        assert liked.json() == {"isLiked": True, "action": "liked", "likeCount": 1}
        assert db.rows("profile_likes", profile_id=BOB, liker_profile_id=ALICE)

        unliked = client.post("/api/like/toggle", json={"type": "profile", "targetId": BOB})
        assert unliked.json() == {"isLiked": False, "action": "unliked", "likeCount": 0}

    def test_like_post(self, client, db):
        post = db.table("posts").insert({"profile_id": BOB, "is_published": True}).execute().data[0]
        response = client.post("/api/like/toggle", json={"type": "post", "targetId": post["id"]})
        assert response.json()["likeCount"] == 1
        assert db.rows("post_likes", post_id=post["id"], profile_id=ALICE)

    def test_cannot_like_own_post(self, client, db):
        post = db.table("posts").insert({"profile_id": ALICE, "is_published": True}).execute().data[0]
        response = client.post("/api/like/toggle", json={"type": "post", "targetId": post["id"]})
        assert response.status_code == 400

    def test_cannot_like_own_profile(self, client):
        response = client.post("/api/like/toggle", json={"type": "profile", "targetId": ALICE})
        assert response.status_code == 400

    @pytest.mark.parametrize("payload", [{"type": "post"}, {"targetId": BOB}, {"type": "quest", "targetId": BOB}])
    def test_bad_requests(self, client, payload):
        assert client.post("/api/like/toggle", json=payload).status_code == 400

    def test_missing_post(self, client):
        response = client.post("/api/like/toggle", json={"type": "post", "targetId": "post-ghost"})
        assert response.status_code == 404

    def test_malformed_post_id_is_404(self, client, db):
        db.failures[("posts", "select")] = api_error("22P02", "invalid input syntax for type uuid")
        response = client.post("/api/like/toggle", json={"type": "post", "targetId": "not-a-uuid"})
        assert response.status_code == 404
        assert response.json() == {"error": "Post not found"}

    def test_like_lookup_failure_is_reported(self, client, db):
        db.failures[("profile_likes", "select")] = api_error("XX000", "connection reset")
        response = client.post("/api/like/toggle", json={"type": "profile", "targetId": BOB})
        assert response.status_code == 500
        assert response.json()["error"] == "Failed to check profile like"
        assert db.rows("profile_likes") == []
