"""
Tests for the public profile search.
"""

from conftest import ALICE, BOB
from fake_supabase import api_error
from questboard.routes.explore import search_filter


class TestSearchFilter:
    def test_matches_all_searchable_columns(self):
        assert search_filter("ann") == "username.ilike.*ann*,display_name.ilike.*ann*,bio.ilike.*ann*"

    def test_escapes_wildcards_and_drops_separators(self):
        assert search_filter("50%_a,b").startswith(r"username.ilike.*50\%\_a b*,")


class TestExploreUsers:
    def test_lists_public_profiles(self, anonymous_client, db):
        db.tables["profiles"].append({"id": "profile-zed", "user_id": "user-zed", "username": "zed", "is_public": False})

        response = anonymous_client.get("/api/explore/users")

        assert response.status_code == 200
        body = response.json()
        assert {p["id"] for p in body["profiles"]} == {ALICE, BOB}
        assert body["pagination"] == {
            "page": 1, "limit": 12, "total": 2, "totalPages": 1, "hasNextPage": False, "hasPrevPage": False,
        }

    def test_filters(self, anonymous_client):
        response = anonymous_client.get("/api/explore/users", params={"branch": "IT", "year": "3", "section": "2"})
        body = response.json()
        assert [p["id"] for p in body["profiles"]] == [BOB]
        assert body["filters"] == {"branch": "IT", "year": 3, "section": 2, "searchQuery": None}

    def test_invalid_year_is_ignored(self, anonymous_client):
        response = anonymous_client.get("/api/explore/users", params={"year": "7"})
        assert response.json()["pagination"]["total"] == 2
        assert response.json()["filters"]["year"] is None

    def test_text_search_is_case_insensitive(self, anonymous_client):
        response = anonymous_client.get("/api/explore/users", params={"q": " ALI "})
        body = response.json()
        assert [p["id"] for p in body["profiles"]] == [ALICE]
        assert body["filters"]["searchQuery"] == "ALI"

    def test_pagination(self, anonymous_client):
        response = anonymous_client.get("/api/explore/users", params={"page": "2", "limit": "1"})
        body = response.json()
        assert len(body["profiles"]) == 1
        assert body["pagination"]["totalPages"] == 2
        assert body["pagination"]["hasPrevPage"] is True
        assert body["pagination"]["hasNextPage"] is False

    def test_limit_is_clamped(self, anonymous_client):
        response = anonymous_client.get("/api/explore/users", params={"limit": "500", "page": "-3"})
        assert response.json()["pagination"]["limit"] == 50
        assert response.json()["pagination"]["page"] == 1

    def test_missing_table_is_503(self, anonymous_client, db):
        db.missing_tables.add("profiles")
        response = anonymous_client.get("/api/explore/users")
        assert response.status_code == 503
        assert response.json()["error"] == "Database tables not found"

    def test_other_failures_are_500(self, anonymous_client, db):
        db.failures[("profiles", "select")] = api_error("XX000", "boom")
        response = anonymous_client.get("/api/explore/users")
        assert response.status_code == 500
        assert response.json()["details"] == "boom"
