"""
Tests for account deletion.
"""

from conftest import ALICE_USER, BOB, BOB_USER, add_kpi, add_quest


class TestDeleteAccount:
    def test_deletes_only_the_session_user(self, client, db):
        quest = add_quest(db)
        add_kpi(db, quest["id"])
        add_quest(db, profile_id=BOB)

        response = client.request("DELETE", "/api/account/delete", json={"userId": BOB_USER})

        assert response.status_code == 200
        assert response.json() == {"message": "Account deleted successfully"}
        assert db.auth.admin.deleted_users == [ALICE_USER]
        assert [p["user_id"] for p in db.rows("profiles")] == [BOB_USER]
        assert [q["profile_id"] for q in db.rows("quests")] == [BOB]
        assert db.rows("kpis") == []

    def test_admin_failure_is_500(self, client, db):
        db.auth_failure = RuntimeError("User not found")
        response = client.delete("/api/account/delete")
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to delete account", "details": "User not found"}

    def test_requires_authentication(self, anonymous_client, db):
        response = anonymous_client.delete("/api/account/delete")
        assert response.status_code == 401
        assert db.auth.admin.deleted_users == []
