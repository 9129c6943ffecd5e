"""Integration tests for team management endpoints"""

from uuid import uuid4

from sqlalchemy import select

from docvault.domain.documents.access_level import AccessLevel
from docvault.models import Notification, User

API = "/api/v1/team"


class TestTeamMembership:

    def test_list_team(self, client_for, manager_user, member_user):
        response = client_for(manager_user).get(API)

        assert response.status_code == 200
        assert [user["username"] for user in response.json()] == ["tom"]

    def test_available_users(self, client_for, manager_user, member_user, loner_user, admin_user, other_manager):
        response = client_for(manager_user).get(f"{API}/available")

        assert [user["username"] for user in response.json()] == ["lena"]

    def test_add_user_notifies_them(self, client_for, manager_user, loner_user, db_session):
        response = client_for(manager_user).put(f"{API}/add/{loner_user.id}")

        assert response.status_code == 200
        assert response.json()["user"]["manager_id"] == str(manager_user.id)
        notification = db_session.execute(
            select(Notification).where(Notification.user_id == loner_user.id)
        ).scalar_one()
        assert notification.message == "You have been added to maria's team."

    def test_add_rejections(self, client_for, manager_user, other_manager, member_user, admin_user):
        manager = client_for(manager_user)

        already_mine = manager.put(f"{API}/add/{member_user.id}")
        assert already_mine.status_code == 400
        assert already_mine.json()["detail"] == "User is already in your team."

        other = client_for(other_manager).put(f"{API}/add/{member_user.id}")
        assert other.status_code == 400
        assert other.json()["detail"] == "User is already in another team."

        for target in (admin_user.id, other_manager.id, uuid4()):
            response = manager.put(f"{API}/add/{target}")
            assert response.status_code == 400
            assert response.json()["detail"] == "User not found or cannot be added to a team."

    def test_remove_user(self, client_for, manager_user, member_user, db_session):
        response = client_for(manager_user).put(f"{API}/remove/{member_user.id}")

        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.get(User, member_user.id).manager_id is None

    def test_remove_rejections(self, client_for, manager_user, other_manager, member_user):
        assert client_for(other_manager).put(f"{API}/remove/{member_user.id}").status_code == 400
        assert client_for(manager_user).put(f"{API}/remove/{uuid4()}").status_code == 404

    def test_users_cannot_manage_teams(self, client_for, member_user, loner_user):
        assert client_for(member_user).get(API).status_code == 403
        assert client_for(member_user).put(f"{API}/add/{loner_user.id}").status_code == 403

    def test_membership_change_updates_visibility(self, client_for, manager_user, loner_user, document_factory):
        document_factory(manager_user, "plan.pdf", AccessLevel.TEAM)
        loner = client_for(loner_user)
        assert loner.get("/api/v1/documents").json()["pagination"]["total"] == 0

        client_for(manager_user).put(f"{API}/add/{loner_user.id}")

        assert loner.get("/api/v1/documents").json()["pagination"]["total"] == 1
