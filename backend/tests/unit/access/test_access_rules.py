"""Unit tests for the document access rule table

The single-object predicate (can_access) and the SQL filter
(build_access_filter) must agree on every (principal, document) pair.
"""

from uuid import uuid4

import pytest
from sqlalchemy import select

from docvault.domain.access import (
    AdminPrincipal,
    DocumentRef,
    ManagerPrincipal,
    MemberPrincipal,
    TeamDirectory,
    build_access_filter,
    can_access,
    can_modify,
    load_team_directory,
    matching_rule,
    principal_for,
)
from docvault.domain.documents.access_level import AccessLevel
from docvault.models import Document


MANAGER_ID = uuid4()
MEMBER_ID = uuid4()
LONER_ID = uuid4()
OTHER_MANAGER_ID = uuid4()

DIRECTORY = TeamDirectory({MEMBER_ID: MANAGER_ID, LONER_ID: None, MANAGER_ID: None, OTHER_MANAGER_ID: None})

MANAGER = ManagerPrincipal(user_id=MANAGER_ID)
MEMBER = MemberPrincipal(user_id=MEMBER_ID, manager_id=MANAGER_ID)
LONER = MemberPrincipal(user_id=LONER_ID)
OTHER_MANAGER = ManagerPrincipal(user_id=OTHER_MANAGER_ID)
ADMIN = AdminPrincipal(user_id=uuid4())


def doc(owner_id, level):
    return DocumentRef(owner_id=owner_id, access_level=level)


class TestRuleTable:

    def test_admin_sees_everything(self):
        for level in AccessLevel:
            assert matching_rule(ADMIN, doc(LONER_ID, level), DIRECTORY) == "admin"

    def test_public_visible_to_everyone(self):
        for principal in (MANAGER, MEMBER, LONER, OTHER_MANAGER):
            assert can_access(principal, doc(LONER_ID, AccessLevel.PUBLIC), DIRECTORY)

    @pytest.mark.parametrize("level", list(AccessLevel))
    def test_owner_sees_own_documents(self, level):
        assert can_access(LONER, doc(LONER_ID, level), DIRECTORY)

    def test_private_hidden_from_everyone_else(self):
        private = doc(MEMBER_ID, AccessLevel.PRIVATE)
        assert not can_access(MANAGER, private, DIRECTORY)
        assert not can_access(LONER, private, DIRECTORY)
        assert can_access(ADMIN, private, DIRECTORY)

    def test_manager_sees_team_documents_of_reports(self):
        assert matching_rule(MANAGER, doc(MEMBER_ID, AccessLevel.TEAM), DIRECTORY) == "manager_of_owner"

    def test_member_sees_team_documents_of_own_manager(self):
        assert matching_rule(MEMBER, doc(MANAGER_ID, AccessLevel.TEAM), DIRECTORY) == "owner_is_manager"

    def test_team_documents_are_not_shared_between_teammates(self):
        teammate = MemberPrincipal(user_id=uuid4(), manager_id=MANAGER_ID)
        assert not can_access(teammate, doc(MEMBER_ID, AccessLevel.TEAM), DIRECTORY)

    def test_team_documents_hidden_across_teams(self):
        assert not can_access(OTHER_MANAGER, doc(MEMBER_ID, AccessLevel.TEAM), DIRECTORY)
        assert not can_access(LONER, doc(MANAGER_ID, AccessLevel.TEAM), DIRECTORY)

    def test_member_does_not_see_private_documents_of_manager(self):
        assert not can_access(MEMBER, doc(MANAGER_ID, AccessLevel.PRIVATE), DIRECTORY)

    def test_first_match_wins(self):
        # Public wins over owner
        assert matching_rule(LONER, doc(LONER_ID, AccessLevel.PUBLIC), DIRECTORY) == "public"


class TestModifyRule:

    def test_owner_may_modify(self):
        assert can_modify(MEMBER, doc(MEMBER_ID, AccessLevel.PRIVATE))

    def test_admin_may_modify(self):
        assert can_modify(ADMIN, doc(MEMBER_ID, AccessLevel.PRIVATE))

    def test_manager_may_not_modify_reports_documents(self):
        assert not can_modify(MANAGER, doc(MEMBER_ID, AccessLevel.TEAM))

    def test_public_does_not_grant_modify(self):
        assert not can_modify(LONER, doc(MEMBER_ID, AccessLevel.PUBLIC))


class TestPrincipals:

    def test_principal_for_roles(self, admin_user, manager_user, member_user, loner_user):
        assert isinstance(principal_for(admin_user), AdminPrincipal)
        assert isinstance(principal_for(manager_user), ManagerPrincipal)

        member = principal_for(member_user)
        assert member == MemberPrincipal(user_id=member_user.id, manager_id=manager_user.id)
        assert principal_for(loner_user).manager_id is None

    def test_load_team_directory(self, db_session, manager_user, member_user, loner_user):
        directory = load_team_directory(db_session, [member_user.id, loner_user.id])

        assert directory.manager_of(member_user.id) == manager_user.id
        assert directory.manager_of(loner_user.id) is None
        assert directory.reports_of(manager_user.id) == frozenset({member_user.id})

    def test_load_team_directory_empty_ids(self, db_session):
        assert load_team_directory(db_session, []).managers == {}


class TestSqlFilterMatchesPredicate:
    """Every principal sees exactly the rows can_access grants"""

    def test_equivalence_over_all_pairs(
        self, db_session, document_factory, admin_user, manager_user, other_manager, member_user, loner_user
    ):
        users = [admin_user, manager_user, other_manager, member_user, loner_user]
        documents = [
            document_factory(owner, filename=f"{owner.username}-{level.value}.pdf", access_level=level)
            for owner in users
            for level in AccessLevel
        ]
        directory = load_team_directory(db_session)

        for user in users:
            principal = principal_for(user)
            visible = set(
                db_session.execute(select(Document.id).where(build_access_filter(principal))).scalars()
            )
            expected = {d.id for d in documents if can_access(principal, d, directory)}
            assert visible == expected, user.username

    def test_expected_visibility_for_member(
        self, db_session, document_factory, manager_user, member_user, loner_user
    ):
        manager_team = document_factory(manager_user, "plan.pdf", AccessLevel.TEAM)
        manager_private = document_factory(manager_user, "salaries.pdf", AccessLevel.PRIVATE)
        loner_public = document_factory(loner_user, "menu.pdf", AccessLevel.PUBLIC)
        loner_team = document_factory(loner_user, "notes.pdf", AccessLevel.TEAM)

        visible = set(
            db_session.execute(
                select(Document.id).where(build_access_filter(principal_for(member_user)))
            ).scalars()
        )

        assert visible == {manager_team.id, loner_public.id}
        assert manager_private.id not in visible
        assert loner_team.id not in visible
