"""Document access rules as one ordered rule table.

Each rule has two renderings that must agree:

- ``check``: evaluates the rule for one loaded document (single-object path:
  downloads, version history)
- ``clause``: renders the rule as a SQL boolean over ``document`` columns
  (bulk path: listing and search), so visibility composes with pagination
  and text search without a per-row callback

Rules are evaluated in order and the first match wins. Because every rule
grants access, "first match wins" over the table is the same as OR-ing the
rule clauses, which is what build_access_filter does.

Rule table:
    1. admin            Admin sees everything
    2. public           public documents are visible to everyone
    3. owner            owners see their own documents
    4a. manager_of_owner  team documents of a Manager's direct reports
    4b. owner_is_manager  team documents of a User's own manager
    (otherwise)         deny
"""

from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Tuple
from uuid import UUID

from sqlalchemy import and_, false, or_, select, true
from sqlalchemy.sql.elements import ColumnElement

from ...models.document import Document
from ...models.user import User
from ..documents.access_level import AccessLevel
from .directory import TeamDirectory
from .principals import AdminPrincipal, ManagerPrincipal, MemberPrincipal, Principal


class DocumentLike(Protocol):
    owner_id: UUID
    access_level: AccessLevel


@dataclass(frozen=True)
class DocumentRef:
    """Minimal document view the rules need."""
    owner_id: UUID
    access_level: AccessLevel


@dataclass(frozen=True)
class AccessRule:
    name: str
    check: Callable[[Principal, DocumentLike, TeamDirectory], bool]
    clause: Callable[[Principal], Optional[ColumnElement]]


def _is_team(document: DocumentLike) -> bool:
    return AccessLevel(document.access_level) is AccessLevel.TEAM


def _admin_check(principal, document, directory):
    return isinstance(principal, AdminPrincipal)


def _admin_clause(principal):
    return true() if isinstance(principal, AdminPrincipal) else None


def _public_check(principal, document, directory):
    return AccessLevel(document.access_level) is AccessLevel.PUBLIC


def _public_clause(principal):
    return Document.access_level == AccessLevel.PUBLIC


def _owner_check(principal, document, directory):
    return document.owner_id == principal.user_id


def _owner_clause(principal):
    return Document.owner_id == principal.user_id


def _manager_of_owner_check(principal, document, directory):
    return (
        isinstance(principal, ManagerPrincipal)
        and _is_team(document)
        and directory.manager_of(document.owner_id) == principal.user_id
    )


def _manager_of_owner_clause(principal):
    if not isinstance(principal, ManagerPrincipal):
        return None
    reports = select(User.id).where(User.manager_id == principal.user_id)
    return and_(
        Document.access_level == AccessLevel.TEAM,
        Document.owner_id.in_(reports),
    )


def _owner_is_manager_check(principal, document, directory):
    return (
        isinstance(principal, MemberPrincipal)
        and principal.manager_id is not None
        and _is_team(document)
        and document.owner_id == principal.manager_id
    )


def _owner_is_manager_clause(principal):
    if not isinstance(principal, MemberPrincipal) or principal.manager_id is None:
        return None
    return and_(
        Document.access_level == AccessLevel.TEAM,
        Document.owner_id == principal.manager_id,
    )


ACCESS_RULES: Tuple[AccessRule, ...] = (
    AccessRule("admin", _admin_check, _admin_clause),
    AccessRule("public", _public_check, _public_clause),
    AccessRule("owner", _owner_check, _owner_clause),
    AccessRule("manager_of_owner", _manager_of_owner_check, _manager_of_owner_clause),
    AccessRule("owner_is_manager", _owner_is_manager_check, _owner_is_manager_clause),
)


def matching_rule(
    principal: Principal,
    document: DocumentLike,
    directory: Optional[TeamDirectory] = None,
) -> Optional[str]:
    """Name of the first rule granting access, or None if access is denied."""
    directory = directory or TeamDirectory()
    for rule in ACCESS_RULES:
        if rule.check(principal, document, directory):
            return rule.name
    return None


def can_access(
    principal: Principal,
    document: DocumentLike,
    directory: Optional[TeamDirectory] = None,
) -> bool:
    """Whether the principal may read the document.

    Args:
        principal: Actor variant (see principal_for)
        document: Document row or DocumentRef
        directory: Manager relation covering at least the document owner;
            only consulted by the manager_of_owner rule

    Example:
        >>> manager = ManagerPrincipal(user_id=m_id)
        >>> doc = DocumentRef(owner_id=u_id, access_level=AccessLevel.TEAM)
        >>> can_access(manager, doc, TeamDirectory({u_id: m_id}))
        True
    """
    return matching_rule(principal, document, directory) is not None


def build_access_filter(principal: Principal) -> ColumnElement:
    """SQL filter over ``document`` equivalent to can_access for every row."""
    if isinstance(principal, AdminPrincipal):
        return true()
    clauses = [c for c in (rule.clause(principal) for rule in ACCESS_RULES) if c is not None]
    if not clauses:
        return false()
    return or_(*clauses)


def can_modify(principal: Principal, document: DocumentLike) -> bool:
    """Write predicate for update, delete and new versions: owner or Admin.

    Managers have no write rights over their reports' documents.
    """
    return isinstance(principal, AdminPrincipal) or document.owner_id == principal.user_id
