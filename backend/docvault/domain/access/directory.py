"""Team directory: the manager adjacency relation as loaded data.

Access checks for single documents need to know who manages a document's
owner. Instead of following ORM relationships row by row, the relation is
loaded once through the indexed ``user.manager_id`` column into an immutable
mapping the rules can read.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ...models.user import User


@dataclass(frozen=True)
class TeamDirectory:
    """user_id -> manager_id for the users relevant to an access decision."""
    managers: Mapping[UUID, Optional[UUID]] = field(default_factory=dict)

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[UUID, Optional[UUID]]]) -> "TeamDirectory":
        return cls(managers=dict(pairs))

    def manager_of(self, user_id: UUID) -> Optional[UUID]:
        return self.managers.get(user_id)

    def reports_of(self, manager_id: UUID) -> FrozenSet[UUID]:
        return frozenset(uid for uid, mid in self.managers.items() if mid == manager_id)


def load_team_directory(db: Session, user_ids: Optional[Iterable[UUID]] = None) -> TeamDirectory:
    """Load the manager relation for the given users (all users if None)."""
    query = select(User.id, User.manager_id)
    if user_ids is not None:
        ids = set(user_ids)
        if not ids:
            return TeamDirectory()
        query = query.where(User.id.in_(ids))

    managers: Dict[UUID, Optional[UUID]] = {row.id: row.manager_id for row in db.execute(query)}
    return TeamDirectory(managers=managers)
