"""
Domain and API models for the Mensa service.
"""

from typing import Dict, Any, Optional, List, Tuple, FrozenSet
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class User:
    """Resolved user identity. Compared by id only."""
    user_id: UUID
    name: str = field(default="", compare=False)


@dataclass(frozen=True)
class Table:
    """Seating table owned by a single mensa."""
    table_id: UUID
    properties: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def to_payload(self) -> Dict[str, Any]:
        return {"id": str(self.table_id), **self.properties}


@dataclass(frozen=True)
class Mensa:
    """Dining facility and its placement in the overall layout."""
    mensa_id: UUID
    name: str
    x: int
    y: int
    width: int
    height: int
    tables: Tuple[Table, ...] = ()


@dataclass(frozen=True)
class Group:
    """Named set of users sharing reservation rights."""
    group_id: UUID
    name: str
    created: datetime
    members: FrozenSet[User] = frozenset()

    def has_member(self, user: User) -> bool:
        return user in self.members


@dataclass(frozen=True)
class Session:
    """Eating session of a group at a mensa."""
    session_id: UUID
    group: Group
    mensa: Mensa
    start: datetime
    end: Optional[datetime] = None
    tables: Tuple[Table, ...] = ()

    @property
    def active(self) -> bool:
        return self.end is None


@dataclass(frozen=True)
class RenderedLayout:
    """Document returned by the layout renderer."""
    content: str
    media_type: str = "image/svg+xml"


class TableResponse(BaseModel):
    """Response model for a table."""
    model_config = {"extra": "allow"}

    id: UUID = Field(..., description="Table ID")

    @classmethod
    def from_table(cls, table: Table) -> "TableResponse":
        return cls(**table.to_payload())


class MensaResponse(BaseModel):
    """Response model for a mensa."""
    id: UUID
    name: str
    x: int
    y: int
    width: int
    height: int
    tables: List[TableResponse] = Field(default_factory=list)

    @classmethod
    def from_mensa(cls, mensa: Mensa) -> "MensaResponse":
        return cls(
            id=mensa.mensa_id,
            name=mensa.name,
            x=mensa.x,
            y=mensa.y,
            width=mensa.width,
            height=mensa.height,
            tables=[TableResponse.from_table(t) for t in mensa.tables]
        )


class UserResponse(BaseModel):
    """Response model for a user."""
    id: UUID
    name: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(id=user.user_id, name=user.name)


class GroupResponse(BaseModel):
    """Response model for a group."""
    id: UUID
    name: str
    created: datetime
    members: List[UserResponse] = Field(default_factory=list)

    @classmethod
    def from_group(cls, group: Group) -> "GroupResponse":
        members = sorted(group.members, key=lambda u: (u.name, str(u.user_id)))
        return cls(
            id=group.group_id,
            name=group.name,
            created=group.created,
            members=[UserResponse.from_user(u) for u in members]
        )


class SessionResponse(BaseModel):
    """Response model for a session."""
    id: UUID
    group: GroupResponse
    mensa: MensaResponse
    start: datetime
    end: Optional[datetime] = None
    tables: List[TableResponse] = Field(default_factory=list)

    @classmethod
    def from_session(cls, session: Session) -> "SessionResponse":
        return cls(
            id=session.session_id,
            group=GroupResponse.from_group(session.group),
            mensa=MensaResponse.from_mensa(session.mensa),
            start=session.start,
            end=session.end,
            tables=[TableResponse.from_table(t) for t in session.tables]
        )
