"""
In-memory entity storage for the Mensa service.

Entities are keyed by their UUID and loaded once from a JSON seed document.
The store is read-only once the service is running.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, Protocol, TypeVar, Union
from uuid import UUID

from shared.errors import NotFoundError
from shared.logging import get_logger

from ..domain.models import Group, Mensa, Session, Table, User

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)

logger = get_logger("mensa.persistence")


class EntityLookup(Protocol[T_co]):
    """Lookup-by-identifier capability."""

    def find_by_id(self, entity_id: UUID) -> Optional[T_co]:
        ...


class InMemoryRepository(Generic[T]):
    """Dictionary-backed repository for a single entity kind."""

    def __init__(self, entity_name: str, key: Callable[[T], UUID], entities: Iterable[T] = ()):
        self.entity_name = entity_name
        self._key = key
        self._entities: Dict[UUID, T] = {}
        for entity in entities:
            self.add(entity)

    def add(self, entity: T) -> None:
        self._entities[self._key(entity)] = entity

    def find_by_id(self, entity_id: UUID) -> Optional[T]:
        return self._entities.get(entity_id)

    def find_all(self) -> List[T]:
        return list(self._entities.values())

    def require_by_id(self, entity_id: UUID) -> T:
        """Return the entity or raise NotFoundError."""
        entity = self.find_by_id(entity_id)
        if entity is None:
            raise NotFoundError(
                f"No such {self.entity_name} in database",
                details={"id": str(entity_id)}
            )
        return entity

    def __len__(self) -> int:
        return len(self._entities)


class DataStore:
    """Repositories for every entity kind the service reads."""

    def __init__(self):
        self.users: InMemoryRepository[User] = InMemoryRepository("user", lambda u: u.user_id)
        self.mensas: InMemoryRepository[Mensa] = InMemoryRepository("mensa", lambda m: m.mensa_id)
        self.groups: InMemoryRepository[Group] = InMemoryRepository("group", lambda g: g.group_id)
        self.sessions: InMemoryRepository[Session] = InMemoryRepository("session", lambda s: s.session_id)

    def groups_for_user(self, user: User) -> List[Group]:
        return [g for g in self.groups.find_all() if g.has_member(user)]

    def active_session_for_group(self, group_id: UUID) -> Optional[Session]:
        for session in self.sessions.find_all():
            if session.group.group_id == group_id and session.active:
                return session
        return None

    def get_stats(self) -> Dict[str, int]:
        return {
            "users": len(self.users),
            "mensas": len(self.mensas),
            "groups": len(self.groups),
            "sessions": len(self.sessions),
        }


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def _resolve(repository: InMemoryRepository, raw_id: str, owner: str) -> Any:
    entity = repository.find_by_id(UUID(raw_id))
    if entity is None:
        raise ValueError(f"{owner} references unknown {repository.entity_name} {raw_id}")
    return entity


def build_data_store(document: Dict[str, Any]) -> DataStore:
    """Build a DataStore from a parsed seed document."""
    store = DataStore()

    for raw in document.get("users", []):
        store.users.add(User(user_id=UUID(raw["id"]), name=raw.get("name", "")))

    tables_by_id: Dict[UUID, Table] = {}
    for raw in document.get("mensas", []):
        tables = []
        for raw_table in raw.get("tables", []):
            properties = {k: v for k, v in raw_table.items() if k != "id"}
            table = Table(table_id=UUID(raw_table["id"]), properties=properties)
            tables_by_id[table.table_id] = table
            tables.append(table)

        store.mensas.add(Mensa(
            mensa_id=UUID(raw["id"]),
            name=raw.get("name", ""),
            x=int(raw["x"]),
            y=int(raw["y"]),
            width=int(raw["width"]),
            height=int(raw["height"]),
            tables=tuple(tables)
        ))

    for raw in document.get("groups", []):
        owner = f"group {raw['id']}"
        members = frozenset(_resolve(store.users, member_id, owner) for member_id in raw.get("members", []))
        store.groups.add(Group(
            group_id=UUID(raw["id"]),
            name=raw.get("name", ""),
            created=_parse_datetime(raw["created"]),
            members=members
        ))

    for raw in document.get("sessions", []):
        owner = f"session {raw['id']}"
        tables = []
        for table_id in raw.get("tables", []):
            table = tables_by_id.get(UUID(table_id))
            if table is None:
                raise ValueError(f"{owner} references unknown table {table_id}")
            tables.append(table)

        store.sessions.add(Session(
            session_id=UUID(raw["id"]),
            group=_resolve(store.groups, raw["group"], owner),
            mensa=_resolve(store.mensas, raw["mensa"], owner),
            start=_parse_datetime(raw["start"]),
            end=_parse_datetime(raw.get("end")),
            tables=tuple(tables)
        ))

    return store


def load_seed_data(path: Union[str, Path]) -> DataStore:
    """Load a DataStore from a JSON seed file."""
    with open(path, "r", encoding="utf-8") as f:
        document = json.load(f)

    store = build_data_store(document)
    logger.info("Seed data loaded", path=str(path), **store.get_stats())
    return store
