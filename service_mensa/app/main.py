"""
Mensa service for facility, table and group information.
"""

from pathlib import Path
from typing import List, Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Response

from shared.base_service import BaseService
from shared.errors import NotFoundError
from shared.logging import set_user_context

from .adapters.layout_client import LayoutRenderClient, SVG_MEDIA_TYPE
from .domain.access_guard import require_access
from .domain.models import (
    User, GroupResponse, MensaResponse, SessionResponse, TableResponse, UserResponse
)
from .persistence.memory import DataStore, load_seed_data

BUNDLED_SEED_FILE = Path(__file__).resolve().parents[1] / "data" / "seed.json"


class MensaService(BaseService):
    """Mensa service implementation."""

    def __init__(self, store: Optional[DataStore] = None,
                 layout_client: Optional[LayoutRenderClient] = None):
        super().__init__("mensa", 8080)

        if store is None:
            store = load_seed_data(self.config.seed_file or BUNDLED_SEED_FILE)
        self.store = store

        self.layout_client = layout_client or LayoutRenderClient(
            self.config.layout_service_url,
            timeout_seconds=self.config.layout_render_timeout_seconds,
            metrics=self.metrics
        )

        self._setup_mensa_routes()
        self._setup_group_routes()

        self.app.state.mensa_service = self

    async def _current_user(self, x_user_id: Optional[str] = Header(None, alias="X-User-Id")) -> User:
        """Resolve the calling user from the X-User-Id header."""
        if not x_user_id:
            raise HTTPException(status_code=401, detail="X-User-Id header required")

        try:
            user_id = UUID(x_user_id)
        except ValueError:
            raise HTTPException(status_code=401, detail="Invalid X-User-Id header")

        user = self.store.users.find_by_id(user_id)
        if user is None:
            raise HTTPException(status_code=401, detail="Unknown user")

        set_user_context(str(user.user_id))
        return user

    def _setup_mensa_routes(self):
        """Set up public mensa routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "mensa",
                "message": "Mensa facility information service",
                "version": "1.0.0",
                "capabilities": ["mensas", "layout_rendering", "groups", "sessions"]
            }

        @self.app.get("/mensa", response_model=List[MensaResponse])
        async def get_all_mensas():
            """Return all mensas."""
            return [MensaResponse.from_mensa(m) for m in self.store.mensas.find_all()]

        @self.app.get("/mensa/{mensa_id}", response_model=MensaResponse)
        async def get_mensa(mensa_id: UUID):
            """Get a mensa by id."""
            return MensaResponse.from_mensa(self.store.mensas.require_by_id(mensa_id))

        @self.app.get("/mensa/{mensa_id}/tables", response_model=List[TableResponse])
        async def get_tables(mensa_id: UUID):
            """Get all tables at a mensa."""
            mensa = self.store.mensas.require_by_id(mensa_id)
            return [TableResponse.from_table(t) for t in mensa.tables]

        @self.app.get(
            "/mensa/{mensa_id}/layout",
            response_class=Response,
            responses={200: {"content": {SVG_MEDIA_TYPE: {}}}}
        )
        async def get_layout(mensa_id: UUID):
            """Get the rendered layout svg for a mensa."""
            mensa = self.store.mensas.require_by_id(mensa_id)
            layout = await self.layout_client.render_layout(mensa)
            return Response(content=layout.content, media_type=layout.media_type)

    def _setup_group_routes(self):
        """Set up routes scoped to the calling user's groups."""
        current_user = self._current_user

        @self.app.get("/group", response_model=List[GroupResponse])
        async def get_my_groups(user: User = Depends(current_user)):
            """List the groups the caller is a member of."""
            return [GroupResponse.from_group(g) for g in self.store.groups_for_user(user)]

        @self.app.get("/group/{group_id}", response_model=GroupResponse)
        async def get_group(group_id: UUID, user: User = Depends(current_user)):
            """Get a group the caller belongs to."""
            group = require_access(self.store.groups, group_id, user, metrics=self.metrics)
            return GroupResponse.from_group(group)

        @self.app.get("/group/{group_id}/members", response_model=List[UserResponse])
        async def get_group_members(group_id: UUID, user: User = Depends(current_user)):
            """Get the members of a group the caller belongs to."""
            group = require_access(self.store.groups, group_id, user, metrics=self.metrics)
            return GroupResponse.from_group(group).members

        @self.app.get("/group/{group_id}/session", response_model=SessionResponse)
        async def get_group_session(group_id: UUID, user: User = Depends(current_user)):
            """Get the active session of a group."""
            group = require_access(self.store.groups, group_id, user, metrics=self.metrics)
            session = self.store.active_session_for_group(group.group_id)
            if session is None:
                raise NotFoundError("Group has no active session", details={"group_id": str(group_id)})
            return SessionResponse.from_session(session)

        @self.app.get("/session/{session_id}", response_model=SessionResponse)
        async def get_session(session_id: UUID, user: User = Depends(current_user)):
            """Get a session of one of the caller's groups."""
            session = self.store.sessions.require_by_id(session_id)
            require_access(self.store.groups, session.group.group_id, user, metrics=self.metrics)
            return SessionResponse.from_session(session)

    async def _check_dependencies(self):
        """Check mensa service dependencies."""
        return {"store": "ok"}


def create_app():
    """Create mensa service application."""
    service = MensaService()
    return service.app


if __name__ == "__main__":
    service = MensaService()
    service.run()
