"""
Group membership authorization for the Mensa service.
"""

from typing import Optional
from uuid import UUID

from shared.errors import NotFoundError, ForbiddenError
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from .models import Group, User
from ..persistence.memory import EntityLookup

logger = get_logger("mensa.access_guard")


def require_access(groups: EntityLookup[Group], group_id: UUID, user: User,
                   metrics: Optional[MetricsCollector] = None) -> Group:
    """Return the group if ``user`` is one of its members.

    A missing group raises NotFoundError before membership is looked at, so
    callers never learn whether the user would have had access. An existing
    group without the user raises ForbiddenError.
    """
    group = groups.find_by_id(group_id)
    if group is None:
        if metrics:
            metrics.record_access_check("not_found")
        raise NotFoundError("No such group in database", details={"group_id": str(group_id)})

    if not group.has_member(user):
        logger.warning("Group access denied", group_id=str(group_id), user_id=str(user.user_id))
        if metrics:
            metrics.record_access_check("forbidden")
        raise ForbiddenError("User is not in group", details={"group_id": str(group_id)})

    logger.debug("Group access granted", group_id=str(group_id), user_id=str(user.user_id))
    if metrics:
        metrics.record_access_check("granted")
    return group
