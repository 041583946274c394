"""
Per-entity exclusive locks held for the lifetime of one atomic unit.

Two layers protect a row:

* an in-process lock keyed by ``(table, id)`` with a bounded wait, so threads
  of this process queue up instead of colliding inside the database;
* a ``SELECT ... FOR UPDATE`` row lock, which serializes against other
  processes (PostgreSQL; SQLite locks the whole file on write anyway).

Locks are recorded on ``session.info`` and released by
``app.services.transaction.run_atomic`` after commit or rollback.

Entities must be locked in the global order given by ``LOCK_RANKS``; taking a
lower-ranked entity after a higher-ranked one raises ``LockOrderError``.
"""

import logging
import threading
import weakref
from typing import Optional, Type, TypeVar

from sqlmodel import Session, SQLModel, select

from app.config import settings
from app.exceptions import ConcurrencyConflict, LockOrderError, NotFoundError
from app.models.delivery_tracking import DeliveryTracking
from app.models.order import Order
from app.models.promotion import Promotion
from app.models.restaurant import Restaurant
from app.models.user import User

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=SQLModel)

# order before wallet; restaurant aggregates last
LOCK_RANKS = {
    Order: 0,
    DeliveryTracking: 1,
    Promotion: 2,
    User: 3,
    Restaurant: 4,
}

HELD_LOCKS_KEY = "held_entity_locks"
MAX_RANK_KEY = "held_entity_max_rank"


class _EntityLock:
    __slots__ = ("lock", "__weakref__")

    def __init__(self):
        self.lock = threading.Lock()


class EntityLockRegistry:
    """Hands out one lock per entity key; unused locks are garbage collected."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = weakref.WeakValueDictionary()

    def get(self, key) -> _EntityLock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = _EntityLock()
                self._locks[key] = entry
            return entry


registry = EntityLockRegistry()


def lock_entity(
    session: Session,
    model: Type[M],
    entity_id,
    *,
    timeout: Optional[float] = None,
) -> M:
    """Lock ``model`` row ``entity_id`` for the rest of the unit and return it fresh."""
    rank = LOCK_RANKS[model]
    key = (model.__tablename__, entity_id)
    held = session.info.setdefault(HELD_LOCKS_KEY, {})

    if key not in held:
        max_rank = session.info.get(MAX_RANK_KEY, -1)
        if rank < max_rank:
            raise LockOrderError(
                f"cannot lock {model.__name__} after a rank {max_rank} entity"
            )

        entry = registry.get(key)
        wait = settings.lock_timeout_seconds if timeout is None else timeout
        if not entry.lock.acquire(timeout=wait):
            logger.warning(f"Lock wait timed out for {key[0]} {entity_id}")
            raise ConcurrencyConflict(
                f"timed out after {wait}s waiting for {model.__name__} {entity_id}"
            )
        held[key] = entry
        session.info[MAX_RANK_KEY] = max(max_rank, rank)

    entity = session.exec(
        select(model)
        .where(model.id == entity_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).first()

    if entity is None:
        raise NotFoundError(model.__name__, entity_id)
    return entity


def release_locks(session: Session) -> None:
    held = session.info.pop(HELD_LOCKS_KEY, {})
    session.info.pop(MAX_RANK_KEY, None)
    for entry in held.values():
        entry.lock.release()
