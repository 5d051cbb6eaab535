"""Helpers shared by the command handlers."""

import logging
from typing import Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from core.errors import ConcurrentModification, NotFound

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


async def load_or_404(
    session: AsyncSession, model: Type[ModelT], entity_id: int, entity: str
) -> ModelT:
    """
    Load a fresh copy of an entity by id.

    Raises:
        NotFound: If no row has the id
    """
    result = await session.execute(
        select(model)
        .where(model.id == entity_id)
        .execution_options(populate_existing=True)
    )
    instance = result.scalar_one_or_none()
    if instance is None:
        raise NotFound(entity, entity_id)
    return instance


async def commit_or_conflict(session: AsyncSession, entity: str) -> None:
    """
    Commit the unit of work, translating a failed version check.

    Raises:
        ConcurrentModification: If another writer committed first
    """
    try:
        await session.commit()
    except StaleDataError as e:
        await session.rollback()
        logger.warning(f"Stale write on {entity}: {e}")
        raise ConcurrentModification(
            f"{entity} was modified concurrently, reload and retry", entity=entity
        )
