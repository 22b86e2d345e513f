"""Candidate persistence on top of an async SQLAlchemy session.

The store only ever hands out detached ``CandidateRecord`` values; ORM rows
stay inside this module so nothing outside can alias an object the session
is tracking.
"""
from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from . import models
from .models import CandidateRecord

logger = logging.getLogger(__name__)


class StorePersistError(Exception):
    """Raised when the database could not read or write a candidate."""

    def __init__(self, message: str, operation: str):
        super().__init__(message)
        self.operation = operation


class CandidateStore:
    """Find, insert and update candidates within one session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_email(self, email: str) -> CandidateRecord | None:
        """Look up a candidate by exact email without leaving it in the session."""
        query = select(models.Candidate).where(models.Candidate.email == email)
        try:
            result = await self.session.execute(query)
            row = result.scalar_one_or_none()
            if row is None:
                return None
            record = CandidateRecord.from_row(row)
            self.session.expunge(row)
        except SQLAlchemyError as e:
            await self._rollback()
            raise StorePersistError(f"Lookup failed: {e}", "find_by_email") from e
        return record

    async def insert(self, candidate: CandidateRecord) -> CandidateRecord:
        """Stage a new row and flush it so the database assigns its id."""
        row = candidate.to_row()
        try:
            self.session.add(row)
            await self.session.flush()
        except SQLAlchemyError as e:
            await self._rollback()
            raise StorePersistError(f"Insert failed: {e}", "insert") from e
        logger.debug(f"Inserted candidate row {row.id}")
        return CandidateRecord.from_row(row)

    async def update(self, candidate: CandidateRecord) -> None:
        """Overwrite every mutable column of the row with ``candidate.id``."""
        if candidate.id is None:
            raise ValueError("Cannot update a candidate without an id")
        statement = (
            update(models.Candidate)
            .where(models.Candidate.id == candidate.id)
            .values(**candidate.mutable_values())
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(statement)
        except SQLAlchemyError as e:
            await self._rollback()
            raise StorePersistError(f"Update failed: {e}", "update") from e
        if result.rowcount == 0:
            await self._rollback()
            raise StorePersistError(f"Candidate {candidate.id} no longer exists", "update")

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self._rollback()
            raise StorePersistError(f"Commit failed: {e}", "commit") from e

    async def _rollback(self) -> None:
        try:
            await self.session.rollback()
        except SQLAlchemyError as e:
            logger.error(f"Rollback failed: {e}")
