"""Operator roster: the people allowed to check machines in and out."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from machine_service.models.operator import Operator

logger = logging.getLogger(__name__)


class DuplicateOperatorError(Exception):
    """Raised when adding an operator whose EPF number is already on the roster."""


class OperatorRoster:
    """CRUD over the ``operators`` table, keyed by EPF number."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_all(self) -> list[Operator]:
        result = await self.db.execute(select(Operator).order_by(Operator.created_at, Operator.name))
        return list(result.scalars().all())

    async def get(self, epf_number: str) -> Operator | None:
        result = await self.db.execute(select(Operator).where(Operator.epf_number == epf_number))
        return result.scalar_one_or_none()

    async def add(self, name: str, epf_number: str) -> Operator:
        """Add an operator. Raises DuplicateOperatorError if the EPF number exists."""
        name, epf_number = name.strip(), epf_number.strip()
        if await self.get(epf_number) is not None:
            raise DuplicateOperatorError(f"Operator with EPF number {epf_number} already exists")
        operator = Operator(name=name, epf_number=epf_number)
        self.db.add(operator)
        await self.db.flush()
        await self.db.refresh(operator)
        logger.info("Operator %s (%s) added", name, epf_number)
        return operator

    async def delete(self, epf_number: str) -> bool:
        """Remove an operator. Returns False if no such EPF number."""
        operator = await self.get(epf_number)
        if operator is None:
            return False
        await self.db.delete(operator)
        await self.db.flush()
        logger.info("Operator %s removed", epf_number)
        return True
