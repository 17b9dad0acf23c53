"""Seed the operator roster with the default shop-floor operators."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from machine_service.models.operator import Operator

DEFAULT_OPERATORS: list[tuple[str, str]] = [
    ("Ashoka", "2258"),
    ("Shantha", "5338"),
    ("Jude", "938"),
    ("Suraj", "5397"),
]


def _create_default_operators() -> list[Operator]:
    return [Operator(name=name, epf_number=epf) for name, epf in DEFAULT_OPERATORS]


async def seed_default_operators(session: AsyncSession) -> dict[str, int]:
    """Add the default operators.

    Returns:
        Dictionary with counts of created entities.
    """
    operators = _create_default_operators()
    session.add_all(operators)
    await session.flush()
    return {"operators": len(operators)}


async def seed_if_empty(session: AsyncSession) -> dict[str, int] | None:
    """Seed default operators only if the roster is empty.

    Returns:
        Seed counts if data was seeded, None if the roster already has data.
    """
    result = await session.execute(select(func.count()).select_from(Operator))
    count = result.scalar() or 0

    if count > 0:
        return None

    return await seed_default_operators(session)
