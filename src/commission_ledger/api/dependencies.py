"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from commission_ledger.audit import Actor
from commission_ledger.calculators.types import Period
from commission_ledger.ledger import CommissionLedger


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    async with request.app.state.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


def get_commission_ledger(request: Request) -> CommissionLedger:
    """The facade built at startup."""
    return request.app.state.ledger


async def get_actor(
    x_actor_id: Annotated[str | None, Header()] = None,
    x_actor_name: Annotated[str | None, Header()] = None,
) -> Actor:
    """Extract the acting user from headers. Attribution only."""
    if not x_actor_id or not x_actor_id.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Actor-Id header is required",
        )
    return Actor(actor_id=x_actor_id.strip(), display_name=x_actor_name or None)


def get_period(year: int, month: int) -> Period:
    """Period from the ``year`` and ``month`` path parameters."""
    return Period(year=year, month=month)


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
Ledger = Annotated[CommissionLedger, Depends(get_commission_ledger)]
CurrentActor = Annotated[Actor, Depends(get_actor)]
PeriodParam = Annotated[Period, Depends(get_period)]
