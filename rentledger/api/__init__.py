"""HTTP API for the billing ledger."""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session from the factory the application was started with."""
    async with request.app.state.session_factory() as session:
        yield session


__all__ = ["get_session"]
