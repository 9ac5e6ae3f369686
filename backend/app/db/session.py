from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a session from the factory stored on ``app.state`` at startup.
    Used as a FastAPI dependency.
    """
    async with request.app.state.session_factory() as session:
        yield session
