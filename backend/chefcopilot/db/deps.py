"""
Database Dependencies for FastAPI Routes

Routes declare what they need and FastAPI provides it:

    @router.get("/indexing/status")
    async def indexing_status(db: DBSession):
        ...

Tests replace the session with ``app.dependency_overrides[get_db]``.
"""

from collections.abc import AsyncGenerator
from typing import Annotated, Callable

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from chefcopilot.db.session import get_session


# ================================
# Database Session Dependency
# ================================

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session.

    The session is rolled back if the route raises, and always closed.
    Commits are explicit: ``await db.commit()``.

    Yields:
        AsyncSession: Database session for the current request
    """
    async for session in get_session():
        yield session


DBSession = Annotated[AsyncSession, Depends(get_db)]


# ================================
# Testing Helpers
# ================================

def get_db_override(session: AsyncSession) -> Callable[[], AsyncGenerator[AsyncSession, None]]:
    """
    Create a dependency override for testing.

    Usage in Tests:
    ---------------
    app.dependency_overrides[get_db] = get_db_override(mock_session)

    Args:
        session: The session to use instead of the real one

    Returns:
        A function that yields the test session
    """
    async def _override() -> AsyncGenerator[AsyncSession, None]:
        yield session

    return _override
