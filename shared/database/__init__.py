"""
Database Module
===============

Async PostgreSQL access (asyncpg + SQLAlchemy 2.0).

Usage:
    from shared.database import get_session_factory

    # In FastAPI
    @app.get("/example")
    async def example(
        session_factory: async_sessionmaker = Depends(get_session_factory),
    ):
        async with session_factory() as session, session.begin():
            result = await session.execute(select(AssessmentModel))
        ...
"""

from shared.database.postgres import (
    Base,
    PostgresClient,
    create_session_factory,
    get_session_factory,
    postgres_session,
)


__all__ = [
    "Base",
    "PostgresClient",
    "create_session_factory",
    "get_session_factory",
    "postgres_session",
]
