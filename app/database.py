# app/database.py
"""Async engine, session factory and the ``get_db`` dependency."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy.engine.url import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker

load_dotenv()

_ASYNC_DRIVERS = {
    "postgres": "postgresql+asyncpg",
    "postgresql": "postgresql+asyncpg",
    "sqlite": "sqlite+aiosqlite",
}

# libpq sslmode -> asyncpg ssl; "prefer" and "allow" have no equivalent and are dropped.
_ASYNCPG_SSL = {"require": "true", "verify-ca": "true", "verify-full": "true", "disable": "false"}


def resolve_database_url(raw_url: Optional[str]) -> str:
    """Async-driver URL for ``raw_url``; a SQLite file at the project root when unset."""

    if not raw_url:
        root = Path(__file__).resolve().parents[1]
        return f"sqlite+aiosqlite:///{(root / 'sotw.db').as_posix()}"

    url = make_url(raw_url)
    url = url.set(drivername=_ASYNC_DRIVERS.get(url.get_backend_name(), url.drivername))

    if url.drivername == "postgresql+asyncpg" and "sslmode" in url.query:
        query = dict(url.query)
        ssl = _ASYNCPG_SSL.get(query.pop("sslmode").strip().lower())
        if ssl is not None:
            query["ssl"] = ssl
        url = url.set(query=query)

    # str(url) would mask the password.
    return url.render_as_string(hide_password=False)


DATABASE_URL: str = resolve_database_url(os.getenv("DATABASE_URL"))
ECHO = os.getenv("SQLALCHEMY_ECHO", "0").lower() in {"1", "true", "yes"}


def build_session_factory(bind_engine: AsyncEngine) -> sessionmaker:
    return sessionmaker(
        bind=bind_engine,
        class_=AsyncSession,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


Base = declarative_base()

engine: AsyncEngine = create_async_engine(DATABASE_URL, echo=ECHO, pool_pre_ping=True)
SessionLocal: sessionmaker = build_session_factory(engine)


async def get_db():
    """FastAPI dependency that yields an AsyncSession."""

    async with SessionLocal() as session:
        yield session


async def init_models(bind_engine: Optional[AsyncEngine] = None) -> None:
    """Register every model with ``Base`` and create missing tables and indexes."""

    import app.models  # noqa: F401

    async with (bind_engine or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
