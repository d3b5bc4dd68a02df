import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from app.database import build_session_factory, init_models


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def engine(tmp_path):
    """A fresh file-based SQLite database with every table created."""
    db_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'sotw.db'}")
    await init_models(db_engine)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session
