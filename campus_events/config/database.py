import contextlib
import sys
from collections.abc import AsyncIterator

from alembic import command, config
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from campus_events.config.settings import settings


def create_engine(url: str):
    url = str(url)
    use_echo = settings.LOG_DB
    kwargs = {}
    if "sqlite" in url:
        # every session gets its own connection so SQLite locking serializes writers
        kwargs = {"connect_args": {"timeout": 15}, "poolclass": NullPool}
    return create_async_engine(
        url,
        echo=use_echo,
        future=True,  # use the sqlalchemy 2.0 classes
        **kwargs,
    )


engine = create_engine(settings.database_url)
if "pytest" in sys.modules:
    # point the engine at the testing database
    engine = create_engine(settings.test_database_url)


def run_upgrade(connection, cfg):
    cfg.attributes["connection"] = connection
    command.upgrade(cfg, "head")


async def upgrade_database(alembic_ini: str = "alembic.ini"):
    async with engine.begin() as conn:
        await conn.run_sync(run_upgrade, config.Config(alembic_ini))


async_session_maker = async_sessionmaker(engine, expire_on_commit=False)


async def get_async_session() -> AsyncIterator[AsyncSession]:
    async with async_session_maker() as session:
        yield session


@contextlib.asynccontextmanager
async def async_session_manager(
    auto_commit=True, session_overwrite: AsyncSession | None = None
) -> AsyncIterator[AsyncSession]:
    if session_overwrite:
        yield session_overwrite
    else:
        async with async_session_maker() as session:
            try:
                yield session
            except Exception as e:
                await session.rollback()
                raise e
            else:
                if auto_commit:
                    await session.commit()
