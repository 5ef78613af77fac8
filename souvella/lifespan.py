"""Application lifespan management."""

import random
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from loguru import logger

from souvella.database.base import build_engine, build_session_factory, create_tables
from souvella.services.sampler import WeightedSampler
from souvella.settings import StoreBackend, settings
from souvella.settings.log import configure_logging
from souvella.store.memory import InMemoryDocumentStore
from souvella.store.sql import SqlDocumentStore


@asynccontextmanager
async def lifespan_setup(app) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Builds the document store and the sampler on startup and releases the
    database engine on shutdown.
    """
    configure_logging()
    logger.info(f"Starting {settings.app_name} {settings.app_version} ({settings.environment.value})")

    engine = None
    if settings.store_backend == StoreBackend.SQL:
        engine = build_engine(
            str(settings.db_url_property),
            echo=settings.db_echo,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )
        await create_tables(engine)
        app.state.store = SqlDocumentStore(build_session_factory(engine))
        logger.info(f"SQL document store ready | host={settings.db_url_property.host}")
    else:
        app.state.store = InMemoryDocumentStore()
        logger.info("In-memory document store ready, data is lost on restart")

    app.state.sampler = WeightedSampler(random.Random(settings.selection_seed))
    if settings.selection_seed is not None:
        logger.info(f"Daily selection sampler seeded | seed={settings.selection_seed}")

    logger.info(
        f"Memory gems configured | day_timezone={settings.day_timezone} "
        f"selection_count={settings.daily_selection_count} "
        f"max_daily_reactions={settings.max_daily_reactions}"
    )

    yield

    # Shutdown
    if engine is not None:
        await engine.dispose()
        logger.info("Database connections closed")
    logger.info(f"{settings.app_name} stopped")
