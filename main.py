# main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import get_settings
from adapters.entry.http.views.carbon_positions_view import router as carbon_positions_router
from adapters.external.database.strategy_definition_repository_mongodb import StrategyDefinitionRepositoryMongoDB
from core.services.definition_cache import DefinitionCache
from core.use_cases.carbon_strategy_positions_usecase import CarbonStrategyPositionSource

logger = logging.getLogger("carbon_positions")


def build_position_source() -> CarbonStrategyPositionSource:
    """
    Wire the Carbon position source with its scheduled definition cache.

    The snapshot is persisted to MongoDB only when PERSIST_DEFINITIONS is set.
    """
    st = get_settings()
    source = CarbonStrategyPositionSource.from_settings()

    repository = StrategyDefinitionRepositoryMongoDB() if st.PERSIST_DEFINITIONS else None
    source.definition_cache = DefinitionCache(
        source.list_definitions,
        refresh_sec=st.DEFINITIONS_REFRESH_SEC,
        repository=repository,
        network=st.NETWORK,
        contract=st.CARBON_CONTROLLER_ADDRESS,
    )
    logger.info(
        "Carbon positions on %s: controller=%s balance_mode=%s refresh=%ss persistence=%s",
        st.NETWORK,
        st.CARBON_CONTROLLER_ADDRESS,
        st.BALANCE_MODE,
        st.DEFINITIONS_REFRESH_SEC,
        "mongodb" if repository is not None else "off",
    )
    return source


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context.

    On startup the definition cache is warmed from storage (when enabled) and
    its refresh loop is started; on shutdown the loop is cancelled.
    """
    source = build_position_source()
    cache = source.definition_cache
    await cache.warm()
    cache.start()
    app.state.carbon_positions = source
    yield
    await cache.stop()


def create_app() -> FastAPI:
    """
    Application factory for the Carbon positions API.
    """
    st = get_settings()
    logging.basicConfig(
        level=getattr(logging, (st.LOG_LEVEL or "INFO").upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Carbon Positions API",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(carbon_positions_router, prefix="/api")

    return app


app = create_app()
