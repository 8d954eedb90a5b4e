from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from watchlist.api.routes import router
from watchlist.config.settings import get_settings
from watchlist.services.refresh_worker import WatchlistRefreshService


@asynccontextmanager
async def lifespan(app: FastAPI):
    if app.state.refresh_service is None:
        app.state.refresh_service = WatchlistRefreshService.from_settings(app.state.get_settings())

    service = app.state.refresh_service
    service.start()
    try:
        yield
    finally:
        service.stop()


app = FastAPI(title="BTC Pair Watchlist", version="0.1.0", lifespan=lifespan)
app.include_router(router, prefix="/v1")

# NOTE: lazy-loaded so app import does not read env during tests.
app.state.get_settings = get_settings
app.state.refresh_service = None
