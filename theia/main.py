from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from theia.api.routes import router, ws_manager
from theia.config import settings
from theia.engine import Poller

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ── startup ───────────────────────────────────────
    poller = Poller.from_settings(settings, renderers=[ws_manager])
    await poller.start()
    app.state.poller = poller

    logger.info("THEIA API started, monitoring %s on %s", ",".join(poller.kinds), poller.os_type)

    yield

    # ── shutdown ──────────────────────────────────────
    await poller.stop()
    logger.info("THEIA API shut down")


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.include_router(router)
