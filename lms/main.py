from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lms.api.announcements import router as announcements_router
from lms.api.certificates import router as certificates_router
from lms.api.courses import router as courses_router
from lms.api.dev_auth import router as dev_auth_router
from lms.api.health import router as health_router
from lms.api.incidents import router as incidents_router
from lms.api.metrics_endpoint import router as metrics_router
from lms.api.policies import router as policies_router
from lms.api.progress import router as progress_router
from lms.core.config import SETTINGS
from lms.core.logging import setup_logging
from lms.db.engine import async_session_factory, lifespan_db
from lms.db.redis import lifespan_redis
from lms.middleware.metrics import MetricsMiddleware
from lms.middleware.request_context import RequestContextMiddleware
from lms.repos.registry import Repositories
from lms.services import token_service
from lms.services.seed import seed_demo_data

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


async def _seed(app: FastAPI) -> None:
    if async_session_factory is None:
        await seed_demo_data(app.state.repos)
        return
    async with async_session_factory() as session:
        await seed_demo_data(Repositories.postgres(session))
        await session.commit()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Teardown runs in reverse order: Redis first, then the database.
    async with lifespan_db():
        async with lifespan_redis():
            # Used only when DATABASE_URL is unset; see get_repos().
            app.state.repos = Repositories.in_memory()
            if SETTINGS.seed_demo_data:
                await _seed(app)
            yield


app = FastAPI(
    title="compliance-lms",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(SETTINGS.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Last added runs first: RequestContext -> Metrics -> CORS -> route handler.
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(courses_router)
app.include_router(progress_router)
app.include_router(certificates_router)
app.include_router(policies_router)
app.include_router(announcements_router)
app.include_router(incidents_router)
if SETTINGS.is_dev and token_service.can_mint():
    app.include_router(dev_auth_router)

logger.info(
    "compliance-lms started  env=%s log_level=%s port=%d docs=%s storage=%s tokens=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if SETTINGS.is_dev else "off",
    "postgres" if async_session_factory is not None else "memory",
    "external-key" if SETTINGS.jwt_public_key else "ephemeral",
)
