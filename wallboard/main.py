import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.httpsredirect import HTTPSRedirectMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware

from wallboard.api.router import api_router
from wallboard.core.config import Settings, get_settings
from wallboard.core.db import close_engine, create_schema, get_session_factory, init_engine
from wallboard.core.logging import configure_logging
from wallboard.domain.enums import StoreBackend
from wallboard.infra.db.seed import seed_default_agents
from wallboard.infra.realtime import InMemoryRealtimeHub
from wallboard.infra.store import AgentStore, InMemoryAgentStore, SqlAgentStore
from wallboard.services.container import build_services

settings = get_settings()
settings.validate_security_settings()
configure_logging(settings.log_level)

logger = logging.getLogger(__name__)


async def _open_store(app: FastAPI, settings: Settings) -> AgentStore:
    if settings.store_backend == StoreBackend.MEMORY:
        return InMemoryAgentStore()

    engine = init_engine(settings)
    app.state.db_engine = engine
    if settings.db_auto_create:
        await create_schema(engine)
    return SqlAgentStore(get_session_factory())


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Initialize infrastructure
    workflow = settings.status_workflow()
    store = await _open_store(app, settings)
    services = build_services(
        store,
        workflow,
        hub=InMemoryRealtimeHub(),
        notify_superseded=settings.notify_superseded_connections,
    )
    app.state.services = services

    # No connection survives a restart.
    await store.mark_all_offline(workflow.offline_status)
    if settings.seed_demo_agents:
        await seed_default_agents(store, workflow)

    logger.info(
        "Agent wallboard ready (store=%s, statuses=%s)",
        settings.store_backend.value,
        ", ".join(workflow.statuses),
    )

    yield

    # Graceful shutdown
    app.state.services = None
    engine = getattr(app.state, "db_engine", None)
    if engine is not None:
        await close_engine(engine)
    logger.info("Agent wallboard stopped")


app = FastAPI(
    title="Agent Wallboard API",
    version="0.1.0",
    docs_url="/docs" if settings.app_env != "production" else None,
    redoc_url="/redoc" if settings.app_env != "production" else None,
    lifespan=lifespan,
)

if settings.trusted_hosts:
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.trusted_hosts,
    )

if settings.force_https:
    app.add_middleware(HTTPSRedirectMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault(
        "Referrer-Policy",
        "strict-origin-when-cross-origin",
    )
    if settings.force_https:
        response.headers.setdefault(
            "Strict-Transport-Security",
            "max-age=31536000; includeSubDomains",
        )
    return response


app.include_router(api_router, prefix="/api")


@app.get("/", tags=["meta"])
async def root() -> dict[str, str]:
    return {"service": "agent-wallboard", "status": "ok"}
