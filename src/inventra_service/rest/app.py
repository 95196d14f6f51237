"""FastAPI application factory."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from inventra_service.db.engine import close_db, init_db
from inventra_service.rest.errors import install_error_handlers
from inventra_service.rest.routes.assets import router as assets_router
from inventra_service.rest.routes.audit import router as audit_router
from inventra_service.rest.routes.auth import router as auth_router
from inventra_service.rest.routes.health import router as health_router
from inventra_service.rest.routes.imports import router as imports_router
from inventra_service.rest.routes.invites import router as invites_router
from inventra_service.rest.routes.licenses import router as licenses_router
from inventra_service.rest.routes.orgs import router as orgs_router
from inventra_service.rest.routes.requests import router as requests_router
from inventra_service.rest.routes.webhooks import router as webhooks_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    await init_db()
    yield
    await close_db()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Inventra API",
        description="Multi-tenant asset and license inventory service",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app)

    # Public routes
    app.include_router(health_router, tags=["health"])

    # Auth routes (register/login/refresh are public; /me is protected inside the router)
    app.include_router(auth_router, prefix="/api/v1", tags=["auth"])
    app.include_router(webhooks_router, prefix="/api/v1", tags=["webhooks"])
    app.include_router(invites_router, prefix="/api/v1", tags=["invites"])

    # Organization-scoped routes: every one resolves the caller's membership first
    app.include_router(orgs_router, prefix="/api/v1", tags=["organizations"])
    app.include_router(assets_router, prefix="/api/v1", tags=["assets"])
    app.include_router(licenses_router, prefix="/api/v1", tags=["licenses"])
    app.include_router(imports_router, prefix="/api/v1", tags=["import"])
    app.include_router(audit_router, prefix="/api/v1", tags=["audit"])
    app.include_router(requests_router, prefix="/api/v1", tags=["requests"])

    return app
