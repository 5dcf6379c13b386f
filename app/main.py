from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.applications.router import router as applications_router
from app.api.v1.auth.router import router as auth_router
from app.core.config import settings
from app.core.logging import configure_logging
from app.db.session import init_models


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_models()
    yield


def create_app(*, create_tables: bool = True) -> FastAPI:
    configure_logging(settings.log_level)
    app = FastAPI(title="University Management Backend", lifespan=lifespan if create_tables else None)

    # CORS: the admin/student frontend calls this API from FRONTEND_URL
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip().rstrip("/") for o in settings.frontend_url.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(auth_router)
    app.include_router(applications_router)

    return app


app = create_app()
