import tracemalloc
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import admin, todos
from app.core.config import settings
from app.core.exceptions import register_exception_handlers
from app.core.logging import setup_logging, CorrelationIdMiddleware
from app.db.base import init_db
from app.db.seed import seed_initial_data


def on_startup():
    init_db()
    if settings.SEED_DATA:
        seed_initial_data()
    if settings.PERFORMANCE_TRACE_MEMORY and not tracemalloc.is_tracing():
        tracemalloc.start()


@asynccontextmanager
async def lifespan(_: FastAPI):
    on_startup()
    yield


setup_logging()

app = FastAPI(
    title="Todo API",
    description="Todo management backend with audit, performance and correlation logging",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Correlation-ID"],
)

# Added last so it wraps everything else
app.add_middleware(CorrelationIdMiddleware)

register_exception_handlers(app)

# Include routers
app.include_router(todos.router, prefix="/api/todos", tags=["todos"])
app.include_router(admin.router, prefix="/admin/logging", tags=["admin"])


# Development server entry point
if __name__ == "__main__":
    import uvicorn

    # logging is already configured by setup_logging()
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG, log_config=None)
