# historial/main.py
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from historial.core.config import settings
from historial.api.router import api_router
from historial.api.exception_handlers import register_exception_handlers
from historial.db.init_db import create_tables, init_db
from historial.db.session import SessionLocal

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Path(settings.STORAGE_DIR).resolve().mkdir(parents=True, exist_ok=True)
    create_tables()
    db = SessionLocal()
    try:
        init_db(db)
    finally:
        db.close()
    logger.info("%s started, storage at %s", settings.PROJECT_NAME,
                Path(settings.STORAGE_DIR).resolve())
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(api_router, prefix=settings.API_V1_STR)


# Health
@app.get("/")
def root():
    return {"message": "Historial Medico API running", "version": "v1"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("historial.main:app", host="0.0.0.0", port=8000, reload=True)
