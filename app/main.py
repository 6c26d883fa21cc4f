import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from app.core.config import settings
from app.routers import health, outfits, tryon, users

boot_logger = logging.getLogger("uvicorn.error")


@asynccontextmanager
async def lifespan(app: FastAPI):
    Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
    boot_logger.info(
        "startup: env=%s synthesis=%s batch_store=%s upload_dir=%s",
        settings.APP_ENV,
        "mock" if settings.mock_mode else "fitroom",
        settings.BATCH_STORE,
        settings.UPLOAD_DIR,
    )
    yield


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

# CORS
origins = settings.cors_origin_list
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins if origins != ["*"] else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

prefix = settings.API_PREFIX
app.include_router(health.router)
app.include_router(outfits.router, prefix=prefix)
app.include_router(tryon.router, prefix=prefix)
app.include_router(users.router, prefix=prefix)

# Uploaded selfies and catalog images; directories may be created after import.
app.mount("/temp", StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name="temp")
app.mount("/images", StaticFiles(directory=settings.CATALOG_DATA_DIR, check_dir=False), name="images")

logger = logging.getLogger("app.requests")

@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start) * 1000
    logger.info("%s %s %s %.1fms", request.method, request.url.path, response.status_code, duration_ms)
    return response

@app.get("/")
async def root():
    return {"name": settings.APP_NAME, "env": settings.APP_ENV}
