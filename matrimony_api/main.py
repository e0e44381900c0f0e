import logging
import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from .config import get_settings
from .db import close_mongo_connection, connect_to_mongo, is_connected
from .errors import register_error_handlers
from .integrations import cloudinary as image_store
from .integrations import identity
from .routers import biodatas, contact_requests, favourites, success, users

LOGGER = logging.getLogger("uvicorn.error")

app = FastAPI(title="Matrimony API")
settings = get_settings()

LOGGER.info("[CORS] allow_origins=%s", settings.allow_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["ETag", "X-Total-Count"],
    allow_credentials=True,
)
app.add_middleware(GZipMiddleware, minimum_size=512)
register_error_handlers(app)


@app.middleware("http")
async def log_slow_requests(request, call_next):
    t0 = time.time()
    response = await call_next(request)
    dt = (time.time() - t0) * 1000
    if dt >= get_settings().slow_request_ms:
        LOGGER.warning(
            "[perf] slow request %s %s %dms status=%s",
            request.method,
            request.url.path,
            int(dt),
            response.status_code,
        )
    return response


@app.on_event("startup")
async def startup():
    current = get_settings()
    missing = current.missing_required()
    if missing:
        raise RuntimeError(f"Missing required configuration: {', '.join(missing)}")

    identity.ensure_initialized()
    await connect_to_mongo()

    image_store.ensure_configured()
    info = image_store.get_status()
    LOGGER.info(
        "[Cloudinary] configured=%s cloud=%s via_url=%s",
        info.get("configured"),
        info.get("cloudName") or "unknown",
        "yes" if info.get("usingUrl") else "no",
    )


@app.on_event("shutdown")
async def shutdown():
    await close_mongo_connection()


# Routers
app.include_router(users.router, prefix="/api")
app.include_router(biodatas.router, prefix="/api")
app.include_router(contact_requests.router, prefix="/api")
app.include_router(favourites.router, prefix="/api")
app.include_router(success.router, prefix="/api")


@app.get("/")
async def root():
    return {"status": "Matrimonial server is running..."}


@app.get("/api/health/db")
async def db_health():
    return {
        "mongo": "connected" if is_connected() else "disconnected",
        "db": str(get_settings().mongo_db),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("matrimony_api.main:app", host="0.0.0.0", port=settings.port)
