import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from rentals.core.config import get_settings
from rentals.db.base import Base
from rentals.db.session import engine
from rentals.errors import register_error_handlers
from rentals.services.storage import upload_root
from rentals.api.routers import (
    admin as admin_router,
    auth as auth_router,
    guest as guest_router,
    host as host_router,
    index as index_router,
)

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logging.getLogger("uvicorn.error").setLevel(settings.LOG_LEVEL.upper())


# ---------------------------
# Startup
# ---------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

register_error_handlers(app)

# ---------------------------
# CORS
# ---------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------
# Uploaded images
# ---------------------------
UPLOAD_DIR = upload_root()
UPLOAD_DIR.mkdir(parents=True, exist_ok=True)

app.mount("/uploads", StaticFiles(directory=str(UPLOAD_DIR)), name="uploads")

# ---------------------------
# Routers
# ---------------------------
app.include_router(index_router.router, tags=["index"])
app.include_router(auth_router.router, prefix="/api/auth", tags=["auth"])
app.include_router(admin_router.router, prefix="/api/admin", tags=["admin"])
app.include_router(host_router.router, prefix="/api/host", tags=["host"])
app.include_router(guest_router.router, prefix="/api/guest", tags=["guest"])

# ---------------------------
# Run
# ---------------------------
if __name__ == "__main__":
    uvicorn.run("rentals.main:app", host="0.0.0.0", port=8000, reload=True)
