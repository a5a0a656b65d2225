# app/main.py
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import exc as sa_exc

from app.config import settings
from app.database import engine, Base
from app.models import user, task, team, message, notification  # noqa: F401  (register tables)
from app.realtime.registry import ConnectionRegistry
from app.realtime.relay import Relay
from app.services.teams import TeamLocks
from app.routers import user as user_router, task as task_router, team as team_router
from app.routers import message as message_router, notification as notification_router, realtime

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create DB Tables (dev convenience; use Alembic in prod)
    async with engine.begin() as conn:
        try:
            await conn.run_sync(Base.metadata.create_all)
        except sa_exc.IntegrityError as e:
            msg = str(getattr(e, "orig", e))
            if "duplicate key value violates unique constraint" in msg or "already exists" in msg:
                logger.warning("Ignored duplicate DDL error during create_all: %s", msg)
            else:
                raise

    # One registry and relay per process
    app.state.relay = Relay(ConnectionRegistry())
    app.state.team_locks = TeamLocks()
    yield


app = FastAPI(title="AbleSpace - Academic Task Management", version="1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include Routers
app.include_router(user_router.router, prefix="/api")
app.include_router(task_router.router, prefix="/api")
app.include_router(team_router.router, prefix="/api")
app.include_router(message_router.router, prefix="/api")
app.include_router(notification_router.router, prefix="/api")
app.include_router(realtime.router, prefix="/api")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Server error"})


@app.get("/")
def read_root():
    return {"message": "Welcome to AbleSpace Backend"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
