import asyncio
import os
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from slowapi.middleware import SlowAPIMiddleware

from radiocalico.config import ALLOWED_ORIGINS, PUBLIC_DIR
from radiocalico.database import engine, init_models
from radiocalico.errors import install_error_handlers
from radiocalico.limiter import limiter
from radiocalico.logger import api_logger, database_logger, setup_logging
from radiocalico.routes import auth, playlists, ratings, songs, users

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Tiny retry so a momentary DB disconnect doesn't crash the app.
    for attempt in range(2):
        try:
            await init_models()
            database_logger.info("Database schema ready")
            break
        except Exception as e:
            if attempt == 0:
                database_logger.warning("DB init failed, retrying once: %r", e)
                await asyncio.sleep(0.5)
            else:
                # Tables should already exist from previous runs.
                database_logger.error("Skipping DB init due to error: %r", e)

    yield

    await engine.dispose()
    database_logger.info("Database connection closed")


app = FastAPI(title="Radio Calico API", lifespan=lifespan)

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

install_error_handlers(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    api_logger.info(
        "%s %s -> %s (%.1fms) user=%s",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
        getattr(request.state, "user_id", None),
    )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials="*" not in ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(songs.router)
app.include_router(playlists.router)
app.include_router(ratings.router)


@app.get("/health")
async def health():
    return {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()}


# Static frontend last so it never shadows the API
if PUBLIC_DIR and os.path.isdir(PUBLIC_DIR):
    app.mount("/", StaticFiles(directory=PUBLIC_DIR, html=True), name="public")
