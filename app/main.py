import asyncio
import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv  # load .env variables

from fastapi import FastAPI

from sqlalchemy.exc import DBAPIError, OperationalError

import app.database as database
from app import __version__
from app.error_handlers import register_error_handlers
from app.services.slack_responder import get_slack_responder

# ----- Load environment variables -----
load_dotenv()

# ----- Logging -----
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)

# ----- Routers -----
from app.routes.slack import router as slack_router


async def ensure_database() -> None:
    """Create tables, waiting for the database to come up."""

    max_attempts = int(os.getenv("DB_INIT_MAX_ATTEMPTS", "10"))
    base_delay = float(os.getenv("DB_INIT_RETRY_SECONDS", "1.0"))

    attempt = 0
    while True:
        attempt += 1
        try:
            await database.init_models()
        except (OperationalError, DBAPIError, OSError) as exc:  # pragma: no cover - depends on timing
            if attempt >= max_attempts:
                logging.exception("Database not reachable after %s attempts", attempt)
                raise

            wait_time = base_delay * min(2 ** (attempt - 1), 8)
            logging.warning(
                "Database not ready (attempt %s/%s): %s. Retrying in %.1f seconds...",
                attempt,
                max_attempts,
                exc,
                wait_time,
            )
            await asyncio.sleep(wait_time)
        else:
            logging.info("Song of the Week bot started and database tables ensured.")
            return


@asynccontextmanager
async def lifespan(_app: FastAPI):
    await ensure_database()
    yield
    # ----- Shutdown: release the outbound HTTP client and the pool -----
    await get_slack_responder().aclose()
    await database.engine.dispose()


# ----- FastAPI app -----
app = FastAPI(
    title="Song of the Week bot",
    version=__version__,
    docs_url=None,
    redoc_url=None,
    lifespan=lifespan,
)

register_error_handlers(app)
app.include_router(slack_router)


# ----- Health check endpoint -----
@app.get("/health", tags=["meta"])
async def health():
    return {"ok": True}


# Log whether the secret is present, never its value.
if not os.getenv("SLACK_SIGNING_SECRET"):
    logging.warning("SLACK_SIGNING_SECRET is not set; every request will be rejected.")
