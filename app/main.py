"""
Main entry point for FastAPI application.
"""
from contextlib import asynccontextmanager
import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from app.config import settings
from app.logging_config import setup_logging
from app.routes import episodes, ui
from app.utils.db_async import DATABASE_URL, describe_database_url, dispose_engine, init_db
from app.utils.formatting import (
    format_count,
    format_date,
    format_duration,
    format_read_time,
    truncate_text,
)
from app.utils.slug import category_slug

logger = logging.getLogger(__name__)

setup_logging(level=settings.log_level, access_log=settings.access_log, sql_echo=settings.sql_echo)

APP_DIR = Path(__file__).resolve().parent


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"DB target: {describe_database_url(DATABASE_URL)}")
    if settings.is_dev and settings.auto_init_db:
        logger.info("Running init_db()…")
        try:
            await init_db()
            logger.info("DB ready.")
        except Exception:
            logger.exception("init_db failed")
            raise
    else:
        logger.info("Skipping init_db(); schema is managed by Alembic")

    yield

    try:
        logger.info("Disposing DB engine…")
        await dispose_engine()
        logger.info("DB engine disposed.")
    except Exception:
        logger.exception("Failed to dispose DB engine")


def build_templates() -> Jinja2Templates:
    """Create the Jinja environment with the display filters templates use."""
    templates = Jinja2Templates(directory=str(APP_DIR / "templates"))
    templates.env.filters["duration"] = format_duration
    templates.env.filters["read_time"] = format_read_time
    templates.env.filters["preview"] = lambda text: truncate_text(
        text, settings.summary_preview_length
    )
    templates.env.filters["count"] = format_count
    templates.env.filters["date"] = format_date
    templates.env.globals["category_slug"] = category_slug
    return templates


app = FastAPI(title=settings.site_name, lifespan=lifespan)
app.mount("/static", StaticFiles(directory=str(APP_DIR / "static")), name="static")
app.state.templates = build_templates()
app.include_router(episodes.router)
app.include_router(ui.router)


@app.get("/health")
async def health_check():
    """Health Check Endpoint"""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8080)
