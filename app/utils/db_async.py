"""Async SQLAlchemy engine and session helpers for the episodes database."""

import ssl
from typing import Any, AsyncGenerator
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from app.config import settings

ASYNC_DRIVER = "postgresql+asyncpg"


def to_async_url(url: str) -> str:
    """Select the asyncpg driver for bare Postgres URLs.

    Hosted Postgres providers hand out ``postgres://`` or ``postgresql://``
    connection strings. An explicit driver (``postgresql+psycopg://``) and
    non-Postgres URLs are returned untouched.
    """
    scheme, sep, rest = url.partition("://")
    if not sep or "+" in scheme:
        return url
    if scheme.lower() in ("postgres", "postgresql"):
        return f"{ASYNC_DRIVER}://{rest}"
    return url


def ssl_connect_args(sslmode: str | None) -> dict[str, Any]:
    """Translate a libpq ``sslmode`` value into asyncpg ``connect_args``."""
    if not sslmode:
        return {}
    mode = sslmode.lower()
    if mode == "disable":
        return {"ssl": False}
    if mode in ("allow", "prefer"):
        # asyncpg negotiates TLS on its own when the server asks for it
        return {}
    context = ssl.create_default_context()
    if mode == "require":
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    elif mode == "verify-ca":
        context.check_hostname = False
    return {"ssl": context}


def split_connect_args(url: str) -> tuple[str, dict[str, Any]]:
    """Strip libpq-only query arguments and return ``(url, connect_args)``."""
    parts = urlsplit(to_async_url(url))
    kept: list[tuple[str, str]] = []
    sslmode = None
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        if key == "sslmode":
            sslmode = value
        elif key != "channel_binding":
            kept.append((key, value))

    cleaned = urlunsplit(parts._replace(query=urlencode(kept, doseq=True)))
    return cleaned.rstrip("?"), ssl_connect_args(sslmode)


DATABASE_URL, CONNECT_ARGS = split_connect_args(settings.database_url)

engine = create_async_engine(
    DATABASE_URL,
    pool_pre_ping=True,
    connect_args=CONNECT_ARGS,
)
SessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield one async session per request."""
    async with SessionLocal() as session:
        yield session


async def init_db() -> None:
    """Create the episodes table when it does not exist yet (dev only)."""
    # Imported here so the table is registered on SQLModel.metadata
    from app.schemas import episodes  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def dispose_engine() -> None:
    """Close pooled connections."""
    await engine.dispose()


def describe_database_url(url: str) -> str:
    """Return ``driver://user@host:port/db`` for logs, never the password."""
    try:
        parsed = make_url(url)
    except Exception:
        return "<unparseable database URL>"
    port = f":{parsed.port}" if parsed.port else ""
    return (
        f"{parsed.drivername}://{parsed.username or '?'}@{parsed.host or '?'}"
        f"{port}/{parsed.database or '?'}"
    )
