"""Database engine for the test-results store.

One async engine per process; the API takes a request-scoped session from
``get_session`` and the scripts open their own through ``async_session``.
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from config.settings import settings

_LOCAL_HOSTS = ("localhost", "127.0.0.1", "::1")


def _normalise_url(url: str) -> str:
    """Rewrite lab DB URLs for the async psycopg driver.

    Hosted Postgres URLs (``postgres://`` / ``postgresql://``) get the
    ``+psycopg`` driver; remote hosts get ``sslmode=require`` unless the URL
    already sets a mode.
    """
    for scheme in ("postgres://", "postgresql://"):
        if url.startswith(scheme):
            url = "postgresql+psycopg://" + url[len(scheme):]
            break
    host = url.split("@")[-1].split("/")[0].rsplit(":", 1)[0] if "@" in url else ""
    if host and host.strip("[]") not in _LOCAL_HOSTS and "sslmode" not in url:
        url += ("&" if "?" in url else "?") + "sslmode=require"
    return url


engine = create_async_engine(
    _normalise_url(settings.database_url),
    echo=settings.debug_database,
    pool_pre_ping=True,
)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_session() -> AsyncSession:
    """Request-scoped session for the routers."""
    async with async_session() as session:
        yield session
