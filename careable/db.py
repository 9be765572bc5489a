import logging, time
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy import text, event
from .config import get_settings

log = logging.getLogger("careable.sql")
S = get_settings()

engine = create_async_engine(
    S.DATABASE_URL,
    future=True,
    pool_pre_ping=True,
)

SessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def db_health() -> bool:
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception:
        log.warning("db_health_failed", exc_info=True)
        return False


async def get_db() -> AsyncSession:
    async with SessionLocal() as session:
        yield session


@event.listens_for(engine.sync_engine, "before_cursor_execute")
def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    context._query_start_time = time.perf_counter()

@event.listens_for(engine.sync_engine, "after_cursor_execute")
def _after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    elapsed_ms = int((time.perf_counter() - getattr(context, "_query_start_time", time.perf_counter())) * 1000)
    if elapsed_ms >= S.SLOW_QUERY_MS:
        # statement only; parameters may carry lookup hashes
        log.warning("slow_query", extra={"elapsed_ms": elapsed_ms, "sql": statement[:200]})
