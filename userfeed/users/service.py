import asyncio
import logging

import httpx
from sqlalchemy.engine import Engine

from userfeed.config import Settings
from userfeed.core.database import connection_scope
from userfeed.core.db_utils import Row
from userfeed.core.observability import flag_anomaly, observe
from userfeed.models.user import UserCreate
from userfeed.randomuser.client import fetch_random_users
from userfeed.users.db import count_users, insert_user, list_users, query_missing_table

logger = logging.getLogger(__name__)


def resolve_fetch_count(requested: int | None, settings: Settings) -> int:
    if requested is None or requested <= 0:
        return settings.DEFAULT_FETCH_COUNT
    if requested > settings.MAX_FETCH_COUNT:
        logger.warning(
            "fetch_users.clamp requested=%d max=%d", requested, settings.MAX_FETCH_COUNT
        )
        return settings.MAX_FETCH_COUNT
    return requested


def store_users(engine: Engine, people: list[UserCreate], settings: Settings) -> int:
    """Insert each record in its own transaction, stopping at the first failure.

    Rows inserted before a failure stay committed.
    """
    stored = 0
    with connection_scope(engine) as conn:
        for person in people:
            try:
                with observe("insert_user", slow_ms=settings.SLOW_INSERT_MS, ok_level=logging.DEBUG) as op:
                    op.fields["id"] = insert_user(conn, person)
            except Exception:
                logger.warning(
                    "fetch_users.aborted stored=%d remaining=%d", stored, len(people) - stored
                )
                raise
            stored += 1
    return stored


async def ingest_users(
    http: httpx.AsyncClient,
    engine: Engine,
    settings: Settings,
    requested: int | None = None,
) -> int:
    count = resolve_fetch_count(requested, settings)
    with observe("fetch_users", requested=count) as op:
        people = await fetch_random_users(
            http,
            count,
            base_url=settings.RANDOMUSER_API_URL,
            include_avatar=settings.STORE_AVATAR,
        )
        op.fields["received"] = len(people)
        stored = await asyncio.to_thread(store_users, engine, people, settings)
        op.fields["stored"] = stored
    return stored


def list_all_users(engine: Engine, settings: Settings) -> list[Row]:
    with observe("list_users", slow_ms=settings.SLOW_QUERY_MS) as op:
        with connection_scope(engine) as conn:
            rows = list_users(conn)
        op.fields["rows"] = len(rows)
    flag_anomaly("list_users", "rows", len(rows), settings.LARGE_RESULT_ROWS)
    return rows


def count_all_users(engine: Engine, settings: Settings) -> int:
    with observe("count_users", slow_ms=settings.SLOW_QUERY_MS) as op:
        with connection_scope(engine) as conn:
            total = count_users(conn)
        op.fields["total"] = total
    flag_anomaly("count_users", "total", total, settings.HIGH_USER_COUNT)
    return total


def trigger_failure(engine: Engine) -> list[Row]:
    with observe("trigger_failure"):
        with connection_scope(engine) as conn:
            return query_missing_table(conn)
