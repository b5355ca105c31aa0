import asyncio

from fastapi import APIRouter, Body, HTTPException, Query, Request
from slowapi import Limiter
from sqlalchemy.exc import SQLAlchemyError

from userfeed.config import Settings
from userfeed.core.dependencies import DatabaseEngine, HttpClient
from userfeed.core.exceptions import (
    get_operation_message,
    handle_storage_error,
    handle_unexpected_error,
    handle_upstream_error,
)
from userfeed.models.user import FetchUsersRequest, FetchUsersResponse, User, UserCount
from userfeed.randomuser.helpers import RandomUserAPIError
from userfeed.users.service import count_all_users, ingest_users, list_all_users, trigger_failure


def create_router(limiter: Limiter, settings: Settings) -> APIRouter:
    """Build the users API; every route shares the app's per-client rate limit."""
    router = APIRouter()

    @router.post("/fetch-users", response_model=FetchUsersResponse)
    @limiter.limit(settings.RATE_LIMIT_API)
    async def fetch_users(
        request: Request,
        http: HttpClient,
        engine: DatabaseEngine,
        count: int | None = Query(None),
        payload: FetchUsersRequest | None = Body(None),
    ):
        requested = count if count is not None else (payload.count if payload else None)
        try:
            stored = await ingest_users(http, engine, settings, requested)
        except RandomUserAPIError as e:
            handle_upstream_error(e, "fetch_users")
        except SQLAlchemyError as e:
            handle_storage_error(e, "fetch_users")
        return FetchUsersResponse(message=f"Successfully fetched and stored {stored} users")

    @router.get("/users", response_model=list[User])
    @limiter.limit(settings.RATE_LIMIT_API)
    async def get_users(request: Request, engine: DatabaseEngine):
        try:
            return await asyncio.to_thread(list_all_users, engine, settings)
        except SQLAlchemyError as e:
            handle_storage_error(e, "list_users")

    @router.get("/user-count", response_model=UserCount)
    @limiter.limit(settings.RATE_LIMIT_API)
    async def get_user_count(request: Request, engine: DatabaseEngine):
        try:
            total = await asyncio.to_thread(count_all_users, engine, settings)
        except SQLAlchemyError as e:
            handle_storage_error(e, "count_users")
        return UserCount(total=total)

    @router.get("/trigger-failure")
    @limiter.limit(settings.RATE_LIMIT_API)
    async def get_trigger_failure(request: Request, engine: DatabaseEngine):
        try:
            await asyncio.to_thread(trigger_failure, engine)
        except SQLAlchemyError as e:
            handle_storage_error(e, "trigger_failure")
        except Exception as e:
            handle_unexpected_error(e, "trigger_failure")
        raise HTTPException(status_code=500, detail=get_operation_message("trigger_failure"))

    return router
