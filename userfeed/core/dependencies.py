from typing import Annotated

import httpx
from fastapi import Depends, Request
from sqlalchemy.engine import Engine

from userfeed.config import Settings
from userfeed.randomuser.constants import RandomUserConfig


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.UPSTREAM_TIMEOUT_SECONDS, connect=RandomUserConfig.REQUEST_TIMEOUT.connect),
        limits=httpx.Limits(max_connections=50, max_keepalive_connections=10),
        headers={"Accept-Encoding": "gzip"},
    )


def get_engine(request: Request) -> Engine:
    return request.app.state.engine


async def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


DatabaseEngine = Annotated[Engine, Depends(get_engine)]
HttpClient = Annotated[httpx.AsyncClient, Depends(get_http_client)]
