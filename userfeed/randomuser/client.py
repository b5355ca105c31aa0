import logging

import httpx

from userfeed.models.user import UserCreate
from userfeed.randomuser.constants import RandomUserConfig
from userfeed.randomuser.helpers import RandomUserAPIError, extract_error_message, transform_people

logger = logging.getLogger(__name__)


def handle_randomuser_response(response: httpx.Response) -> dict:
    status = response.status_code
    if 200 <= status < 300:
        try:
            body = response.json()
        except ValueError:
            raise RandomUserAPIError(status, "Malformed response body")
        if not isinstance(body, dict) or not isinstance(body.get("results"), list):
            raise RandomUserAPIError(status, "Response has no results")
        return body

    reason = extract_error_message(response)
    if status == 429:
        raise RandomUserAPIError(429, "Rate limited")
    if status >= 500:
        raise RandomUserAPIError(status, reason or "Upstream server error")
    raise RandomUserAPIError(status, reason or "Request failed")


async def fetch_random_users(
    http: httpx.AsyncClient,
    count: int,
    base_url: str = RandomUserConfig.API_BASE_URL,
    include_avatar: bool = True,
) -> list[UserCreate]:
    """Ask the upstream for ``count`` people in a single call. No retries."""
    params = {"results": count, "inc": RandomUserConfig.INCLUDED_FIELDS}
    try:
        response = await http.get(base_url, params=params)
    except httpx.TimeoutException:
        raise RandomUserAPIError(504, "Request timed out")
    except httpx.HTTPError as e:
        raise RandomUserAPIError(503, f"Network error: {type(e).__name__}")

    body = handle_randomuser_response(response)
    results = body["results"][:count]
    logger.info("randomuser.fetched requested=%d received=%d", count, len(results))
    return transform_people(results, include_avatar=include_avatar)
