import logging

import httpx
from pydantic import ValidationError

from userfeed.models.user import UserCreate

logger = logging.getLogger(__name__)


class RandomUserAPIError(Exception):
    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"RandomUser API Error {status_code}: {message}")


def extract_error_message(response: httpx.Response) -> str:
    try:
        return str(response.json().get("error", ""))
    except (ValueError, AttributeError):
        return ""


def transform_people(results: list[dict], include_avatar: bool = True) -> list[UserCreate]:
    """Map randomuser.me person objects onto insertable user records.

    Entries that are not objects, or lack a name or email, are skipped with a
    warning so one bad record does not sink the whole batch. A non-object
    ``picture`` just leaves the avatar empty.
    """
    people = []

    for index, person in enumerate(results):
        if not isinstance(person, dict):
            logger.warning("randomuser.skip index=%d reason=%s", index, type(person).__name__)
            continue
        name = person.get("name") or {}
        picture = person.get("picture")
        if not isinstance(picture, dict):
            picture = {}
        try:
            people.append(UserCreate(
                first_name=name["first"],
                last_name=name["last"],
                email=person["email"],
                avatar=picture.get("large") if include_avatar else None,
            ))
        except (KeyError, TypeError, ValidationError) as e:
            logger.warning("randomuser.skip index=%d reason=%s", index, type(e).__name__)

    return people
