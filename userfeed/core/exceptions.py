from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError

from userfeed.randomuser.helpers import RandomUserAPIError

SAFE_ERROR_MESSAGES = {
    500: "An internal error occurred",
}

OPERATION_ERROR_MESSAGES = {
    "fetch_users": "Failed to fetch and store users",
    "list_users": "Failed to fetch users",
    "count_users": "Failed to count users",
    "trigger_failure": "Intentional failure triggered",
}


def get_safe_message(status_code: int, fallback: str = "An error occurred") -> str:
    return SAFE_ERROR_MESSAGES.get(status_code, fallback)


def get_operation_message(operation: str) -> str:
    return OPERATION_ERROR_MESSAGES.get(operation, get_safe_message(500))


# The failure itself is already logged with its traceback by ``observe``;
# these only translate it into a response that hides the cause.
def handle_upstream_error(e: RandomUserAPIError, operation: str = "operation"):
    raise HTTPException(status_code=500, detail=get_operation_message(operation)) from e


def handle_storage_error(e: SQLAlchemyError, operation: str = "operation"):
    raise HTTPException(status_code=500, detail=get_operation_message(operation)) from e


def handle_unexpected_error(e: Exception, operation: str = "operation"):
    raise HTTPException(status_code=500, detail=get_operation_message(operation)) from e
