from sqlalchemy import func, insert, select, text
from sqlalchemy.engine import Connection

from userfeed.core.database import users
from userfeed.core.db_utils import Row, all_rows
from userfeed.models.user import UserCreate

MISSING_TABLE = "non_existent_table"


def insert_user(conn: Connection, user: UserCreate) -> int:
    """Insert one user in its own transaction and return the new id."""
    with conn.begin():
        result = conn.execute(
            insert(users).values(
                first_name=user.first_name,
                last_name=user.last_name,
                email=user.email,
                avatar=user.avatar,
            )
        )
    return result.inserted_primary_key[0]


def list_users(conn: Connection) -> list[Row]:
    result = conn.execute(
        select(users).order_by(users.c.created_at.desc(), users.c.id.desc())
    )
    return all_rows(result.mappings().all())


def count_users(conn: Connection) -> int:
    total = conn.execute(select(func.count()).select_from(users)).scalar_one()
    return int(total)


def query_missing_table(conn: Connection) -> list[Row]:
    result = conn.execute(text(f"SELECT * FROM {MISSING_TABLE}"))
    return all_rows(result.mappings().all())
