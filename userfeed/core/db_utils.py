from collections.abc import Mapping
from typing import Any

Row = dict[str, Any]


def all_rows(data: Any) -> list[Row]:
    if isinstance(data, (list, tuple)):
        return [dict(r) for r in data if isinstance(r, Mapping)]
    return []
