import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s level=%(levelname)s logger=%(name)s %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    logging.getLogger("userfeed").setLevel(level.upper())


def format_fields(fields: dict[str, Any]) -> str:
    return " ".join(f"{key}={value}" for key, value in fields.items())


@dataclass
class Operation:
    name: str
    fields: dict[str, Any] = field(default_factory=dict)
    duration_ms: float = 0.0
    slow: bool = False


@contextmanager
def observe(
    operation: str,
    slow_ms: float | None = None,
    ok_level: int = logging.INFO,
    **fields: Any,
) -> Iterator[Operation]:
    """Time the wrapped block and log its outcome.

    Success logs ``op.ok`` at ``ok_level``, and ``op.slow`` at WARNING when the block
    ran longer than ``slow_ms``. Failure logs ``op.failed`` with the traceback
    and re-raises. The yielded ``Operation`` lets the block attach fields
    (row counts and the like) to the final record.
    """
    op = Operation(operation, dict(fields))
    start = time.monotonic()
    try:
        yield op
    except Exception as e:
        op.duration_ms = (time.monotonic() - start) * 1000
        logger.error(
            "op.failed operation=%s duration_ms=%.0f error=%s %s",
            operation, op.duration_ms, type(e).__name__, format_fields(op.fields),
            exc_info=True,
        )
        raise

    op.duration_ms = (time.monotonic() - start) * 1000
    if slow_ms is not None and op.duration_ms > slow_ms:
        op.slow = True
        logger.warning(
            "op.slow operation=%s duration_ms=%.0f threshold_ms=%.0f %s",
            operation, op.duration_ms, slow_ms, format_fields(op.fields),
        )
    logger.log(
        ok_level,
        "op.ok operation=%s duration_ms=%.0f %s",
        operation, op.duration_ms, format_fields(op.fields),
    )


def flag_anomaly(operation: str, metric: str, value: float, limit: float) -> bool:
    if value > limit:
        logger.warning(
            "op.anomaly operation=%s metric=%s value=%s limit=%s",
            operation, metric, value, limit,
        )
        return True
    return False
