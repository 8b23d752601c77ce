"""Loguru sinks for the screener.

Modules log ``[TAG] message``. The tag is lifted into ``extra["tag"]`` so
console lines align on it and JSON records carry it as a field; untagged
records fall back to the emitting module's name.
"""

import re
import sys
from typing import Any

from loguru import logger

LOG_DIR = "logs"

_TAG = re.compile(r"^\[([A-Z_]+)\]\s*")

_CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <7}</level> | "
    "<cyan>{extra[tag]: <8}</cyan> | "
    "<level>{message}</level>"
)
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <7} | {extra[tag]: <8} | {message}"


def lift_tag(record: dict[str, Any]) -> None:
    match = _TAG.match(record["message"])
    if match:
        record["extra"]["tag"] = match.group(1)
        record["message"] = record["message"][match.end():]
    else:
        record["extra"].setdefault("tag", record["name"].rsplit(".", 1)[-1].upper())


def setup_logger(*, level: str, json_logs: bool = False) -> None:
    """Install console and daily DEBUG file sinks.

    ``level`` applies to the console only; callers pass ``settings.log_level``.
    Upstream warnings (exhausted retries) also go to their own file.
    """
    logger.remove()
    logger.configure(patcher=lift_tag)

    if json_logs:
        logger.add(sys.stdout, serialize=True, level=level.upper())
    else:
        logger.add(sys.stdout, format=_CONSOLE_FORMAT, level=level.upper(), colorize=True)

    logger.add(
        f"{LOG_DIR}/screener_{{time:YYYY-MM-DD}}.log",
        format=_FILE_FORMAT,
        rotation="00:00",
        retention="7 days",
        level="DEBUG",
        serialize=json_logs,
    )
    logger.add(
        f"{LOG_DIR}/upstream_failures.log",
        format=_FILE_FORMAT,
        rotation="10 MB",
        retention=3,
        level="WARNING",
        filter=lambda record: record["extra"].get("tag") == "UPSTREAM",
    )
