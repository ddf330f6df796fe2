from __future__ import annotations

import os
import time
from datetime import datetime

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S %z"


def now() -> float:
    return time.time()


def env_str(name: str, *, default: str) -> str:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    return value


def format_timestamp(ts: float, fmt: str = TIMESTAMP_FORMAT) -> str:
    """Format an epoch timestamp in local time."""
    return datetime.fromtimestamp(ts).astimezone().strftime(fmt)
