from __future__ import annotations

from enum import Enum


class SessionState(str, Enum):
    """Trạng thái phiên ra/vào, suy ra từ việc có out_time hay không."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"


class StoreBackend(str, Enum):
    MEMORY = "memory"
    MYSQL = "mysql"
