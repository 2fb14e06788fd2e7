from __future__ import annotations

from .query import QueryService
from .server import create_app

__all__ = ["QueryService", "create_app"]
