from __future__ import annotations

from .run import run_refresh

__all__ = ["run_refresh"]
