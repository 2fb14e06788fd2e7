from __future__ import annotations

from .formatter import format_result, print_result

__all__ = ["format_result", "print_result"]
