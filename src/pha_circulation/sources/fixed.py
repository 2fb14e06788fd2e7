from __future__ import annotations

from .base import BaseSource, FixedDescriptor


class FixedSource(BaseSource):
    """Serves constants declared in the chain table."""

    kinds = ("fixed",)

    @property
    def source_name(self) -> str:
        return "fixed"

    async def fetch_raw(self, descriptor: FixedDescriptor) -> str:
        return descriptor.value
