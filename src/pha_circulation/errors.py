"""Exceptions raised across the refresh and query paths."""

from __future__ import annotations


class CirculationError(Exception):
    """Base class for every error raised by pha-circulation."""


class SourceUnavailable(CirculationError):
    """The data source could not be reached or answered with a transport error."""

    def __init__(self, source: str, cause: BaseException | str):
        self.source = source
        self.cause = cause
        super().__init__(f"Source {source} unavailable: {cause}")


class SourceMalformed(CirculationError):
    """The data source answered, but not in the expected shape."""

    def __init__(self, source: str, detail: str):
        self.source = source
        self.detail = detail
        super().__init__(f"Source {source} returned a malformed response: {detail}")


class ChainAggregationFailed(CirculationError):
    """A figure needed for one chain's snapshot could not be fetched."""

    def __init__(self, chain: str, cause: BaseException):
        self.chain = chain
        self.cause = cause
        super().__init__(f"Aggregation failed for chain '{chain}': {cause}")


class CycleAborted(CirculationError):
    """A refresh cycle was discarded; nothing was written to the cache."""

    def __init__(self, reason: str, failures: list[ChainAggregationFailed] | None = None):
        self.reason = reason
        self.failures = failures or []
        super().__init__(f"Refresh cycle aborted: {reason}")


class NotFound(CirculationError):
    """A cache key has never been written."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Cache key '{key}' has not been written yet")
