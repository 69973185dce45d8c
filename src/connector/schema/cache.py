"""Connection-scoped schema cache with time-based invalidation.

One CachedSchema per connection domain. An entry is served while

    age(cached_at) < ttl  AND  entry.domain == connection.domain  AND  not force_refresh

and otherwise replaced by a fresh fetch. Entries are replaced, never mutated.
Concurrent callers racing a refresh may both fetch and both store; the last
store wins, which is safe because a refresh is idempotent.

The cache is an explicit object handed to every component that needs schema
data; there is no module-level cache state.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import structlog

from src.connector.config import get_settings
from src.connector.core.monitoring import schema_cache_events_total
from src.connector.core.transport import TwentyTransport
from src.connector.schema.fetcher import SchemaFetcher
from src.connector.schema.models import CachedSchema, ObjectSchema

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SchemaCache:
    """Time-boxed schema cache keyed by connection domain.

    Args:
        fetcher: SchemaFetcher used on miss. Defaults to a new one.
        ttl_seconds: Entry lifetime. Defaults to settings (600s).
        clock: Returns the current aware datetime; injectable for tests.
    """

    def __init__(
        self,
        fetcher: SchemaFetcher | None = None,
        ttl_seconds: float | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._fetcher = fetcher or SchemaFetcher()
        if ttl_seconds is None:
            ttl_seconds = get_settings().SCHEMA_CACHE_TTL_SECONDS
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._entries: dict[str, CachedSchema] = {}

    @property
    def ttl_ms(self) -> float:
        return self._ttl.total_seconds() * 1000

    def peek(self, domain: str) -> CachedSchema | None:
        """Return the stored entry for a domain without validity checks."""
        return self._entries.get(domain)

    def is_valid(self, entry: CachedSchema | None, domain: str) -> bool:
        if entry is None:
            return False
        return entry.domain == domain and entry.age_ms(self._clock()) < self.ttl_ms

    async def get_schema(
        self,
        transport: TwentyTransport,
        force_refresh: bool = False,
    ) -> CachedSchema:
        """Return the schema of the transport's deployment.

        Serves the cached entry when valid; otherwise fetches, stores and
        returns a new entry. ``force_refresh`` always fetches.

        Raises:
            ConnectorError: Any subclass, if the fetch fails.
        """
        domain = transport.domain
        entry = self._entries.get(domain)

        if not force_refresh and self.is_valid(entry, domain):
            schema_cache_events_total.labels(event="hit").inc()
            logger.debug("schema_cache.hit", domain=domain)
            return entry  # type: ignore[return-value]

        if force_refresh:
            schema_cache_events_total.labels(event="refresh").inc()
            logger.info("schema_cache.refresh", domain=domain)
        else:
            schema_cache_events_total.labels(event="miss").inc()
            logger.info("schema_cache.miss", domain=domain, stale=entry is not None)

        objects = await self._fetcher.fetch_schema(transport)
        fresh = CachedSchema(objects=objects, cached_at=self._clock(), domain=domain)
        self._entries[domain] = fresh
        return fresh

    async def get_object(
        self,
        transport: TwentyTransport,
        object_name: str,
        force_refresh: bool = False,
    ) -> ObjectSchema:
        """Schema of one object.

        Raises:
            SchemaError: If the object is unknown to the discovered schema.
        """
        schema = await self.get_schema(transport, force_refresh=force_refresh)
        return schema.object(object_name)

    def invalidate(self, domain: str | None = None) -> None:
        """Drop the entry of one domain, or every entry when domain is None."""
        if domain is None:
            self._entries.clear()
        else:
            self._entries.pop(domain, None)
        schema_cache_events_total.labels(event="invalidate").inc()
        logger.info("schema_cache.invalidated", domain=domain or "*")
