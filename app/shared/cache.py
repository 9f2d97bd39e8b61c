"""In-memory entity cache with explicit invalidation.

The cache is a plain object owned by the application (``app.state.cache``) and
handed to services through a dependency. Nothing is cached implicitly: readers
``put`` what they loaded and writers call ``invalidate`` for the entity they
mutated. At most ``max_entities`` entity buckets are held; the least recently
written bucket is evicted first.
"""

import logging
from collections import OrderedDict
from typing import Any, Hashable
from uuid import UUID

logger = logging.getLogger(__name__)

# Namespaces
MESSAGE_PAGES = "message_pages"

DEFAULT_MAX_ENTITIES = 256


class EntityCache:
    """Cache keyed by (namespace, entity id, key)."""

    def __init__(self, max_entities: int = DEFAULT_MAX_ENTITIES):
        if max_entities < 1:
            raise ValueError("max_entities must be at least 1")
        self.max_entities = max_entities
        self._entries: OrderedDict[tuple[str, UUID], dict[Hashable, Any]] = OrderedDict()

    def get(self, namespace: str, entity_id: UUID, key: Hashable = None) -> Any | None:
        bucket = self._entries.get((namespace, entity_id))
        if bucket is None:
            return None
        return bucket.get(key)

    def put(self, namespace: str, entity_id: UUID, value: Any, key: Hashable = None) -> None:
        bucket_key = (namespace, entity_id)
        bucket = self._entries.get(bucket_key)
        if bucket is None:
            bucket = self._entries[bucket_key] = {}
        else:
            self._entries.move_to_end(bucket_key)
        bucket[key] = value

        while len(self._entries) > self.max_entities:
            (evicted_namespace, evicted_id), _ = self._entries.popitem(last=False)
            logger.debug("Evicted %s cache for %s", evicted_namespace, evicted_id)

    def invalidate(self, namespace: str, entity_id: UUID) -> None:
        """Drop every entry held for one entity in one namespace."""
        if self._entries.pop((namespace, entity_id), None) is not None:
            logger.debug("Invalidated %s cache for %s", namespace, entity_id)

    def clear(self) -> None:
        self._entries.clear()

    @property
    def entity_count(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._entries.values())
