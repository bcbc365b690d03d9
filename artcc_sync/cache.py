"""
Redis-backed active-set cache and change notifications.

Holds, per entity class, the ordered list of identifiers considered
"currently present" after the last successful poll. The cache only ever
stores full replacements, never deltas: diffing lives in the reconciler,
this module just reads, replaces and publishes.

Key layout:
    pilots / controllers / atis     '|'-joined active set, TTL ~65s
    PILOT:<callsign>                hash of the latest flight telemetry
    ATIS:<airport>                  ATIS text (written by other services)
    METAR:<airport>                 latest METAR line
    neighbors                       '|'-joined neighboring centers online
    airports                        '|'-joined airport allow-list

The TTL is a few poll intervals long so a single missed poll does not
expire the set and trigger a storm of spurious leaves.
"""

import logging
from enum import Enum
from typing import Dict, List, Optional, Sequence

import redis

from artcc_sync.config import config

logger = logging.getLogger(__name__)

SEPARATOR = '|'


class CacheUnavailableError(RuntimeError):
    """Raised when the cache cannot be reached at startup."""


class EntityClass(str, Enum):
    """
    Entity classes reconciled every poll.

    The value is the cache key of the class's active set; topic is the
    prefix used for its pub/sub channels.
    """
    FLIGHT = 'pilots'
    OPERATOR_POSITION = 'controllers'
    BROADCAST_STATION = 'atis'

    @property
    def topic(self) -> str:
        return _TOPICS[self]

    @property
    def leave_channel(self) -> str:
        return f'{self.topic}:DELETE'


_TOPICS = {
    EntityClass.FLIGHT: 'PILOT',
    EntityClass.OPERATOR_POSITION: 'CONTROLLER',
    EntityClass.BROADCAST_STATION: 'ATIS',
}


class ActiveSetCache:
    """
    Last-known active sets plus the per-entity keys other services read.

    The redis client is injected so tests can hand in a fake.
    """

    def __init__(self, client: redis.Redis):
        self.client = client

    @classmethod
    def from_config(cls) -> 'ActiveSetCache':
        """Connect to the configured Redis instance."""
        return cls(redis.from_url(config.redis.url, decode_responses=True))

    def ping(self) -> None:
        """
        Verify the cache is reachable.

        Raises CacheUnavailableError; the service cannot reconcile
        without it, so callers treat this as fatal at startup.
        """
        try:
            self.client.ping()
        except redis.RedisError as e:
            raise CacheUnavailableError(f'Redis unreachable: {e}') from e
        logger.info('Successfully connected to Redis')

    @staticmethod
    def _key(entity_class: EntityClass, scope: Optional[str] = None) -> str:
        if scope:
            return f'{entity_class.value}:{scope}'
        return entity_class.value

    # -------------------------------------------------------------------------
    # Active sets
    # -------------------------------------------------------------------------

    def get(self, entity_class: EntityClass, scope: Optional[str] = None) -> List[str]:
        """Previous active set, empty if absent or expired."""
        raw = self.client.get(self._key(entity_class, scope))
        if not raw:
            return []
        return raw.split(SEPARATOR)

    def set(
        self,
        entity_class: EntityClass,
        ids: Sequence[str],
        ttl: int,
        scope: Optional[str] = None,
    ) -> None:
        """
        Replace the active set.

        A single SET with EX, so readers see either the old list or the
        new one, never a partial update or a value without expiry.
        """
        self.client.set(self._key(entity_class, scope), SEPARATOR.join(ids), ex=ttl)

    def publish_leave(self, entity_class: EntityClass, identifier: str) -> None:
        self.client.publish(entity_class.leave_channel, identifier)

    # -------------------------------------------------------------------------
    # Per-entity keys
    # -------------------------------------------------------------------------

    def write_flight_record(self, callsign: str, fields: Dict[str, str], ttl: int) -> None:
        """Compact telemetry hash for a single flight."""
        key = f'PILOT:{callsign}'
        self.client.hset(key, mapping=fields)
        self.client.expire(key, ttl)

    def publish_flight_update(self, callsign: str) -> None:
        self.client.publish(f'{EntityClass.FLIGHT.topic}:UPDATE', callsign)

    def refresh_atis(self, airport: str, ttl: int) -> None:
        """Extend the lifetime of an ATIS key while the station is online."""
        self.client.expire(f'ATIS:{airport}', ttl)

    def drop_atis(self, airport: str) -> None:
        self.client.delete(f'ATIS:{airport}')

    def set_neighbors(self, neighbors: Sequence[str], ttl: int) -> None:
        self.client.set('neighbors', SEPARATOR.join(neighbors), ex=ttl)

    def set_metar(self, airport: str, metar: str) -> None:
        self.client.set(f'METAR:{airport}', metar)

    def set_airports(self, airports: Sequence[str]) -> None:
        self.client.set('airports', SEPARATOR.join(airports))
