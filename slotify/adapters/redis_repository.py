"""
Redis-backed schedule storage.

Each schedule is stored as JSON under ``<prefix><participant name>``.
"""

import json
import logging
from typing import Any, Iterable, List, Optional, Set

import redis

from ..domain.exceptions import RepositoryError
from ..domain.models import Schedule

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "schedule:"
SCAN_BATCH_SIZE = 100


class RedisScheduleRepository:
    """
    Repository that keeps schedules in Redis.

    Only single-key reads and writes are atomic; ``replace_all`` runs the
    delete and the inserts inside one MULTI/EXEC pipeline.
    """

    def __init__(self, client: "redis.Redis", key_prefix: str = DEFAULT_KEY_PREFIX):
        """
        Initialize the repository.

        Args:
            client: Connected redis-py client
            key_prefix: Prefix for all schedule keys
        """
        self.client = client
        self.key_prefix = key_prefix

    @classmethod
    def connect(
        cls,
        host: str,
        port: int = 6379,
        db: int = 0,
        key_prefix: str = DEFAULT_KEY_PREFIX,
    ) -> "RedisScheduleRepository":
        """Create a repository with a fresh client for ``host:port``."""
        client = redis.Redis(host=host, port=port, db=db, socket_timeout=5)
        logger.info("Using Redis schedule storage at %s:%s/%s", host, port, db)
        return cls(client, key_prefix=key_prefix)

    def save(self, schedule: Schedule) -> None:
        key = self._key(schedule.participant_name)
        try:
            self.client.set(key, self._serialize(schedule))
        except redis.RedisError as exc:
            raise RepositoryError(
                f"Failed to store schedule for {schedule.participant_name}"
            ) from exc

    def find_by_participant(self, name: str) -> Optional[Schedule]:
        try:
            payload = self.client.get(self._key(name))
        except redis.RedisError as exc:
            raise RepositoryError(f"Failed to load schedule for {name}") from exc

        if payload is None:
            return None

        try:
            return Schedule.from_dict(json.loads(payload))
        except (ValueError, KeyError, TypeError) as exc:
            raise RepositoryError(f"Failed to deserialize schedule for {name}") from exc

    def list_participant_names(self) -> Set[str]:
        return {
            self._decode(key)[len(self.key_prefix):]
            for key in self._scan_keys()
        }

    def clear(self) -> None:
        keys = self._scan_keys()
        if not keys:
            return
        try:
            for start in range(0, len(keys), SCAN_BATCH_SIZE):
                self.client.delete(*keys[start:start + SCAN_BATCH_SIZE])
        except redis.RedisError as exc:
            raise RepositoryError("Failed to clear schedules") from exc
        logger.debug("Removed %d schedules from Redis", len(keys))

    def replace_all(self, schedules: Iterable[Schedule]) -> None:
        """Replace every stored schedule inside one transaction."""
        schedules = list(schedules)
        stale_keys = self._scan_keys()
        try:
            pipeline = self.client.pipeline(transaction=True)
            if stale_keys:
                pipeline.delete(*stale_keys)
            for schedule in schedules:
                pipeline.set(self._key(schedule.participant_name), self._serialize(schedule))
            pipeline.execute()
        except redis.RedisError as exc:
            raise RepositoryError("Failed to replace schedules") from exc

    def _scan_keys(self) -> List[Any]:
        try:
            return list(self.client.scan_iter(match=f"{self.key_prefix}*", count=SCAN_BATCH_SIZE))
        except redis.RedisError as exc:
            raise RepositoryError("Failed to scan schedule keys") from exc

    def _key(self, name: str) -> str:
        return f"{self.key_prefix}{name}"

    @staticmethod
    def _serialize(schedule: Schedule) -> str:
        return json.dumps(schedule.to_dict())

    @staticmethod
    def _decode(value: Any) -> str:
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value
