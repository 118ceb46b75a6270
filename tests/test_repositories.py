"""
Tests for schedule repositories.
"""

import json
from datetime import time
from unittest.mock import MagicMock

import pytest
import redis

from slotify.adapters.memory_repository import InMemoryScheduleRepository
from slotify.adapters.redis_repository import RedisScheduleRepository
from slotify.domain.exceptions import RepositoryError
from slotify.domain.models import Schedule, TimeSlot


def schedule(name: str, *hours) -> Schedule:
    return Schedule(name, tuple(TimeSlot(time(start, 0), time(end, 0)) for start, end in hours))


class TestInMemoryScheduleRepository:
    """Tests for InMemoryScheduleRepository."""

    def test_save_and_find(self):
        repository = InMemoryScheduleRepository()
        alice = schedule("Alice", (9, 10))

        repository.save(alice)

        assert repository.find_by_participant("Alice") == alice
        assert repository.find_by_participant("Bob") is None

    def test_save_replaces_existing(self):
        repository = InMemoryScheduleRepository([schedule("Alice", (9, 10))])

        repository.save(schedule("Alice", (13, 14)))

        assert repository.find_by_participant("Alice").busy_slots[0].start == time(13, 0)
        assert len(repository) == 1

    def test_list_and_clear(self):
        repository = InMemoryScheduleRepository([schedule("Alice"), schedule("Bob")])

        assert repository.list_participant_names() == {"Alice", "Bob"}

        repository.clear()

        assert repository.list_participant_names() == set()

    def test_replace_all(self):
        repository = InMemoryScheduleRepository([schedule("Alice"), schedule("Bob")])

        repository.replace_all([schedule("Carol")])

        assert repository.list_participant_names() == {"Carol"}

    def test_listed_names_are_a_copy(self):
        repository = InMemoryScheduleRepository([schedule("Alice")])

        repository.list_participant_names().add("Mallory")

        assert repository.list_participant_names() == {"Alice"}


@pytest.fixture
def client() -> MagicMock:
    return MagicMock(spec=redis.Redis)


class TestRedisScheduleRepository:
    """Tests for RedisScheduleRepository against a mocked client."""

    def test_save_writes_json(self, client):
        repository = RedisScheduleRepository(client)

        repository.save(schedule("Alice", (9, 10)))

        key, payload = client.set.call_args.args
        assert key == "schedule:Alice"
        assert json.loads(payload) == {
            "participantName": "Alice",
            "busySlots": [{"start": "09:00:00", "end": "10:00:00"}],
        }

    def test_find_reads_json(self, client):
        client.get.return_value = json.dumps(schedule("Alice", (9, 10)).to_dict()).encode()
        repository = RedisScheduleRepository(client)

        found = repository.find_by_participant("Alice")

        client.get.assert_called_once_with("schedule:Alice")
        assert found == schedule("Alice", (9, 10))

    def test_find_missing_returns_none(self, client):
        client.get.return_value = None

        assert RedisScheduleRepository(client).find_by_participant("Ghost") is None

    def test_corrupt_payload_raises_repository_error(self, client):
        client.get.return_value = b"{not json"

        with pytest.raises(RepositoryError, match="deserialize"):
            RedisScheduleRepository(client).find_by_participant("Alice")

    def test_connection_failure_raises_repository_error(self, client):
        client.get.side_effect = redis.ConnectionError("down")

        with pytest.raises(RepositoryError) as exc_info:
            RedisScheduleRepository(client).find_by_participant("Alice")

        assert isinstance(exc_info.value.__cause__, redis.ConnectionError)

    def test_list_participant_names_strips_prefix(self, client):
        client.scan_iter.return_value = iter([b"schedule:Alice", "schedule:Bob"])

        names = RedisScheduleRepository(client).list_participant_names()

        assert names == {"Alice", "Bob"}
        client.scan_iter.assert_called_once_with(match="schedule:*", count=100)

    def test_clear_deletes_scanned_keys(self, client):
        client.scan_iter.return_value = iter([b"schedule:Alice", b"schedule:Bob"])

        RedisScheduleRepository(client).clear()

        client.delete.assert_called_once_with(b"schedule:Alice", b"schedule:Bob")

    def test_clear_without_keys_does_nothing(self, client):
        client.scan_iter.return_value = iter([])

        RedisScheduleRepository(client).clear()

        client.delete.assert_not_called()

    def test_replace_all_uses_transaction(self, client):
        client.scan_iter.return_value = iter([b"schedule:Old"])
        pipeline = client.pipeline.return_value

        RedisScheduleRepository(client, key_prefix="cal:").replace_all([schedule("Alice")])

        client.pipeline.assert_called_once_with(transaction=True)
        pipeline.delete.assert_called_once_with(b"schedule:Old")
        assert pipeline.set.call_args.args[0] == "cal:Alice"
        pipeline.execute.assert_called_once()
