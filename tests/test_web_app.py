"""
Tests for the HTTP API.
"""

from unittest.mock import MagicMock

import pytest
from fastapi.concurrency import run_in_threadpool
from fastapi.testclient import TestClient

from slotify.adapters.memory_repository import InMemoryScheduleRepository
from slotify.domain.exceptions import RepositoryError
from slotify.services.scheduling_service import SchedulingService
from slotify.web.app import create_app

CALENDAR = """\
Alice,Standup,8:00,9:30
Alice,Lunch,13:00,14:00
Alice,Review,16:00,17:00
Jack,Standup,8:00,9:40
Jack,Lunch,13:00,14:00
Jack,Review,16:00,17:00
Bob,Workshop,9:00,12:00
"""


@pytest.fixture
def service() -> SchedulingService:
    return SchedulingService(repository=InMemoryScheduleRepository())


@pytest.fixture
def client(service) -> TestClient:
    return TestClient(create_app(service))


def upload(client: TestClient, text: str = CALENDAR):
    return client.post("/api/upload", content=text, headers={"Content-Type": "text/csv"})


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_upload_returns_participants_and_busy_slots(client):
    response = upload(client)

    assert response.status_code == 200
    body = response.json()
    assert body["participants"] == ["Alice", "Bob", "Jack"]
    assert body["busySlots"]["Jack"][0] == {"start": "08:00", "end": "09:40"}


def test_upload_empty_body_is_rejected(client):
    response = upload(client, "")

    assert response.status_code == 400
    assert response.json() == {"error": "No file uploaded"}


def test_upload_malformed_csv_is_rejected(client):
    response = upload(client, "Alice,Standup,8:00\n")

    assert response.status_code == 400
    assert response.json()["kind"] == "parse_error"
    assert "line 1" in response.json()["error"]


def test_participants(client):
    upload(client)

    response = client.get("/api/participants")

    assert response.json() == {"participants": ["Alice", "Bob", "Jack"]}


def test_availability(client):
    upload(client)

    response = client.post("/api/availability", json={
        "requiredParticipants": ["Alice", "Jack"],
        "optionalParticipants": ["Bob"],
        "durationMinutes": 60,
    })

    assert response.status_code == 200
    slots = response.json()["slots"]
    assert [slot["slotStart"] for slot in slots] == [
        "07:00", "10:00", "11:00", "12:00", "14:00", "15:00", "17:00", "18:00",
    ]
    assert slots[1] == {
        "slotStart": "10:00",
        "slotEnd": "11:00",
        "availableOptional": [],
        "unavailableOptional": ["Bob"],
    }


def test_availability_with_blackouts_and_buffer(client):
    upload(client)
    client.post("/api/blackouts", content="18:00,19:00\n")

    response = client.post("/api/availability", json={
        "requiredParticipants": ["Alice", "Jack"],
        "durationMinutes": 60,
        "bufferMinutes": 15,
        "blackouts": [{"start": "7:00", "end": "8:00"}],
    })

    starts = [slot["slotStart"] for slot in response.json()["slots"]]
    assert "07:00" not in starts
    assert "18:00" not in starts
    assert "12:00" not in starts


def test_unknown_participant_is_404(client):
    upload(client)

    response = client.post("/api/availability", json={
        "requiredParticipants": ["Zed"],
        "durationMinutes": 60,
    })

    assert response.status_code == 404
    assert response.json()["kind"] == "participant_not_found"


def test_invalid_duration_is_400(client):
    upload(client)

    response = client.post("/api/availability", json={
        "requiredParticipants": ["Alice"],
        "durationMinutes": 0,
    })

    assert response.status_code == 400
    assert response.json()["kind"] == "invalid_argument"


def test_malformed_request_is_422(client):
    response = client.post("/api/availability", json={"durationMinutes": 60})

    assert response.status_code == 422


def test_invalid_blackout_time_is_422(client):
    response = client.post("/api/availability", json={
        "requiredParticipants": ["Alice"],
        "durationMinutes": 60,
        "blackouts": [{"start": "noon", "end": "13:00"}],
    })

    assert response.status_code == 422


def test_repository_failure_is_503():
    repository = MagicMock()
    repository.find_by_participant.side_effect = RepositoryError("Failed to load schedule for Alice")
    client = TestClient(create_app(SchedulingService(repository=repository)))

    response = client.post("/api/availability", json={
        "requiredParticipants": ["Alice"],
        "durationMinutes": 60,
    })

    assert response.status_code == 503
    assert response.json()["kind"] == "repository_error"


@pytest.mark.parametrize("field, value", [("durationMinutes", 10**15), ("bufferMinutes", 10**15)])
def test_huge_minute_counts_are_400(client, field, value):
    upload(client)
    body = {"requiredParticipants": ["Alice"], "durationMinutes": 60}
    body[field] = value

    response = client.post("/api/availability", json=body)

    assert response.status_code == 400
    assert response.json()["kind"] == "invalid_argument"


def test_uploads_are_loaded_off_the_event_loop(client, monkeypatch):
    calls = []

    async def recording_run_in_threadpool(func, *args):
        calls.append(func.__name__)
        return await run_in_threadpool(func, *args)

    monkeypatch.setattr("slotify.web.app.run_in_threadpool", recording_run_in_threadpool)

    upload(client)
    client.post("/api/blackouts", content="12:00,13:00\n")

    assert calls == ["load_calendar_text", "load_blackouts_text"]
