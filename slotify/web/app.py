"""
HTTP API for uploading calendars and querying availability.
"""

import logging
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import AppConfig
from ..domain.exceptions import ErrorKind, SchedulerError
from ..domain.models import format_time
from ..services.scheduling_service import SchedulingService
from ..services.schemas import AvailabilityRequest, AvailabilitySlotResponse

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.INVALID_ARGUMENT: 400,
    ErrorKind.INVALID_TIME_RANGE: 400,
    ErrorKind.PARSE_ERROR: 400,
    ErrorKind.PARTICIPANT_NOT_FOUND: 404,
    ErrorKind.REPOSITORY_ERROR: 503,
}


def create_app(service: Optional[SchedulingService] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Service to use; built from the default configuration if omitted
    """
    if service is None:
        service = SchedulingService.from_config(AppConfig.load())

    app = FastAPI(
        title="slotify",
        description="Find common meeting slots from uploaded busy calendars",
        version=__version__,
    )
    app.state.service = service

    @app.exception_handler(SchedulerError)
    async def handle_scheduler_error(request: Request, exc: SchedulerError):
        status_code = STATUS_BY_KIND.get(exc.kind, 500)
        if status_code >= 500:
            logger.error("Request to %s failed: %s", request.url.path, exc, exc_info=exc)
        return JSONResponse(
            status_code=status_code,
            content={"error": exc.message, "kind": exc.kind.value},
        )

    @app.get("/health")
    def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "participants": len(service.participants())}

    @app.post("/api/upload")
    async def upload_calendar(request: Request):
        """Replace all schedules with the CSV calendar in the request body."""
        text = (await request.body()).decode("utf-8", errors="replace")
        if not text.strip():
            return JSONResponse(status_code=400, content={"error": "No file uploaded"})

        schedules = await run_in_threadpool(service.load_calendar_text, text)
        return {
            "participants": sorted(schedules),
            "busySlots": {
                name: [
                    {"start": format_time(slot.start), "end": format_time(slot.end)}
                    for slot in schedule.busy_slots
                ]
                for name, schedule in sorted(schedules.items())
            },
        }

    @app.post("/api/blackouts")
    async def upload_blackouts(request: Request):
        """Replace the blackout periods with the CSV in the request body."""
        text = (await request.body()).decode("utf-8", errors="replace")
        blackouts = await run_in_threadpool(service.load_blackouts_text, text)
        return {
            "blackouts": [
                {"start": format_time(slot.start), "end": format_time(slot.end)}
                for slot in blackouts
            ]
        }

    @app.get("/api/participants")
    def list_participants():
        return {"participants": service.participants()}

    @app.post("/api/availability")
    def find_availability(body: AvailabilityRequest):
        slots = service.find_slots(body)
        response: List[AvailabilitySlotResponse] = [
            AvailabilitySlotResponse.from_available_slot(slot) for slot in slots
        ]
        return {"slots": [item.model_dump(by_alias=True) for item in response]}

    return app
