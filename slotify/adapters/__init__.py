"""
Adapters layer - CSV ingestion and schedule storage.
"""

from .csv_parser import CsvCalendarParser
from .memory_repository import InMemoryScheduleRepository
from .redis_repository import RedisScheduleRepository

__all__ = ["CsvCalendarParser", "InMemoryScheduleRepository", "RedisScheduleRepository"]
