"""
Naked Mailing List Core
=======================

Core utilities and shared functionality for Naked Mailing List modules.
"""

from .cache import TTLCache
from .config import Config
from .database import Database
from .events import EventBus
from .logging_service import LoggingService, DatabaseLogHandler
from .record_store import ColumnType, RecordStore, coerce_value

__all__ = [
    'Config',
    'Database',
    'EventBus',
    'TTLCache',
    'LoggingService',
    'DatabaseLogHandler',
    'ColumnType',
    'RecordStore',
    'coerce_value',
]
