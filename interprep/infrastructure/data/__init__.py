"""
Data management infrastructure for sessions, assessments and results.
"""

from .repository import (
    StorageBackend, InMemoryStorage, JsonFileStorage, InterviewRepository, new_id
)

__all__ = [
    'StorageBackend',
    'InMemoryStorage',
    'JsonFileStorage',
    'InterviewRepository',
    'new_id',
]
