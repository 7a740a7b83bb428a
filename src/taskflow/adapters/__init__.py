"""Adapters - I/O implementations of ports."""

from .rest_api import RestTaskRepository, AuthenticationError, ApiError
from .json_file import JsonFileTaskRepository

__all__ = [
    "RestTaskRepository",
    "AuthenticationError",
    "ApiError",
    "JsonFileTaskRepository",
]
