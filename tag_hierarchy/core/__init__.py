"""Core application components."""

from .config import Settings, settings
from .database import AsyncSessionLocal, drop_db, engine, init_db
from .exceptions import InfrastructureError, InvalidReferenceError, NotFoundError, TagHierarchyError
from .ids import IdGenerator, SnowflakeIdGenerator

__all__ = [
    "settings",
    "Settings",
    "engine",
    "AsyncSessionLocal",
    "init_db",
    "drop_db",
    "TagHierarchyError",
    "NotFoundError",
    "InvalidReferenceError",
    "InfrastructureError",
    "IdGenerator",
    "SnowflakeIdGenerator",
]
