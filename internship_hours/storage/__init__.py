"""Storage package exports."""

from internship_hours.storage.base import PrincipalStore, TokenStore
from internship_hours.storage.memory import MemoryStore
from internship_hours.storage.postgres import PostgresStore

__all__ = ["MemoryStore", "PostgresStore", "PrincipalStore", "TokenStore"]
