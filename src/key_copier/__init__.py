"""Redis Key Copier - copy a single key, with its value and TTL, between two Redis databases."""

from key_copier.connections import ConnectionManager, Verification
from key_copier.control import ControlLoop
from key_copier.endpoints import BaseEndpoint
from key_copier.endpoints.memory import MemoryEndpoint
from key_copier.endpoints.redis import RedisEndpoint
from key_copier.migration import MigrationEngine
from key_copier.profiles import ConnectionProfile, ProfilePair, ProfileStore, load_profiles
from key_copier.types import CopyOutcome, CopyResult, Kind, KeyRecord

__all__ = [
    "BaseEndpoint",
    "ConnectionManager",
    "ConnectionProfile",
    "ControlLoop",
    "CopyOutcome",
    "CopyResult",
    "Kind",
    "KeyRecord",
    "MemoryEndpoint",
    "MigrationEngine",
    "ProfilePair",
    "ProfileStore",
    "RedisEndpoint",
    "Verification",
    "load_profiles",
]
