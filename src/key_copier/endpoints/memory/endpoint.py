from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from typing_extensions import override

from key_copier.endpoints.base import BaseEndpoint
from key_copier.errors import MigrationError, StoreConnectionError
from key_copier.utils.time_to_live import now_as_epoch, prepare_ttl, seconds_until


def _encode(value: bytes | str | float) -> bytes:
    """Encode a value the way the Redis client does before sending it."""
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode("utf-8")
    return repr(value).encode("utf-8")


@dataclass
class MemoryEntry:
    type_name: str
    value: Any
    expires_at: float | None = field(default=None)

    @property
    def is_expired(self) -> bool:
        return self.expires_at is not None and self.expires_at <= now_as_epoch()


class MemoryEndpoint(BaseEndpoint):
    """In-process endpoint that follows Redis semantics for the five supported kinds.

    Collections that become empty disappear, writing a scalar clears any TTL and mixing kinds on one
    key is refused with a WRONGTYPE error. Setting `reachable` to False makes every operation fail as
    if the server had gone away.
    """

    name: str
    reachable: bool
    closed: bool
    _data: dict[str, MemoryEntry]

    def __init__(self, name: str = "memory", *, reachable: bool = True) -> None:
        self.name = name
        self.reachable = reachable
        self._data = {}
        self.closed = False

    @property
    @override
    def address(self) -> str:
        return f"memory://{self.name}"

    def _check_reachable(self) -> None:
        if not self.reachable:
            raise StoreConnectionError(message=f"Endpoint {self.address} is unreachable")

    def _entry(self, key: str) -> MemoryEntry | None:
        self._check_reachable()

        entry = self._data.get(key)
        if entry is None:
            return None

        if entry.is_expired:
            del self._data[key]
            return None

        return entry

    def _typed_entry(self, key: str, type_name: str) -> MemoryEntry | None:
        entry = self._entry(key)
        if entry is not None and entry.type_name != type_name:
            raise MigrationError(message="WRONGTYPE Operation against a key holding the wrong kind of value")
        return entry

    def _collection(self, key: str, type_name: str, factory: type) -> Any:
        entry = self._typed_entry(key, type_name)
        if entry is None:
            entry = MemoryEntry(type_name=type_name, value=factory())
            self._data[key] = entry
        return entry.value

    def _drop_if_empty(self, key: str) -> None:
        entry = self._data.get(key)
        if entry is not None and entry.type_name != "string" and not entry.value:
            del self._data[key]

    def put_raw(self, key: str, type_name: str, value: Any) -> None:
        """Store a value under an arbitrary type name, e.g. to stand in for a stream."""
        self._check_reachable()
        self._data[key] = MemoryEntry(type_name=type_name, value=value)

    @override
    def ping(self) -> bool:
        self._check_reachable()
        return True

    @override
    def exists(self, key: str) -> bool:
        return self._entry(key) is not None

    @override
    def type_name(self, key: str) -> str:
        entry = self._entry(key)
        return entry.type_name if entry else "none"

    @override
    def get(self, key: str) -> bytes | None:
        entry = self._typed_entry(key, "string")
        return entry.value if entry else None

    @override
    def set(self, key: str, value: bytes) -> None:
        self._check_reachable()
        self._data[key] = MemoryEntry(type_name="string", value=_encode(value))

    @override
    def list_range(self, key: str) -> list[bytes]:
        entry = self._typed_entry(key, "list")
        return list(entry.value) if entry else []

    @override
    def set_members(self, key: str) -> frozenset[bytes]:
        entry = self._typed_entry(key, "set")
        return frozenset(entry.value) if entry else frozenset()

    @override
    def scored_set_range(self, key: str) -> list[tuple[bytes, float]]:
        entry = self._typed_entry(key, "zset")
        if entry is None:
            return []
        return sorted(entry.value.items(), key=lambda item: (item[1], item[0]))

    @override
    def map_entries(self, key: str) -> dict[bytes, bytes]:
        entry = self._typed_entry(key, "hash")
        return dict(entry.value) if entry else {}

    @override
    def delete(self, key: str) -> bool:
        return self._entry(key) is not None and self._data.pop(key, None) is not None

    @override
    def append_list(self, key: str, values: Sequence[bytes]) -> None:
        self._collection(key, "list", list).extend(_encode(value) for value in values)
        self._drop_if_empty(key)

    @override
    def add_set_members(self, key: str, members: Iterable[bytes]) -> None:
        self._collection(key, "set", set).update(_encode(member) for member in members)
        self._drop_if_empty(key)

    @override
    def add_scored_set_members(self, key: str, members: Iterable[tuple[bytes, float]]) -> None:
        self._collection(key, "zset", dict).update((_encode(member), float(score)) for member, score in members)
        self._drop_if_empty(key)

    @override
    def write_map_entries(self, key: str, entries: Mapping[bytes, bytes]) -> None:
        self._collection(key, "hash", dict).update((_encode(name), _encode(value)) for name, value in entries.items())
        self._drop_if_empty(key)

    @override
    def ttl(self, key: str) -> int | None:
        entry = self._entry(key)
        if entry is None or entry.expires_at is None:
            return None
        return max(seconds_until(entry.expires_at), 1)

    @override
    def expire(self, key: str, seconds: int) -> None:
        entry = self._entry(key)
        if entry is not None:
            entry.expires_at = now_as_epoch() + prepare_ttl(seconds)

    @override
    def close(self) -> None:
        self.closed = True
