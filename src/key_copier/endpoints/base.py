"""
Base abstract class for endpoint implementations.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from types import TracebackType

from typing_extensions import Self


class BaseEndpoint(ABC):
    """Abstract base class for the stores keys are copied between.

    An endpoint exposes the primitive capabilities a copy needs: introspection, reads and writes for
    each supported kind, delete and TTL handling. Values cross the boundary as raw bytes.

    When using this ABC, your implementation will:
    1. Implement the primitive reads and writes for every kind
    2. Optionally override the `replace_*` methods to make the delete and the write atomic
    """

    @property
    @abstractmethod
    def address(self) -> str:
        """A human-readable address for status messages, without credentials."""
        ...

    @abstractmethod
    def ping(self) -> bool:
        """Issue a liveness request; may raise if the endpoint cannot be reached."""
        ...

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Check if a key exists."""
        ...

    @abstractmethod
    def type_name(self, key: str) -> str:
        """Get the store's type name for a key (`string`, `list`, `set`, `zset`, `hash`, ...)."""
        ...

    @abstractmethod
    def get(self, key: str) -> bytes | None: ...

    @abstractmethod
    def set(self, key: str, value: bytes) -> None:
        """Store a scalar value, replacing whatever the key held."""
        ...

    @abstractmethod
    def list_range(self, key: str) -> list[bytes]:
        """Read a whole list, in order."""
        ...

    @abstractmethod
    def set_members(self, key: str) -> frozenset[bytes]: ...

    @abstractmethod
    def scored_set_range(self, key: str) -> list[tuple[bytes, float]]:
        """Read a whole scored set as (member, score) pairs, lowest score first."""
        ...

    @abstractmethod
    def map_entries(self, key: str) -> dict[bytes, bytes]: ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete a key, returning True if it existed."""
        ...

    @abstractmethod
    def append_list(self, key: str, values: Sequence[bytes]) -> None: ...

    @abstractmethod
    def add_set_members(self, key: str, members: Iterable[bytes]) -> None: ...

    @abstractmethod
    def add_scored_set_members(self, key: str, members: Iterable[tuple[bytes, float]]) -> None: ...

    @abstractmethod
    def write_map_entries(self, key: str, entries: Mapping[bytes, bytes]) -> None: ...

    @abstractmethod
    def ttl(self, key: str) -> int | None:
        """Get the remaining TTL of a key in seconds, or None if it does not expire or does not exist."""
        ...

    @abstractmethod
    def expire(self, key: str, seconds: int) -> None: ...

    def close(self) -> None:
        """Release the endpoint's connection; the default has nothing to release."""

    def replace_list(self, key: str, values: Sequence[bytes]) -> None:
        _ = self.delete(key)
        self.append_list(key, values)

    def replace_set(self, key: str, members: Iterable[bytes]) -> None:
        _ = self.delete(key)
        self.add_set_members(key, members)

    def replace_scored_set(self, key: str, members: Iterable[tuple[bytes, float]]) -> None:
        _ = self.delete(key)
        self.add_scored_set_members(key, members)

    def replace_map(self, key: str, entries: Mapping[bytes, bytes]) -> None:
        _ = self.delete(key)
        self.write_map_entries(key, entries)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()
