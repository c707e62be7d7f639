from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum

ScalarPayload = bytes
ListPayload = Sequence[bytes]
SetPayload = frozenset[bytes]
ScoredSetPayload = Sequence[tuple[bytes, float]]
MapPayload = Mapping[bytes, bytes]

Payload = ScalarPayload | ListPayload | SetPayload | ScoredSetPayload | MapPayload


class Kind(str, Enum):
    """The value representation of a key, named after the store's type name for it."""

    SCALAR = "string"
    LIST = "list"
    SET = "set"
    SCORED_SET = "zset"
    MAP = "hash"

    @classmethod
    def from_type_name(cls, type_name: str | bytes) -> "Kind | None":
        """Map a type name reported by the store to a Kind, or None if the kind is not supported."""
        if isinstance(type_name, bytes):
            type_name = type_name.decode("utf-8", errors="replace")

        try:
            return cls(type_name)
        except ValueError:
            return None

    @property
    def is_collection(self) -> bool:
        return self is not Kind.SCALAR


@dataclass(frozen=True)
class KeyRecord:
    """A key read from the source endpoint, ready to be written to the destination."""

    name: str
    kind: Kind
    payload: Payload

    ttl: int | None = None
    """Remaining seconds before the key expires, None if it never does."""

    @property
    def is_empty(self) -> bool:
        return self.kind.is_collection and len(self.payload) == 0


class CopyOutcome(str, Enum):
    COPIED = "copied"
    SKIPPED_NOT_FOUND = "skipped-not-found"
    SKIPPED_UNSUPPORTED_KIND = "skipped-unsupported-kind"
    SKIPPED_EMPTY = "skipped-empty"
    FAILED = "failed"


@dataclass(frozen=True)
class CopyResult:
    """The outcome of copying a single key."""

    key: str
    outcome: CopyOutcome

    kind: Kind | None = None
    type_name: str | None = None
    """The type name reported by the source, kept for kinds that are not supported."""

    ttl: int | None = None
    """The TTL applied to the destination key, None if the key was left without expiry."""

    reason: str | None = None
    """The cause of a failed copy."""

    @property
    def ok(self) -> bool:
        return self.outcome is not CopyOutcome.FAILED

    @classmethod
    def failed(cls, key: str, reason: str, kind: Kind | None = None) -> "CopyResult":
        return cls(key=key, outcome=CopyOutcome.FAILED, kind=kind, type_name=kind.value if kind else None, reason=reason)
