"""Copying a single key, with its value and TTL, from one endpoint to another."""

import logging
from dataclasses import replace

from typing_extensions import assert_never

from key_copier.endpoints.base import BaseEndpoint
from key_copier.errors import MigrationError
from key_copier.types import CopyOutcome, CopyResult, Kind, KeyRecord, Payload

logger = logging.getLogger(__name__)


def read_record(source: BaseEndpoint, key: str, kind: Kind) -> KeyRecord:
    """Read a key's whole value from the source using the read that matches its kind."""
    payload: Payload | None

    match kind:
        case Kind.SCALAR:
            payload = source.get(key)
        case Kind.LIST:
            payload = source.list_range(key)
        case Kind.SET:
            payload = source.set_members(key)
        case Kind.SCORED_SET:
            payload = source.scored_set_range(key)
        case Kind.MAP:
            payload = source.map_entries(key)
        case _:
            assert_never(kind)

    if payload is None:
        raise MigrationError(message="Key disappeared from the source while it was being read", extra_info={"key": key})

    return KeyRecord(name=key, kind=kind, payload=payload)


def write_record(destination: BaseEndpoint, record: KeyRecord) -> bool:
    """Write a record to the destination, replacing what the key held.

    Returns False without touching the destination when the record is an empty collection.
    """
    if record.is_empty:
        return False

    key = record.name
    payload = record.payload

    match record.kind:
        case Kind.SCALAR:
            destination.set(key, payload)  # pyright: ignore[reportArgumentType]
        case Kind.LIST:
            destination.replace_list(key, payload)  # pyright: ignore[reportArgumentType]
        case Kind.SET:
            destination.replace_set(key, payload)  # pyright: ignore[reportArgumentType]
        case Kind.SCORED_SET:
            destination.replace_scored_set(key, payload)  # pyright: ignore[reportArgumentType]
        case Kind.MAP:
            destination.replace_map(key, payload)  # pyright: ignore[reportArgumentType]
        case _:
            assert_never(record.kind)

    return True


class MigrationEngine:
    """Copies keys between two endpoints, one key at a time.

    A copy is best effort: the destination key is overwritten, never merged, and a failure part way
    through is reported rather than rolled back.
    """

    def copy(self, source: BaseEndpoint, destination: BaseEndpoint, key: str) -> CopyResult:
        """Copy `key` with its TTL from `source` to `destination`.

        Never raises; every failure is returned as a `CopyOutcome.FAILED` result carrying the cause.
        """
        kind: Kind | None = None

        try:
            if not source.exists(key):
                logger.info("Key %r does not exist in %s", key, source.address)
                return CopyResult(key=key, outcome=CopyOutcome.SKIPPED_NOT_FOUND)

            type_name = source.type_name(key)
            kind = Kind.from_type_name(type_name)

            if kind is None:
                logger.info("Key %r has unsupported type %r", key, type_name)
                return CopyResult(key=key, outcome=CopyOutcome.SKIPPED_UNSUPPORTED_KIND, type_name=type_name)

            logger.info("Copying key %r of type %r", key, kind.value)

            record = read_record(source, key, kind)

            if not write_record(destination, record):
                logger.info("Key %r is an empty %s, nothing to copy", key, kind.value)
                return CopyResult(key=key, outcome=CopyOutcome.SKIPPED_EMPTY, kind=kind, type_name=kind.value)

            record = replace(record, ttl=source.ttl(key))
            if record.ttl is not None:
                destination.expire(key, record.ttl)

        except Exception as e:
            logger.warning("Error copying key %r: %s", key, e, exc_info=logger.isEnabledFor(logging.DEBUG))
            return CopyResult.failed(key=key, reason=str(e) or type(e).__name__, kind=kind)

        return CopyResult(key=key, outcome=CopyOutcome.COPIED, kind=kind, type_name=kind.value, ttl=record.ttl)
