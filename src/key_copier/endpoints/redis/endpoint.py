from collections.abc import Iterable, Mapping, Sequence

from redis import Redis
from typing_extensions import override

from key_copier.endpoints.base import BaseEndpoint
from key_copier.profiles import DEFAULT_TIMEOUT_MS, ConnectionProfile
from key_copier.utils.time_to_live import normalize_ttl, prepare_ttl


class RedisEndpoint(BaseEndpoint):
    """Redis endpoint backed by a synchronous redis-py client."""

    _client: Redis
    _address: str

    def __init__(
        self,
        *,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: str | None = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> None:
        """Initialize the Redis endpoint.

        Values are read and written as raw bytes so binary payloads survive the copy unchanged.

        Args:
            host: Redis host. Defaults to localhost.
            port: Redis port. Defaults to 6379.
            db: Redis database number. Defaults to 0.
            password: Redis password. Defaults to None.
            timeout_ms: Socket connect and read timeout in milliseconds. Defaults to 2000.
        """
        timeout = timeout_ms / 1000
        self._client = Redis(
            host=host,
            port=port,
            db=db,
            password=password,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
            decode_responses=False,
        )
        self._address = f"redis://{host}:{port}/{db}"

    @classmethod
    def from_profile(cls, profile: ConnectionProfile) -> "RedisEndpoint":
        return cls(
            host=profile.host,
            port=profile.port,
            db=profile.database,
            password=profile.password,
            timeout_ms=profile.timeout_ms,
        )

    @property
    @override
    def address(self) -> str:
        return self._address

    @override
    def ping(self) -> bool:
        return bool(self._client.ping())  # pyright: ignore[reportUnknownMemberType]

    @override
    def exists(self, key: str) -> bool:
        return self._client.exists(key) > 0  # pyright: ignore[reportOperatorIssue]

    @override
    def type_name(self, key: str) -> str:
        raw: bytes | str = self._client.type(key)  # pyright: ignore[reportAssignmentType]
        return raw.decode("utf-8") if isinstance(raw, bytes) else raw

    @override
    def get(self, key: str) -> bytes | None:
        return self._client.get(key)  # pyright: ignore[reportReturnType]

    @override
    def set(self, key: str, value: bytes) -> None:
        _ = self._client.set(key, value)

    @override
    def list_range(self, key: str) -> list[bytes]:
        return list(self._client.lrange(key, 0, -1))  # pyright: ignore[reportArgumentType]

    @override
    def set_members(self, key: str) -> frozenset[bytes]:
        return frozenset(self._client.smembers(key))  # pyright: ignore[reportArgumentType]

    @override
    def scored_set_range(self, key: str) -> list[tuple[bytes, float]]:
        members = self._client.zrange(key, 0, -1, withscores=True)
        return [(member, float(score)) for member, score in members]  # pyright: ignore[reportGeneralTypeIssues]

    @override
    def map_entries(self, key: str) -> dict[bytes, bytes]:
        return dict(self._client.hgetall(key))  # pyright: ignore[reportArgumentType]

    @override
    def delete(self, key: str) -> bool:
        return self._client.delete(key) != 0

    @override
    def append_list(self, key: str, values: Sequence[bytes]) -> None:
        _ = self._client.rpush(key, *values)

    @override
    def add_set_members(self, key: str, members: Iterable[bytes]) -> None:
        _ = self._client.sadd(key, *members)

    @override
    def add_scored_set_members(self, key: str, members: Iterable[tuple[bytes, float]]) -> None:
        _ = self._client.zadd(key, mapping=dict(members))

    @override
    def write_map_entries(self, key: str, entries: Mapping[bytes, bytes]) -> None:
        _ = self._client.hset(key, mapping=dict(entries))  # pyright: ignore[reportArgumentType]

    @override
    def ttl(self, key: str) -> int | None:
        return normalize_ttl(self._client.ttl(key))  # pyright: ignore[reportArgumentType]

    @override
    def expire(self, key: str, seconds: int) -> None:
        _ = self._client.expire(key, prepare_ttl(seconds))

    @override
    def close(self) -> None:
        self._client.close()

    # A collection is rewritten inside MULTI/EXEC so the destination never exposes the deleted key.

    @override
    def replace_list(self, key: str, values: Sequence[bytes]) -> None:
        with self._client.pipeline(transaction=True) as pipe:
            _ = pipe.delete(key)
            _ = pipe.rpush(key, *values)
            _ = pipe.execute()

    @override
    def replace_set(self, key: str, members: Iterable[bytes]) -> None:
        with self._client.pipeline(transaction=True) as pipe:
            _ = pipe.delete(key)
            _ = pipe.sadd(key, *members)
            _ = pipe.execute()

    @override
    def replace_scored_set(self, key: str, members: Iterable[tuple[bytes, float]]) -> None:
        with self._client.pipeline(transaction=True) as pipe:
            _ = pipe.delete(key)
            _ = pipe.zadd(key, mapping=dict(members))
            _ = pipe.execute()

    @override
    def replace_map(self, key: str, entries: Mapping[bytes, bytes]) -> None:
        with self._client.pipeline(transaction=True) as pipe:
            _ = pipe.delete(key)
            _ = pipe.hset(key, mapping=dict(entries))  # pyright: ignore[reportArgumentType]
            _ = pipe.execute()
