import subprocess
from abc import ABC, abstractmethod
from collections.abc import Generator

import pytest
from dirty_equals import IsInt

from key_copier.endpoints.base import BaseEndpoint
from key_copier.errors import InvalidTTLError


def detect_docker() -> bool:
    try:
        result = subprocess.run(["docker", "ps"], check=False, capture_output=True, text=True)  # noqa: S607
    except OSError:
        return False
    else:
        return result.returncode == 0


class BaseEndpointTests(ABC):
    """Behaviour every endpoint must share with a real Redis server."""

    @pytest.fixture
    @abstractmethod
    def endpoint(self) -> BaseEndpoint | Generator[BaseEndpoint, None, None]: ...

    def test_ping(self, endpoint: BaseEndpoint):
        assert endpoint.ping()

    def test_missing_key(self, endpoint: BaseEndpoint):
        assert not endpoint.exists("missing")
        assert endpoint.type_name("missing") == "none"
        assert endpoint.get("missing") is None
        assert endpoint.list_range("missing") == []
        assert endpoint.set_members("missing") == frozenset()
        assert endpoint.scored_set_range("missing") == []
        assert endpoint.map_entries("missing") == {}
        assert endpoint.ttl("missing") is None

    def test_type_names(self, endpoint: BaseEndpoint):
        endpoint.set("s", b"v")
        endpoint.append_list("l", [b"a"])
        endpoint.add_set_members("st", [b"a"])
        endpoint.add_scored_set_members("z", [(b"a", 1.0)])
        endpoint.write_map_entries("h", {b"f": b"v"})

        assert [endpoint.type_name(key) for key in ("s", "l", "st", "z", "h")] == ["string", "list", "set", "zset", "hash"]

    def test_binary_scalar(self, endpoint: BaseEndpoint):
        endpoint.set("k", bytes(range(256)))

        assert endpoint.exists("k")
        assert endpoint.get("k") == bytes(range(256))

    def test_set_overwrites(self, endpoint: BaseEndpoint):
        endpoint.set("k", b"v")
        endpoint.set("k", b"w")

        assert endpoint.get("k") == b"w"

    def test_list_keeps_order_and_duplicates(self, endpoint: BaseEndpoint):
        endpoint.append_list("l", [b"c", b"a"])
        endpoint.append_list("l", [b"c"])

        assert endpoint.list_range("l") == [b"c", b"a", b"c"]

    def test_set_members(self, endpoint: BaseEndpoint):
        endpoint.add_set_members("s", [b"x", b"y", b"x"])

        assert endpoint.set_members("s") == frozenset({b"x", b"y"})

    def test_scored_set_is_ordered_by_score(self, endpoint: BaseEndpoint):
        endpoint.add_scored_set_members("z", [(b"b", 2.5), (b"a", 1.0), (b"c", -3.0)])

        assert endpoint.scored_set_range("z") == [(b"c", -3.0), (b"a", 1.0), (b"b", 2.5)]

    def test_map_entries(self, endpoint: BaseEndpoint):
        endpoint.write_map_entries("h", {b"f1": b"v1"})
        endpoint.write_map_entries("h", {b"f2": b"v2", b"f1": b"v3"})

        assert endpoint.map_entries("h") == {b"f1": b"v3", b"f2": b"v2"}

    def test_replace_list(self, endpoint: BaseEndpoint):
        endpoint.append_list("l", [b"stale", b"values"])

        endpoint.replace_list("l", [b"fresh"])

        assert endpoint.list_range("l") == [b"fresh"]

    def test_replace_set(self, endpoint: BaseEndpoint):
        endpoint.add_set_members("s", [b"old"])

        endpoint.replace_set("s", [b"new"])

        assert endpoint.set_members("s") == frozenset({b"new"})

    def test_replace_scored_set(self, endpoint: BaseEndpoint):
        endpoint.add_scored_set_members("z", [(b"old", 1.0)])

        endpoint.replace_scored_set("z", [(b"new", 2.0)])

        assert endpoint.scored_set_range("z") == [(b"new", 2.0)]

    def test_replace_map_is_not_a_merge(self, endpoint: BaseEndpoint):
        endpoint.write_map_entries("h", {b"old": b"1"})

        endpoint.replace_map("h", {b"new": b"2"})

        assert endpoint.map_entries("h") == {b"new": b"2"}

    def test_replace_drops_ttl(self, endpoint: BaseEndpoint):
        endpoint.append_list("l", [b"stale"])
        endpoint.expire("l", 30)

        endpoint.replace_list("l", [b"fresh"])

        assert endpoint.ttl("l") is None

    def test_ttl_without_expiry_is_none(self, endpoint: BaseEndpoint):
        endpoint.set("k", b"v")

        assert endpoint.ttl("k") is None

    def test_expire(self, endpoint: BaseEndpoint):
        endpoint.set("k", b"v")

        endpoint.expire("k", 60)

        assert endpoint.ttl("k") == IsInt(gt=0, le=60)

    def test_set_clears_ttl(self, endpoint: BaseEndpoint):
        endpoint.set("k", b"v")
        endpoint.expire("k", 100)

        endpoint.set("k", b"w")

        assert endpoint.ttl("k") is None

    @pytest.mark.parametrize("seconds", [0, -5])
    def test_non_positive_expiry_is_rejected(self, endpoint: BaseEndpoint, seconds: int):
        endpoint.set("k", b"v")

        with pytest.raises(InvalidTTLError):
            endpoint.expire("k", seconds)

        assert endpoint.get("k") == b"v"

    def test_delete(self, endpoint: BaseEndpoint):
        endpoint.set("k", b"v")

        assert endpoint.delete("k")
        assert not endpoint.exists("k")
        assert not endpoint.delete("k")
