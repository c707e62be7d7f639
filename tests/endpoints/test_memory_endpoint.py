import time

import pytest
from typing_extensions import override

from key_copier.endpoints.memory import MemoryEndpoint
from key_copier.errors import MigrationError, StoreConnectionError
from tests.endpoints.conftest import BaseEndpointTests


class TestMemoryEndpoint(BaseEndpointTests):
    @override
    @pytest.fixture
    def endpoint(self) -> MemoryEndpoint:
        return MemoryEndpoint()

    def test_strings_are_encoded_like_the_client(self, endpoint: MemoryEndpoint):
        endpoint.write_map_entries("h", {"name": "value"})  # pyright: ignore[reportArgumentType]

        assert endpoint.map_entries("h") == {b"name": b"value"}

    def test_wrong_kind_is_refused(self, endpoint: MemoryEndpoint):
        endpoint.set("k", b"v")

        with pytest.raises(MigrationError, match="WRONGTYPE"):
            endpoint.append_list("k", [b"x"])

    def test_expired_key_disappears(self, endpoint: MemoryEndpoint, monkeypatch: pytest.MonkeyPatch):
        endpoint.set("k", b"v")
        endpoint.expire("k", 10)
        now = time.time()

        monkeypatch.setattr("key_copier.endpoints.memory.endpoint.now_as_epoch", lambda: now + 11)

        assert not endpoint.exists("k")

    def test_empty_write_leaves_no_key(self, endpoint: MemoryEndpoint):
        endpoint.add_set_members("s", [])

        assert not endpoint.exists("s")

    def test_unreachable(self):
        endpoint = MemoryEndpoint(name="down", reachable=False)

        with pytest.raises(StoreConnectionError, match="memory://down is unreachable"):
            _ = endpoint.ping()

    def test_context_manager_closes(self):
        with MemoryEndpoint() as endpoint:
            assert not endpoint.closed

        assert endpoint.closed
