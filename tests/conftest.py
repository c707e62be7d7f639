"""
Test configuration and fixtures.
"""

import io
from dataclasses import dataclass, field

import pytest

from key_copier.connections import ConnectionManager
from key_copier.endpoints.memory import MemoryEndpoint
from key_copier.migration import MigrationEngine
from key_copier.profiles import ConnectionProfile, ProfilePair, ProfileStore
from key_copier.terminal import Terminal


@dataclass
class ScriptedTerminal:
    """A Terminal fed from a fixed list of operator lines, with captured output."""

    lines: list[str] = field(default_factory=list)
    stdout: io.StringIO = field(default_factory=io.StringIO)
    stderr: io.StringIO = field(default_factory=io.StringIO)

    @property
    def terminal(self) -> Terminal:
        return self._terminal

    def __post_init__(self) -> None:
        stdin = io.StringIO("".join(f"{line}\n" for line in self.lines))
        self._terminal = Terminal(stdin=stdin, stdout=self.stdout, stderr=self.stderr)

    @property
    def output(self) -> str:
        return self.stdout.getvalue()

    @property
    def errors(self) -> str:
        return self.stderr.getvalue()


class MemoryEndpointFactory:
    """Hands out memory endpoints keyed by profile host, so profiles can point at fake servers.

    Hosts listed in `down` answer no pings; hosts in `broken` cannot even be built. Every endpoint
    built is recorded in `built`, so tests can check that nothing is reused.
    """

    def __init__(self) -> None:
        self.servers: dict[str, MemoryEndpoint] = {}
        self.down: set[str] = set()
        self.broken: set[str] = set()
        self.built: list[tuple[str, MemoryEndpoint]] = []

    def server(self, host: str) -> MemoryEndpoint:
        if host not in self.servers:
            self.servers[host] = MemoryEndpoint(name=host)
        return self.servers[host]

    def __call__(self, profile: ConnectionProfile) -> MemoryEndpoint:
        if profile.host in self.broken:
            msg = f"cannot build endpoint for {profile.host}"
            raise ValueError(msg)

        server = self.server(profile.host)
        server.reachable = profile.host not in self.down
        server.closed = False
        self.built.append((profile.host, server))
        return server


def memory_profiles(source_host: str = "source-redis", destination_host: str = "destination-redis") -> ProfilePair:
    return ProfilePair(
        source=ConnectionProfile(host=source_host, port=6379),
        destination=ConnectionProfile(host=destination_host, port=6380),
    )


@pytest.fixture
def source() -> MemoryEndpoint:
    return MemoryEndpoint(name="source")


@pytest.fixture
def destination() -> MemoryEndpoint:
    return MemoryEndpoint(name="destination")


@pytest.fixture
def engine() -> MigrationEngine:
    return MigrationEngine()


@pytest.fixture
def endpoint_factory() -> MemoryEndpointFactory:
    return MemoryEndpointFactory()


@pytest.fixture
def profile_store() -> ProfileStore:
    return ProfileStore(memory_profiles())


@pytest.fixture
def scripted() -> ScriptedTerminal:
    return ScriptedTerminal()


@pytest.fixture
def manager(profile_store: ProfileStore, endpoint_factory: MemoryEndpointFactory, scripted: ScriptedTerminal) -> ConnectionManager:
    return ConnectionManager(profile_store, endpoint_factory=endpoint_factory, terminal=scripted.terminal)
