"""Building, probing and verifying the endpoints described by the current profiles."""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from key_copier.endpoints.base import BaseEndpoint
from key_copier.endpoints.redis import RedisEndpoint
from key_copier.errors import StoreConnectionError
from key_copier.profiles import ConnectionProfile, ProfileStore, Role
from key_copier.terminal import Terminal

logger = logging.getLogger(__name__)

EndpointFactory = Callable[[ConnectionProfile], BaseEndpoint]


@dataclass(frozen=True)
class Verification:
    """The result of checking both endpoints."""

    ok: bool
    source: BaseEndpoint | None
    destination: BaseEndpoint | None


class ConnectionManager:
    """Owns the endpoint handles and rebuilds them from the profile store on demand.

    Handles are never reused: every `verify` and every `open` discards the previous pair and builds a
    new one from whatever the profile store holds at that moment, so a reload always takes effect.
    """

    def __init__(
        self,
        profiles: ProfileStore,
        *,
        endpoint_factory: EndpointFactory = RedisEndpoint.from_profile,
        terminal: Terminal | None = None,
    ) -> None:
        self._profiles = profiles
        self._endpoint_factory = endpoint_factory
        self._terminal = terminal or Terminal()
        self._source: BaseEndpoint | None = None
        self._destination: BaseEndpoint | None = None

    @property
    def profiles(self) -> ProfileStore:
        return self._profiles

    def build(self, profile: ConnectionProfile, role: Role = "source") -> BaseEndpoint | None:
        """Create an endpoint for a profile, or None if it cannot be created."""
        try:
            return self._endpoint_factory(profile)
        except Exception:
            logger.debug("Failed to create %s endpoint for %s", role, profile.url, exc_info=True)
            return None

    def probe(self, endpoint: BaseEndpoint) -> bool:
        """Ping an endpoint; any failure counts as unreachable."""
        try:
            return bool(endpoint.ping())
        except Exception:
            logger.debug("Ping failed for %s", endpoint.address, exc_info=True)
            return False

    def verify(
        self,
        source_profile: ConnectionProfile,
        destination_profile: ConnectionProfile,
        *,
        quiet: bool = False,
    ) -> Verification:
        """Build fresh endpoints for both profiles and probe each of them.

        Succeeds only if both endpoints answer. Unless `quiet` is set, one status line per endpoint is
        written to the terminal.
        """
        self.close()

        if not quiet:
            self._terminal.echo("Testing Redis connections...")

        source = self.build(source_profile, "source")
        source_ok = self._check("source", source_profile, source, quiet=quiet)

        destination = self.build(destination_profile, "destination")
        destination_ok = self._check("destination", destination_profile, destination, quiet=quiet)

        self._source, self._destination = source, destination

        return Verification(ok=source_ok and destination_ok, source=source, destination=destination)

    def verify_current(self, *, quiet: bool = False) -> Verification:
        """Verify the profiles the store holds right now."""
        profiles = self._profiles.current
        return self.verify(profiles.source, profiles.destination, quiet=quiet)

    def open(self) -> tuple[BaseEndpoint, BaseEndpoint]:
        """Build a fresh, unprobed pair of endpoints from the current profiles for a single copy."""
        self.close()

        profiles = self._profiles.current
        source = self.build(profiles.source, "source")
        destination = self.build(profiles.destination, "destination")

        if source is None or destination is None:
            for endpoint in (source, destination):
                if endpoint is not None:
                    endpoint.close()
            raise StoreConnectionError(
                message="Unable to create endpoints from the current configuration",
                extra_info={"source": profiles.source.url, "destination": profiles.destination.url},
            )

        self._source, self._destination = source, destination
        return source, destination

    def close(self) -> None:
        """Release the handles built by the last `verify` or `open`."""
        for endpoint in (self._source, self._destination):
            if endpoint is None:
                continue
            try:
                endpoint.close()
            except Exception:
                logger.debug("Failed to close %s", endpoint.address, exc_info=True)

        self._source = None
        self._destination = None

    def _check(self, role: Role, profile: ConnectionProfile, endpoint: BaseEndpoint | None, *, quiet: bool) -> bool:
        connected = endpoint is not None and self.probe(endpoint)

        if quiet:
            return connected

        if connected:
            self._terminal.echo(f"✓ {role.capitalize()} Redis connected: {profile.url}")
        else:
            self._terminal.error(f"✗ Failed to connect to {role} Redis: {profile.url}")
            if endpoint is None:
                self._terminal.error("  Reason: Invalid configuration properties (check for missing or invalid values)")

        return connected
