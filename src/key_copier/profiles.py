"""Connection profiles for the source and destination endpoints.

Profiles are seeded from built-in defaults, optionally overlaid by a properties file, and replaced
as a whole whenever a new file is loaded. Nothing mutates a profile in place.
"""

import logging
import os
import re
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from key_copier.errors import ConfigurationError

logger = logging.getLogger(__name__)

Role = Literal["source", "destination"]

ROLES: tuple[Role, ...] = ("source", "destination")

PROPERTY_PREFIX = "redis."

# Maps the field part of `{role}.{field}` to the profile attribute it sets.
PROPERTY_FIELDS: Mapping[str, str] = {
    "host": "host",
    "port": "port",
    "database": "database",
    "password": "password",
    "timeout": "timeout_ms",
}

DEFAULT_TIMEOUT_MS = 2000


class ConnectionProfile(BaseModel):
    """Connection parameters for one endpoint."""

    model_config = ConfigDict(frozen=True)

    host: str = Field(default="localhost", min_length=1)
    port: int = Field(default=6379, ge=1, le=65535)
    database: int = Field(default=0, ge=0)
    password: str | None = None
    timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, gt=0)

    @field_validator("host", mode="before")
    @classmethod
    def _strip_host(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("password", mode="before")
    @classmethod
    def _empty_password_is_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def url(self) -> str:
        """The effective address, without credentials."""
        return f"redis://{self.host}:{self.port}/{self.database}"

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


class ProfilePair(BaseModel):
    """The profiles of both endpoints, always replaced together."""

    model_config = ConfigDict(frozen=True)

    source: ConnectionProfile = Field(default_factory=ConnectionProfile)
    destination: ConnectionProfile = Field(default_factory=lambda: ConnectionProfile(port=6380))

    def for_role(self, role: Role) -> ConnectionProfile:
        return self.source if role == "source" else self.destination


DEFAULT_PROFILES = ProfilePair()


PROPERTY_WHITESPACE = " \t\f"

_LINE_BREAK = re.compile(r"\r\n|\r|\n")

_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def _logical_lines(text: str) -> Iterator[str]:
    """Join continued lines and drop blank and comment lines.

    A line ending in an odd number of backslashes continues on the next line, whose leading
    whitespace is discarded.
    """
    pending: str | None = None

    for raw_line in _LINE_BREAK.split(text):
        line = raw_line.lstrip(PROPERTY_WHITESPACE)

        if pending is None and (not line or line[0] in "#!"):
            continue

        trailing_backslashes = len(line) - len(line.rstrip("\\"))
        continued = trailing_backslashes % 2 == 1
        if continued:
            line = line[:-1]

        pending = line if pending is None else pending + line

        if not continued:
            yield pending
            pending = None

    if pending is not None:
        yield pending


def _unescape(text: str, line: str) -> str:
    chars: list[str] = []
    i = 0

    while i < len(text):
        char = text[i]
        i += 1

        if char != "\\" or i == len(text):
            if char != "\\":
                chars.append(char)
            continue

        escaped = text[i]
        i += 1

        if escaped == "u":
            digits = text[i : i + 4]
            if len(digits) != 4 or any(digit not in "0123456789abcdefABCDEF" for digit in digits):
                raise ConfigurationError(message="Malformed \\uXXXX escape in configuration file", extra_info={"line": line})
            chars.append(chr(int(digits, 16)))
            i += 4
        else:
            chars.append(_ESCAPES.get(escaped, escaped))

    return "".join(chars)


def _split_property(line: str) -> tuple[str, str]:
    """Split a logical line at the first unescaped `=`, `:` or whitespace."""
    end = 0

    while end < len(line):
        char = line[end]
        if char == "\\":
            end += 2
            continue
        if char in "=:" or char in PROPERTY_WHITESPACE:
            break
        end += 1

    key = line[:end]
    rest = line[end:].lstrip(PROPERTY_WHITESPACE)

    if rest[:1] in ("=", ":"):
        rest = rest[1:].lstrip(PROPERTY_WHITESPACE)

    return _unescape(key, line), _unescape(rest, line)


def parse_properties(text: str) -> dict[str, str]:
    """Parse text in the Java properties format.

    Keys are separated from values by `=`, `:` or whitespace; `#` and `!` start comment lines; a
    trailing backslash continues a line; and backslash escapes (`\\t`, `\\uXXXX`, `\\=` ...) are
    decoded in both keys and values. A key without a value maps to the empty string.
    """
    return dict(_split_property(line) for line in _logical_lines(text))


def overrides_by_role(properties: Mapping[str, str]) -> dict[Role, dict[str, str]]:
    """Group recognised `[redis.]{role}.{field}` properties by role; anything else is ignored."""
    overrides: dict[Role, dict[str, str]] = {role: {} for role in ROLES}

    for name, value in properties.items():
        if name.startswith(PROPERTY_PREFIX):
            name = name[len(PROPERTY_PREFIX) :]

        role, _, field = name.partition(".")
        if role not in ROLES:
            continue

        if field not in PROPERTY_FIELDS:
            logger.warning("Ignoring unrecognised %s property %r", role, name)
            continue

        overrides[role][PROPERTY_FIELDS[field]] = value  # pyright: ignore[reportArgumentType]

    return overrides


def build_profiles(properties: Mapping[str, str], base: ProfilePair = DEFAULT_PROFILES) -> ProfilePair:
    """Overlay properties onto a base pair of profiles, validating every value."""
    overrides = overrides_by_role(properties)
    profiles: dict[str, ConnectionProfile] = {}

    for role in ROLES:
        merged = {**base.for_role(role).model_dump(), **overrides[role]}
        try:
            profiles[role] = ConnectionProfile.model_validate(merged)
        except ValidationError as e:
            fields = ", ".join(".".join(str(part) for part in error["loc"]) for error in e.errors())
            raise ConfigurationError(
                message=f"Invalid {role} connection settings",
                extra_info={"role": role, "fields": fields},
            ) from e

    return ProfilePair(**profiles)


def load_profiles(path: str | os.PathLike[str], base: ProfilePair = DEFAULT_PROFILES) -> ProfilePair:
    """Load profiles from a properties file, overlaying the values it sets onto `base`."""
    config_path = Path(path).expanduser()

    if not config_path.exists():
        raise ConfigurationError(message=f"Configuration file not found: {path}")

    if not config_path.is_file() or not os.access(config_path, os.R_OK):
        raise ConfigurationError(message=f"Cannot read configuration file: {path}")

    try:
        text = config_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(message=f"Error loading configuration file: {e}") from e

    return build_profiles(parse_properties(text), base=base)


class ProfileStore:
    """Holds the current profiles of both endpoints.

    Readers always go through `current`, so a reload takes effect on the next read without anything
    having to be notified.
    """

    def __init__(self, profiles: ProfilePair | None = None) -> None:
        self._profiles: ProfilePair = profiles or DEFAULT_PROFILES

    @property
    def current(self) -> ProfilePair:
        return self._profiles

    @property
    def source(self) -> ConnectionProfile:
        return self._profiles.source

    @property
    def destination(self) -> ConnectionProfile:
        return self._profiles.destination

    def replace(self, profiles: ProfilePair) -> None:
        self._profiles = profiles

    def reload(self, path: str | os.PathLike[str]) -> ProfilePair:
        """Load a properties file over the current profiles and swap them in.

        The file is parsed and validated before anything is replaced; on error the current profiles
        are kept and a `ConfigurationError` is raised.
        """
        profiles = load_profiles(path, base=self._profiles)
        self.replace(profiles)
        logger.info("Configuration loaded from %s", path)
        return profiles
