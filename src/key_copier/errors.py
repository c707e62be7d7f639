ExtraInfoType = dict[str, str | int | float | bool | None]


class KeyCopierError(Exception):
    """Base exception for all key copier errors."""

    def __init__(self, message: str | None = None, extra_info: ExtraInfoType | None = None):
        message_parts: list[str] = []

        if message:
            message_parts.append(message)

        if extra_info:
            extra_info_str = ";".join(f"{k}: {v}" for k, v in extra_info.items())
            if message:
                extra_info_str = "(" + extra_info_str + ")"

            message_parts.append(extra_info_str)

        super().__init__(": ".join(message_parts))


class ConfigurationError(KeyCopierError):
    """Raised when connection profiles are missing, unreadable or invalid."""


class StoreConnectionError(KeyCopierError):
    """Raised when unable to connect to or communicate with an endpoint."""


class MigrationError(KeyCopierError):
    """Raised when a key cannot be copied between endpoints."""


class InvalidTTLError(MigrationError):
    """Raised when a TTL is invalid."""

    def __init__(self, ttl: object, extra_info: ExtraInfoType | None = None):
        super().__init__(
            message="A TTL is invalid.",
            extra_info={"ttl": str(ttl), **(extra_info or {})},
        )


class InvalidTransitionError(KeyCopierError):
    """Raised when the control loop receives an event its current state does not accept."""

    def __init__(self, state: str, event: str):
        super().__init__(
            message="No transition for event in state.",
            extra_info={"state": state, "event": event},
        )
