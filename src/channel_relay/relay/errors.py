"""Exceptions raised by the relay engine."""

from __future__ import annotations


class RelayError(Exception):
    """Base class for relay engine errors."""


class AlreadyActiveError(RelayError):
    """A relay already exists for the source channel."""

    def __init__(self, source_id: int) -> None:
        super().__init__(f"Relay already active for source channel {source_id}")
        self.source_id = source_id


class InvalidChannelError(RelayError):
    """A source or target channel could not be resolved."""

    def __init__(self, channel_id: int, role: str) -> None:
        super().__init__(f"Invalid {role} channel {channel_id}")
        self.channel_id = channel_id
        self.role = role


class EndpointProvisionError(RelayError):
    """No webhook could be reused or created in the target channel."""


class RestorationFailure(RelayError):
    """A saved relay could not be restored at startup."""

    def __init__(self, source_id: int, cause: Exception) -> None:
        super().__init__(f"Could not restore relay for {source_id}: {cause}")
        self.source_id = source_id
        self.cause = cause
