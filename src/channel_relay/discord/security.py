"""Access control for relay management commands."""

from collections.abc import Iterable

from channel_relay.config import get_settings
from channel_relay.logging import get_logger

log = get_logger("channel_relay.discord.security")


class UserAllowlist:
    """Manage Discord users allowed to start and stop relays."""

    def __init__(self, allowed_ids: Iterable[int] | None = None) -> None:
        """Initialize the allowlist.

        Args:
            allowed_ids: Allowed user IDs. Defaults to ``ALLOWED_USER_IDS``.
        """
        if allowed_ids is None:
            allowed_ids = get_settings().allowed_user_ids
        self._allowed_ids: set[int] = set(allowed_ids)
        self._allow_all = len(self._allowed_ids) == 0

        if self._allow_all:
            log.warning(
                "allowlist_empty",
                message="No allowed users configured, allowing all users",
            )
        else:
            log.info("allowlist_configured", count=len(self._allowed_ids))

    def is_allowed(self, user_id: int) -> bool:
        """Check if a user is allowed.

        Args:
            user_id: The Discord user ID.

        Returns:
            True if allowed, False otherwise.
        """
        if self._allow_all:
            return True
        return user_id in self._allowed_ids
