"""Data models for the relay engine.

Persisted models are plain dataclasses with to_dict/from_dict for
serialisation. Runtime-only state (the delivery transport) never reaches
the state file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from channel_relay.relay.transport import Transport


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(UTC).isoformat()


def _first_key(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    raise KeyError(keys[0])


class RelayMode(Enum):
    """How relayed messages reach the target channel."""

    DIRECT = "direct"
    WEBHOOK = "webhook"


# ------------------------------------------------------------------
# Persisted state
# ------------------------------------------------------------------


@dataclass
class WebhookCredential:
    """Identifier and token of a webhook used for proxy-identity delivery."""

    id: int
    token: str
    owned: bool = False  # created by us, deleted when the relay stops

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "token": self.token, "owned": self.owned}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WebhookCredential:
        if not isinstance(data, dict):
            raise TypeError(f"webhook credential must be an object, got {type(data).__name__}")
        if not data.get("token"):
            raise ValueError("webhook credential without a token")
        return cls(
            id=int(data["id"]),
            token=str(data["token"]),
            owned=bool(data.get("owned", False)),
        )


@dataclass
class PersistedRecord:
    """The saved form of a relay entry."""

    source_id: int
    target_id: int
    mode: RelayMode
    webhook: WebhookCredential | None = None
    started_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_id": str(self.source_id),
            "target_id": str(self.target_id),
            "mode": self.mode.value,
            "webhook": self.webhook.to_dict() if self.webhook else None,
            "started_at": self.started_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PersistedRecord:
        """Create from dictionary.

        Also reads the camelCase layouts written by earlier versions
        (``sourceId``/``targetId``/``startTime`` and the cloner layout with
        ``sourceChannelId``/``cloneChannelId``/``webhookId``/``webhookToken``).

        Raises:
            KeyError, ValueError, TypeError: If the record is malformed.
        """
        if not isinstance(data, dict):
            raise TypeError(f"record must be an object, got {type(data).__name__}")
        source = _first_key(data, "source_id", "sourceId", "sourceChannelId")
        target = _first_key(data, "target_id", "targetId", "cloneChannelId")
        mode = RelayMode(data.get("mode", RelayMode.WEBHOOK.value))
        started_at = data.get("started_at") or data.get("startTime") or utc_now_iso()

        raw_webhook = data.get("webhook")
        if raw_webhook is None and "webhookId" in data:
            raw_webhook = {"id": data["webhookId"], "token": data.get("webhookToken")}
        webhook = WebhookCredential.from_dict(raw_webhook) if raw_webhook else None
        if mode is RelayMode.WEBHOOK and webhook is None:
            raise ValueError("webhook relay saved without a credential")
        if mode is RelayMode.DIRECT:
            webhook = None

        return cls(
            source_id=int(source),
            target_id=int(target),
            mode=mode,
            webhook=webhook,
            started_at=str(started_at),
        )


# ------------------------------------------------------------------
# Runtime state
# ------------------------------------------------------------------


@dataclass
class RelaySummary:
    """Operator-facing view of an active relay."""

    source_id: int
    target_id: int
    mode: RelayMode
    started_at: str


@dataclass
class RelayEntry:
    """One active mirroring rule."""

    source_id: int
    target_id: int
    mode: RelayMode
    transport: Transport
    webhook: WebhookCredential | None = None
    started_at: str = field(default_factory=utc_now_iso)

    def __post_init__(self) -> None:
        if (self.mode is RelayMode.WEBHOOK) != (self.webhook is not None):
            raise ValueError("webhook credential must be set exactly when mode is webhook")

    def to_record(self) -> PersistedRecord:
        return PersistedRecord(
            source_id=self.source_id,
            target_id=self.target_id,
            mode=self.mode,
            webhook=self.webhook,
            started_at=self.started_at,
        )

    def summary(self) -> RelaySummary:
        return RelaySummary(
            source_id=self.source_id,
            target_id=self.target_id,
            mode=self.mode,
            started_at=self.started_at,
        )


# ------------------------------------------------------------------
# Message flow
# ------------------------------------------------------------------


@dataclass(frozen=True)
class InboundEvent:
    """A message observed in some channel, reduced to what the relay needs."""

    message_id: int
    channel_id: int
    author_id: int
    author_name: str
    text: str = ""
    author_avatar_url: str | None = None
    attachments: tuple[str, ...] = ()  # direct URLs
    embeds: tuple[Any, ...] = ()  # platform embed objects, passed through untouched
    author_is_bot: bool = False
    is_system: bool = False


@dataclass(frozen=True)
class OutboundPayload:
    """What a transport posts into the target channel."""

    display_name: str
    text: str
    avatar_url: str | None = None
    embeds: tuple[Any, ...] = ()

    @property
    def has_content(self) -> bool:
        return bool(self.text.strip()) or bool(self.embeds)


@dataclass
class DeliveryResult:
    """Outcome of a single delivery attempt."""

    ok: bool
    error: str | None = None

    @classmethod
    def success(cls) -> DeliveryResult:
        return cls(ok=True)

    @classmethod
    def failure(cls, error: str) -> DeliveryResult:
        return cls(ok=False, error=error)
