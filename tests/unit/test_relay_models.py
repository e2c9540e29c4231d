"""Unit tests for relay data models."""

from unittest.mock import MagicMock

import pytest

from channel_relay.relay.models import (
    DeliveryResult,
    OutboundPayload,
    PersistedRecord,
    RelayEntry,
    RelayMode,
    WebhookCredential,
)


class TestWebhookCredential:
    """Tests for WebhookCredential serialisation."""

    def test_round_trip(self):
        cred = WebhookCredential(id=5, token="secret", owned=True)
        assert WebhookCredential.from_dict(cred.to_dict()) == cred

    def test_owned_defaults_to_false(self):
        cred = WebhookCredential.from_dict({"id": "5", "token": "secret"})
        assert cred.id == 5
        assert cred.owned is False


class TestPersistedRecord:
    """Tests for PersistedRecord parsing."""

    def test_to_dict_uses_string_ids(self):
        record = PersistedRecord(
            source_id=100,
            target_id=200,
            mode=RelayMode.DIRECT,
            started_at="2026-01-01T00:00:00+00:00",
        )
        data = record.to_dict()
        assert data == {
            "source_id": "100",
            "target_id": "200",
            "mode": "direct",
            "webhook": None,
            "started_at": "2026-01-01T00:00:00+00:00",
        }

    def test_from_dict_reads_webhook_record(self):
        record = PersistedRecord.from_dict(
            {
                "source_id": "100",
                "target_id": "200",
                "mode": "webhook",
                "webhook": {"id": "7", "token": "tok"},
                "started_at": "2026-01-01T00:00:00+00:00",
            }
        )
        assert record.mode is RelayMode.WEBHOOK
        assert record.webhook == WebhookCredential(id=7, token="tok")

    def test_from_dict_reads_camel_case_layout(self):
        record = PersistedRecord.from_dict(
            {
                "sourceId": "100",
                "targetId": "200",
                "mode": "webhook",
                "webhook": {"id": "7", "token": "tok"},
                "startTime": "2025-06-01T10:00:00.000Z",
            }
        )
        assert record.source_id == 100
        assert record.target_id == 200
        assert record.started_at == "2025-06-01T10:00:00.000Z"

    def test_webhook_mode_without_credential_is_rejected(self):
        with pytest.raises(ValueError):
            PersistedRecord.from_dict({"source_id": "1", "target_id": "2", "mode": "webhook"})

    def test_direct_mode_drops_stray_credential(self):
        record = PersistedRecord.from_dict(
            {
                "source_id": "1",
                "target_id": "2",
                "mode": "direct",
                "webhook": {"id": "7", "token": "tok"},
            }
        )
        assert record.webhook is None

    def test_unknown_mode_is_rejected(self):
        with pytest.raises(ValueError):
            PersistedRecord.from_dict(
                {"source_id": "1", "target_id": "2", "mode": "carrier-pigeon"}
            )


class TestRelayEntry:
    """Tests for RelayEntry invariants and projections."""

    def test_webhook_mode_requires_credential(self):
        with pytest.raises(ValueError):
            RelayEntry(source_id=1, target_id=2, mode=RelayMode.WEBHOOK, transport=MagicMock())

    def test_direct_mode_rejects_credential(self):
        with pytest.raises(ValueError):
            RelayEntry(
                source_id=1,
                target_id=2,
                mode=RelayMode.DIRECT,
                transport=MagicMock(),
                webhook=WebhookCredential(id=1, token="t"),
            )

    def test_to_record_omits_transport(self):
        cred = WebhookCredential(id=1, token="t")
        entry = RelayEntry(
            source_id=1,
            target_id=2,
            mode=RelayMode.WEBHOOK,
            transport=MagicMock(),
            webhook=cred,
            started_at="2026-01-01T00:00:00+00:00",
        )
        record = entry.to_record()
        assert record == PersistedRecord(
            source_id=1,
            target_id=2,
            mode=RelayMode.WEBHOOK,
            webhook=cred,
            started_at="2026-01-01T00:00:00+00:00",
        )
        assert "transport" not in record.to_dict()

    def test_summary(self):
        entry = RelayEntry(source_id=1, target_id=2, mode=RelayMode.DIRECT, transport=MagicMock())
        summary = entry.summary()
        assert (summary.source_id, summary.target_id, summary.mode) == (1, 2, RelayMode.DIRECT)
        assert summary.started_at == entry.started_at


class TestPayloadAndResult:
    """Tests for OutboundPayload and DeliveryResult helpers."""

    def test_has_content_with_text(self):
        assert OutboundPayload(display_name="a", text="hi").has_content is True

    def test_has_content_whitespace_only(self):
        assert OutboundPayload(display_name="a", text="   ").has_content is False

    def test_has_content_with_embeds_only(self):
        assert OutboundPayload(display_name="a", text="", embeds=(object(),)).has_content is True

    def test_delivery_result_constructors(self):
        assert DeliveryResult.success().ok is True
        failure = DeliveryResult.failure("boom")
        assert failure.ok is False
        assert failure.error == "boom"


class TestLegacyLayouts:
    """Records written by earlier versions of the state file."""

    def test_cloner_layout(self):
        record = PersistedRecord.from_dict(
            {
                "sourceChannelId": "100",
                "cloneChannelId": "200",
                "webhookId": "7",
                "webhookToken": "tok",
                "startTime": "2025-06-01T10:00:00.000Z",
            }
        )
        assert (record.source_id, record.target_id) == (100, 200)
        assert record.mode is RelayMode.WEBHOOK
        assert record.webhook == WebhookCredential(id=7, token="tok")

    def test_missing_token_is_rejected(self):
        with pytest.raises(ValueError):
            WebhookCredential.from_dict({"id": "7", "token": None})

    @pytest.mark.parametrize("raw", ["oops", [1], 7])
    def test_non_object_credential_is_rejected(self, raw):
        with pytest.raises(TypeError):
            PersistedRecord.from_dict(
                {"source_id": "1", "target_id": "2", "mode": "webhook", "webhook": raw}
            )
