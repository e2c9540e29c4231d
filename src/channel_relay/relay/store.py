"""JSON file storage for relay definitions.

The whole table is rewritten on every change. Relay counts are small, so
a full rewrite through a temporary file keeps the file consistent without
an append log.
"""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path

from channel_relay.logging import get_logger
from channel_relay.relay.models import PersistedRecord

log = get_logger("channel_relay.relay.store")


class RelayStore:
    """Load and save :class:`PersistedRecord` objects keyed by source channel."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[int, PersistedRecord]:
        """Read every saved relay.

        A missing file is created empty. Unreadable or malformed content
        yields an empty table instead of an error so the bot can always
        start with zero relays.
        """
        if not self._path.exists():
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text("{}", encoding="utf-8")
            log.info("relay_store_created", path=str(self._path))
            return {}

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            log.error("relay_store_load_failed", path=str(self._path), error=str(exc))
            return {}

        if not isinstance(raw, dict):
            log.error("relay_store_load_failed", path=str(self._path), error="not a JSON object")
            return {}

        records: dict[int, PersistedRecord] = {}
        for key, data in raw.items():
            try:
                record = PersistedRecord.from_dict(data)
            except (KeyError, ValueError, TypeError) as exc:
                log.warning("relay_record_invalid", key=key, error=str(exc))
                continue
            records[record.source_id] = record

        log.debug("relay_store_loaded", count=len(records))
        return records

    def save(self, records: Iterable[PersistedRecord]) -> None:
        """Replace the file with the given records."""
        data = {str(record.source_id): record.to_dict() for record in records}
        self._path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=4)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        log.debug("relay_store_saved", count=len(data))
