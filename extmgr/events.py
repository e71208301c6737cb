"""
Extension domain events.

Events are notified through an EventSink. The ObservationManager fans
them out to in-process listeners; the EventLedger listener appends each
one to an append-only JSONL file, never rewriting earlier lines.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterator, Protocol

from .extension import Extension, ExtensionId, Namespace

# Event type constants
EXTENSION_INSTALLED = "extension.installed"
EXTENSION_UPGRADED = "extension.upgraded"
EXTENSION_UNINSTALLED = "extension.uninstalled"

EVENT_TYPES = frozenset({
    EXTENSION_INSTALLED,
    EXTENSION_UPGRADED,
    EXTENSION_UNINSTALLED,
})


@dataclass(frozen=True)
class ExtensionEvent:
    """Base class for events about one extension in one namespace."""

    extension_id: ExtensionId
    namespace: Namespace = None

    event_type = ""


@dataclass(frozen=True)
class ExtensionInstalledEvent(ExtensionEvent):
    event_type = EXTENSION_INSTALLED


@dataclass(frozen=True)
class ExtensionUpgradedEvent(ExtensionEvent):
    event_type = EXTENSION_UPGRADED


@dataclass(frozen=True)
class ExtensionUninstalledEvent(ExtensionEvent):
    event_type = EXTENSION_UNINSTALLED


class EventSink(Protocol):
    """Receiver of extension events."""

    def notify(self, event: ExtensionEvent, source: Any, data: Any = None) -> None:
        ...


EventListener = Callable[[ExtensionEvent, Any, Any], None]


class ObservationManager:
    """
    In-process event dispatch.

    Listeners are called synchronously in registration order. A listener
    exception propagates to the notifier.
    """

    def __init__(self) -> None:
        self._listeners: list[EventListener] = []

    def add_listener(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: EventListener) -> None:
        self._listeners.remove(listener)

    def notify(self, event: ExtensionEvent, source: Any, data: Any = None) -> None:
        for listener in list(self._listeners):
            listener(event, source, data)


# -----------------------------------------------------------------------------
# Append-only event ledger
# -----------------------------------------------------------------------------


def _describe(value: Any) -> Any:
    if isinstance(value, Extension):
        return {"id": value.id.to_dict(), "type": value.type}
    if isinstance(value, (list, tuple)):
        return [_describe(v) for v in value]
    return value


@dataclass(frozen=True)
class EventRecord:
    """One line of the event ledger."""

    event_type: str
    extension_id: ExtensionId
    namespace: Namespace
    timestamp: datetime
    data: Any = None
    source: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "event_type": self.event_type,
            "extension_id": self.extension_id.to_dict(),
            "namespace": self.namespace,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.data is not None:
            result["data"] = self.data
        if self.source is not None:
            result["source"] = self.source
        return result

    def to_json(self) -> str:
        """Serialize to JSON string (single line)."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EventRecord:
        return cls(
            event_type=data["event_type"],
            extension_id=ExtensionId.from_dict(data["extension_id"]),
            namespace=data.get("namespace"),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            data=data.get("data"),
            source=data.get("source"),
        )

    @classmethod
    def from_event(
        cls,
        event: ExtensionEvent,
        source: Any = None,
        data: Any = None,
        *,
        timestamp: datetime | None = None,
    ) -> EventRecord:
        if event.event_type not in EVENT_TYPES:
            raise ValueError(f"Invalid event_type: {event.event_type!r}")
        return cls(
            event_type=event.event_type,
            extension_id=event.extension_id,
            namespace=event.namespace,
            timestamp=timestamp or datetime.now(timezone.utc),
            data=_describe(data),
            source=getattr(source, "JOBTYPE", None) or (type(source).__name__ if source is not None else None),
        )


class EventLedger:
    """
    Append-only JSONL log of extension events.

    Register `ledger.on_event` on an ObservationManager to record
    every notified event.
    """

    def __init__(self, path: Path):
        self.path = path

    def append(self, record: EventRecord) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(record.to_json() + "\n")

    def on_event(self, event: ExtensionEvent, source: Any, data: Any = None) -> None:
        self.append(EventRecord.from_event(event, source, data))

    def iter_records(self) -> Iterator[EventRecord]:
        if not self.path.exists():
            return
        with self.path.open("r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line:
                    yield EventRecord.from_dict(json.loads(line))

