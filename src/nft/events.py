"""Domain events and the JSONL event sink.

Five event kinds are emitted, each exactly once per committed call and
never for a call that failed:

    NomineeAdded  {owner, nominee}
    OwnerChanged  {new_owner}
    NftAdded      {token_id, uri}
    Minted        {account, token_id, uri, amount}
    Burnt         {account, token_id, amount}

A sink is any callable taking one event. EventLogger is the durable sink:
an append-only JSONL file with a monotonic sequence number per line.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, ClassVar, Union

from ..config import get

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NomineeAdded:
    event_type: ClassVar[str] = "NomineeAdded"
    owner: str
    nominee: str

    def to_dict(self) -> dict[str, Any]:
        return {"event_type": self.event_type, **asdict(self)}


@dataclass(frozen=True)
class OwnerChanged:
    event_type: ClassVar[str] = "OwnerChanged"
    new_owner: str

    def to_dict(self) -> dict[str, Any]:
        return {"event_type": self.event_type, **asdict(self)}


@dataclass(frozen=True)
class NftAdded:
    event_type: ClassVar[str] = "NftAdded"
    token_id: int
    uri: str

    def to_dict(self) -> dict[str, Any]:
        return {"event_type": self.event_type, **asdict(self)}


@dataclass(frozen=True)
class Minted:
    event_type: ClassVar[str] = "Minted"
    account: str
    token_id: int
    uri: str
    amount: int

    def to_dict(self) -> dict[str, Any]:
        return {"event_type": self.event_type, **asdict(self)}


@dataclass(frozen=True)
class Burnt:
    event_type: ClassVar[str] = "Burnt"
    account: str
    token_id: int
    amount: int

    def to_dict(self) -> dict[str, Any]:
        return {"event_type": self.event_type, **asdict(self)}


NftEvent = Union[NomineeAdded, OwnerChanged, NftAdded, Minted, Burnt]
EventSink = Callable[[NftEvent], None]


class EventLogger:
    """Append-only JSONL event log.

    Unlike a per-run log, the ledger's history outlives the process, so an
    existing file is appended to and the sequence counter resumes from the
    number of lines already written.
    """

    output_path: Path
    _sequence: int  # Monotonic event counter

    def __init__(self, output_file: str | Path | None = None) -> None:
        """Initialize the event logger.

        Args:
            output_file: JSONL file path (default: logging.output_file from config)
        """
        resolved_file = output_file or get("logging.output_file") or "events.jsonl"
        self.output_path = Path(resolved_file)
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self._sequence = 0
        if self.output_path.exists():
            with open(self.output_path) as f:
                self._sequence = sum(1 for line in f if line.strip())

    def __call__(self, event: NftEvent) -> None:
        self.log(event.event_type, event.to_dict())

    def log(self, event_type: str, data: dict[str, Any]) -> None:
        """Log an event to the JSONL file.

        All lines include a monotonic 'sequence' field for ordering.
        """
        self._sequence += 1
        record: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "sequence": self._sequence,
            **data,
            "event_type": event_type,
        }
        with open(self.output_path, "a") as f:
            f.write(json.dumps(record) + "\n")
        logger.debug("Logged %s #%d", event_type, self._sequence)

    def read_recent(self, n: int | None = None) -> list[dict[str, Any]]:
        """Read the last N events from the log.

        N defaults to logging.default_recent from config.
        """
        if n is None:
            default_recent = get("logging.default_recent")
            if isinstance(default_recent, int):
                n = default_recent
            else:
                n = 50
        if n <= 0 or not self.output_path.exists():
            return []
        lines = self.output_path.read_text().strip().split("\n")
        lines = [line for line in lines if line]  # filter empty
        recent = lines[-n:]
        return [json.loads(line) for line in recent]

    @property
    def sequence(self) -> int:
        return self._sequence


class EventRecorder:
    """In-memory sink that keeps every event it receives, in order."""

    def __init__(self) -> None:
        self.events: list[NftEvent] = []

    def __call__(self, event: NftEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: str) -> list[NftEvent]:
        return [e for e in self.events if e.event_type == event_type]

    def clear(self) -> None:
        self.events.clear()
