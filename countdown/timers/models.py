"""Countdown timer records and their serialized form."""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from countdown.helpers.logging_helper import log_module_import

log_module_import(__name__)

PLACEHOLDER_LABEL = "Untitled"
ZERO = timedelta(0)

IdFactory = Callable[[], str]


class TimerError(Exception):
    """Base class for countdown timer errors."""


class MalformedRecord(ValueError, TimerError):
    """Raised when a persisted timer entry cannot be decoded."""


def new_timer_id() -> str:
    return str(uuid.uuid4())


def to_local_naive(value: datetime) -> datetime:
    """Return ``value`` as a naive local wall-clock instant."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


@dataclass(frozen=True)
class TimerRecord:
    """One countdown: an identity, a display label and a target instant."""

    id: str
    label: str
    target: datetime

    @classmethod
    def create(cls, label: str, target: datetime, id_factory: Optional[IdFactory] = None) -> "TimerRecord":
        """Build a new record with a fresh id and a normalized label.

        Blank labels become ``PLACEHOLDER_LABEL``. Aware targets are converted
        to local time so every record compares against a naive local clock.
        """
        timer_id = (id_factory or new_timer_id)()
        return cls(
            id=str(timer_id),
            label=(label or "").strip() or PLACEHOLDER_LABEL,
            target=to_local_naive(target),
        )

    def remaining(self, now: datetime) -> timedelta:
        diff = self.target - now
        return diff if diff > ZERO else ZERO

    def is_reached(self, now: datetime) -> bool:
        return self.remaining(now) == ZERO

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TimerRecord":
        if not isinstance(data, Mapping):
            raise MalformedRecord(f"timer entry must be an object, got {type(data).__name__}")

        timer_id = data.get("id")
        label = data.get("label")
        raw_target = data.get("target")

        if not isinstance(timer_id, str):
            raise MalformedRecord("timer entry has no string 'id'")
        if not isinstance(label, str):
            raise MalformedRecord(f"timer {timer_id!r} has no string 'label'")
        if not isinstance(raw_target, str):
            raise MalformedRecord(f"timer {timer_id!r} has no string 'target'")
        try:
            target = datetime.fromisoformat(raw_target)
        except ValueError as exc:
            raise MalformedRecord(f"timer {timer_id!r} has an unparseable target {raw_target!r}") from exc

        return cls(id=timer_id, label=label, target=to_local_naive(target))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "target": self.target.isoformat(),
        }

    @classmethod
    def from_json(cls, text: str) -> "TimerRecord":
        try:
            payload = json.loads(text)
        except (TypeError, ValueError, RecursionError) as exc:
            raise MalformedRecord(f"timer entry is not valid JSON: {exc}") from exc
        return cls.from_dict(payload)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


def split_remaining(duration: timedelta) -> Tuple[int, int, int, int]:
    """Split ``duration`` into whole days, hours, minutes and seconds."""
    total = max(0, int(duration.total_seconds()))
    days, rest = divmod(total, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)
    return days, hours, minutes, seconds


def format_remaining(duration: timedelta) -> str:
    days, hours, minutes, seconds = split_remaining(duration)
    return f"{days}d {hours:02d}:{minutes:02d}:{seconds:02d}"


def format_target(target: datetime) -> str:
    return target.strftime("%Y-%m-%d %H:%M")


__all__ = [
    "IdFactory",
    "MalformedRecord",
    "PLACEHOLDER_LABEL",
    "TimerError",
    "TimerRecord",
    "format_remaining",
    "format_target",
    "new_timer_id",
    "split_remaining",
    "to_local_naive",
]
