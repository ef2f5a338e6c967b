"""Ledger events fanned out to in-process subscribers and the telemetry log.

Mutations publish one ``LedgerEvent`` after commit; rejected operations
publish ``OPERATION_REJECTED`` with the error code instead.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from threading import RLock
from typing import Any, Callable, Dict, FrozenSet, Iterator, List, Optional, Tuple, Union

logger = logging.getLogger("skill_ledger.telemetry")


class LedgerEvent(str, Enum):
    USER_REGISTERED = "user_registered"
    SKILL_ADDED = "skill_added"
    PROGRESS_RECORDED = "progress_recorded"
    VISIBILITY_CHANGED = "visibility_changed"
    ACCESS_GRANTED = "access_granted"
    ACCESS_REVOKED = "access_revoked"
    GOAL_SET = "goal_set"
    GOAL_COMPLETED = "goal_completed"
    OPERATION_REJECTED = "ledger_operation_rejected"


@dataclass(frozen=True)
class TelemetryEvent:
    name: LedgerEvent
    caller: str
    height: Optional[int] = None
    payload: Dict[str, Any] = field(default_factory=dict)

    def as_log_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {"event": self.name.value, "caller": self.caller}
        if self.height is not None:
            record["height"] = self.height
        record.update(self.payload)
        return record


Listener = Callable[[TelemetryEvent], None]
EventFilter = Optional[FrozenSet[LedgerEvent]]

_subscriptions: List[Tuple[EventFilter, Listener]] = []
_lock = RLock()


def register_listener(listener: Listener, *, events: Optional[List[Union[LedgerEvent, str]]] = None) -> None:
    """Subscribe ``listener``; ``events`` narrows delivery to those names."""
    wanted = frozenset(LedgerEvent(name) for name in events) if events else None
    with _lock:
        _subscriptions.append((wanted, listener))


def clear_listeners() -> None:
    with _lock:
        _subscriptions.clear()


@contextmanager
def capture_events(*names: Union[LedgerEvent, str]) -> Iterator[List[TelemetryEvent]]:
    captured: List[TelemetryEvent] = []
    listener = captured.append
    register_listener(listener, events=list(names) or None)
    try:
        yield captured
    finally:
        with _lock:
            _subscriptions[:] = [entry for entry in _subscriptions if entry[1] is not listener]


def emit_event(
    name: Union[LedgerEvent, str],
    caller: str,
    *,
    height: Optional[int] = None,
    **fields: Any,
) -> TelemetryEvent:
    event = TelemetryEvent(
        name=LedgerEvent(name),
        caller=caller,
        height=height,
        payload={key: _plain(value) for key, value in fields.items()},
    )

    with _lock:
        subscribers = [listener for wanted, listener in _subscriptions if wanted is None or event.name in wanted]

    for listener in subscribers:
        try:
            listener(event)
        except Exception:  # noqa: BLE001
            logger.exception("Ledger event subscriber failed for %s", event.name.value)

    logger.info("TELEMETRY %s", json.dumps(event.as_log_record(), default=str, sort_keys=True))
    return event


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


__all__ = [
    "LedgerEvent",
    "TelemetryEvent",
    "capture_events",
    "clear_listeners",
    "emit_event",
    "register_listener",
]
