"""
Event normalization.

Turns the shapes accepted by ``Loggy.log`` into canonical event records:

    log("Message"[, {other fields}])
    log("Message", 3.14)              # message + value shorthand
    log(error[, {other fields}])
    log({all fields})
    log([events...][, {other fields}])
    log(message_or_fields, True)      # immediate flag in the fields slot

Normalization never raises; fields it cannot interpret are dropped.
"""

from __future__ import annotations

import traceback
from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterator

from .levels import Level


Event = dict[str, Any]


class CallShape(str, Enum):
    """Which accepted call shape a ``log`` invocation matches."""
    ERROR = "error"        # message is an exception
    SEQUENCE = "sequence"  # message is a list of events
    FLAG = "flag"          # fields carries the immediate flag
    GENERAL = "general"


def classify(message: Any, fields: Any = None, immediate: bool | None = None) -> CallShape:
    """Resolve the call shape, in precedence order."""
    if isinstance(message, BaseException):
        return CallShape.ERROR
    if isinstance(message, (list, tuple)):
        return CallShape.SEQUENCE
    if isinstance(fields, bool) and immediate is None:
        return CallShape.FLAG
    return CallShape.GENERAL


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    ts = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return ts.replace("+00:00", "Z")


def error_fields(exc: BaseException) -> Event:
    """Synthesize the fields describing an exception."""
    return {
        "level": Level.ERROR.value,
        "code": type(exc).__name__,
        "message": str(exc),
        "details": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
    }


def fields_layer(fields: Any) -> Mapping[str, Any]:
    """Interpret the fields argument: a mapping as-is, a number as ``{"value": n}``, anything else as nothing."""
    if isinstance(fields, Mapping):
        return fields
    # bool is an int subclass but never a value shorthand
    if isinstance(fields, (int, float)) and not isinstance(fields, bool):
        return {"value": fields}
    return {}


def _message_layer(message: Any) -> Mapping[str, Any]:
    if isinstance(message, Mapping):
        return message
    return {"message": message}


def build_event(defaults: Mapping[str, Any], message: Any, fields: Any = None) -> Event:
    """
    Layer an event, lowest to highest priority:
    defaults, timestamp, fields, message.
    """
    return {
        **defaults,
        "ts": now_iso(),
        **fields_layer(fields),
        **_message_layer(message),
    }


def normalize(
    defaults: Mapping[str, Any],
    message: Any,
    fields: Any = None,
    immediate: bool | None = None,
) -> Iterator[tuple[Event, bool]]:
    """
    Yield ``(event, immediate)`` pairs for one ``log`` call.

    A single call yields one pair except for the sequence shape, which
    yields one per element. The generator is lazy so that a caller
    which terminates on a fatal event never normalizes the rest.
    """
    shape = classify(message, fields, immediate)

    if shape is CallShape.ERROR:
        if isinstance(fields, bool) and immediate is None:
            fields, immediate = None, fields
        merged = {**error_fields(message), **fields_layer(fields)}
        yield from normalize(defaults, merged, None, immediate)
        return

    if shape is CallShape.SEQUENCE:
        for item in message:
            yield from normalize(defaults, item, fields, immediate)
        return

    if shape is CallShape.FLAG:
        immediate = fields
        fields = message if isinstance(message, Mapping) else None

    yield build_event(defaults, message, fields), bool(immediate)
