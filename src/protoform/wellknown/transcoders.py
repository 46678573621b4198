"""Editors for google.protobuf well-known types.

Each transcoder converts between the stored value (`wire`) and what the
editor shows (`display`). Malformed input never raises: it becomes the type's
zero value.
"""

import json
import math
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from protoform import log
from protoform.engine.coerce import parse_int
from protoform.schema.models import WellKnownType

TIMESTAMP_DISPLAY_FORMAT = "%Y-%m-%dT%H:%M:%S"


class WellKnownTranscoder(ABC):
    """Base class of the per-type transcoders."""

    well_known_type: WellKnownType
    label: str
    placeholder: str = ""
    read_only: bool = False

    @abstractmethod
    def to_editable(self, wire: Any) -> Any:
        """Display form of a stored value (absent values give the empty display)."""

    @abstractmethod
    def from_editable(self, display: Any) -> Any:
        """Stored form of an editor value."""

    @abstractmethod
    def zero(self) -> Any:
        """Value stored when the editor input cannot be understood."""


def _loads(text: Any, default: str) -> Any:
    """Parse JSON text; empty text parses as `default`.

    Raises:
        ValueError: The text is not valid JSON or nests deeper than the interpreter can decode
    """
    if not isinstance(text, str):
        raise ValueError(f"Expected JSON text, got {type(text).__name__}")
    try:
        return json.loads(text.strip() or default)
    except RecursionError as e:
        raise ValueError("JSON nesting is too deep") from e


def wrap_value(value: Any) -> dict[str, Any]:
    """Wrap a plain JSON value into the google.protobuf.Value oneof."""
    if value is None:
        return {"nullValue": 0}
    if isinstance(value, bool):
        return {"boolValue": value}
    if isinstance(value, (int, float)):
        return {"numberValue": value}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, list):
        return {"listValue": {"values": [wrap_value(v) for v in value]}}
    if isinstance(value, dict):
        return {"structValue": {"fields": value}}
    return {"nullValue": 0}


def unwrap_value(wire: Any) -> Any:
    """Plain JSON value of a google.protobuf.Value (unknown shapes give None)."""
    if not isinstance(wire, Mapping):
        return None
    if "stringValue" in wire:
        return wire["stringValue"]
    if "numberValue" in wire:
        return wire["numberValue"]
    if "boolValue" in wire:
        return wire["boolValue"]
    if "listValue" in wire:
        values = wire["listValue"].get("values", []) if isinstance(wire["listValue"], Mapping) else []
        return [unwrap_value(v) for v in values]
    if "structValue" in wire:
        fields = wire["structValue"].get("fields", {}) if isinstance(wire["structValue"], Mapping) else {}
        return dict(fields)
    return None


class TimestampTranscoder(WellKnownTranscoder):
    """`{seconds, nanos}` <-> `YYYY-MM-DDTHH:MM:SS`. Sub-second precision is dropped.

    Naive datetimes are read as UTC, the zone the display is written in, so a
    display round trip is exact.
    """

    well_known_type = WellKnownType.TIMESTAMP
    label = "Timestamp"
    placeholder = "YYYY-MM-DDTHH:mm:ss"

    def zero(self) -> dict[str, int]:
        return {"seconds": 0, "nanos": 0}

    def to_editable(self, wire: Any) -> str:
        if not isinstance(wire, Mapping):
            return ""
        seconds = parse_int(wire.get("seconds", 0))
        if seconds is None:
            return ""
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc).strftime(TIMESTAMP_DISPLAY_FORMAT)
        except (OverflowError, OSError, ValueError):
            return ""

    def from_editable(self, display: Any) -> dict[str, int]:
        if isinstance(display, (int, float)) and not isinstance(display, bool):
            return {"seconds": math.floor(display), "nanos": 0} if math.isfinite(display) else self.zero()
        if not isinstance(display, str) or not display.strip():
            return self.zero()
        try:
            parsed = datetime.fromisoformat(display.strip())
        except ValueError:
            log.debug(f"Invalid timestamp input '{display}'")
            return self.zero()
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return {"seconds": math.floor(parsed.timestamp()), "nanos": 0}


class DurationTranscoder(WellKnownTranscoder):
    """`{seconds, nanos}` <-> whole seconds."""

    well_known_type = WellKnownType.DURATION
    label = "Duration in seconds"
    placeholder = "Duration in seconds"

    def zero(self) -> dict[str, int]:
        return {"seconds": 0, "nanos": 0}

    def to_editable(self, wire: Any) -> int:
        if not isinstance(wire, Mapping):
            return 0
        return parse_int(wire.get("seconds", 0)) or 0

    def from_editable(self, display: Any) -> dict[str, int]:
        return {"seconds": parse_int(display) or 0, "nanos": 0}


class StructTranscoder(WellKnownTranscoder):
    """`{fields: {...}}` <-> JSON object text."""

    well_known_type = WellKnownType.STRUCT
    label = "JSON Struct"
    placeholder = '{"key": "value"}'

    def zero(self) -> dict[str, Any]:
        return {"fields": {}}

    def to_editable(self, wire: Any) -> str:
        if isinstance(wire, Mapping) and isinstance(wire.get("fields"), Mapping):
            return json.dumps(wire["fields"])
        return "{}"

    def from_editable(self, display: Any) -> dict[str, Any]:
        if isinstance(display, Mapping):
            return {"fields": dict(display)}
        try:
            parsed = _loads(display, "{}")
        except ValueError:
            log.debug("Invalid JSON for Struct, using empty struct")
            return self.zero()
        if not isinstance(parsed, dict):
            return self.zero()
        return {"fields": parsed}


class ValueTranscoder(WellKnownTranscoder):
    """Value oneof <-> a single JSON literal."""

    well_known_type = WellKnownType.VALUE
    label = "JSON Value"
    placeholder = 'Any JSON value: "string", 123, true, null'

    def zero(self) -> dict[str, int]:
        return {"nullValue": 0}

    def to_editable(self, wire: Any) -> str:
        return json.dumps(unwrap_value(wire))

    def from_editable(self, display: Any) -> dict[str, Any]:
        try:
            parsed = _loads(display, "null") if isinstance(display, str) else display
            return wrap_value(parsed)
        except (ValueError, RecursionError):
            log.debug("Invalid JSON for Value, using null")
            return self.zero()


class ListValueTranscoder(WellKnownTranscoder):
    """`{values: [Value]}` <-> JSON array text."""

    well_known_type = WellKnownType.LIST_VALUE
    label = "JSON Array"
    placeholder = '[1, "string", true, null]'

    def zero(self) -> dict[str, list[Any]]:
        return {"values": []}

    def to_editable(self, wire: Any) -> str:
        if not isinstance(wire, Mapping) or not isinstance(wire.get("values"), list):
            return "[]"
        return json.dumps([unwrap_value(v) for v in wire["values"]])

    def from_editable(self, display: Any) -> dict[str, Any]:
        try:
            parsed = display if isinstance(display, list) else _loads(display, "[]")
            if not isinstance(parsed, list):
                return self.zero()
            return {"values": [wrap_value(v) for v in parsed]}
        except (ValueError, RecursionError):
            log.debug("Invalid JSON for ListValue, using empty list")
            return self.zero()


class AnyTranscoder(WellKnownTranscoder):
    """`{type_url, value}` <-> a type URL and a base64 payload, unvalidated."""

    well_known_type = WellKnownType.ANY
    label = "Any Type"
    placeholder = "Type URL (e.g., type.googleapis.com/package.MessageType)"

    def zero(self) -> dict[str, str]:
        return {"type_url": "", "value": ""}

    def to_editable(self, wire: Any) -> dict[str, str]:
        if not isinstance(wire, Mapping):
            return self.zero()
        return {"type_url": str(wire.get("type_url", "")), "value": str(wire.get("value", ""))}

    def from_editable(self, display: Any) -> dict[str, str]:
        if isinstance(display, Mapping):
            return {"type_url": str(display.get("type_url", "")), "value": str(display.get("value", ""))}
        if isinstance(display, Sequence) and not isinstance(display, str) and len(display) == 2:
            return {"type_url": str(display[0]), "value": str(display[1])}
        return self.zero()


class NullValueTranscoder(WellKnownTranscoder):
    """Always the literal null."""

    well_known_type = WellKnownType.NULL_VALUE
    label = "Null"
    placeholder = "null"
    read_only = True

    def zero(self) -> dict[str, int]:
        return {"nullValue": 0}

    def to_editable(self, wire: Any) -> str:
        return "null"

    def from_editable(self, display: Any) -> dict[str, int]:
        return self.zero()


class EmptyTranscoder(WellKnownTranscoder):
    """Always the empty message."""

    well_known_type = WellKnownType.EMPTY
    label = "Empty"
    placeholder = "Empty message"
    read_only = True

    def zero(self) -> dict[str, Any]:
        return {}

    def to_editable(self, wire: Any) -> str:
        return "{}"

    def from_editable(self, display: Any) -> dict[str, Any]:
        return self.zero()
