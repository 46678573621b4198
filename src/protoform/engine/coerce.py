"""Conversion of raw editor input into values of a field's kind."""

import math
import re
from typing import Any

from protoform.engine.path import MISSING
from protoform.schema.models import FLOAT_KINDS, INTEGER_KINDS, TEXT_KINDS, FieldKind, FieldSchema

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")
_TRUE_WORDS = {"true", "1", "yes", "on"}
_FALSE_WORDS = {"false", "0", "no", "off"}


def parse_int(raw: Any) -> int | None:
    """
    Parse an integer the way a numeric text input is read: from its leading digits.

    `"12abc"` gives 12, `"3.9"` gives 3, `"abc"` gives None.
    """
    if isinstance(raw, bool):
        return int(raw)
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return math.floor(raw) if math.isfinite(raw) else None
    if isinstance(raw, str):
        match = _LEADING_INT_RE.match(raw)
        return int(match.group(1)) if match else None
    return None


def parse_float(raw: Any) -> float | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        try:
            return float(raw.strip())
        except ValueError:
            return None
    return None


def parse_bool(raw: Any) -> bool | None:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        word = raw.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    if isinstance(raw, int):
        return bool(raw)
    return None


def parse_enum(field: FieldSchema, raw: Any) -> str | None:
    """Resolve an enum input given as a value name or number to the value name."""
    values = field.enum_values or []
    if isinstance(raw, str):
        for value in values:
            if value.name == raw:
                return value.name
        number = parse_int(raw) if raw.strip().lstrip("+-").isdigit() else None
    else:
        number = parse_int(raw)
    if number is not None:
        for value in values:
            if value.number == number:
                return value.name
    return None


def coerce_scalar(field: FieldSchema, raw: Any) -> Any:
    """
    Convert raw editor input for a scalar or enum field.

    Returns:
        The converted value, or MISSING if the input cannot be represented
    """
    kind = field.kind
    result: Any
    if kind in TEXT_KINDS:
        result = raw if isinstance(raw, str) else ("" if raw is None else str(raw))
    elif kind in INTEGER_KINDS:
        result = parse_int(raw)
    elif kind in FLOAT_KINDS:
        result = parse_float(raw)
    elif kind == FieldKind.BOOL:
        result = parse_bool(raw)
    elif kind == FieldKind.ENUM:
        result = parse_enum(field, raw)
    else:
        result = None
    return MISSING if result is None else result
