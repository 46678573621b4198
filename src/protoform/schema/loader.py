"""Build a MessageSchema from the JSON emitted by the reflection service."""

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from protoform import log
from protoform.schema.models import EnumValue, FieldKind, FieldSchema, MessageSchema, WellKnownType

REFLECTION_TYPE_TO_KIND = {
    "TYPE_STRING": FieldKind.STRING,
    "TYPE_BYTES": FieldKind.BYTES,
    "TYPE_INT32": FieldKind.INT,
    "TYPE_INT64": FieldKind.INT,
    "TYPE_UINT32": FieldKind.UINT,
    "TYPE_UINT64": FieldKind.UINT,
    "TYPE_SINT32": FieldKind.SINT,
    "TYPE_SINT64": FieldKind.SINT,
    "TYPE_FIXED32": FieldKind.FIXED,
    "TYPE_FIXED64": FieldKind.FIXED,
    "TYPE_SFIXED32": FieldKind.FIXED,
    "TYPE_SFIXED64": FieldKind.FIXED,
    "TYPE_DOUBLE": FieldKind.DOUBLE,
    "TYPE_FLOAT": FieldKind.FLOAT,
    "TYPE_BOOL": FieldKind.BOOL,
    "TYPE_ENUM": FieldKind.ENUM,
    "TYPE_MESSAGE": FieldKind.MESSAGE,
}

WELL_KNOWN_BY_NAME = {wkt.full_name: wkt for wkt in WellKnownType}


class SchemaLoadError(ValueError):
    """Raised when reflection data cannot be turned into a schema."""


def detect_well_known_type(type_name: str | None) -> WellKnownType | None:
    """
    Map a fully qualified type name to a well-known type.

    Args:
        type_name: Type name such as "google.protobuf.Timestamp" or ".google.protobuf.Timestamp"

    Returns:
        The matching WellKnownType, or None for any other type
    """
    if not type_name:
        return None
    return WELL_KNOWN_BY_NAME.get(type_name.lstrip("."))


def _build_enum_values(raw_values: Any) -> list[EnumValue]:
    if not isinstance(raw_values, list):
        return []
    return [EnumValue(name=str(v["name"]), number=int(v.get("number", 0))) for v in raw_values]


def build_field(raw: dict[str, Any]) -> FieldSchema:
    """
    Build one FieldSchema from a reflection field entry.

    Args:
        raw: Field entry with keys like name, type, isArray, typeName, enumValues, nestedMessage

    Returns:
        The corresponding FieldSchema
    """
    raw_type = str(raw.get("type", ""))
    kind = REFLECTION_TYPE_TO_KIND.get(raw_type, FieldKind.UNKNOWN)
    if kind == FieldKind.UNKNOWN:
        log.debug(f"Field '{raw.get('name')}' has unrecognized type '{raw_type}'")

    type_name = raw.get("typeName") or raw.get("messageType") or raw.get("enumType") or raw_type or None

    enum_values = None
    if kind == FieldKind.ENUM:
        enum_values = _build_enum_values(raw.get("enumValues"))

    nested_schema = None
    if kind == FieldKind.MESSAGE:
        nested_raw = raw.get("nestedMessage")
        nested_schema = build_message(nested_raw) if isinstance(nested_raw, dict) else MessageSchema(message=type_name)

    return FieldSchema(
        name=str(raw.get("name", "")),
        kind=kind,
        repeated=bool(raw.get("isArray") or raw.get("repeated")),
        enum_values=enum_values,
        nested_schema=nested_schema,
        well_known_type=detect_well_known_type(type_name),
        required=bool(raw.get("required", False)),
        description=(raw.get("description") or "").strip(),
        type_name=type_name,
        number=raw.get("number"),
    )


def build_message(raw: dict[str, Any]) -> MessageSchema:
    """
    Build a MessageSchema from a reflection message entry.

    Circular references are reported by reflection as `{"message": ..., "circular": true}`
    and become a MessageSchema without fields.
    """
    if raw.get("circular"):
        return MessageSchema(message=raw.get("message"), circular=True)

    fields = raw.get("fields") or []
    if not isinstance(fields, list):
        raise SchemaLoadError(f"'fields' must be a list, got {type(fields).__name__}")
    for position, field in enumerate(fields):
        if not isinstance(field, dict):
            raise SchemaLoadError(f"Field entry {position} must be a mapping, got {type(field).__name__}")

    return MessageSchema(
        message=raw.get("message"),
        fields=[build_field(field) for field in fields],
    )


def parse_schema(data: Any) -> MessageSchema:
    """
    Parse reflection output into a MessageSchema.

    Accepts either the message entry itself or a method description wrapping it
    under `inputDetails`.

    Raises:
        SchemaLoadError: If the data is not a mapping or does not validate
    """
    if not isinstance(data, dict):
        raise SchemaLoadError(f"Schema root must be a mapping, got {type(data).__name__}")

    if isinstance(data.get("inputDetails"), dict):
        data = data["inputDetails"]

    try:
        schema = build_message(data)
    except SchemaLoadError:
        raise
    except (ValidationError, KeyError, TypeError, AttributeError, ValueError) as e:
        raise SchemaLoadError(f"Invalid schema: {e}") from e

    log.debug(f"Parsed schema '{schema.message}' with {len(schema.fields)} root fields")
    return schema


def load_schema(schema_path: Path) -> MessageSchema:
    """
    Load a schema from a JSON or YAML file.

    Args:
        schema_path: Path to the reflection output

    Returns:
        The parsed MessageSchema

    Raises:
        OSError: If the file cannot be read
        SchemaLoadError: If the content is not valid JSON/YAML or not a valid schema
    """
    text = schema_path.read_text(encoding="utf-8")
    try:
        if schema_path.suffix.lower() in {".yaml", ".yml"}:
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise SchemaLoadError(f"Cannot parse {schema_path}: {e}") from e

    log.debug("Loaded schema from %s", schema_path)
    return parse_schema(data)


def load_value(value_path: Path | None) -> Any:
    """Load a JSON or YAML value file, or return None when no path is given."""
    if value_path is None:
        return None
    with value_path.open("r", encoding="utf-8") as f:
        if value_path.suffix.lower() in {".yaml", ".yml"}:
            return yaml.safe_load(f)
        return json.load(f)
