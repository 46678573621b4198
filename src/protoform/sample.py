"""Generate an example value for a schema, used to prefill a new request."""

from typing import Any

from protoform.schema.models import FLOAT_KINDS, INTEGER_KINDS, FieldKind, FieldSchema, MessageSchema
from protoform.wellknown import get_transcoder

SAMPLE_INT = 123
SAMPLE_FLOAT = 123.45
SAMPLE_BYTES = "base64encodeddata"
SAMPLE_ENUM = "ENUM_VALUE"


def sample_scalar(field: FieldSchema) -> Any:
    """Sample value of one element of `field`."""
    if field.well_known_type is not None:
        return get_transcoder(field.well_known_type).zero()
    if field.kind == FieldKind.MESSAGE and field.nested_schema is not None:
        return generate_sample(field.nested_schema)
    if field.kind == FieldKind.ENUM:
        return field.enum_names[0] if field.enum_names else SAMPLE_ENUM
    if field.kind in INTEGER_KINDS:
        return SAMPLE_INT
    if field.kind in FLOAT_KINDS:
        return SAMPLE_FLOAT
    if field.kind == FieldKind.BOOL:
        return True
    if field.kind == FieldKind.BYTES:
        return SAMPLE_BYTES
    return f"sample_{field.name}"


def generate_sample(schema: MessageSchema) -> dict[str, Any]:
    """
    Build a value that fills every field of `schema`.

    Repeated and map fields get a single element; recursive references are
    left empty.

    Args:
        schema: The message schema

    Returns:
        dict[str, Any]: The sample value
    """
    if schema.circular:
        return {}

    sample: dict[str, Any] = {}
    for field in schema.fields:
        value = sample_scalar(field)
        sample[field.name] = [value] if field.repeated else value
    return sample
