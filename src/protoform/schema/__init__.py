from .loader import SchemaLoadError, load_schema, parse_schema
from .models import EnumValue, FieldKind, FieldSchema, MessageSchema, WellKnownType
from .variant import FieldVariant, get_field_variant, get_item_variant

__all__ = [
    "EnumValue",
    "FieldKind",
    "FieldSchema",
    "FieldVariant",
    "MessageSchema",
    "SchemaLoadError",
    "WellKnownType",
    "get_field_variant",
    "get_item_variant",
    "load_schema",
    "parse_schema",
]
