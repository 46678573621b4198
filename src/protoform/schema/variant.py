"""Classification of fields into the closed set of editor variants."""

from dataclasses import dataclass
from enum import Enum

from protoform.schema.models import FieldKind, FieldSchema


@dataclass(frozen=True)
class FieldVariantMetadata:
    description: str
    has_toggle: bool
    collapsible: bool


class FieldVariant(Enum):
    """The editor variants a field can be rendered as."""

    SCALAR = FieldVariantMetadata(
        description="A single string, bytes, number or bool input. EXAMPLE -> string name = 1;",
        has_toggle=True,
        collapsible=False,
    )
    ENUM = FieldVariantMetadata(
        description="A selection among the enum value names. EXAMPLE -> Status status = 2;",
        has_toggle=True,
        collapsible=False,
    )
    MESSAGE = FieldVariantMetadata(
        description="A nested message rendered as a group of fields. EXAMPLE -> Address address = 3;",
        has_toggle=False,
        collapsible=True,
    )
    MAP = FieldVariantMetadata(
        description="Key/value rows. EXAMPLE -> map<string, string> labels = 4;",
        has_toggle=True,
        collapsible=True,
    )
    REPEATED = FieldVariantMetadata(
        description="Zero or more rows of the item variant. EXAMPLE -> repeated string tags = 5;",
        has_toggle=True,
        collapsible=True,
    )
    WELL_KNOWN = FieldVariantMetadata(
        description="A google.protobuf type with a dedicated editor. EXAMPLE -> google.protobuf.Timestamp at = 6;",
        has_toggle=True,
        collapsible=False,
    )
    UNSUPPORTED = FieldVariantMetadata(
        description="A kind the editor cannot handle, rendered as a placeholder. EXAMPLE -> group g = 7;",
        has_toggle=False,
        collapsible=False,
    )


def get_field_variant(field: FieldSchema) -> FieldVariant:
    """
    Determine the editor variant of a field.

    Repetition is checked before the well-known tag so that, e.g., a repeated
    Timestamp becomes REPEATED with a WELL_KNOWN item variant.

    Returns:
        FieldVariant: The variant used to dispatch rendering and writes
    """
    if field.kind == FieldKind.UNKNOWN:
        return FieldVariant.UNSUPPORTED
    if field.is_map:
        return FieldVariant.MAP
    if field.repeated:
        return FieldVariant.REPEATED
    if field.well_known_type is not None:
        return FieldVariant.WELL_KNOWN
    if field.kind == FieldKind.MESSAGE:
        return FieldVariant.MESSAGE
    if field.kind == FieldKind.ENUM:
        return FieldVariant.ENUM
    return FieldVariant.SCALAR


def get_item_variant(field: FieldSchema) -> FieldVariant:
    """Variant of one element of a repeated field (the field itself for singular fields)."""
    return get_field_variant(field.as_item())


def is_simple(field: FieldSchema) -> bool:
    """True for fields rendered as a single inline control."""
    return get_field_variant(field) in {FieldVariant.SCALAR, FieldVariant.ENUM, FieldVariant.WELL_KNOWN}
