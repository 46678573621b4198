"""Pydantic models describing the shape of a reflected message type."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class FieldKind(str, Enum):
    """Scalar family of a field. Integer variants share numeric-input behavior."""

    STRING = "string"
    BYTES = "bytes"
    INT = "int"
    UINT = "uint"
    SINT = "sint"
    DOUBLE = "double"
    FLOAT = "float"
    FIXED = "fixed"
    BOOL = "bool"
    ENUM = "enum"
    MESSAGE = "message"
    UNKNOWN = "unknown"


INTEGER_KINDS = frozenset({FieldKind.INT, FieldKind.UINT, FieldKind.SINT, FieldKind.FIXED})
FLOAT_KINDS = frozenset({FieldKind.DOUBLE, FieldKind.FLOAT})
NUMERIC_KINDS = INTEGER_KINDS | FLOAT_KINDS
TEXT_KINDS = frozenset({FieldKind.STRING, FieldKind.BYTES})


class WellKnownType(str, Enum):
    """google.protobuf types with a dedicated editor."""

    TIMESTAMP = "Timestamp"
    DURATION = "Duration"
    STRUCT = "Struct"
    VALUE = "Value"
    LIST_VALUE = "ListValue"
    ANY = "Any"
    NULL_VALUE = "NullValue"
    EMPTY = "Empty"

    @property
    def full_name(self) -> str:
        return f"google.protobuf.{self.value}"


class EnumValue(BaseModel):
    """Represents a value of an enum field."""

    model_config = ConfigDict(frozen=True)

    name: str
    number: int


class MessageSchema(BaseModel):
    """Represents a message type as an ordered list of fields."""

    model_config = ConfigDict(frozen=True)

    fields: list["FieldSchema"] = Field(default_factory=list)
    message: str | None = None
    circular: bool = False

    @field_validator("fields")
    @classmethod
    def validate_unique_field_names(cls, fields: list["FieldSchema"]) -> list["FieldSchema"]:
        names = [f.name for f in fields]
        if len(names) != len(set(names)):
            raise ValueError("Fields must have unique names")
        return fields

    def get_field(self, name: str) -> "FieldSchema | None":
        for field in self.fields:
            if field.name == name:
                return field
        return None

    @property
    def is_map_entry(self) -> bool:
        """True if the message has exactly the two fields `key` and `value`."""
        return len(self.fields) == 2 and {f.name for f in self.fields} == {"key", "value"}


class FieldSchema(BaseModel):
    """Represents one field of a message type."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    kind: FieldKind
    repeated: bool = False
    enum_values: list[EnumValue] | None = None
    nested_schema: MessageSchema | None = None
    well_known_type: WellKnownType | None = None
    required: bool = False
    description: str = ""
    type_name: str | None = None
    number: int | None = None

    @field_validator("enum_values")
    @classmethod
    def validate_unique_enum_names(cls, enum_values: list[EnumValue] | None) -> list[EnumValue] | None:
        if enum_values is None:
            return None
        names = [v.name for v in enum_values]
        if len(names) != len(set(names)):
            raise ValueError("Enum values must have unique names")
        return enum_values

    @model_validator(mode="after")
    def validate_kind_payload(self) -> "FieldSchema":
        if (self.kind == FieldKind.ENUM) != (self.enum_values is not None):
            raise ValueError(f"Field '{self.name}': enum_values must be present iff kind is ENUM")
        if (self.kind == FieldKind.MESSAGE) != (self.nested_schema is not None):
            raise ValueError(f"Field '{self.name}': nested_schema must be present iff kind is MESSAGE")
        return self

    @property
    def is_map(self) -> bool:
        """True for a repeated message whose entries are `{key, value}` pairs."""
        return (
            self.repeated
            and self.kind == FieldKind.MESSAGE
            and self.nested_schema is not None
            and self.nested_schema.is_map_entry
        )

    @property
    def enum_names(self) -> list[str]:
        return [v.name for v in self.enum_values or []]

    @property
    def display_type(self) -> str:
        """Type label shown next to the field name."""
        if self.well_known_type is not None:
            return self.well_known_type.full_name
        return self.type_name or self.kind.value

    def as_item(self) -> "FieldSchema":
        """The schema of a single element of a repeated field."""
        if not self.repeated:
            return self
        return self.model_copy(update={"repeated": False})


MessageSchema.model_rebuild()
