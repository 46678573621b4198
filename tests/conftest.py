from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest
from faker import Faker
from hypothesis import strategies as st
from hypothesis.strategies import composite

from protoform.config import EngineConfig
from protoform.engine.form import DynamicForm
from protoform.schema import EnumValue, FieldKind, FieldSchema, MessageSchema, WellKnownType, load_schema


class TestSchemaData:
    TESTS_DATA_DIR: Path = Path(__file__).parent / "data"
    ORDER_SCHEMA: Path = TESTS_DATA_DIR / "order_schema.json"
    ORDER_VALUE: Path = TESTS_DATA_DIR / "order_value.json"
    ORDER_EDITS: Path = TESTS_DATA_DIR / "order_edits.yaml"
    PING_METHOD: Path = TESTS_DATA_DIR / "ping_method.yaml"
    INVALID_SCHEMA: Path = TESTS_DATA_DIR / "invalid_schema.json"
    ENGINE_CONFIG: Path = TESTS_DATA_DIR / "engine_config.yaml"
    INVALID_ENGINE_CONFIG: Path = TESTS_DATA_DIR / "invalid_engine_config.yaml"


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class Recorder:
    """Collects the values and cleared paths a form reports."""

    changes: list[Any] = field(default_factory=list)
    cleared: list[str] = field(default_factory=list)

    def on_change(self, value: Any) -> None:
        self.changes.append(value)

    def on_cleared(self, path: str) -> None:
        self.cleared.append(path)


def scalar(name: str, kind: FieldKind = FieldKind.STRING, **kwargs: Any) -> FieldSchema:
    return FieldSchema(name=name, kind=kind, **kwargs)


def enum_field(name: str, names: list[str], **kwargs: Any) -> FieldSchema:
    values = [EnumValue(name=n, number=i) for i, n in enumerate(names)]
    return FieldSchema(name=name, kind=FieldKind.ENUM, enum_values=values, **kwargs)


def message_field(name: str, fields: list[FieldSchema], **kwargs: Any) -> FieldSchema:
    return FieldSchema(name=name, kind=FieldKind.MESSAGE, nested_schema=MessageSchema(fields=fields), **kwargs)


def map_field(name: str) -> FieldSchema:
    return message_field(name, [scalar("key"), scalar("value")], repeated=True)


def well_known_field(name: str, wkt: WellKnownType, **kwargs: Any) -> FieldSchema:
    kind = FieldKind.ENUM if wkt == WellKnownType.NULL_VALUE else FieldKind.MESSAGE
    extra: dict[str, Any] = {"enum_values": [EnumValue(name="NULL_VALUE", number=0)]}
    if kind == FieldKind.MESSAGE:
        extra = {"nested_schema": MessageSchema(message=wkt.full_name)}
    return FieldSchema(name=name, kind=kind, well_known_type=wkt, type_name=wkt.full_name, **extra, **kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture(scope="module")
def order_schema() -> MessageSchema:
    assert TestSchemaData.ORDER_SCHEMA.exists(), f"Missing test file: {TestSchemaData.ORDER_SCHEMA}"
    return load_schema(TestSchemaData.ORDER_SCHEMA)


@pytest.fixture
def simple_schema() -> MessageSchema:
    return MessageSchema(
        message="test.Simple",
        fields=[
            scalar("name", required=True),
            scalar("count", FieldKind.INT),
            scalar("ratio", FieldKind.DOUBLE),
            scalar("active", FieldKind.BOOL),
            enum_field("color", ["RED", "GREEN", "BLUE"]),
            scalar("tags", repeated=True),
            message_field("owner", [scalar("first", required=True), scalar("last")]),
            message_field("rows", [scalar("sku", required=True), scalar("qty", FieldKind.INT)], repeated=True),
            map_field("labels"),
            well_known_field("at", WellKnownType.TIMESTAMP),
            well_known_field("meta", WellKnownType.STRUCT),
        ],
    )


@pytest.fixture
def make_form(clock: FakeClock, recorder: Recorder) -> Callable[..., DynamicForm]:
    """Build a form wired to the fake clock and the recorder."""

    def factory(schema: MessageSchema, value: dict[str, Any] | None = None, **config: Any) -> DynamicForm:
        return DynamicForm(
            schema,
            value,
            on_change=recorder.on_change,
            on_field_cleared=recorder.on_cleared,
            config=EngineConfig(**config),
            clock=clock,
        )

    return factory


# Paths and values

KEYS = st.from_regex(r"[a-z_][a-z0-9_]{0,6}", fullmatch=True)
JSON_SCALARS = st.none() | st.booleans() | st.integers(-(10**6), 10**6) | st.text(max_size=8)


@composite
def path_strategy(draw: Callable[[st.SearchStrategy[Any]], Any], max_depth: int = 4) -> str:
    """Generate a well-formed path such as `a.b[2].c`."""
    depth = draw(st.integers(min_value=1, max_value=max_depth))
    segments = []
    for _ in range(depth):
        key = draw(KEYS)
        if draw(st.booleans()):
            key = f"{key}[{draw(st.integers(min_value=0, max_value=3))}]"
        segments.append(key)
    return ".".join(segments)


json_values = st.recursive(
    JSON_SCALARS,
    lambda children: st.lists(children, max_size=3) | st.dictionaries(KEYS, children, max_size=3),
    max_leaves=8,
)


def random_field_names(faker: Faker, count: int) -> list[str]:
    """Distinct snake_case field names."""
    names: list[str] = []
    while len(names) < count:
        name = "_".join(faker.words(nb=2)).lower()
        if name.isidentifier() and name not in names:
            names.append(name)
    return names


# Result of replaying data/order_edits.yaml on data/order_value.json
EXPECTED_ORDER = {
    "customer_name": "Ada",
    "quantity": 12,
    "status": "SHIPPED",
    "address": {"city": "Lisbon", "street": "Rua Augusta"},
    "items": [{"count": 1}, {"sku": "B-7"}],
    "labels": [{"key": "channel", "value": "web"}],
    "created_at": {"seconds": 1700000001, "nanos": 0},
}
