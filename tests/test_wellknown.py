from typing import Any

import pytest
from hypothesis import given
from hypothesis import strategies as st

from protoform.schema import WellKnownType
from protoform.wellknown import TRANSCODERS, get_transcoder, unwrap_value, wrap_value
from tests.conftest import json_values

TIMESTAMP = get_transcoder(WellKnownType.TIMESTAMP)
DURATION = get_transcoder(WellKnownType.DURATION)
STRUCT = get_transcoder(WellKnownType.STRUCT)
VALUE = get_transcoder(WellKnownType.VALUE)
LIST_VALUE = get_transcoder(WellKnownType.LIST_VALUE)
ANY = get_transcoder(WellKnownType.ANY)
NULL_VALUE = get_transcoder(WellKnownType.NULL_VALUE)
EMPTY = get_transcoder(WellKnownType.EMPTY)


def test_every_well_known_type_has_a_transcoder() -> None:
    assert set(TRANSCODERS) == set(WellKnownType)


class TestTimestamp:
    def test_to_editable(self) -> None:
        assert TIMESTAMP.to_editable({"seconds": 1700000000, "nanos": 0}) == "2023-11-14T22:13:20"

    def test_from_editable(self) -> None:
        assert TIMESTAMP.from_editable("2023-11-14T22:13:20") == {"seconds": 1700000000, "nanos": 0}

    def test_explicit_offset(self) -> None:
        assert TIMESTAMP.from_editable("2023-11-14T23:13:20+01:00") == {"seconds": 1700000000, "nanos": 0}

    def test_sub_second_precision_is_dropped(self) -> None:
        assert TIMESTAMP.from_editable("2023-11-14T22:13:20.900") == {"seconds": 1700000000, "nanos": 0}

    @given(seconds=st.integers(min_value=0, max_value=4_000_000_000))
    def test_round_trip(self, seconds: int) -> None:
        wire = {"seconds": seconds, "nanos": 0}
        assert TIMESTAMP.from_editable(TIMESTAMP.to_editable(wire)) == wire

    @pytest.mark.parametrize("display", ["", "not a date", None, "2023-13-45T99:00:00"])
    def test_invalid_input_gives_zero(self, display: Any) -> None:
        assert TIMESTAMP.from_editable(display) == {"seconds": 0, "nanos": 0}

    def test_absent_wire(self) -> None:
        assert TIMESTAMP.to_editable(None) == ""


class TestDuration:
    @pytest.mark.parametrize("display, seconds", [(90, 90), ("90", 90), ("12abc", 12), ("", 0), ("x", 0)])
    def test_from_editable(self, display: Any, seconds: int) -> None:
        assert DURATION.from_editable(display) == {"seconds": seconds, "nanos": 0}

    def test_to_editable(self) -> None:
        assert DURATION.to_editable({"seconds": 45, "nanos": 500}) == 45
        assert DURATION.to_editable(None) == 0


class TestStruct:
    def test_object_text(self) -> None:
        assert STRUCT.from_editable('{"a": 1, "b": [true]}') == {"fields": {"a": 1, "b": [True]}}

    @pytest.mark.parametrize("display", ["{bad json", "[1, 2]", "42", None])
    def test_invalid_or_non_object_gives_empty(self, display: Any) -> None:
        assert STRUCT.from_editable(display) == {"fields": {}}

    def test_empty_text_is_empty_object(self) -> None:
        assert STRUCT.from_editable("  ") == {"fields": {}}

    def test_to_editable(self) -> None:
        assert STRUCT.to_editable({"fields": {"a": 1}}) == '{"a": 1}'
        assert STRUCT.to_editable(None) == "{}"


class TestValue:
    @pytest.mark.parametrize(
        "display, wire",
        [
            ('"hi"', {"stringValue": "hi"}),
            ("3.5", {"numberValue": 3.5}),
            ("7", {"numberValue": 7}),
            ("true", {"boolValue": True}),
            ("false", {"boolValue": False}),
            ("null", {"nullValue": 0}),
            ('{"a": 1}', {"structValue": {"fields": {"a": 1}}}),
            ("[1, true]", {"listValue": {"values": [{"numberValue": 1}, {"boolValue": True}]}}),
        ],
    )
    def test_from_editable(self, display: str, wire: dict[str, Any]) -> None:
        assert VALUE.from_editable(display) == wire

    def test_invalid_json_is_null(self) -> None:
        assert VALUE.from_editable("{oops") == {"nullValue": 0}

    def test_bool_is_not_a_number(self) -> None:
        assert wrap_value(True) == {"boolValue": True}

    @given(value=json_values)
    def test_unwrap_inverts_wrap(self, value: Any) -> None:
        assert unwrap_value(wrap_value(value)) == value

    def test_to_editable(self) -> None:
        assert VALUE.to_editable({"stringValue": "x"}) == '"x"'
        assert VALUE.to_editable(None) == "null"


class TestListValue:
    def test_elements_are_wrapped(self) -> None:
        assert LIST_VALUE.from_editable('[1, "a", null]') == {
            "values": [{"numberValue": 1}, {"stringValue": "a"}, {"nullValue": 0}]
        }

    @pytest.mark.parametrize("display", ["[1,", '{"a": 1}', "3"])
    def test_invalid_or_non_array_gives_empty(self, display: str) -> None:
        assert LIST_VALUE.from_editable(display) == {"values": []}

    def test_to_editable(self) -> None:
        assert LIST_VALUE.to_editable({"values": [{"boolValue": True}, {"stringValue": "s"}]}) == '[true, "s"]'


DEEP_ARRAY = "[" * 5000 + "]" * 5000
DEEP_OBJECT = '{"a":' * 5000


class TestDeeplyNestedInput:
    @pytest.mark.parametrize(
        "transcoder, display",
        [
            (STRUCT, DEEP_OBJECT),
            (STRUCT, '{"a":' * 100000),
            (VALUE, DEEP_ARRAY),
            (VALUE, "[" * 5000),
            (LIST_VALUE, DEEP_ARRAY),
            (LIST_VALUE, DEEP_OBJECT),
        ],
    )
    def test_gives_zero(self, transcoder: Any, display: str) -> None:
        assert transcoder.from_editable(display) == transcoder.zero()

    def test_deep_python_list_gives_zero(self) -> None:
        nested: list[Any] = []
        for _ in range(5000):
            nested = [nested]
        assert LIST_VALUE.from_editable(nested) == {"values": []}
        assert VALUE.from_editable(nested) == {"nullValue": 0}


class TestAny:
    def test_pair_is_passed_through(self) -> None:
        display = {"type_url": "type.googleapis.com/pkg.Msg", "value": "AAEC"}
        assert ANY.from_editable(display) == display
        assert ANY.to_editable(display) == display

    def test_unvalidated(self) -> None:
        assert ANY.from_editable(("not a url", "not base64")) == {"type_url": "not a url", "value": "not base64"}

    def test_other_input_gives_zero(self) -> None:
        assert ANY.from_editable("text") == {"type_url": "", "value": ""}


class TestConstants:
    def test_null_value(self) -> None:
        assert NULL_VALUE.read_only
        assert NULL_VALUE.to_editable(None) == "null"
        assert NULL_VALUE.from_editable("anything") == {"nullValue": 0}

    def test_empty(self) -> None:
        assert EMPTY.read_only
        assert EMPTY.to_editable({}) == "{}"
        assert EMPTY.from_editable("x") == {}
