from typing import Any

from protoform.engine.path import MISSING, get_at
from protoform.engine.presence import PresenceController
from protoform.engine.state import FieldUIState, UIStateMap


def make_controller() -> tuple[PresenceController, list[str]]:
    cleared: list[str] = []
    return PresenceController(UIStateMap(), on_cleared=cleared.append), cleared


class TestMount:
    def test_enabled_iff_value_present(self) -> None:
        presence, _ = make_controller()
        value = {"name": "", "nothing": None}
        assert presence.mount("name", value).enabled
        assert presence.mount("nothing", value).enabled
        assert not presence.mount("other", value).enabled

    def test_always_enabled(self) -> None:
        presence, _ = make_controller()
        assert presence.mount("owner", {}, always_enabled=True).enabled

    def test_rows_restored_from_list(self) -> None:
        presence, _ = make_controller()
        state = presence.mount("tags", {"tags": ["a", "b", "c"]})
        assert len(state.items) == 3
        assert len(set(state.items)) == 3

    def test_existing_state_is_kept(self) -> None:
        presence, _ = make_controller()
        first = presence.mount("name", {})
        first.expanded = True
        assert presence.mount("name", {"name": "x"}) is first
        assert not first.enabled


class TestTransitions:
    def test_enable_does_not_write(self) -> None:
        presence, _ = make_controller()
        value: dict[str, Any] = {}
        assert presence.enable("name", value)
        assert presence.is_enabled("name")
        assert value == {}
        assert not presence.enable("name", value)

    def test_disable_removes_value_and_notifies(self) -> None:
        presence, cleared = make_controller()
        value = {"name": "x", "other": 1}
        presence.mount("name", value)
        updated = presence.disable("name", value)
        assert updated == {"other": 1}
        assert value == {"name": "x", "other": 1}
        assert not presence.is_enabled("name")
        assert cleared == ["name"]

    def test_disable_drops_rows_and_descendant_state(self) -> None:
        presence, _ = make_controller()
        value = {"rows": [{"sku": "a"}, {"sku": "b"}]}
        presence.mount("rows", value)
        presence.mount("rows[0].sku", value)
        presence.mount("rows[1].sku", value)
        presence.states.put("rowsx", FieldUIState(enabled=True))

        updated = presence.disable("rows", value)

        assert get_at(updated, "rows") is MISSING
        assert presence.states.get("rows").items == []
        assert "rows[0].sku" not in presence.states
        assert "rows[1].sku" not in presence.states
        assert "rowsx" in presence.states

    def test_disable_already_disabled_is_silent(self) -> None:
        presence, cleared = make_controller()
        value: dict[str, Any] = {}
        presence.mount("name", value)
        assert presence.disable("name", value) is value
        assert cleared == []

    def test_reenable_does_not_restore(self) -> None:
        presence, _ = make_controller()
        value = presence.disable("name", {"name": "kept?"})
        presence.enable("name", value)
        assert get_at(value, "name") is MISSING

    def test_writable_needs_every_owner_enabled(self) -> None:
        presence, _ = make_controller()
        value = {"rows": [{"sku": "a"}]}
        presence.mount("rows", value)
        presence.mount("rows[0].sku", value)
        assert presence.is_writable("rows[0].sku")
        presence.disable("rows", value)
        assert not presence.is_writable("rows[0].sku")
