import pytest
from unittest.mock import MagicMock

from searchbox.core.config import ComponentConfig
from searchbox.core.errors import ConfigurationError
from searchbox.core.events import StateProperty


class TestObservableState:

    def test_initial_state_from_config(self, searchbase):
        component = searchbase.register(
            "search", ComponentConfig(value="shoes", results=[{"_id": "1"}])
        )

        assert component.value == "shoes"
        assert component.results == [{"_id": "1"}]
        assert component.suggestions == []
        assert component.error is None

    def test_mutable_defaults_are_not_shared(self, searchbase):
        a = searchbase.register("a", ComponentConfig())
        b = searchbase.register("b", ComponentConfig())

        assert a.recent_searches is not b.recent_searches

    def test_state_is_read_only_outside_the_store(self, searchbase):
        component = searchbase.register("search", ComponentConfig())

        with pytest.raises(AttributeError):
            component.value = "hacked"

    def test_apply_rejects_unknown_property(self, searchbase):
        component = searchbase.register("search", ComponentConfig())

        with pytest.raises(AttributeError):
            component._apply(colour="red")

    def test_unchanged_value_produces_no_notification(self, searchbase):
        component = searchbase.register("search", ComponentConfig(value="shoes"))
        listener = MagicMock()
        component.subscribe_to_state_changes(listener)

        component.set_value("shoes")

        listener.assert_not_called()


class TestStoreOperations:

    def test_set_value_notifies_with_prev_and_next(self, searchbase):
        component = searchbase.register("search", ComponentConfig(value=""))
        listener = MagicMock()
        component.subscribe_to_state_changes(listener, {StateProperty.VALUE})

        component.set_value("boots")

        record = listener.call_args.args[0]["value"]
        assert (record.prev, record.next) == ("", "boots")

    def test_set_value_on_unregistered_component_is_ignored(self, searchbase, caplog):
        component = searchbase.register("search", ComponentConfig())
        searchbase.unregister("search")

        assert component.set_value("late") == []
        assert component.value is None
        assert "unregistered" in caplog.text

    def test_unknown_interest_property_is_rejected(self, searchbase):
        component = searchbase.register("search", ComponentConfig())

        with pytest.raises(ConfigurationError):
            component.subscribe_to_state_changes(MagicMock(), {"value", "colour"})

    def test_record_click_forwards_to_backend(self, searchbase, backend):
        component = searchbase.register("search", ComponentConfig())

        component.record_click({"doc-1": "click-1"}, is_suggestion_click=True)

        assert backend.clicks == [("search", {"doc-1": "click-1"}, True)]

    def test_record_click_failure_propagates(self, searchbase, backend):
        backend.click_error = RuntimeError("analytics down")
        component = searchbase.register("search", ComponentConfig())

        with pytest.raises(RuntimeError):
            component.record_click({"doc-1": "click-1"})
