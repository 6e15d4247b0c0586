"""
SearchBase registry and query execution tests.
"""
import asyncio
import pytest
import pytest_asyncio
from unittest.mock import MagicMock

from searchbox.core.backend import QueryKind, QueryResponse, Suggestion
from searchbox.core.config import ComponentConfig
from searchbox.core.errors import ComponentUnregisteredError, ConfigurationError
from searchbox.core.events import RequestStatus
from searchbox.core.registry import SearchBase


class TestRegister:

    def test_register_creates_component(self, searchbase):
        component = searchbase.register("search", ComponentConfig(size=5))

        assert component.id == "search"
        assert component.config.size == 5
        assert "search" in searchbase
        assert searchbase.get("search") is component

    def test_register_same_id_returns_same_instance(self, searchbase):
        instances = {id(searchbase.register("search", ComponentConfig())) for _ in range(5)}

        assert len(instances) == 1
        assert len(searchbase) == 1

    def test_reregister_merges_only_explicit_fields(self, searchbase):
        component = searchbase.register("search", ComponentConfig(size=5, index="products"))

        searchbase.register("search", ComponentConfig(size=3))

        assert component.config.size == 3
        assert component.config.index == "products"

    def test_reregister_keeps_observable_state(self, searchbase):
        component = searchbase.register("search", ComponentConfig())
        component.set_value("shoes")

        again = searchbase.register("search", ComponentConfig(value="ignored"))

        assert again.value == "shoes"

    def test_register_accepts_mapping(self, searchbase):
        component = searchbase.register("search", {"data_field": "title", "size": 4})

        assert component.config.data_field.field == "title"

    def test_register_without_id_fails(self, searchbase):
        with pytest.raises(ConfigurationError):
            searchbase.register("", ComponentConfig())

    def test_register_invalid_mapping_fails(self, searchbase):
        with pytest.raises(ConfigurationError):
            searchbase.register("search", {"size": -1})

    def test_backend_is_required(self):
        with pytest.raises(ConfigurationError):
            SearchBase(None)


class TestUnregister:

    def test_unregister_unknown_id_is_noop(self, searchbase):
        searchbase.unregister("missing")

        assert searchbase.get("missing") is None

    def test_unregister_then_notify_is_noop(self, searchbase):
        component = searchbase.register("search", ComponentConfig())
        listener = MagicMock()
        component.subscribe_to_state_changes(listener)

        searchbase.unregister("search")
        component._apply(value="late")

        listener.assert_not_called()
        assert component.is_unregistered

    def test_unsubscribe_after_unregister_fails_loudly(self, searchbase):
        component = searchbase.register("search", ComponentConfig())
        token = component.subscribe_to_state_changes(MagicMock())

        searchbase.unregister("search")

        with pytest.raises(ComponentUnregisteredError):
            component.unsubscribe_to_state_changes(token)

    def test_register_after_unregister_creates_fresh_component(self, searchbase):
        first = searchbase.register("search", ComponentConfig())
        searchbase.unregister("search")

        second = searchbase.register("search", ComponentConfig())

        assert second is not first
        assert not second.is_unregistered

    @pytest.mark.asyncio
    async def test_unregister_cancels_in_flight_query(self, searchbase, backend):
        backend.hold = asyncio.Event()
        component = searchbase.register("search", ComponentConfig())
        task = component.trigger_default_query()
        await asyncio.sleep(0)

        searchbase.unregister("search")
        await asyncio.gather(task, return_exceptions=True)

        assert task.cancelled()


class TestDependents:

    def test_dependents_follow_react_graph(self, searchbase):
        searchbase.register("search", ComponentConfig())
        results = searchbase.register("results", ComponentConfig(react={"and": ["search", "filter"]}))
        searchbase.register("filter", ComponentConfig(react={"and": "brand"}))

        assert searchbase.dependents_of("search") == [results]
        assert searchbase.dependents_of("brand") == [searchbase.get("filter")]


class TestQueryExecution:

    @pytest.mark.asyncio
    async def test_default_query_updates_state_in_one_batch(self, searchbase, backend):
        backend.responses["search"] = QueryResponse(
            results=[{"_id": "1"}],
            suggestions=[Suggestion(label="shoes", value="shoes")],
        )
        component = searchbase.register("search", ComponentConfig())
        batches = []
        component.subscribe_to_state_changes(batches.append, {"results", "suggestions"})

        await component.trigger_default_query()

        assert component.results == [{"_id": "1"}]
        assert component.suggestions[0].value == "shoes"
        assert component.request_pending is False
        assert component.request_status == RequestStatus.INACTIVE
        assert len(batches) == 1

    @pytest.mark.asyncio
    async def test_request_pending_while_in_flight(self, searchbase, backend):
        backend.hold = asyncio.Event()
        component = searchbase.register("search", ComponentConfig())

        task = component.trigger_default_query()
        await asyncio.sleep(0)
        assert component.request_pending is True
        assert component.request_status == RequestStatus.PENDING

        backend.hold.set()
        await task
        assert component.request_pending is False

    @pytest.mark.asyncio
    async def test_query_error_is_stored_and_rest_untouched(self, searchbase, backend):
        backend.responses["search"] = QueryResponse(results=[{"_id": "1"}])
        component = searchbase.register("search", ComponentConfig())
        await component.trigger_default_query()

        boom = RuntimeError("cluster down")
        backend.search_error = boom
        await component.trigger_default_query()

        assert component.error is boom
        assert component.request_status == RequestStatus.ERROR
        assert component.results == [{"_id": "1"}]

    @pytest.mark.asyncio
    async def test_request_carries_dependency_values(self, searchbase, backend):
        search = searchbase.register("search", ComponentConfig())
        search.set_value("shoes")
        results = searchbase.register("results", ComponentConfig(react={"and": ["search"]}))

        await results.trigger_default_query()

        request = backend.requests_for("results")[-1]
        assert request.dependencies == {"search": "shoes"}
        assert request.kind == QueryKind.DEFAULT

    @pytest.mark.asyncio
    async def test_custom_query_reruns_dependents(self, searchbase, backend):
        search = searchbase.register("search", ComponentConfig())
        searchbase.register("results", ComponentConfig(react={"and": ["search"]}))

        tasks = search.set_value("boots", trigger_custom_query=True)
        await asyncio.gather(*tasks)

        assert [r.component_id for r in backend.requests] == ["results"]
        assert backend.requests[0].dependencies == {"search": "boots"}

    @pytest.mark.asyncio
    async def test_execute_false_skips_query(self, searchbase, backend):
        component = searchbase.register("search", ComponentConfig(execute=False))

        assert component.trigger_default_query() is None
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_preserve_results_appends_next_page(self, searchbase, backend):
        backend.responses["list"] = QueryResponse(results=[{"_id": "1"}])
        component = searchbase.register("list", ComponentConfig())
        await component.trigger_default_query()

        searchbase.register("list", ComponentConfig(preserve_results=True, **{"from": 10}))
        backend.responses["list"] = QueryResponse(results=[{"_id": "2"}])
        await component.trigger_default_query()

        assert component.results == [{"_id": "1"}, {"_id": "2"}]


def typed(value):
    return QueryResponse(suggestions=[Suggestion(label=value, value=value)])


class TestOverlappingQueries:
    """Only the most recently started query may write results."""

    @pytest_asyncio.fixture
    async def overlapping(self, searchbase, backend):
        backend.holds = {"s": asyncio.Event(), "shoes": asyncio.Event()}
        backend.responses_by_value[("search", "s")] = typed("s")
        backend.responses_by_value[("search", "shoes")] = typed("shoes")
        component = searchbase.register("search", ComponentConfig())
        older = component.set_value("s", trigger_default_query=True)[0]
        newer = component.set_value("shoes", trigger_default_query=True)[0]
        return component, older, newer

    @pytest.mark.asyncio
    async def test_requests_carry_value_at_trigger_time(self, overlapping, backend):
        component, older, newer = overlapping
        await asyncio.sleep(0)

        assert [r.value for r in backend.requests_for("search")] == ["s", "shoes"]

        for hold in backend.holds.values():
            hold.set()
        await asyncio.gather(older, newer)

    @pytest.mark.asyncio
    async def test_newer_response_first_then_stale_is_dropped(self, overlapping, backend):
        component, older, newer = overlapping
        await asyncio.sleep(0)

        backend.holds["shoes"].set()
        await newer
        assert [s.value for s in component.suggestions] == ["shoes"]
        assert component.request_pending is False

        backend.holds["s"].set()
        await older
        assert component.value == "shoes"
        assert [s.value for s in component.suggestions] == ["shoes"]
        assert component.request_pending is False
        assert component.request_status == RequestStatus.INACTIVE

    @pytest.mark.asyncio
    async def test_stale_response_first_keeps_pending(self, overlapping, backend):
        component, older, newer = overlapping
        await asyncio.sleep(0)

        backend.holds["s"].set()
        await older
        assert component.suggestions == []
        assert component.request_pending is True

        backend.holds["shoes"].set()
        await newer
        assert [s.value for s in component.suggestions] == ["shoes"]
        assert component.request_pending is False

    @pytest.mark.asyncio
    async def test_stale_error_is_dropped(self, overlapping, backend):
        component, older, newer = overlapping
        await asyncio.sleep(0)

        backend.holds["shoes"].set()
        await newer
        backend.search_error = RuntimeError("late failure")
        backend.holds["s"].set()
        await older

        assert component.error is None
        assert component.request_status == RequestStatus.INACTIVE


class TestRecentSearches:

    @pytest.mark.asyncio
    async def test_recent_searches_are_flagged(self, searchbase, backend):
        backend.recent = [Suggestion(label="boots", value="boots")]
        component = searchbase.register("search", ComponentConfig())

        await component.get_recent_searches()

        assert component.recent_searches[0].is_recent_search is True

    @pytest.mark.asyncio
    async def test_concurrent_fetches_share_one_request(self, searchbase, backend):
        component = searchbase.register("search", ComponentConfig())

        first = component.get_recent_searches()
        second = component.get_recent_searches()
        await first

        assert first is second
        assert backend.recent_calls == 1

    @pytest.mark.asyncio
    async def test_recent_search_failure_is_absorbed(self, searchbase, backend, caplog):
        async def broken(component_id, config):
            raise RuntimeError("analytics offline")

        backend.recent_searches = broken
        component = searchbase.register("search", ComponentConfig())

        await component.get_recent_searches()

        assert component.recent_searches == []
        assert "analytics offline" in caplog.text


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_async_context_manager(self, backend):
        async with SearchBase(backend) as searchbase:
            assert searchbase.is_ready
            component = searchbase.register("search", ComponentConfig())

        assert not searchbase.is_ready
        assert component.is_unregistered
        assert len(searchbase) == 0

    @pytest.mark.asyncio
    async def test_drain_waits_for_all_queries(self, searchbase, backend):
        a = searchbase.register("a", ComponentConfig())
        b = searchbase.register("b", ComponentConfig())
        a.trigger_default_query()
        b.trigger_default_query()

        await searchbase.drain()

        assert {r.component_id for r in backend.requests} == {"a", "b"}
        assert not a.request_pending and not b.request_pending
