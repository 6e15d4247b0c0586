import asyncio
from typing import Any, Dict, List, Optional, Tuple

import pytest
from loguru import logger

from searchbox.core.backend import QueryRequest, QueryResponse, Suggestion
from searchbox.core.locator import sl
from searchbox.core.registry import SearchBase


class FakeBackend:
    """In-memory SearchBackend recording every call."""

    def __init__(self):
        self.responses: Dict[str, QueryResponse] = {}
        self.requests: List[QueryRequest] = []
        self.recent: List[Suggestion] = []
        self.recent_calls = 0
        self.clicks: List[tuple] = []
        self.search_error: Optional[Exception] = None
        self.click_error: Optional[Exception] = None
        # When set, search() blocks until the event is set
        self.hold: Optional[asyncio.Event] = None
        # Per-value holds and responses, for overlapping queries
        self.holds: Dict[Any, asyncio.Event] = {}
        self.responses_by_value: Dict[Tuple[str, Any], QueryResponse] = {}

    async def search(self, request: QueryRequest) -> QueryResponse:
        self.requests.append(request)
        hold = self.holds.get(request.value, self.hold)
        if hold is not None:
            await hold.wait()
        if self.search_error is not None:
            raise self.search_error
        key = (request.component_id, request.value)
        if key in self.responses_by_value:
            return self.responses_by_value[key]
        return self.responses.get(request.component_id, QueryResponse())

    async def recent_searches(self, component_id, config) -> List[Suggestion]:
        self.recent_calls += 1
        await asyncio.sleep(0)
        return list(self.recent)

    def record_click(self, component_id, click_map, is_suggestion_click=False) -> None:
        self.clicks.append((component_id, dict(click_map), is_suggestion_click))
        if self.click_error is not None:
            raise self.click_error

    def requests_for(self, component_id: str) -> List[QueryRequest]:
        return [r for r in self.requests if r.component_id == component_id]


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def searchbase(backend):
    return SearchBase(backend)


@pytest.fixture(autouse=True)
def reset_locator():
    """Keep the process-wide locator unconfigured between tests."""
    yield
    if sl.is_ready:
        sl.reset()


@pytest.fixture
def caplog(caplog):
    """Route loguru records into pytest's caplog."""
    handler_id = logger.add(caplog.handler, format="{message}", level=0)
    yield caplog
    logger.remove(handler_id)
