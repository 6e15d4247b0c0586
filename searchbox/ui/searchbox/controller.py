"""
SearchBoxController - search box interaction on top of a connector.

Keeps the locally displayed query text, forwards typed text and selections
to the Store through the connector's gated ``set_value``, and builds the
suggestion list for the view.
"""
from functools import partial
from typing import Any, Mapping, Optional, Union
from loguru import logger

from searchbox.core.backend import Suggestion
from searchbox.core.config import ComponentConfig, QueryType
from searchbox.core.errors import ConfigurationError
from searchbox.core.events import Signal, StateProperty
from searchbox.core.registry import SearchBase
from searchbox.ui.mvvm.connector import SearchWidgetConnector

from .suggestions import SuggestionItem, SuggestionList, build_suggestion_list


class SearchBoxController:
    """
    Interaction model of a search box with recent, matched and popular suggestions.

    Usage:
        box = SearchBoxController("search", {"data_field": "title", "size": 5},
                                  searchbase=searchbase)
        box.mount()
        await box.type_text("sho")
        for item in box.render().items:
            ...
        await box.select(suggestion)
    """

    SUBSCRIBE_TO = frozenset({
        StateProperty.ERROR,
        StateProperty.REQUEST_PENDING,
        StateProperty.RESULTS,
        StateProperty.VALUE,
        StateProperty.RECENT_SEARCHES,
        StateProperty.SUGGESTIONS,
    })

    def __init__(
        self,
        component_id: str,
        config: Union[ComponentConfig, Mapping[str, Any]],
        searchbase: Optional[SearchBase] = None,
        destroy_on_dispose: Optional[bool] = None,
    ):
        connector = SearchWidgetConnector(
            component_id,
            config,
            subscribe_to=self.SUBSCRIBE_TO,
            searchbase=searchbase,
            trigger_query_on_init=True,
            destroy_on_dispose=destroy_on_dispose,
        )
        if connector.config.type != QueryType.SEARCH:
            raise ConfigurationError(f"SearchBoxController needs a '{QueryType.SEARCH.value}' component")

        self.connector = connector
        self.query: str = connector.config.value or ""
        # Emitted whenever the displayed query text changes
        self.query_changed = Signal(f"{component_id}.query_changed")

    @property
    def id(self) -> str:
        return self.connector.id

    @property
    def changed(self) -> Signal:
        return self.connector.changed

    def mount(self) -> None:
        self.connector.mount()

    def dispose(self) -> None:
        self.connector.dispose()

    def __enter__(self) -> 'SearchBoxController':
        self.mount()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.dispose()

    def _set_query(self, text: str) -> None:
        if text != self.query:
            self.query = text
            self.query_changed.emit(text)

    # --- Rendering ---

    def render(self) -> SuggestionList:
        """
        Build the suggestion list for the current query text.

        With an empty query and recent searches enabled, a recent-search fetch
        is started without waiting for it; its result arrives as a change
        notification and the next render shows it.
        """
        component = self.connector.component
        config = component.config

        if not self.query and config.enable_recent_searches:
            component.get_recent_searches()

        result = build_suggestion_list(
            self.query,
            component.suggestions,
            component.recent_searches,
            size=config.size,
            enable_recent_searches=config.enable_recent_searches,
            request_pending=component.request_pending,
        )
        result.items = [
            SuggestionItem(
                label=suggestion.label,
                on_select=partial(self.select, suggestion),
                is_recent_search=suggestion.is_recent_search,
                is_popular_suggestion=suggestion.is_popular_suggestion,
                suggestion=suggestion,
            )
            for suggestion in result.suggestions
        ]
        return result

    # --- Interaction ---

    async def type_text(self, text: str) -> bool:
        """Update the query text and fetch suggestions for it."""
        self._set_query(text)
        if text == self.connector.component.value:
            return False
        return await self.connector.set_value(text, trigger_default_query=True)

    async def select(self, suggestion: Suggestion) -> bool:
        """
        Apply a suggestion: show its value, forward it with the dependent
        queries enabled, and record click analytics when possible.

        Analytics failures are logged and never reach the caller.

        Returns:
            Whether the value was forwarded to the Store.
        """
        self._set_query(suggestion.value)
        forwarded = await self.connector.set_value(suggestion.value, trigger_custom_query=True)
        self._record_click(suggestion)
        return forwarded

    def _record_click(self, suggestion: Suggestion) -> None:
        component = self.connector.component
        document_id = suggestion.document_id
        if document_id is None or suggestion.click_id is None:
            return
        if not component.config.analytics.record_analytics:
            return
        try:
            component.record_click({document_id: suggestion.click_id}, is_suggestion_click=True)
        except Exception as e:
            logger.warning(f"Click analytics failed for '{self.id}': {e}")

    def autofill(self, suggestion: Suggestion) -> None:
        """Copy a suggestion into the query text without applying it."""
        self._set_query(suggestion.value)

    async def submit(self) -> bool:
        """Apply the current query text as the search value."""
        if not self.query:
            return False
        return await self.connector.set_value(self.query, trigger_custom_query=True)

    async def clear(self) -> bool:
        """
        Reset the query text and the component value.

        Works without a mount as long as another view registered the
        component; the value still passes ``before_value_change``.
        """
        self._set_query("")
        if self.connector.lifecycle.is_mounted:
            return await self.connector.set_value(
                "", trigger_default_query=True, trigger_custom_query=True
            )

        component = self.connector.searchbase.get(self.id)
        if component is None:
            return False
        accepted, value = await self.connector.run_gate("")
        if not accepted or self.connector.searchbase.get(self.id) is not component:
            return False
        component.set_value(value, trigger_default_query=True, trigger_custom_query=True)
        return True
