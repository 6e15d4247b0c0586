"""
searchbox - reactive bindings between search widgets and a shared search store.

Usage:
    from searchbox import SearchBase, SearchBaseProvider, ComponentConfig

    async with SearchBase(backend) as searchbase:
        provider = SearchBaseProvider(searchbase)
        connector = provider.connect("search", ComponentConfig(data_field="title"))
        connector.mount()
"""
from searchbox.core import (
    ComponentConfig,
    ConfigurationError,
    SearchBase,
    SearchBaseNotConfiguredError,
    SearchBackend,
    SearchComponent,
    StateProperty,
    Suggestion,
    sl,
)
from searchbox.ui.mvvm import SearchBaseProvider, SearchWidgetConnector
from searchbox.ui.searchbox import SearchBoxController, SuggestionListState, build_suggestion_list

__version__ = "0.1.0"

__all__ = [
    "ComponentConfig",
    "ConfigurationError",
    "SearchBase",
    "SearchBaseNotConfiguredError",
    "SearchBackend",
    "SearchComponent",
    "StateProperty",
    "Suggestion",
    "sl",
    "SearchBaseProvider",
    "SearchWidgetConnector",
    "SearchBoxController",
    "SuggestionListState",
    "build_suggestion_list",
]
