"""
MVVM Package - Binding views to search components.

Provides:
- SearchWidgetConnector: Lifecycle controller binding a view to a component.
- SearchBaseProvider: Explicit SearchBase context for creating connectors.
- resolve_searchbase(): Explicit-or-locator SearchBase lookup.
"""
from searchbox.ui.mvvm.provider import SearchBaseProvider, resolve_searchbase
from searchbox.ui.mvvm.connector import SearchWidgetConnector

__all__ = [
    "SearchWidgetConnector",
    "SearchBaseProvider",
    "resolve_searchbase",
]
