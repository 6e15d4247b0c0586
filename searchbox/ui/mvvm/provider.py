from typing import Any, List, Mapping, Optional, Union, TYPE_CHECKING

from searchbox.core.config import ComponentConfig
from searchbox.core.component import SearchComponent
from searchbox.core.errors import SearchBaseNotConfiguredError
from searchbox.core.lifecycle import BindingState
from searchbox.core.locator import sl
from searchbox.core.registry import SearchBase

if TYPE_CHECKING:
    from .connector import SearchWidgetConnector


def resolve_searchbase(searchbase: Optional[SearchBase] = None) -> SearchBase:
    """
    Return the explicit SearchBase, or the one configured on the locator.

    Raises:
        SearchBaseNotConfiguredError: If neither is available.
    """
    if searchbase is not None:
        return searchbase
    if not sl.is_ready:
        raise SearchBaseNotConfiguredError()
    return sl.searchbase


class SearchBaseProvider:
    """
    Factory for connectors bound to one SearchBase.

    Replaces implicit widget-tree lookup: views receive the provider (or the
    SearchBase itself) explicitly and create their bindings through it.
    A connector is tracked until it is disposed.
    """
    def __init__(self, searchbase: SearchBase):
        if searchbase is None:
            raise SearchBaseNotConfiguredError("SearchBaseProvider requires a SearchBase")
        self.searchbase = searchbase
        self._connectors: List['SearchWidgetConnector'] = []

    @property
    def connectors(self) -> List['SearchWidgetConnector']:
        """Connectors created here that are not yet disposed."""
        return list(self._connectors)

    def connect(
        self,
        component_id: str,
        config: Union[ComponentConfig, Mapping[str, Any]],
        **kwargs: Any,
    ) -> 'SearchWidgetConnector':
        """Create an unmounted connector bound to this provider's SearchBase."""
        from .connector import SearchWidgetConnector

        connector = SearchWidgetConnector(component_id, config, searchbase=self.searchbase, **kwargs)

        def forget(old_state: BindingState, new_state: BindingState) -> None:
            if new_state == BindingState.DISPOSED and connector in self._connectors:
                self._connectors.remove(connector)

        connector.lifecycle.add_listener(forget)
        self._connectors.append(connector)
        return connector

    def get_component(self, component_id: str) -> Optional[SearchComponent]:
        """Read-only lookup for non-owning consumers; None when absent."""
        return self.searchbase.get(component_id)

    def dispose_all(self) -> None:
        """Dispose every connector created through this provider."""
        for connector in list(self._connectors):
            connector.dispose()
        self._connectors = []
