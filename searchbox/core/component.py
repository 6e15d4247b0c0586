"""
SearchComponent - Store-side state of one search widget.

Observable state is exposed through read-only ObservableProperty
descriptors. Only the Store writes it (via ``_apply``), and every write
produces one batch of ChangeRecords delivered to the component's
SubscriptionManager.

Usage:
    component = searchbase.register("search", ComponentConfig(data_field="title"))
    token = component.subscribe_to_state_changes(on_change, {"results"})
    component.set_value("shoes", trigger_default_query=True)
"""
import asyncio
from typing import TYPE_CHECKING, Any, Callable, Generic, Iterable, List, Mapping, Optional, TypeVar
from loguru import logger

from .config import ComponentConfig
from .errors import ConfigurationError
from .events import ChangeRecord, RequestStatus, StateListener, StateProperty, SubscriptionManager, SubscriptionToken

if TYPE_CHECKING:
    from .registry import SearchBase

T = TypeVar('T')


class ObservableProperty(Generic[T]):
    """
    Read-only descriptor for a piece of observable component state.

    Args:
        default: Default value for immutable state.
        factory: Callable producing the default for mutable state (lists).
    """

    def __init__(self, default: T = None, factory: Optional[Callable[[], T]] = None):
        self.default = default
        self.factory = factory
        self._attr_name: str = ""
        self.name: str = ""

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name
        self._attr_name = f"_state_{name}"

    def initial(self) -> T:
        return self.factory() if self.factory is not None else self.default

    def __get__(self, obj: Optional[Any], objtype: type = None) -> T:
        if obj is None:
            return self  # type: ignore
        return getattr(obj, self._attr_name, self.default)

    def __set__(self, obj: Any, value: Any) -> None:
        raise AttributeError(
            f"'{self.name}' is read-only; component state is changed through the Store"
        )

    def write(self, obj: Any, value: Any) -> None:
        object.__setattr__(obj, self._attr_name, value)


class SearchComponent:
    """
    A registered search widget: configuration snapshot plus observable state.

    Instances are created and owned by SearchBase and shared by reference
    with every view bound to the same id.
    """

    value = ObservableProperty(default=None)
    query = ObservableProperty(default=None)
    results = ObservableProperty(factory=list)
    aggregation_data = ObservableProperty(factory=list)
    suggestions = ObservableProperty(factory=list)
    recent_searches = ObservableProperty(factory=list)
    request_pending = ObservableProperty(default=False)
    request_status = ObservableProperty(default=RequestStatus.INACTIVE)
    error = ObservableProperty(default=None)

    def __init__(self, component_id: str, config: ComponentConfig, searchbase: 'SearchBase'):
        self.id = component_id
        self._config = config
        self._searchbase = searchbase
        self._subscriptions = SubscriptionManager(component_id)

        for name in StateProperty.ALL:
            prop: ObservableProperty = getattr(type(self), name)
            prop.write(self, prop.initial())
        type(self).value.write(self, config.value)
        if config.results is not None:
            type(self).results.write(self, list(config.results))

    def __repr__(self) -> str:
        return f"<SearchComponent '{self.id}' value={self.value!r}>"

    @property
    def config(self) -> ComponentConfig:
        return self._config

    @property
    def is_unregistered(self) -> bool:
        return self._subscriptions.closed

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    # --- Subscriptions ---

    def subscribe_to_state_changes(
        self,
        listener: StateListener,
        interest: Optional[Iterable[str]] = None,
    ) -> SubscriptionToken:
        """
        Attach a listener, optionally filtered to a set of property names.

        Raises:
            ConfigurationError: If the interest-set names an unknown property.
        """
        if interest:
            unknown = set(interest) - StateProperty.ALL
            if unknown:
                raise ConfigurationError(
                    f"Unknown state properties for '{self.id}': {sorted(unknown)}"
                )
        return self._subscriptions.subscribe(listener, interest)

    def unsubscribe_to_state_changes(self, token: SubscriptionToken) -> None:
        self._subscriptions.unsubscribe(token)

    # --- Store operations ---

    def set_value(
        self,
        value: Any,
        trigger_default_query: bool = False,
        trigger_custom_query: bool = False,
    ) -> List[asyncio.Task]:
        """
        Update the value and optionally re-run queries.

        Args:
            value: The new value.
            trigger_default_query: Re-run this component's own query.
            trigger_custom_query: Re-run the queries of components that
                react to this one.

        Returns:
            Tasks for the queries that were started.
        """
        if self.is_unregistered:
            logger.warning(f"set_value ignored: '{self.id}' is unregistered")
            return []

        self._apply(value=value)

        tasks: List[asyncio.Task] = []
        if trigger_default_query:
            task = self.trigger_default_query()
            if task is not None:
                tasks.append(task)
        if trigger_custom_query:
            tasks.extend(self.trigger_custom_query())
        return tasks

    def trigger_default_query(self) -> Optional[asyncio.Task]:
        """Start this component's query. Must be called with a running event loop."""
        return self._searchbase._execute(self)

    def trigger_custom_query(self) -> List[asyncio.Task]:
        """Re-run the queries of every component whose react graph references this one."""
        tasks = []
        for dependent in self._searchbase.dependents_of(self.id):
            task = dependent.trigger_default_query()
            if task is not None:
                tasks.append(task)
        return tasks

    def get_recent_searches(self) -> Optional[asyncio.Task]:
        """Fetch recent searches; concurrent calls share one in-flight request."""
        return self._searchbase._fetch_recent_searches(self)

    def record_click(self, click_map: Mapping[str, str], is_suggestion_click: bool = False) -> None:
        """
        Record click analytics for ``{document_id: click_id}``.

        Backend failures propagate to the caller.
        """
        self._searchbase.backend.record_click(self.id, dict(click_map), is_suggestion_click)

    # --- Store internals ---

    def _update_config(self, config: ComponentConfig) -> None:
        self._config = self._config.merged_with(config)

    def _apply(self, **changes: Any) -> List[ChangeRecord]:
        """Write state and deliver the resulting ChangeRecords as one batch."""
        records: List[ChangeRecord] = []
        for name, new_value in changes.items():
            if name not in StateProperty.ALL:
                raise AttributeError(f"'{name}' is not an observable property")
            prop: ObservableProperty = getattr(type(self), name)
            old_value = prop.__get__(self)
            if old_value != new_value:
                prop.write(self, new_value)
                records.append(ChangeRecord(name, old_value, new_value))

        if records:
            self._subscriptions.notify(records)
        return records

    def _invalidate(self) -> None:
        self._subscriptions.invalidate()
