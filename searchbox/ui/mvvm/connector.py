"""
SearchWidgetConnector - binds one view to one SearchComponent.

Lifecycle:
    connector = SearchWidgetConnector("search", ComponentConfig(size=5), searchbase=sb,
                                      subscribe_to={"results", "error"})
    connector.changed.connect(view.refresh)   # re-render callback
    connector.mount()                         # register, subscribe, default query
    await connector.set_value("shoes", trigger_default_query=True)
    connector.dispose()                       # unsubscribe, maybe unregister

Value intents pass through the ``before_value_change`` gate. While a gate is
pending, a newer intent for the same component supersedes it: the older
gate still completes, but its result is dropped. Disposing the connector
also drops any pending gate result.
"""
import asyncio
import inspect
import itertools
import weakref
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union
from loguru import logger

from searchbox.core.component import SearchComponent
from searchbox.core.config import BindingSettings, ComponentConfig
from searchbox.core.errors import ConfigurationError, LifecycleError
from searchbox.core.events import ChangeBatch, Signal, StateProperty, SubscriptionToken
from searchbox.core.lifecycle import BindingLifecycle, BindingState
from searchbox.core.registry import SearchBase

from .provider import resolve_searchbase


class _IntentTracker:
    """Last-writer-wins bookkeeping for value intents, per component."""

    def __init__(self):
        self._latest: "weakref.WeakKeyDictionary[SearchComponent, int]" = weakref.WeakKeyDictionary()
        self._counter = itertools.count(1)

    def begin(self, component: SearchComponent) -> int:
        intent = next(self._counter)
        self._latest[component] = intent
        return intent

    def is_latest(self, component: SearchComponent, intent: int) -> bool:
        return self._latest.get(component) == intent


_intents = _IntentTracker()


class SearchWidgetConnector:
    """
    Lifecycle controller for a view bound to a search component.

    Args:
        component_id: Id of the component to register or reuse.
        config: Component configuration (model or mapping of options).
        subscribe_to: State properties whose changes re-render the view.
            ``None`` means every property.
        searchbase: Store to bind against. Defaults to the locator's.
        trigger_query_on_init: Run the default query once on mount.
        should_listen_for_changes: Attach the view subscription at all.
        destroy_on_dispose: Unregister the component when disposed.

    Unset lifecycle flags fall back to the ``binding`` section of the
    application config, then to BindingSettings defaults.
    """

    def __init__(
        self,
        component_id: str,
        config: Union[ComponentConfig, Mapping[str, Any], None],
        subscribe_to: Optional[Iterable[str]] = None,
        searchbase: Optional[SearchBase] = None,
        trigger_query_on_init: Optional[bool] = None,
        should_listen_for_changes: Optional[bool] = None,
        destroy_on_dispose: Optional[bool] = None,
    ):
        if not component_id:
            raise ConfigurationError("SearchWidgetConnector requires a component id")
        if config is None:
            raise ConfigurationError(f"SearchWidgetConnector '{component_id}' requires a config")
        if not isinstance(config, ComponentConfig):
            config = ComponentConfig.build(**config)

        interest = frozenset(subscribe_to) if subscribe_to else None
        if interest:
            unknown = interest - StateProperty.ALL
            if unknown:
                raise ConfigurationError(
                    f"Unknown properties in subscribe_to for '{component_id}': {sorted(unknown)}"
                )

        self.id = component_id
        self.searchbase = resolve_searchbase(searchbase)
        self._config = config
        self.subscribe_to = interest

        defaults = self._binding_defaults()
        self.trigger_query_on_init = (
            defaults.trigger_query_on_init if trigger_query_on_init is None else trigger_query_on_init
        )
        self.should_listen_for_changes = (
            defaults.should_listen_for_changes if should_listen_for_changes is None else should_listen_for_changes
        )
        self.destroy_on_dispose = (
            defaults.destroy_on_dispose if destroy_on_dispose is None else destroy_on_dispose
        )

        self.lifecycle = BindingLifecycle(component_id)
        # Emitted with the change batch whenever the view should re-render
        self.changed = Signal(f"{component_id}.changed")
        self._component: Optional[SearchComponent] = None
        self._tokens: List[SubscriptionToken] = []
        self._hooks: Dict[str, Any] = {}

    def _binding_defaults(self) -> BindingSettings:
        manager = self.searchbase.config
        if manager is None:
            return BindingSettings()
        return manager.data.binding

    # --- State ---

    @property
    def state(self) -> BindingState:
        return self.lifecycle.state

    @property
    def config(self) -> ComponentConfig:
        return self._config

    @property
    def component(self) -> SearchComponent:
        if self._component is None:
            raise LifecycleError(f"Connector '{self.id}' is not mounted")
        return self._component

    # --- Lifecycle ---

    def mount(self) -> SearchComponent:
        """
        Register or reuse the component, attach subscriptions and run the
        default query once.

        A failed mount leaves the connector UNMOUNTED with no subscriptions,
        so it can be mounted again.

        Raises:
            LifecycleError: If the connector was already mounted or disposed,
                or the initial query is enabled and no event loop is running.
        """
        if not self.lifecycle.can_transition(BindingState.MOUNTED):
            raise LifecycleError(
                f"Connector '{self.id}' cannot be mounted from state {self.state.value}"
            )
        if self.trigger_query_on_init:
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                raise LifecycleError(
                    f"Connector '{self.id}' needs a running event loop to trigger its initial query"
                ) from None

        component = self.searchbase.register(self.id, self._config)
        hooks = self._config.hooks()
        tokens: List[SubscriptionToken] = []
        try:
            if self.should_listen_for_changes:
                tokens.append(
                    component.subscribe_to_state_changes(self._on_state_change, self.subscribe_to)
                )
            if hooks:
                tokens.append(
                    component.subscribe_to_state_changes(self._dispatch_hooks, set(hooks))
                )
        except Exception:
            for token in tokens:
                component.unsubscribe_to_state_changes(token)
            raise

        self._component = component
        self._tokens = tokens
        self._hooks = hooks
        self.lifecycle.transition_to(BindingState.MOUNTED)

        if self.trigger_query_on_init:
            component.trigger_default_query()

        logger.debug(f"Mounted connector '{self.id}' ({len(self._tokens)} subscription(s))")
        return component

    def dispose(self) -> None:
        """
        Detach from the component. Safe to call more than once.

        Unregisters the component only when ``destroy_on_dispose`` is set, so
        other views (or a later remount) keep its accumulated state. A
        component registered again under the same id by another view is
        never unregistered by this connector.
        """
        if self.lifecycle.is_disposed:
            return
        if not self.lifecycle.is_mounted:
            self.lifecycle.transition_to(BindingState.DISPOSED)
            return

        component = self._component
        tokens, self._tokens = self._tokens, []
        if component.is_unregistered:
            logger.debug(f"Component '{self.id}' already unregistered; subscriptions were invalidated")
        else:
            for token in tokens:
                component.unsubscribe_to_state_changes(token)

        if self.destroy_on_dispose:
            if self.searchbase.get(self.id) is component:
                self.searchbase.unregister(self.id)
            else:
                logger.debug(f"Component '{self.id}' is no longer owned by this connector; not unregistering")

        self.lifecycle.transition_to(BindingState.DISPOSED)

    def __enter__(self) -> 'SearchWidgetConnector':
        self.mount()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.dispose()

    # --- Value intents ---

    async def set_value(
        self,
        value: Any,
        trigger_default_query: bool = False,
        trigger_custom_query: bool = False,
    ) -> bool:
        """
        Gate and forward a value to the Store.

        The ``before_value_change`` hook may be sync or async. Raising (or a
        rejected awaitable) vetoes the change; returning a non-None value
        replaces the candidate value.

        Returns:
            True if the value was forwarded, False if it was vetoed,
            superseded by a newer intent, or the connector was disposed.

        Raises:
            LifecycleError: If the connector has never been mounted.
        """
        if self.lifecycle.is_disposed:
            logger.debug(f"set_value on disposed connector '{self.id}' ignored")
            return False
        component = self.component
        intent = _intents.begin(component)

        accepted, value = await self.run_gate(value)
        if not accepted:
            return False

        if not _intents.is_latest(component, intent):
            logger.debug(f"Value intent for '{self.id}' superseded; dropping {value!r}")
            return False
        if not self.lifecycle.is_mounted or component.is_unregistered:
            logger.debug(f"Connector '{self.id}' detached while gating; dropping {value!r}")
            return False

        component.set_value(
            value,
            trigger_default_query=trigger_default_query,
            trigger_custom_query=trigger_custom_query,
        )
        return True

    async def run_gate(self, value: Any) -> Tuple[bool, Any]:
        """
        Run ``before_value_change`` on a candidate value.

        Returns:
            ``(accepted, value)`` where ``value`` is the possibly replaced
            candidate. Without a gate every value is accepted unchanged.
        """
        gate = self._config.before_value_change
        if gate is None:
            return True, value
        try:
            outcome = gate(value)
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.info(f"Value change for '{self.id}' rejected by before_value_change: {e}")
            return False, value
        return True, value if outcome is None else outcome

    # --- Listeners ---

    def _on_state_change(self, batch: ChangeBatch) -> None:
        if self.lifecycle.is_mounted:
            self.changed.emit(batch)

    def _dispatch_hooks(self, batch: ChangeBatch) -> None:
        for name, hook in self._hooks.items():
            record = batch.get(name)
            if record is None:
                continue
            try:
                hook(record.prev, record.next)
            except Exception as e:
                logger.error(f"Hook for '{name}' on '{self.id}' failed: {e}")
