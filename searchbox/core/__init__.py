"""
searchbox Core - Store, Registry and Binding Infrastructure.

Provides:
- SearchBase: Shared store and component registry
- SearchComponent: Observable state of one search widget
- SearchBackend: Contract for query execution and analytics
- ComponentConfig: Typed component configuration
- SubscriptionManager: Filtered, batched state-change delivery
- BindingLifecycle: Per-binding state machine
- ServiceLocator: Explicitly-initialized process-wide SearchBase access

Usage:
    from searchbox.core import SearchBase, ComponentConfig, sl

    searchbase = SearchBase(backend)
    sl.init(searchbase)
"""
from .base_system import BaseSystem
from .backend import QueryKind, QueryRequest, QueryResponse, SearchBackend, Suggestion
from .component import ObservableProperty, SearchComponent
from .config import (
    AnalyticsSettings,
    AppConfig,
    BindingSettings,
    ComponentConfig,
    ConfigManager,
    GeneralSettings,
    QueryType,
    SingleField,
    SortType,
    WeightedField,
    WeightedFields,
)
from .errors import (
    ComponentUnregisteredError,
    ConfigurationError,
    LifecycleError,
    SearchBaseNotConfiguredError,
    SearchBoxError,
)
from .events import ChangeRecord, RequestStatus, Signal, StateProperty, SubscriptionManager, SubscriptionToken
from .lifecycle import BindingLifecycle, BindingState
from .locator import ServiceLocator, sl
from .registry import SearchBase

__all__ = [
    # Store
    "BaseSystem",
    "SearchBase",
    "SearchComponent",
    "ObservableProperty",

    # Backend contract
    "SearchBackend",
    "QueryKind",
    "QueryRequest",
    "QueryResponse",
    "Suggestion",

    # Configuration
    "ComponentConfig",
    "AnalyticsSettings",
    "QueryType",
    "SortType",
    "SingleField",
    "WeightedField",
    "WeightedFields",
    "ConfigManager",
    "AppConfig",
    "GeneralSettings",
    "BindingSettings",

    # Errors
    "SearchBoxError",
    "ConfigurationError",
    "SearchBaseNotConfiguredError",
    "ComponentUnregisteredError",
    "LifecycleError",

    # Events
    "Signal",
    "ChangeRecord",
    "StateProperty",
    "RequestStatus",
    "SubscriptionManager",
    "SubscriptionToken",

    # Lifecycle
    "BindingLifecycle",
    "BindingState",

    # Locator
    "ServiceLocator",
    "sl",
]
