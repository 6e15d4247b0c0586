"""
Error taxonomy for the binding layer.

Only configuration errors and store-level query errors ever reach the caller.
Gate rejections, analytics failures and exceptions raised by listeners or
hooks are logged and absorbed where they happen.
"""


class SearchBoxError(Exception):
    """Base class for all searchbox errors."""
    pass


class ConfigurationError(SearchBoxError):
    """Raised when a binding is created with a missing or invalid configuration."""
    pass


class SearchBaseNotConfiguredError(ConfigurationError):
    """
    Raised when no SearchBase is available.

    A connector resolves its SearchBase from the explicit ``searchbase``
    argument first, then from the process-wide locator. If neither provides
    one, this error is raised instead of silently creating a default store.
    """

    def __init__(self, message: str = None):
        super().__init__(
            message
            or "No SearchBase configured. Pass searchbase= explicitly, use a "
               "SearchBaseProvider, or call sl.init(searchbase) at startup."
        )


class ComponentUnregisteredError(SearchBoxError):
    """Raised when a subscription is removed after its component was unregistered."""

    def __init__(self, component_id: str):
        self.component_id = component_id
        super().__init__(
            f"Component '{component_id}' was unregistered; its subscriptions "
            f"are no longer valid"
        )


class LifecycleError(SearchBoxError):
    """Exception raised for invalid binding lifecycle transitions."""
    pass
