"""
Observable State Property Names.

Every state property a SearchComponent exposes is listed here. Use these
constants when declaring interest-sets so that a typo fails at binding
construction instead of silently never firing.

Usage:
    from searchbox.core.events import StateProperty

    connector = SearchWidgetConnector(
        "search",
        config,
        subscribe_to={StateProperty.VALUE, StateProperty.RESULTS},
    )
"""
from typing import FrozenSet


class StateProperty:
    """
    Names of the observable properties of a SearchComponent.

    Example:
        >>> component.subscribe_to_state_changes(listener, {StateProperty.ERROR})
    """

    # Input
    VALUE = "value"
    QUERY = "query"

    # Query outcome
    RESULTS = "results"
    AGGREGATION_DATA = "aggregation_data"
    SUGGESTIONS = "suggestions"
    RECENT_SEARCHES = "recent_searches"

    # Request tracking
    REQUEST_PENDING = "request_pending"
    REQUEST_STATUS = "request_status"
    ERROR = "error"

    ALL: FrozenSet[str] = frozenset({
        VALUE,
        QUERY,
        RESULTS,
        AGGREGATION_DATA,
        SUGGESTIONS,
        RECENT_SEARCHES,
        REQUEST_PENDING,
        REQUEST_STATUS,
        ERROR,
    })


class RequestStatus:
    """Values of the ``request_status`` property."""

    INACTIVE = "INACTIVE"
    PENDING = "PENDING"
    ERROR = "ERROR"
