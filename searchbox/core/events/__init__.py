"""
Event System - Observers and Filtered State Subscriptions.

Provides:
- Signal: Simple observer for coarse notifications (e.g., config changes)
- SubscriptionManager: Per-component filtered, batched state-change delivery
- ChangeRecord: One property transition (name, prev, next)
- StateProperty: Observable property name constants

Usage:
    from searchbox.core.events import StateProperty

    token = component.subscribe_to_state_changes(on_change, {StateProperty.VALUE})
"""
from .observer import Signal
from .constants import StateProperty, RequestStatus
from .subscriptions import (
    ChangeBatch,
    ChangeRecord,
    StateListener,
    SubscriptionManager,
    SubscriptionToken,
)


__all__ = [
    "Signal",
    "StateProperty",
    "RequestStatus",
    "ChangeBatch",
    "ChangeRecord",
    "StateListener",
    "SubscriptionManager",
    "SubscriptionToken",
]
