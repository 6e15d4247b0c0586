"""
Binding Lifecycle State Machine.

Tracks one view-to-component binding through UNMOUNTED -> MOUNTED -> DISPOSED.
"""
from enum import Enum
from typing import Callable, List
from loguru import logger

from .errors import LifecycleError


class BindingState(Enum):
    """Binding lifecycle states."""
    UNMOUNTED = "unmounted"
    MOUNTED = "mounted"
    DISPOSED = "disposed"


class BindingLifecycle:
    """
    Manages binding state transitions.

    Usage:
        lifecycle = BindingLifecycle("search")
        lifecycle.add_listener(on_transition)
        lifecycle.transition_to(BindingState.MOUNTED)
    """

    # Valid state transitions
    VALID_TRANSITIONS = {
        BindingState.UNMOUNTED: [BindingState.MOUNTED, BindingState.DISPOSED],
        BindingState.MOUNTED: [BindingState.DISPOSED],
        BindingState.DISPOSED: [],
    }

    def __init__(self, name: str):
        self.name = name
        self._state = BindingState.UNMOUNTED
        self._listeners: List[Callable[[BindingState, BindingState], None]] = []

    @property
    def state(self) -> BindingState:
        return self._state

    def can_transition(self, target: BindingState) -> bool:
        return target in self.VALID_TRANSITIONS.get(self._state, [])

    def transition_to(self, target: BindingState) -> None:
        """
        Transition to target state.

        Raises:
            LifecycleError: If transition is invalid
        """
        if not self.can_transition(target):
            raise LifecycleError(
                f"Invalid transition for '{self.name}': {self._state.value} -> {target.value}"
            )

        old_state = self._state
        self._state = target
        logger.debug(f"Binding '{self.name}': {old_state.value} -> {target.value}")

        for listener in list(self._listeners):
            try:
                listener(old_state, target)
            except Exception as e:
                logger.error(f"Lifecycle listener error for '{self.name}': {e}")

    def add_listener(self, listener: Callable[[BindingState, BindingState], None]) -> None:
        """
        Add a listener for all state changes.

        Args:
            listener: Callable(old_state, new_state)
        """
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: Callable) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def is_mounted(self) -> bool:
        return self._state == BindingState.MOUNTED

    @property
    def is_disposed(self) -> bool:
        return self._state == BindingState.DISPOSED
