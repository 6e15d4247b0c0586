"""
SubscriptionManager - Filtered State-Change Delivery.

Each SearchComponent owns exactly one SubscriptionManager. Views attach
listeners with an optional interest-set; the Store hands every state
mutation to ``notify`` as one batch of ChangeRecords.

Delivery rules:
    - Listeners run synchronously, in subscription order.
    - A listener runs at most once per batch, however many of its
      properties changed.
    - A listener removed while a batch is being delivered is skipped for
      the rest of that batch.
    - After ``invalidate()`` the manager is closed: ``notify`` is a no-op
      and unsubscribing a token that was alive at invalidation time raises.
"""
import itertools
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional
from loguru import logger

from ..errors import ComponentUnregisteredError


@dataclass(frozen=True)
class ChangeRecord:
    """One property transition inside a notification batch."""
    name: str
    prev: Any
    next: Any


ChangeBatch = Mapping[str, ChangeRecord]
StateListener = Callable[[ChangeBatch], None]

_token_ids = itertools.count(1)


class SubscriptionToken:
    """
    Handle returned by ``subscribe``.

    Tokens are opaque to callers; pass them back to ``unsubscribe``.
    """

    __slots__ = ("id", "owner_id", "listener", "interest", "active", "invalidated")

    def __init__(self, owner_id: str, listener: StateListener, interest: Optional[FrozenSet[str]]):
        self.id = next(_token_ids)
        self.owner_id = owner_id
        self.listener = listener
        self.interest = interest
        self.active = True
        self.invalidated = False

    def matches(self, batch: ChangeBatch) -> bool:
        if not self.interest:
            return True
        return any(name in self.interest for name in batch)

    def __repr__(self) -> str:
        state = "active" if self.active else ("invalidated" if self.invalidated else "removed")
        return f"<SubscriptionToken #{self.id} {self.owner_id} {state}>"


class SubscriptionManager:
    """
    Per-component list of (listener, interest-set) registrations.

    Usage:
        token = manager.subscribe(on_change, {"value", "results"})
        manager.notify([ChangeRecord("value", "", "shoes")])
        manager.unsubscribe(token)
    """

    def __init__(self, owner_id: str):
        self.owner_id = owner_id
        self._subscriptions: List[SubscriptionToken] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, listener: StateListener, interest: Optional[Iterable[str]] = None) -> SubscriptionToken:
        """
        Register a listener.

        Args:
            listener: Callable receiving the batch as ``{name: ChangeRecord}``.
            interest: Property names the listener cares about. ``None`` or an
                empty collection means every change.

        Returns:
            Token to pass to ``unsubscribe``.
        """
        if self._closed:
            raise ComponentUnregisteredError(self.owner_id)

        interest_set = frozenset(interest) if interest else None
        token = SubscriptionToken(self.owner_id, listener, interest_set)
        self._subscriptions.append(token)
        logger.debug(
            f"Subscribed {token!r} to {sorted(interest_set) if interest_set else 'all changes'}"
        )
        return token

    def unsubscribe(self, token: SubscriptionToken) -> None:
        """
        Remove exactly one registration. A second call is a no-op.

        Raises:
            ComponentUnregisteredError: If the token was invalidated because
                its component was unregistered.
        """
        if token.invalidated:
            raise ComponentUnregisteredError(token.owner_id)
        if not token.active:
            return

        token.active = False
        self._subscriptions = [t for t in self._subscriptions if t is not token]
        logger.debug(f"Unsubscribed {token!r}")

    def notify(self, changes: Iterable[ChangeRecord]) -> int:
        """
        Deliver one batch of changes.

        Args:
            changes: ChangeRecords produced by a single state mutation.

        Returns:
            Number of listeners invoked.
        """
        if self._closed:
            return 0

        batch: Dict[str, ChangeRecord] = {record.name: record for record in changes}
        if not batch:
            return 0

        delivered = 0
        # Listeners may unsubscribe (themselves or others) while we iterate.
        for token in list(self._subscriptions):
            if not token.active or not token.matches(batch):
                continue
            delivered += 1
            try:
                token.listener(batch)
            except Exception as e:
                logger.error(f"Listener {token!r} failed on {sorted(batch)}: {e}")
        return delivered

    def invalidate(self) -> None:
        """Drop every registration and close the manager."""
        for token in self._subscriptions:
            token.active = False
            token.invalidated = True
        count = len(self._subscriptions)
        self._subscriptions = []
        self._closed = True
        if count:
            logger.debug(f"Invalidated {count} subscription(s) on '{self.owner_id}'")
