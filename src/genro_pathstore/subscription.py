# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Subscription handles and per-path subscription groups."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable, Iterator, TYPE_CHECKING

from .debounce import DebounceGate

if TYPE_CHECKING:
    from .store import SubscriptionStore

SubscriberCallback = Callable[[Any, 'Subscription'], Any]


class Subscription:
    """One listener's interest in one path.

    The subscription keeps a back-reference to its store, so a listener
    can read, publish or unsubscribe on its own path without repeating it.

    Attributes:
        id: Unique identifier within the store.
        path: Normalised path the subscription listens on.
        callback: Called as ``callback(value, subscription)`` on settlement.
        store: The SubscriptionStore that created this subscription.

    Example:
        >>> sub = store.subscribe(['user'], lambda value, sub: print(value))
        >>> sub.publish({'age': 2})
        >>> sub.get()
        {'name': 'Al', 'age': 2}
        >>> sub.unsubscribe()
    """

    __slots__ = ('id', 'path', 'callback', 'store')

    def __init__(
        self,
        id: str,
        path: tuple[str, ...],
        callback: SubscriberCallback,
        store: SubscriptionStore,
    ) -> None:
        self.id = id
        self.path = path
        self.callback = callback
        self.store = store

    def __repr__(self) -> str:
        return f"Subscription({'.'.join(self.path)!r}, id={self.id[:8]!r})"

    @property
    def key(self) -> tuple[str, ...]:
        """Key of the group this subscription belongs to."""
        return self.path

    def unsubscribe(self) -> None:
        """Remove this subscription from its store. Safe to call twice."""
        self.store.unsubscribe(self.path, self.id)

    def publish(self, data: Mapping[str, Any]) -> None:
        """Merge ``data`` at this subscription's path."""
        self.store.publish(self.path, data)

    def get(self) -> Any:
        """Current value at this subscription's path."""
        return self.store.get(self.path)


class SubscriptionGroup:
    """All subscriptions registered on one exact path, plus its gate."""

    __slots__ = ('path', 'subscriptions', 'gate', '_ids')

    def __init__(self, path: tuple[str, ...], gate: DebounceGate) -> None:
        self.path = path
        self.subscriptions: list[Subscription] = []
        self.gate = gate
        self._ids: set[str] = set()

    def __repr__(self) -> str:
        return f"SubscriptionGroup({'.'.join(self.path)!r}, {len(self.subscriptions)})"

    def __len__(self) -> int:
        return len(self.subscriptions)

    def __iter__(self) -> Iterator[Subscription]:
        return iter(self.subscriptions)

    def __contains__(self, subscription_id: str) -> bool:
        """Check if a subscription with this id is still registered."""
        return subscription_id in self._ids

    def add(self, subscription: Subscription) -> None:
        self.subscriptions.append(subscription)
        self._ids.add(subscription.id)

    def remove(self, subscription_id: str) -> bool:
        """Remove the subscription with the given id.

        Returns:
            True if a subscription was removed, False if none matched.
        """
        if subscription_id not in self._ids:
            return False
        for i, subscription in enumerate(self.subscriptions):
            if subscription.id == subscription_id:
                del self.subscriptions[i]
                self._ids.discard(subscription_id)
                return True
        return False

    def snapshot(self) -> list[Subscription]:
        """Copy of the current subscription list."""
        return list(self.subscriptions)
