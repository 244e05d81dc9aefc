# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""SubscriptionStore - path-addressed publish/subscribe over a nested tree.

The store owns a nested mapping (the tree) and a registry of subscription
groups, one per exact path. Publishing shallow-merges data into the tree and
arms the path's debounce gate; when the gate settles every subscriber on the
path is called with the value found there at that moment.

Key Features:
    - **Path access**: read and merge anywhere in the tree by path
    - **Per-path groups**: subscriptions are grouped by their exact path,
      groups appear on first subscribe and vanish with their last member
    - **Debounced delivery**: a burst of publishes on one path produces a
      single notification; different paths debounce independently

Example:
    Basic usage::

        clock = VirtualClock()
        store = SubscriptionStore({'user': {'name': 'Al', 'age': 1}},
                                  scheduler=clock)
        sub = store.subscribe(['user'], lambda value, sub: print(value))

        store.publish(['user'], {'age': 2})
        store.publish(['user'], {'age': 3})
        clock.advance(20)  # {'name': 'Al', 'age': 3}, printed once

        sub.unsubscribe()
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping, MutableMapping
from typing import Any

from . import pathtree
from .debounce import DEFAULT_DELAY, DebounceGate, Scheduler
from .exceptions import NoSuchGroupError
from .pathtree import MISSING, Path
from .subscription import Subscription, SubscriptionGroup, SubscriberCallback

logger = logging.getLogger(__name__)


class SubscriptionStore:
    """A nested data tree with debounced per-path subscriptions.

    Args:
        tree: Initial tree. The mapping is kept, not copied, and is never
            replaced, only mutated by ``publish``. Defaults to a new dict.
        delay: Debounce quiet period in milliseconds for every group.
            Falsy values mean the default of 20.
        scheduler: Timer source shared by all gates. Defaults to the running
            asyncio loop.
        raise_on_error: If True (default), ``publish`` on a path without
            subscribers raises NoSuchGroupError and leaves the tree
            untouched. If False, it only merges the data.

    Example:
        >>> store = SubscriptionStore({'a': {'b': 1}}, scheduler=VirtualClock())
        >>> store.get(['a', 'b'])
        1
        >>> store.get([]) is store.tree
        True
    """

    __slots__ = ('_tree', '_groups', 'delay', 'scheduler', '_raise_on_error')

    def __init__(
        self,
        tree: MutableMapping[str, Any] | None = None,
        delay: float | None = DEFAULT_DELAY,
        scheduler: Scheduler | None = None,
        raise_on_error: bool = True,
    ) -> None:
        self._tree: MutableMapping[str, Any] = tree if tree is not None else {}
        self._groups: dict[tuple[str, ...], SubscriptionGroup] = {}
        self.delay = delay or DEFAULT_DELAY
        self.scheduler = scheduler
        self._raise_on_error = raise_on_error

    # ==================== Special Methods ====================

    def __repr__(self) -> str:
        paths = ['.'.join(key) for key in self._groups]
        return f"SubscriptionStore(groups={paths})"

    def __len__(self) -> int:
        """Return the number of paths with at least one subscriber."""
        return len(self._groups)

    def __contains__(self, path: Path) -> bool:
        """Check if the path has at least one subscriber."""
        return pathtree.normalize_path(path) in self._groups

    @property
    def tree(self) -> MutableMapping[str, Any]:
        """The underlying tree."""
        return self._tree

    # ==================== Subscriptions ====================

    def subscribe(self, path: Path, callback: SubscriberCallback) -> Subscription:
        """Register ``callback`` for changes published at ``path``.

        Args:
            path: Path to listen on. Only publishes on this exact path
                notify the subscription.
            callback: Called as ``callback(value, subscription)`` once each
                burst of publishes settles.

        Returns:
            The new Subscription.
        """
        key = pathtree.normalize_path(path)
        subscription = Subscription(uuid.uuid4().hex, key, callback, self)
        group = self._groups.get(key)
        if group is None:
            group = SubscriptionGroup(key, DebounceGate(self.delay, self.scheduler))
            self._groups[key] = group
        group.add(subscription)
        logger.debug("Subscribed %s at %r (%d in group)", subscription.id, key, len(group))
        return subscription

    def unsubscribe(self, path: Path, subscription_id: str) -> None:
        """Remove a subscription by id.

        Removing the last subscription on a path discards its group and
        gate. Unknown paths or ids are ignored.

        Args:
            path: Path the subscription listens on.
            subscription_id: The subscription's ``id``.
        """
        key = pathtree.normalize_path(path)
        group = self._groups.get(key)
        if group is None or not group.remove(subscription_id):
            return
        logger.debug("Unsubscribed %s at %r", subscription_id, key)
        if not group:
            del self._groups[key]
            logger.debug("Dropped group %r", key)

    def subscriptions(self, path: Path) -> list[Subscription]:
        """Return the subscriptions on ``path`` in delivery order."""
        group = self._groups.get(pathtree.normalize_path(path))
        return group.snapshot() if group is not None else []

    def has_subscribers(self, path: Path) -> bool:
        """True if at least one subscription listens on ``path``."""
        return path in self

    # ==================== Data Access ====================

    def get(self, path: Path, default: Any = MISSING) -> Any:
        """Get the value at ``path``.

        Args:
            path: Path to read. The root path returns the whole tree.
            default: Returned if the path is absent.

        Returns:
            The value, or ``default`` (MISSING unless given).
        """
        return pathtree.read(self._tree, path, default)

    def publish(self, path: Path, data: Mapping[str, Any]) -> None:
        """Merge ``data`` at ``path`` and schedule notification.

        The merge is shallow: keys in ``data`` overwrite, others are kept.
        Subscribers are notified once the path's gate settles, with the value
        at the path at that moment; subscriptions added in the meantime are
        included.

        Args:
            path: Path of the mapping to update.
            data: Keys to overwrite.

        Raises:
            NoSuchGroupError: If nobody subscribes to ``path`` and the store
                was created with ``raise_on_error=True``.
            StructuralMismatchError: If ``path`` cannot hold a mapping.
            SchedulerError: If no timer can be scheduled, for example with
                the default scheduler outside a running asyncio loop.
        """
        key = pathtree.normalize_path(path)
        group = self._groups.get(key)
        if group is None and self._raise_on_error:
            raise NoSuchGroupError(key)
        if group is not None:
            group.gate.check()

        pathtree.merge(self._tree, key, data)

        if group is None:
            logger.debug("Published at %r with no subscribers", key)
            return
        logger.debug("Published at %r, %d pending", key, group.gate.pending + 1)
        group.gate.arm(lambda: self._deliver(group))

    # ==================== Delivery ====================

    def _deliver(self, group: SubscriptionGroup) -> None:
        """Notify the group's current subscribers.

        A group dropped (or replaced) before settlement receives nothing.
        Subscriptions removed by an earlier callback in the same round are
        skipped.
        """
        if self._groups.get(group.path) is not group:
            return
        value = self.get(group.path)
        for subscription in group.snapshot():
            if subscription.id in group:
                subscription.callback(value, subscription)