# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Genro-PathStore - Path-addressed publish/subscribe over nested data.

A lightweight, zero-dependency library: read and merge values anywhere in a
nested mapping by path, and subscribe to a path to receive one debounced
notification per burst of changes.
"""

__version__ = "0.1.0"

from .debounce import DEFAULT_DELAY, DebounceGate, LoopScheduler, Scheduler, VirtualClock
from .exceptions import (
    NoSuchGroupError,
    PathStoreError,
    SchedulerError,
    StructuralMismatchError,
)
from .pathtree import MISSING, merge, normalize_path, read, write
from .store import SubscriptionStore
from .subscription import Subscription, SubscriptionGroup

__all__ = [
    # Core classes
    "SubscriptionStore",
    "Subscription",
    "SubscriptionGroup",
    # Debounce
    "DebounceGate",
    "DEFAULT_DELAY",
    "Scheduler",
    "LoopScheduler",
    "VirtualClock",
    # Path access
    "MISSING",
    "normalize_path",
    "read",
    "write",
    "merge",
    # Exceptions
    "PathStoreError",
    "StructuralMismatchError",
    "NoSuchGroupError",
    "SchedulerError",
]
