# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""PathStore exceptions."""

from __future__ import annotations


class PathStoreError(Exception):
    """Base exception for PathStore errors."""

    pass


class StructuralMismatchError(PathStoreError):
    """Raised when a write addresses a segment the tree shape cannot hold.

    Attributes:
        path: The full path being written.
        segment: The segment where traversal failed.
    """

    def __init__(self, message: str, path: tuple[str, ...] = (), segment: str | None = None) -> None:
        super().__init__(message)
        self.path = path
        self.segment = segment


class NoSuchGroupError(PathStoreError):
    """Raised when publishing to a path that has no subscribers."""

    def __init__(self, path: tuple[str, ...]) -> None:
        super().__init__(f"No subscribers registered at path {path!r}")
        self.path = path


class SchedulerError(PathStoreError):
    """Raised when a deferred callback cannot be scheduled."""

    pass
