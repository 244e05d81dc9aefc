# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Path-addressed access to nested mappings.

A tree is a plain nested mapping (usually ``dict``) whose values are either
scalars or further mappings. Locations inside the tree are addressed by a
path, an ordered sequence of string segments.

Path Syntax:
    - Sequence: ``['config', 'database', 'host']`` (segments taken verbatim)
    - Dotted string: ``'config.database.host'``
    - Root: ``[]``, ``()`` or ``''``

Example:
    >>> tree = {'config': {'database': {'host': 'localhost'}}}
    >>> read(tree, 'config.database.host')
    'localhost'
    >>> write(tree, ['config', 'database', 'port'], 5432)
    5432
    >>> merge(tree, 'config.database', {'host': 'db.local'})
    {'host': 'db.local', 'port': 5432}
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping, Sequence
from typing import Any

from .exceptions import StructuralMismatchError

Path = Sequence[str] | str


class _Missing:
    """Marker for a location that holds no value."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'MISSING'

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return 'MISSING'


MISSING: Any = _Missing()


def normalize_path(path: Path) -> tuple[str, ...]:
    """Return the canonical tuple form of a path.

    Args:
        path: Dotted string or sequence of string segments.

    Returns:
        Tuple of segments. The root path is the empty tuple.

    Raises:
        TypeError: If a segment is not a string.
    """
    if isinstance(path, str):
        return tuple(path.split('.')) if path else ()
    segments = tuple(path)
    for segment in segments:
        if not isinstance(segment, str):
            raise TypeError(
                f"path segments must be str, not {type(segment).__name__}"
            )
    return segments


def _pluck(
    data: Any,
    path: tuple[str, ...],
    value: Any = MISSING,
    default: Any = MISSING,
    _depth: int = 0,
) -> Any:
    """Walk ``path`` below ``data``, reading or (when ``value`` is given) writing.

    ``_depth`` counts the segments already consumed, so error messages can
    point at the full path and the failing segment.
    """
    remaining = path[_depth:]
    if not remaining:
        if value is not MISSING:
            raise StructuralMismatchError("Cannot replace the tree root", path)
        return data

    segment = remaining[0]
    if not isinstance(data, Mapping):
        if value is MISSING:
            return default
        raise StructuralMismatchError(
            f"'{'.'.join(path[:_depth])}' is not a mapping, cannot access '{segment}'",
            path,
            segment,
        )

    if len(remaining) == 1:
        if value is MISSING:
            return data.get(segment, default)
        if not isinstance(data, MutableMapping):
            raise StructuralMismatchError(
                f"Mapping at '{'.'.join(path[:_depth])}' is read-only", path, segment
            )
        data[segment] = value
        return data[segment]

    if segment not in data:
        if value is MISSING:
            return default
        raise StructuralMismatchError(
            f"Path segment '{segment}' not found", path, segment
        )
    return _pluck(data[segment], path, value, default, _depth + 1)


def read(tree: Mapping[str, Any], path: Path, default: Any = MISSING) -> Any:
    """Get the value at ``path``.

    Args:
        tree: Root mapping.
        path: Location to read. The root path returns ``tree`` itself.
        default: Returned when any segment is absent or the walk reaches a
            non-mapping before the path ends.

    Returns:
        The value at the path, or ``default``.
    """
    return _pluck(tree, normalize_path(path), default=default)


def write(tree: MutableMapping[str, Any], path: Path, value: Any) -> Any:
    """Replace the child at ``path`` with ``value``.

    Intermediate segments must already exist as mappings.

    Args:
        tree: Root mapping.
        path: Location to write. Must not be the root.
        value: New value for the final segment.

    Returns:
        The value now stored at the path.

    Raises:
        StructuralMismatchError: If the path is empty, or an intermediate
            segment is missing or is not a mapping.
    """
    return _pluck(tree, normalize_path(path), value=value)


def merge(
    tree: MutableMapping[str, Any], path: Path, data: Mapping[str, Any]
) -> MutableMapping[str, Any]:
    """Shallow-merge ``data`` into the mapping at ``path``.

    Every key in ``data`` overwrites the same key at the target; other keys
    are left untouched. Nested mappings in ``data`` replace, they are not
    merged recursively. When nothing is stored at the path yet, a shallow
    copy of ``data`` is written there.

    Args:
        tree: Root mapping.
        path: Location of the target mapping. The root path merges into
            ``tree`` itself.
        data: Keys to overwrite.

    Returns:
        The target mapping after the merge.

    Raises:
        TypeError: If ``data`` is not a mapping.
        StructuralMismatchError: If the target exists but is not a mutable
            mapping, or its parent path cannot be written.

    Example:
        >>> tree = {'user': {'name': 'Al', 'age': 1}}
        >>> merge(tree, ['user'], {'age': 2})
        {'name': 'Al', 'age': 2}
    """
    if not isinstance(data, Mapping):
        raise TypeError(f"data must be a mapping, not {type(data).__name__}")
    segments = normalize_path(path)
    target = _pluck(tree, segments)
    if target is MISSING:
        return write(tree, segments, dict(data))
    if not isinstance(target, MutableMapping):
        raise StructuralMismatchError(
            f"'{'.'.join(segments)}' holds {type(target).__name__}, cannot merge into it",
            segments,
            segments[-1] if segments else None,
        )
    target.update(data)
    return target
