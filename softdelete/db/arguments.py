"""Normalization of overloaded update-style call shapes.

Update-style operations accept ``(conditions, document, options, callback)``
where any prefix may be dropped and the callback may take the place of the
first omitted argument. ``parse_update_arguments`` resolves the shape once, at
the call boundary, so the rest of the layer only sees ``UpdateArguments``.
"""

from __future__ import annotations

from typing import Any, Callable, List, Mapping, NamedTuple, Optional


class UpdateArguments(NamedTuple):
    conditions: Optional[Mapping[str, Any]] = None
    document: Any = None
    options: Optional[Mapping[str, Any]] = None
    callback: Optional[Callable[..., Any]] = None

    def as_list(self) -> List[Any]:
        """Present slots in order, skipping absent ones."""
        return [value for value in self if value is not None]


def parse_update_arguments(
    conditions: Any = None,
    document: Any = None,
    options: Any = None,
    callback: Any = None,
) -> UpdateArguments:
    """Resolve the caller's positional arguments into canonical slots.

    First match wins:

    1. ``(conditions, document, callback)`` when options holds a callable.
    2. ``(document, callback)`` when document holds a callable; the first
       argument is the update document and conditions are empty.
    3. ``(callback)`` when conditions holds a callable.
    4. ``(document)`` when the only argument is a mapping.

    Anything else passes through unchanged.
    """
    if callable(options):
        return UpdateArguments(conditions, document, None, options)

    if callable(document):
        return UpdateArguments({}, conditions, None, document)

    if callable(conditions):
        return UpdateArguments(None, None, None, conditions)

    if isinstance(conditions, Mapping) and document is None and options is None and callback is None:
        return UpdateArguments({}, conditions, None, None)

    return UpdateArguments(conditions, document, options, callback)
