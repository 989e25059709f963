"""Filter predicates selecting documents by their deleted flag."""

from __future__ import annotations

from typing import Any, Dict, Mapping

from softdelete.db.operations import Visibility


def soft_delete_filter(field: str, visibility: Visibility, use_ne_operator: bool = True) -> Dict[str, Any]:
    """Return the bare predicate for ``visibility`` (empty for INCLUDE_ALL).

    With ``use_ne_operator`` the predicates are ``{field: {"$ne": True}}`` and
    ``{field: {"$ne": False}}``, which also match documents missing the flag;
    otherwise they are strict equality on ``False`` / ``True``.
    """
    if visibility is Visibility.EXCLUDE_DELETED:
        return {field: {"$ne": True}} if use_ne_operator else {field: False}
    if visibility is Visibility.ONLY_DELETED:
        return {field: {"$ne": False}} if use_ne_operator else {field: True}
    return {}


def apply_soft_delete_filter(
    conditions: Any,
    field: str,
    visibility: Visibility,
    use_ne_operator: bool = True,
) -> Any:
    """Combine caller conditions with the predicate for ``visibility``.

    The caller's mapping is never mutated. If it already constrains ``field``
    both constraints are kept under ``$and``. A bare id (pymongo accepts one in
    place of a filter) is matched as ``{"_id": id}``; INCLUDE_ALL forwards it
    unchanged.
    """
    if conditions is None:
        conditions = {}
    elif not isinstance(conditions, Mapping):
        if visibility is Visibility.INCLUDE_ALL:
            return conditions
        conditions = {"_id": conditions}

    combined: Dict[str, Any] = dict(conditions)
    predicate = soft_delete_filter(field, visibility, use_ne_operator)
    if not predicate:
        return combined
    if field not in combined:
        combined.update(predicate)
        return combined
    return {"$and": [combined, predicate]}
