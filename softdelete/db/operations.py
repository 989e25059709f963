"""Augmentable store operations and the three visibility modes.

Each recognized operation name maps to one row of ``OPERATIONS``: its kind
decides how the soft-delete predicate is injected, and ``store_method`` names
the pymongo collection method it delegates to.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

logger = logging.getLogger(__name__)


class Visibility(str, Enum):
    """Which documents an operation variant can see."""

    EXCLUDE_DELETED = "exclude_deleted"
    ONLY_DELETED = "only_deleted"
    INCLUDE_ALL = "include_all"


class OperationKind(str, Enum):
    READ = "read"
    WRITE = "write"
    AGGREGATE = "aggregate"


class Operation(str, Enum):
    COUNT = "count"
    COUNT_DOCUMENTS = "countDocuments"
    FIND = "find"
    FIND_ONE = "findOne"
    FIND_ONE_AND_UPDATE = "findOneAndUpdate"
    UPDATE = "update"
    UPDATE_ONE = "updateOne"
    UPDATE_MANY = "updateMany"
    AGGREGATE = "aggregate"


@dataclass(frozen=True)
class OperationSpec:
    operation: Operation
    kind: OperationKind
    attribute: str
    store_method: str
    takes_projection: bool = False

    def variant_name(self, visibility: Visibility) -> str:
        if visibility is Visibility.ONLY_DELETED:
            return f"{self.attribute}_deleted"
        if visibility is Visibility.INCLUDE_ALL:
            return f"{self.attribute}_with_deleted"
        return self.attribute


OPERATIONS: Dict[Operation, OperationSpec] = {
    # pymongo dropped Collection.count; both count names delegate to count_documents.
    Operation.COUNT: OperationSpec(Operation.COUNT, OperationKind.READ, "count", "count_documents"),
    Operation.COUNT_DOCUMENTS: OperationSpec(
        Operation.COUNT_DOCUMENTS, OperationKind.READ, "count_documents", "count_documents"
    ),
    Operation.FIND: OperationSpec(Operation.FIND, OperationKind.READ, "find", "find", takes_projection=True),
    Operation.FIND_ONE: OperationSpec(
        Operation.FIND_ONE, OperationKind.READ, "find_one", "find_one", takes_projection=True
    ),
    Operation.FIND_ONE_AND_UPDATE: OperationSpec(
        Operation.FIND_ONE_AND_UPDATE, OperationKind.WRITE, "find_one_and_update", "find_one_and_update"
    ),
    # "update" picks update_one or update_many at call time from the multi option.
    Operation.UPDATE: OperationSpec(Operation.UPDATE, OperationKind.WRITE, "update", "update_one"),
    Operation.UPDATE_ONE: OperationSpec(Operation.UPDATE_ONE, OperationKind.WRITE, "update_one", "update_one"),
    Operation.UPDATE_MANY: OperationSpec(Operation.UPDATE_MANY, OperationKind.WRITE, "update_many", "update_many"),
    Operation.AGGREGATE: OperationSpec(Operation.AGGREGATE, OperationKind.AGGREGATE, "aggregate", "aggregate"),
}

_NAME_LOOKUP: Dict[str, Operation] = {}
for _spec in OPERATIONS.values():
    _NAME_LOOKUP[_spec.operation.value] = _spec.operation
    _NAME_LOOKUP[_spec.attribute] = _spec.operation


def parse_operation_name(name: Any) -> Optional[Operation]:
    """Resolve a camelCase or snake_case operation name, or None if unknown."""
    if isinstance(name, Operation):
        return name
    if not isinstance(name, str):
        return None
    return _NAME_LOOKUP.get(name.strip())


def parse_override_methods(selection: Any) -> Tuple[Operation, ...]:
    """Resolve the overrideMethods option into the operations to augment.

    ``"all"`` or ``True`` selects every operation. A list selects the
    recognized names it contains; unrecognized names are dropped.
    """
    if not selection:
        return ()

    if isinstance(selection, str):
        if selection == "all":
            return tuple(OPERATIONS)
        logger.warning("Ignoring unsupported overrideMethods value %r", selection)
        return ()

    if selection is True:
        return tuple(OPERATIONS)

    enabled = []
    for name in _iter_names(selection):
        operation = parse_operation_name(name)
        if operation is None:
            logger.warning("Dropping unrecognized overrideMethods entry %r", name)
            continue
        if operation not in enabled:
            enabled.append(operation)
    return tuple(enabled)


def _iter_names(selection: Iterable[Any]) -> Iterable[Any]:
    try:
        return list(selection)
    except TypeError:
        logger.warning("Ignoring unsupported overrideMethods value %r", selection)
        return []
