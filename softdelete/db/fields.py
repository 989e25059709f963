"""Soft-delete field declaration: names, types, index flags.

``build_schema`` resolves options once into an immutable ``SoftDeleteSchema``
that every other component closes over.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, NamedTuple, Tuple, Union

from bson import ObjectId
from pymongo import ASCENDING, IndexModel

from softdelete.config import SoftDeleteOptions
from softdelete.db.operations import Operation, parse_override_methods

logger = logging.getLogger(__name__)

DEFAULT_DELETED_FIELD = "deleted"
DEFAULT_DELETED_AT_FIELD = "deletedAt"
DEFAULT_DELETED_BY_FIELD = "deletedBy"

OptionsLike = Union[SoftDeleteOptions, Mapping[str, Any], None]


class FieldNames(NamedTuple):
    deleted: str
    deleted_at: str
    deleted_by: str


def parse_field_names(options: OptionsLike = None) -> FieldNames:
    """Resolve the three soft-delete field names, falling back to the defaults."""
    opts = SoftDeleteOptions.coerce(options)
    return FieldNames(
        deleted=opts.field_name_deleted or DEFAULT_DELETED_FIELD,
        deleted_at=opts.field_name_deleted_at or DEFAULT_DELETED_AT_FIELD,
        deleted_by=opts.field_name_deleted_by or DEFAULT_DELETED_BY_FIELD,
    )


def parse_index_fields(options: OptionsLike = None) -> Dict[str, bool]:
    """Decide which soft-delete fields should be indexed.

    ``indexFields`` may be absent (nothing indexed), ``"all"`` or ``True``
    (everything indexed), or a list of field names (each field indexed iff
    listed).
    """
    opts = SoftDeleteOptions.coerce(options)
    names = parse_field_names(opts)
    selection = opts.index_fields

    index_fields = {name: False for name in names}

    if not selection:
        return index_fields

    if isinstance(selection, str):
        if selection == "all":
            return {name: True for name in names}
        logger.warning("Ignoring unsupported indexFields value %r", selection)
        return index_fields

    if selection is True:
        return {name: True for name in names}

    listed = set(selection)
    return {name: name in listed for name in names}


@dataclass(frozen=True)
class SoftDeleteSchema:
    """Resolved soft-delete descriptor for one augmented collection."""

    names: FieldNames
    declared: Tuple[str, ...]
    field_types: Mapping[str, type]
    index_fields: Mapping[str, bool]
    use_ne_operator: bool = True
    enabled_operations: Tuple[Operation, ...] = ()
    validate_before_delete: bool = True
    validate_before_restore: bool = True
    options: SoftDeleteOptions = field(default_factory=SoftDeleteOptions)

    @property
    def deleted_field(self) -> str:
        return self.names.deleted

    @property
    def deleted_at_field(self) -> str:
        return self.names.deleted_at

    @property
    def deleted_by_field(self) -> str:
        return self.names.deleted_by

    def has_field(self, name: str) -> bool:
        return name in self.declared

    def is_enabled(self, operation: Operation) -> bool:
        return operation in self.enabled_operations

    def index_models(self) -> List[IndexModel]:
        """Index declarations for the declared fields flagged for indexing."""
        return [
            IndexModel([(name, ASCENDING)], name=f"{name}_1")
            for name in self.declared
            if self.index_fields.get(name)
        ]


def build_schema(options: OptionsLike = None) -> SoftDeleteSchema:
    opts = SoftDeleteOptions.coerce(options)
    names = parse_field_names(opts)

    declared = [names.deleted]
    field_types: Dict[str, type] = {names.deleted: bool}
    if opts.deleted_at:
        declared.append(names.deleted_at)
        field_types[names.deleted_at] = datetime
    if opts.deleted_by:
        declared.append(names.deleted_by)
        field_types[names.deleted_by] = opts.deleted_by_type or ObjectId

    schema = SoftDeleteSchema(
        names=names,
        declared=tuple(declared),
        field_types=field_types,
        index_fields=parse_index_fields(opts),
        use_ne_operator=opts.use_ne_operator,
        enabled_operations=parse_override_methods(opts.override_methods),
        validate_before_delete=opts.validate_before_delete,
        validate_before_restore=opts.validate_before_restore,
        options=opts,
    )
    logger.debug(
        "Soft-delete schema resolved: fields=%s operations=%s",
        schema.declared,
        [op.value for op in schema.enabled_operations],
    )
    return schema
