"""Soft-delete augmentation of a pymongo collection.

``SoftDeleteModel`` wraps a collection and exposes, for every augmentable
operation, three variants:

- ``find(...)``: excludes soft-deleted documents unless ``withDeleted`` is set
- ``find_deleted(...)``: only soft-deleted documents
- ``find_with_deleted(...)``: no soft-delete filtering

The ``_deleted`` / ``_with_deleted`` variants exist only for operations enabled
by ``overrideMethods``; default variants of other operations delegate to the
collection untouched. Lifecycle operations (``delete``, ``delete_by_id``,
``restore``) and document hydration live here as well.

Usage:
    model = SoftDeleteModel(db["accounts"], {"overrideMethods": "all", "deletedAt": True})
    model.delete({"status": "void"})
    active = list(model.find({"status": "open"}))
    purged = model.count_documents_deleted({})
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Type

from pydantic import BaseModel, ValidationError

from softdelete.config import SoftDeleteOptions, load_options_from_env
from softdelete.db.arguments import parse_update_arguments
from softdelete.db.document import SoftDeleteDocument
from softdelete.db.fields import OptionsLike, SoftDeleteSchema, build_schema
from softdelete.db.filters import apply_soft_delete_filter, soft_delete_filter
from softdelete.db.lifecycle import deletion_update, restoration_update
from softdelete.db.operations import OPERATIONS, Operation, OperationKind, OperationSpec, Visibility
from softdelete.db.pipeline import build_pipeline, prepare_pipeline
from softdelete.errors import DocumentValidationError, InvocationError
from softdelete.utils.callbacks import complete

logger = logging.getLogger(__name__)

_MISSING = object()


def _pop_with_deleted(options: Dict[str, Any]) -> bool:
    flag = options.pop("withDeleted", None)
    snake = options.pop("with_deleted", None)
    return flag is True or snake is True


def _pop_callback(args: List[Any], kwargs: Dict[str, Any]) -> Optional[Callable[..., Any]]:
    callback = kwargs.pop("callback", None)
    if callback is None and args and callable(args[-1]):
        callback = args.pop()
    return callback


class _Variant:
    """Class attribute resolving to one visibility variant of an operation."""

    def __init__(self, operation: Operation, visibility: Visibility):
        self.operation = operation
        self.visibility = visibility
        self.name = OPERATIONS[operation].variant_name(visibility)

    def __set_name__(self, owner, name):
        self.name = name

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        if self.visibility is not Visibility.EXCLUDE_DELETED and not instance.schema.is_enabled(self.operation):
            raise AttributeError(
                f"{type(instance).__name__!r} object has no attribute {self.name!r} "
                f"({self.operation.value} is not in overrideMethods)"
            )

        operation, visibility = self.operation, self.visibility

        def call(*args, **kwargs):
            return instance.run(operation, visibility, *args, **kwargs)

        call.__name__ = self.name
        call.__qualname__ = f"{type(instance).__name__}.{self.name}"
        return call


def _variants(operation: Operation) -> Tuple[_Variant, _Variant, _Variant]:
    return (
        _Variant(operation, Visibility.EXCLUDE_DELETED),
        _Variant(operation, Visibility.ONLY_DELETED),
        _Variant(operation, Visibility.INCLUDE_ALL),
    )


class SoftDeleteModel:
    """A collection whose reads, updates and aggregations respect soft deletion."""

    count, count_deleted, count_with_deleted = _variants(Operation.COUNT)
    count_documents, count_documents_deleted, count_documents_with_deleted = _variants(Operation.COUNT_DOCUMENTS)
    find, find_deleted, find_with_deleted = _variants(Operation.FIND)
    find_one, find_one_deleted, find_one_with_deleted = _variants(Operation.FIND_ONE)
    find_one_and_update, find_one_and_update_deleted, find_one_and_update_with_deleted = _variants(
        Operation.FIND_ONE_AND_UPDATE
    )
    update, update_deleted, update_with_deleted = _variants(Operation.UPDATE)
    update_one, update_one_deleted, update_one_with_deleted = _variants(Operation.UPDATE_ONE)
    update_many, update_many_deleted, update_many_with_deleted = _variants(Operation.UPDATE_MANY)
    aggregate, aggregate_deleted, aggregate_with_deleted = _variants(Operation.AGGREGATE)

    def __init__(
        self,
        collection: Any,
        options: OptionsLike = None,
        validator: Optional[Type[BaseModel]] = None,
    ):
        self.collection = collection
        self.schema: SoftDeleteSchema = build_schema(options)
        self.validator = validator

    @classmethod
    def from_env(cls, collection: Any, validator: Optional[Type[BaseModel]] = None, **overrides: Any):
        """Augment ``collection`` with options read from the environment."""
        return cls(collection, load_options_from_env(**overrides), validator=validator)

    @property
    def options(self) -> SoftDeleteOptions:
        return self.schema.options

    def __repr__(self) -> str:
        name = getattr(self.collection, "name", type(self.collection).__name__)
        return f"<{type(self).__name__} collection={name!r} operations={[op.value for op in self.schema.enabled_operations]}>"

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def soft_delete_filter(self, visibility: Visibility = Visibility.EXCLUDE_DELETED) -> Dict[str, Any]:
        """Bare predicate for ``visibility``, for use with raw collection calls."""
        return soft_delete_filter(self.schema.deleted_field, visibility, self.schema.use_ne_operator)

    def apply_soft_delete_filter(
        self,
        conditions: Optional[Mapping[str, Any]] = None,
        visibility: Visibility = Visibility.EXCLUDE_DELETED,
    ) -> Dict[str, Any]:
        return apply_soft_delete_filter(
            conditions, self.schema.deleted_field, visibility, self.schema.use_ne_operator
        )

    # ------------------------------------------------------------------
    # Augmented operations
    # ------------------------------------------------------------------

    def run(self, operation: Operation, visibility: Visibility, *args: Any, **kwargs: Any) -> Any:
        """Run ``operation`` with the predicate for ``visibility`` injected."""
        spec = OPERATIONS[operation]
        augmented = self.schema.is_enabled(operation)
        if not augmented:
            visibility = Visibility.INCLUDE_ALL

        if spec.kind is OperationKind.READ:
            return self._run_read(spec, visibility, list(args), kwargs)
        if spec.kind is OperationKind.WRITE:
            return self._run_write(spec, visibility, args, kwargs)
        return self._run_aggregate(visibility, augmented, list(args), kwargs)

    def _run_read(self, spec: OperationSpec, visibility: Visibility, args: List[Any], kwargs: Dict[str, Any]) -> Any:
        callback = _pop_callback(args, kwargs)
        positional = 3 if spec.takes_projection else 2
        if len(args) > positional:
            raise InvocationError(f"{spec.attribute}() takes at most {positional} positional arguments")

        conditions = args[0] if args else kwargs.pop("filter", None)
        projection = None
        if spec.takes_projection:
            projection = args[1] if len(args) > 1 else kwargs.pop("projection", None)
        raw_options = args[positional - 1] if len(args) == positional else None

        options: Dict[str, Any] = dict(raw_options or {})
        options.update(kwargs)
        if _pop_with_deleted(options) and visibility is Visibility.EXCLUDE_DELETED:
            visibility = Visibility.INCLUDE_ALL

        query = apply_soft_delete_filter(
            conditions, self.schema.deleted_field, visibility, self.schema.use_ne_operator
        )
        logger.debug("%s on %s with filter %s", spec.store_method, visibility.value, query)

        store = getattr(self.collection, spec.store_method)
        if projection is not None:
            return complete(callback, lambda: store(query, projection, **options))
        return complete(callback, lambda: store(query, **options))

    def _run_write(self, spec: OperationSpec, visibility: Visibility, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Any:
        callback = kwargs.pop("callback", None)
        parsed = parse_update_arguments(*args)
        callback = callback or parsed.callback

        options: Dict[str, Any] = dict(parsed.options or {})
        options.update(kwargs)
        if _pop_with_deleted(options) and visibility is Visibility.EXCLUDE_DELETED:
            visibility = Visibility.INCLUDE_ALL
        multi = options.pop("multi", False)

        method = spec.store_method
        if spec.operation is Operation.UPDATE and multi:
            method = "update_many"

        conditions = apply_soft_delete_filter(
            parsed.conditions, self.schema.deleted_field, visibility, self.schema.use_ne_operator
        )
        logger.debug("%s on %s with filter %s", method, visibility.value, conditions)

        store = getattr(self.collection, method)
        return complete(callback, lambda: store(conditions, parsed.document, **options))

    def _run_aggregate(self, visibility: Visibility, augmented: bool, args: List[Any], kwargs: Dict[str, Any]) -> Any:
        callback = _pop_callback(args, kwargs)
        if len(args) > 2:
            raise InvocationError("aggregate() takes at most 2 positional arguments")

        pipeline = args[0] if args else kwargs.pop("pipeline", None)
        options: Dict[str, Any] = dict(args[1] or {}) if len(args) > 1 else {}
        options.update(kwargs)

        if augmented:
            stages = build_pipeline(pipeline, self.schema.deleted_field, visibility)
            prepare_pipeline(stages, self.schema.deleted_field)
        else:
            stages = list(pipeline or [])

        return complete(callback, lambda: self.collection.aggregate(stages, **options))

    # ------------------------------------------------------------------
    # Bulk lifecycle
    # ------------------------------------------------------------------

    def _update_documents_by_query(self, conditions: Mapping[str, Any], update: Dict[str, Any], action: str) -> Any:
        # Bulk transitions must reach documents in either state.
        if hasattr(self, "update_many_with_deleted"):
            result = self.update_many_with_deleted(conditions, update, {"multi": True})
        else:
            result = self.update_many(conditions, update, {"multi": True})
        logger.info(
            "Soft %s matched=%s modified=%s",
            action,
            getattr(result, "matched_count", None),
            getattr(result, "modified_count", None),
        )
        return result

    def delete(self, conditions: Any = None, deleted_by: Any = None, callback: Optional[Callable[..., Any]] = None) -> Any:
        """Soft-delete every document matching ``conditions``.

        Already-deleted documents are matched too; their timestamp and
        attribution are overwritten (attribution becomes None without an actor).
        """
        if callable(deleted_by):
            callback, deleted_by = deleted_by, None
        elif callable(conditions):
            callback, conditions, deleted_by = conditions, {}, None

        update = deletion_update(self.schema, deleted_by)
        return complete(callback, lambda: self._update_documents_by_query(conditions or {}, update, "delete"))

    def delete_by_id(self, document_id: Any = _MISSING, deleted_by: Any = None, callback: Optional[Callable[..., Any]] = None) -> Any:
        if document_id is _MISSING or callable(document_id):
            raise InvocationError("First argument is mandatory and must not be a function.")
        return self.delete({"_id": document_id}, deleted_by, callback)

    def restore(self, conditions: Any = None, callback: Optional[Callable[..., Any]] = None) -> Any:
        """Restore every document matching ``conditions``."""
        if callable(conditions):
            callback, conditions = conditions, {}

        update = restoration_update(self.schema)
        return complete(callback, lambda: self._update_documents_by_query(conditions or {}, update, "restore"))

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def create(self, data: Optional[Mapping[str, Any]] = None) -> SoftDeleteDocument:
        """New, unsaved document bound to this model."""
        return SoftDeleteDocument(self, data)

    def hydrate(self, raw: Optional[Mapping[str, Any]]) -> Optional[SoftDeleteDocument]:
        """Bind a document loaded from the store to this model."""
        if raw is None:
            return None
        return SoftDeleteDocument(self, raw)

    def validate(self, document: Mapping[str, Any]) -> None:
        errors = []
        for name, expected in self.schema.field_types.items():
            value = document.get(name)
            if value is not None and not isinstance(value, expected):
                errors.append(f"{name}: expected {expected.__name__}, got {type(value).__name__}")
        if errors:
            raise DocumentValidationError("; ".join(errors), errors)

        if self.validator is not None:
            try:
                self.validator.model_validate(dict(document))
            except ValidationError as exc:
                raise DocumentValidationError(str(exc), exc.errors()) from exc

    def save_document(
        self,
        document: SoftDeleteDocument,
        validate_before_save: bool = True,
        callback: Optional[Callable[..., Any]] = None,
    ) -> Any:
        return complete(callback, lambda: self._save(document, validate_before_save))

    def _save(self, document: SoftDeleteDocument, validate_before_save: bool) -> SoftDeleteDocument:
        deleted_field = self.schema.deleted_field
        if not document.get(deleted_field):
            document[deleted_field] = False

        if validate_before_save:
            self.validate(document)

        data = dict(document)
        if "_id" in data:
            self.collection.replace_one({"_id": data["_id"]}, data, upsert=True)
        else:
            result = self.collection.insert_one(data)
            document["_id"] = result.inserted_id
        return document

    def ensure_indexes(self) -> List[str]:
        """Create the indexes requested by ``indexFields``."""
        models = self.schema.index_models()
        if not models:
            return []
        return self.collection.create_indexes(models)
