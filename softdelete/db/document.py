"""Documents bound to a soft-delete model."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional

from softdelete.db.lifecycle import mark_deleted, mark_restored

if TYPE_CHECKING:
    from softdelete.db.model import SoftDeleteModel


class SoftDeleteDocument(dict):
    """A stored document that knows how to save, delete and restore itself."""

    def __init__(self, model: "SoftDeleteModel", data: Optional[Mapping[str, Any]] = None):
        super().__init__(data or {})
        self._model = model

    @property
    def model(self) -> "SoftDeleteModel":
        return self._model

    def is_deleted(self) -> bool:
        return self.get(self._model.schema.deleted_field) is True

    def save(self, validate_before_save: bool = True, callback: Optional[Callable[..., Any]] = None) -> Any:
        """Persist the document (insert when new, replace otherwise)."""
        return self._model.save_document(self, validate_before_save, callback)

    def delete(self, deleted_by: Any = None, callback: Optional[Callable[..., Any]] = None) -> Any:
        """Flag the document deleted, stamp declared fields and save it."""
        if callable(deleted_by):
            callback, deleted_by = deleted_by, None

        schema = self._model.schema
        mark_deleted(self, schema, deleted_by)
        return self.save(validate_before_save=schema.validate_before_delete, callback=callback)

    def restore(self, callback: Optional[Callable[..., Any]] = None) -> Any:
        schema = self._model.schema
        mark_restored(self, schema)
        return self.save(validate_before_save=schema.validate_before_restore, callback=callback)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict.__repr__(self)})"
