"""Delete and restore transitions.

A document is either active (deleted flag False) or soft-deleted (flag True,
optionally stamped with when and by whom). Both transitions are reversible and
idempotent in outcome.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, MutableMapping, Optional

from softdelete.db.fields import SoftDeleteSchema


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def mark_deleted(
    document: MutableMapping[str, Any],
    schema: SoftDeleteSchema,
    deleted_by: Any = None,
    now: Optional[datetime] = None,
) -> MutableMapping[str, Any]:
    document[schema.deleted_field] = True
    if schema.has_field(schema.deleted_at_field):
        document[schema.deleted_at_field] = now or utc_now()
    if schema.has_field(schema.deleted_by_field):
        # None when no actor is given, so a repeated delete never keeps a stale actor.
        document[schema.deleted_by_field] = deleted_by
    return document


def mark_restored(document: MutableMapping[str, Any], schema: SoftDeleteSchema) -> MutableMapping[str, Any]:
    document[schema.deleted_field] = False
    document.pop(schema.deleted_at_field, None)
    document.pop(schema.deleted_by_field, None)
    return document


def deletion_update(
    schema: SoftDeleteSchema,
    deleted_by: Any = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Update document applying ``mark_deleted`` to every matched document."""
    return {"$set": dict(mark_deleted({}, schema, deleted_by, now))}


def restoration_update(schema: SoftDeleteSchema) -> Dict[str, Any]:
    # The flag is reset rather than unset so restored documents keep it.
    return {
        "$set": {schema.deleted_field: False},
        "$unset": {schema.deleted_at_field: "", schema.deleted_by_field: ""},
    }
