"""Soft-delete configuration.

Options are supplied once, when a collection is augmented, either as a mapping
using the documented option keys or via environment variables:

    SOFT_DELETE_FIELD_DELETED: name of the deleted flag (default: deleted)
    SOFT_DELETE_FIELD_DELETED_AT: name of the deletion timestamp (default: deletedAt)
    SOFT_DELETE_FIELD_DELETED_BY: name of the attribution field (default: deletedBy)
    SOFT_DELETE_DELETED_AT: "true" to declare the timestamp field
    SOFT_DELETE_DELETED_BY: "true" to declare the attribution field
    SOFT_DELETE_INDEX_FIELDS: "all", "true" or a comma separated field list
    SOFT_DELETE_USE_NE_OPERATOR: "false" to express exclusion as equality
    SOFT_DELETE_OVERRIDE_METHODS: "all", "true" or a comma separated method list
    SOFT_DELETE_VALIDATE_BEFORE_DELETE: "false" to skip validation on delete
    SOFT_DELETE_VALIDATE_BEFORE_RESTORE: "false" to skip validation on restore
"""

from __future__ import annotations

import logging
import os
from typing import Any, List, Mapping, Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from softdelete.errors import ConfigurationError

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}

FieldSelection = Union[bool, str, List[str], None]


class SoftDeleteOptions(BaseModel):
    """Options accepted when a collection is augmented with soft deletion."""

    field_name_deleted: Optional[str] = Field(None, alias="fieldNameDeleted")
    field_name_deleted_at: Optional[str] = Field(None, alias="fieldNameDeletedAt")
    field_name_deleted_by: Optional[str] = Field(None, alias="fieldNameDeletedBy")
    deleted_at: bool = Field(False, alias="deletedAt")
    deleted_by: bool = Field(False, alias="deletedBy")
    deleted_by_type: Optional[Any] = Field(None, alias="deletedByType")
    index_fields: FieldSelection = Field(None, alias="indexFields")
    use_ne_operator: bool = Field(True, alias="use$neOperator")
    override_methods: FieldSelection = Field(None, alias="overrideMethods")
    validate_before_delete: bool = Field(True, alias="validateBeforeDelete")
    validate_before_restore: bool = Field(True, alias="validateBeforeRestore")

    class Config:
        populate_by_name = True
        frozen = True
        arbitrary_types_allowed = True

    @field_validator("deleted_by_type")
    @classmethod
    def _check_deleted_by_type(cls, value: Any) -> Any:
        if value is not None and not isinstance(value, type):
            raise ValueError(f"deletedByType must be a type, got {value!r}")
        return value

    @field_validator("use_ne_operator", mode="before")
    @classmethod
    def _strict_ne_operator(cls, value: Any) -> bool:
        # Only a real boolean changes the predicate style.
        if isinstance(value, bool):
            return value
        if value is not None:
            logger.warning("Ignoring non-boolean use$neOperator value %r", value)
        return True

    @classmethod
    def coerce(cls, options: Union["SoftDeleteOptions", Mapping[str, Any], None]) -> "SoftDeleteOptions":
        """Build options from a mapping, passing existing instances through."""
        if isinstance(options, cls):
            return options
        raw = dict(options or {})
        known = set(cls.model_fields)
        known.update(info.alias for info in cls.model_fields.values() if info.alias)
        for key in raw:
            if key not in known:
                logger.warning("Ignoring unknown soft-delete option %r", key)
        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid soft-delete options: {exc}") from exc


def _env_bool(name: str) -> Optional[bool]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    text = raw.strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


def _env_selection(name: str) -> FieldSelection:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    text = raw.strip()
    if text.lower() == "all":
        return "all"
    if text.lower() in _TRUE_VALUES:
        return True
    if text.lower() in _FALSE_VALUES:
        return False
    return [part.strip() for part in text.split(",") if part.strip()]


def load_options_from_env(**overrides: Any) -> SoftDeleteOptions:
    """Build options from the environment (and a .env file, if present).

    Keyword overrides, keyed by option key or Python field name, win over
    environment values.
    """
    load_dotenv()

    env_values = {
        "fieldNameDeleted": os.getenv("SOFT_DELETE_FIELD_DELETED") or None,
        "fieldNameDeletedAt": os.getenv("SOFT_DELETE_FIELD_DELETED_AT") or None,
        "fieldNameDeletedBy": os.getenv("SOFT_DELETE_FIELD_DELETED_BY") or None,
        "deletedAt": _env_bool("SOFT_DELETE_DELETED_AT"),
        "deletedBy": _env_bool("SOFT_DELETE_DELETED_BY"),
        "indexFields": _env_selection("SOFT_DELETE_INDEX_FIELDS"),
        "use$neOperator": _env_bool("SOFT_DELETE_USE_NE_OPERATOR"),
        "overrideMethods": _env_selection("SOFT_DELETE_OVERRIDE_METHODS"),
        "validateBeforeDelete": _env_bool("SOFT_DELETE_VALIDATE_BEFORE_DELETE"),
        "validateBeforeRestore": _env_bool("SOFT_DELETE_VALIDATE_BEFORE_RESTORE"),
    }
    values = {key: value for key, value in env_values.items() if value is not None}

    # Normalize overrides to option keys so they replace env values of either spelling.
    fields = SoftDeleteOptions.model_fields
    for key, value in overrides.items():
        alias = fields[key].alias if key in fields else key
        values[alias] = value

    return SoftDeleteOptions.coerce(values)
