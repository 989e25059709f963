"""Soft deletion for MongoDB collections."""

from softdelete.config import SoftDeleteOptions, load_options_from_env
from softdelete.db import (
    SoftDeleteDocument,
    SoftDeleteModel,
    SoftDeleteSchema,
    Visibility,
    build_schema,
    parse_update_arguments,
    prepare_pipeline,
)
from softdelete.errors import ConfigurationError, DocumentValidationError, InvocationError, SoftDeleteError

__version__ = "1.0.0"

__all__ = [
    "ConfigurationError",
    "DocumentValidationError",
    "InvocationError",
    "SoftDeleteDocument",
    "SoftDeleteError",
    "SoftDeleteModel",
    "SoftDeleteOptions",
    "SoftDeleteSchema",
    "Visibility",
    "build_schema",
    "load_options_from_env",
    "parse_update_arguments",
    "prepare_pipeline",
]
