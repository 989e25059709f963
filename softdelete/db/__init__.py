from softdelete.db.arguments import UpdateArguments, parse_update_arguments
from softdelete.db.document import SoftDeleteDocument
from softdelete.db.fields import FieldNames, SoftDeleteSchema, build_schema, parse_field_names, parse_index_fields
from softdelete.db.filters import apply_soft_delete_filter, soft_delete_filter
from softdelete.db.model import SoftDeleteModel
from softdelete.db.operations import OPERATIONS, Operation, OperationKind, Visibility, parse_override_methods
from softdelete.db.pipeline import SHOW_ALL_DOCUMENTS, prepare_pipeline, visibility_stage

__all__ = [
    "FieldNames",
    "OPERATIONS",
    "Operation",
    "OperationKind",
    "SHOW_ALL_DOCUMENTS",
    "SoftDeleteDocument",
    "SoftDeleteModel",
    "SoftDeleteSchema",
    "UpdateArguments",
    "Visibility",
    "apply_soft_delete_filter",
    "build_schema",
    "parse_field_names",
    "parse_index_fields",
    "parse_override_methods",
    "parse_update_arguments",
    "prepare_pipeline",
    "soft_delete_filter",
    "visibility_stage",
]
