"""Backfill the soft-delete flag on legacy documents.

Documents written before the collection was augmented may lack the deleted
flag. This sets it to False wherever it is missing or null.

Usage:
    python scripts/backfill_deleted_field.py
    python scripts/backfill_deleted_field.py --collection accounts --dry-run
"""

from __future__ import annotations

import argparse
import logging
import sys

from softdelete.db.mongo_client import MongoDBClient

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def backfill_deleted_field(model, dry_run: bool = False) -> int:
    """Set the deleted flag to False where absent. Returns the affected count."""
    field = model.schema.deleted_field
    missing = {field: None}  # matches both null and missing

    affected = model.collection.count_documents(missing)
    logger.info(f"Found {affected} documents without '{field}'")

    if dry_run or affected == 0:
        return affected

    result = model.collection.update_many(missing, {"$set": {field: False}})
    logger.info(f"Backfilled '{field}' on {result.modified_count} documents")
    return int(result.modified_count)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Backfill the soft-delete flag on legacy documents")
    parser.add_argument("--collection", help="Collection name (default: MONGO_COLLECTION_NAME)")
    parser.add_argument("--dry-run", action="store_true", help="Only report how many documents need the flag")
    args = parser.parse_args(argv)

    try:
        model = MongoDBClient().soft_delete_model(args.collection)
        backfill_deleted_field(model, dry_run=args.dry_run)
    except Exception as e:
        logger.error(f"Backfill failed: {e}", exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
