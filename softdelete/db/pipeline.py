"""Aggregation pipeline handling for soft-deleted documents.

Before an aggregation on an augmented collection runs, ``prepare_pipeline``
looks at the first stage and either prepends an exclusion ``$match`` or, if
the stage carries the ``showAllDocuments`` marker, strips the marker so the
pipeline runs unfiltered. The marker never reaches the server.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, MutableSequence

from softdelete.db.operations import Visibility

logger = logging.getLogger(__name__)

SHOW_ALL_DOCUMENTS = "showAllDocuments"
SHOW_ALL_DOCUMENTS_VALUE = "true"


def visibility_stage(field: str, visibility: Visibility) -> Dict[str, Any]:
    """Build the ``$match`` stage that selects documents for ``visibility``.

    INCLUDE_ALL yields the marker stage, which ``prepare_pipeline`` removes.
    Aggregation predicates always use ``$ne``.
    """
    if visibility is Visibility.ONLY_DELETED:
        return {"$match": {field: {"$ne": False}}}
    if visibility is Visibility.INCLUDE_ALL:
        return {"$match": {SHOW_ALL_DOCUMENTS: SHOW_ALL_DOCUMENTS_VALUE}}
    return {"$match": {field: {"$ne": True}}}


def _first_match(pipeline: MutableSequence[Any]) -> Mapping[str, Any]:
    first = pipeline[0]
    if isinstance(first, Mapping):
        match = first.get("$match")
        if isinstance(match, Mapping):
            return match
    return {}


def prepare_pipeline(pipeline: MutableSequence[Any], field: str) -> MutableSequence[Any]:
    """Mutate ``pipeline`` in place so it respects the deleted flag.

    - An empty pipeline is left alone.
    - A first stage already matching ``{field: {"$ne": False}}`` is left alone.
    - A first stage whose ``$match`` carries ``showAllDocuments: "true"`` loses
      the marker; the stage is dropped if nothing else remains in it.
    - Otherwise an exclusion stage is prepended.
    """
    if not pipeline:
        logger.debug("Empty aggregation pipeline, no soft-delete stage injected")
        return pipeline

    match = _first_match(pipeline)

    current = match.get(field)
    if isinstance(current, Mapping) and current.get("$ne") is False:
        return pipeline

    if match.get(SHOW_ALL_DOCUMENTS) == SHOW_ALL_DOCUMENTS_VALUE:
        replacement = {key: value for key, value in match.items() if key != SHOW_ALL_DOCUMENTS}
        pipeline.pop(0)
        if replacement:
            pipeline.insert(0, {"$match": replacement})
        logger.debug("Stripped %s marker from aggregation pipeline", SHOW_ALL_DOCUMENTS)
        return pipeline

    pipeline.insert(0, visibility_stage(field, Visibility.EXCLUDE_DELETED))
    return pipeline


def build_pipeline(pipeline: Any, field: str, visibility: Visibility) -> List[Any]:
    """Copy the caller's pipeline and prepend the stage for a non-default variant."""
    stages = list(pipeline or [])
    if visibility is not Visibility.EXCLUDE_DELETED:
        stages.insert(0, visibility_stage(field, visibility))
    return stages
