from __future__ import annotations

import copy
from itertools import count
from typing import Any, Dict, List, Optional

import pytest

from softdelete.db.model import SoftDeleteModel


def _matches(doc: Dict[str, Any], query: Dict[str, Any]) -> bool:
    for key, cond in query.items():
        if key == "$or":
            if not any(_matches(doc, sub) for sub in cond):
                return False
            continue
        if key == "$and":
            if not all(_matches(doc, sub) for sub in cond):
                return False
            continue

        value = doc.get(key)
        if isinstance(cond, dict) and any(op.startswith("$") for op in cond):
            if "$exists" in cond:
                if bool(cond["$exists"]) != (key in doc):
                    return False
            if "$ne" in cond:
                if value == cond["$ne"]:
                    return False
            if "$in" in cond:
                if value not in cond["$in"]:
                    return False
        elif value != cond:
            return False
    return True


def _as_filter(filter) -> Dict[str, Any]:
    if filter is None:
        return {}
    if isinstance(filter, dict):
        return filter
    return {"_id": filter}


class _FakeUpdateResult:
    def __init__(self, matched_count: int, modified_count: int, upserted_id=None):
        self.matched_count = matched_count
        self.modified_count = modified_count
        self.upserted_id = upserted_id


class _FakeInsertResult:
    def __init__(self, inserted_id):
        self.inserted_id = inserted_id


class _FakeCollection:
    """In-memory stand-in for a pymongo collection, recording every call."""

    name = "fake"

    def __init__(self, docs: Optional[List[Dict[str, Any]]] = None):
        self.docs = docs if docs is not None else []
        self.calls: List[tuple] = []
        self._ids = count(1000)

    def _record(self, method: str, *args, **kwargs):
        self.calls.append((method, copy.deepcopy(args), kwargs))

    def last_call(self, method: str):
        for call in reversed(self.calls):
            if call[0] == method:
                return call
        raise AssertionError(f"{method} was never called")

    def find(self, filter=None, projection=None, **kwargs):
        self._record("find", filter, projection, **kwargs)
        return [copy.deepcopy(d) for d in self.docs if _matches(d, _as_filter(filter))]

    def find_one(self, filter=None, projection=None, **kwargs):
        self._record("find_one", filter, projection, **kwargs)
        for d in self.docs:
            if _matches(d, _as_filter(filter)):
                return copy.deepcopy(d)
        return None

    def count_documents(self, filter, **kwargs):
        self._record("count_documents", filter, **kwargs)
        return sum(1 for d in self.docs if _matches(d, filter))

    @staticmethod
    def _apply(doc: Dict[str, Any], update: Dict[str, Any]) -> bool:
        before = copy.deepcopy(doc)
        for k, v in (update.get("$set") or {}).items():
            doc[k] = v
        for k in (update.get("$unset") or {}):
            doc.pop(k, None)
        return doc != before

    def _update(self, filter, update, limit: Optional[int], upsert: bool = False):
        if update is None:
            raise TypeError("update must be an instance of dict")
        matched = modified = 0
        for d in self.docs:
            if limit is not None and matched >= limit:
                break
            if _matches(d, filter):
                matched += 1
                if self._apply(d, update):
                    modified += 1
        upserted_id = None
        if upsert and matched == 0:
            new_doc = {k: v for k, v in filter.items() if not k.startswith("$") and not isinstance(v, dict)}
            new_doc.setdefault("_id", next(self._ids))
            self._apply(new_doc, update)
            self.docs.append(new_doc)
            upserted_id = new_doc["_id"]
        return _FakeUpdateResult(matched, modified, upserted_id)

    def update_one(self, filter, update, upsert=False, **kwargs):
        self._record("update_one", filter, update, upsert=upsert, **kwargs)
        return self._update(filter, update, limit=1, upsert=upsert)

    def update_many(self, filter, update, upsert=False, **kwargs):
        self._record("update_many", filter, update, upsert=upsert, **kwargs)
        return self._update(filter, update, limit=None, upsert=upsert)

    def find_one_and_update(self, filter, update, **kwargs):
        self._record("find_one_and_update", filter, update, **kwargs)
        for d in self.docs:
            if _matches(d, filter):
                before = copy.deepcopy(d)
                self._apply(d, update)
                return before
        return None

    def aggregate(self, pipeline, **kwargs):
        self._record("aggregate", pipeline, **kwargs)
        rows = [copy.deepcopy(d) for d in self.docs]
        for stage in pipeline:
            if "$match" in stage:
                rows = [d for d in rows if _matches(d, stage["$match"])]
        return rows

    def insert_one(self, document, **kwargs):
        self._record("insert_one", document, **kwargs)
        stored = copy.deepcopy(document)
        stored.setdefault("_id", next(self._ids))
        self.docs.append(stored)
        return _FakeInsertResult(stored["_id"])

    def replace_one(self, filter, replacement, upsert=False, **kwargs):
        self._record("replace_one", filter, replacement, upsert=upsert, **kwargs)
        for i, d in enumerate(self.docs):
            if _matches(d, filter):
                self.docs[i] = copy.deepcopy(replacement)
                return _FakeUpdateResult(1, 1)
        if upsert:
            self.docs.append(copy.deepcopy(replacement))
        return _FakeUpdateResult(0, 0, replacement.get("_id") if upsert else None)

    def create_indexes(self, indexes, **kwargs):
        self.calls.append(("create_indexes", (indexes,), kwargs))
        return [index.document["name"] for index in indexes]


@pytest.fixture
def seeded_docs() -> List[Dict[str, Any]]:
    return [
        {"_id": 1, "name": "alpha", "deleted": False},
        {"_id": 2, "name": "beta", "deleted": True},
        {"_id": 3, "name": "gamma", "deleted": False},
        {"_id": 4, "name": "delta", "deleted": True},
    ]


@pytest.fixture
def fake_collection(seeded_docs) -> _FakeCollection:
    return _FakeCollection(seeded_docs)


@pytest.fixture
def make_model(fake_collection):
    def _make(options=None, **kwargs) -> SoftDeleteModel:
        return SoftDeleteModel(fake_collection, options, **kwargs)

    return _make
