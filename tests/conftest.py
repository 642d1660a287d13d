import copy
from types import SimpleNamespace

import pytest
from bson import ObjectId

from app.db.mongodb import db


def _matches(doc, query):
    for key, cond in (query or {}).items():
        value = doc.get(key)
        if isinstance(cond, dict) and cond and all(k.startswith("$") for k in cond):
            for op, operand in cond.items():
                if op == "$in" and value not in operand:
                    return False
                if op == "$gte" and not (value is not None and value >= operand):
                    return False
                if op == "$gt" and not (value is not None and value > operand):
                    return False
                if op == "$lte" and not (value is not None and value <= operand):
                    return False
                if op == "$lt" and not (value is not None and value < operand):
                    return False
        elif value != cond:
            return False
    return True


class FakeCursor:
    def __init__(self, docs):
        self.docs = docs

    def sort(self, key, direction=1):
        self.docs = sorted(self.docs, key=lambda d: d.get(key), reverse=direction == -1)
        return self

    async def to_list(self, length=None):
        return self.docs if length is None else self.docs[:length]


class FakeCollection:
    """Just enough of a Motor collection for the services under test."""

    def __init__(self, name):
        self.name = name
        self.docs = []
        self.calls = []
        self.pipelines = []
        self.aggregate_handler = lambda pipeline: []

    def seed(self, *docs):
        for doc in docs:
            doc.setdefault("_id", ObjectId())
            self.docs.append(doc)

    def find(self, query=None, projection=None):
        self.calls.append(("find", query))
        return FakeCursor([copy.deepcopy(d) for d in self.docs if _matches(d, query)])

    async def find_one(self, query=None, projection=None):
        self.calls.append(("find_one", query))
        for doc in self.docs:
            if _matches(doc, query):
                return copy.deepcopy(doc)
        return None

    async def insert_one(self, doc):
        self.calls.append(("insert_one", doc))
        stored = copy.deepcopy(doc)
        stored.setdefault("_id", ObjectId())
        self.docs.append(stored)
        return SimpleNamespace(inserted_id=stored["_id"], acknowledged=True)

    async def update_one(self, query, update):
        self.calls.append(("update_one", query))
        for doc in self.docs:
            if _matches(doc, query):
                doc.update(update.get("$set", {}))
                return SimpleNamespace(matched_count=1, modified_count=1, acknowledged=True)
        return SimpleNamespace(matched_count=0, modified_count=0, acknowledged=True)

    def aggregate(self, pipeline):
        self.calls.append(("aggregate", pipeline))
        self.pipelines.append(pipeline)
        return FakeCursor(self.aggregate_handler(pipeline))


class FakeDatabase:
    def __init__(self):
        self.collections = {}

    def __getattr__(self, name):
        if name.startswith("__"):
            raise AttributeError(name)
        return self[name]

    def __getitem__(self, name):
        if name not in self.collections:
            self.collections[name] = FakeCollection(name)
        return self.collections[name]

    def total_calls(self):
        return sum(len(c.calls) for c in self.collections.values())


@pytest.fixture
def fake_db(monkeypatch):
    database = FakeDatabase()
    monkeypatch.setattr(db, "db", database)
    return database
