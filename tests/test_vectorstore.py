"""
Тесты утилит Milvus (клиент подменён моком).

Запуск:
  pytest -q tests/test_vectorstore.py
"""

from typing import Any, Dict, List

import pytest

import rag_playground.vectorstore as vs_mod
from rag_playground.config import MilvusConfig
from rag_playground.vectorstore import ensure_collection, make_milvus_client, search_one


class _DummyMilvus:
    def __init__(self, existing=(), search_result=None) -> None:
        self.existing = set(existing)
        self.search_result = search_result if search_result is not None else []
        self.created: List[Dict[str, Any]] = []
        self.loaded: List[str] = []
        self.search_calls: List[Dict[str, Any]] = []

    def has_collection(self, collection_name: str) -> bool:
        return collection_name in self.existing

    def create_collection(self, collection_name: str, schema: Any, index_params: Any) -> None:
        self.created.append({"name": collection_name, "schema": schema, "index_params": index_params})
        self.existing.add(collection_name)

    def load_collection(self, collection_name: str) -> None:
        self.loaded.append(collection_name)

    def search(self, **kwargs: Any):
        self.search_calls.append(kwargs)
        return self.search_result


def test_client_requires_uri() -> None:
    with pytest.raises(RuntimeError):
        make_milvus_client(MilvusConfig(uri=""))


def test_ensure_collection_creates_and_loads() -> None:
    client = _DummyMilvus()
    assert ensure_collection(client, "book", schema="S", index_params="I") is True
    assert client.created == [{"name": "book", "schema": "S", "index_params": "I"}]
    assert client.loaded == ["book"]


def test_ensure_collection_keeps_existing() -> None:
    client = _DummyMilvus(existing={"book"})
    assert ensure_collection(client, "book", schema="S", index_params="I") is False
    assert client.created == [] and client.loaded == []


def test_search_one_flattens_hits() -> None:
    client = _DummyMilvus(search_result=[[
        {"id": "1-1-0", "distance": 0.91, "entity": {"chapter_name": "第一章 - 片段1"}},
        {"id": "1-2-0", "distance": 0.55, "entity": {"chapter_name": "第二章 - 片段1"}},
    ]])
    hits = search_one(client, "book", [0.1, 0.2], limit=2, output_fields=["chapter_name"])
    assert hits == [
        {"id": "1-1-0", "chapter_name": "第一章 - 片段1", "distance": 0.91},
        {"id": "1-2-0", "chapter_name": "第二章 - 片段1", "distance": 0.55},
    ]
    call = client.search_calls[0]
    assert call["data"] == [[0.1, 0.2]]
    assert call["limit"] == 2
    assert call["search_params"] == {"metric_type": "COSINE"}


def test_search_one_empty() -> None:
    assert search_one(_DummyMilvus(search_result=[]), "book", [0.0], 2, ["id"]) == []
    assert search_one(_DummyMilvus(search_result=[[]]), "book", [0.0], 2, ["id"]) == []


def test_client_gets_uri_and_token(monkeypatch) -> None:
    seen = {}

    class _DummyClient:
        def __init__(self, **kwargs: Any) -> None:
            seen.update(kwargs)

    monkeypatch.setattr(vs_mod, "MilvusClient", _DummyClient)
    make_milvus_client(MilvusConfig(uri="https://example.zilliz", token="tok"))
    assert seen == {"uri": "https://example.zilliz", "token": "tok"}
    make_milvus_client(MilvusConfig(uri="http://localhost:19530"))
    assert seen["token"] == ""


def test_ensure_collection_without_load() -> None:
    client = _DummyMilvus()
    assert ensure_collection(client, "diary", schema="S", index_params="I", load=False) is True
    assert len(client.created) == 1
    assert client.loaded == []


def test_search_one_keeps_primary_key_missing_from_entity() -> None:
    client = _DummyMilvus(search_result=[[
        {"id": "diary_003", "distance": 0.8, "entity": {"content": "红太狼又用平底锅敲我脑袋"}},
    ]])
    hits = search_one(client, "diary", [0.5], limit=1, output_fields=["content"])
    assert hits[0]["id"] == "diary_003"
    assert hits[0]["distance"] == 0.8
    assert hits[0]["content"].startswith("红太狼")
