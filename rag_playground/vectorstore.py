#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Утилиты для Milvus / Zilliz Cloud: клиент, создание коллекции, поиск."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from pymilvus import CollectionSchema, MilvusClient

from .config import MilvusConfig

logger = structlog.get_logger(__name__)


def make_milvus_client(cfg: MilvusConfig) -> MilvusClient:
    """Создаёт клиент Milvus по URI и токену (Zilliz Cloud или свой сервер)."""
    if not cfg.uri:
        raise RuntimeError("Milvus URI не указан (переменная окружения ZILLIZ_URI).")
    return MilvusClient(uri=cfg.uri, token=cfg.token or "")


def vector_index_params(
    field_name: str = "vector",
    params: Optional[Dict[str, Any]] = None,
):
    """HNSW-индекс с косинусной метрикой по векторному полю."""
    index_params = MilvusClient.prepare_index_params()
    index_params.add_index(
        field_name=field_name,
        index_type="HNSW",
        metric_type="COSINE",
        params=params or {},
    )
    return index_params


def ensure_collection(
    client: MilvusClient,
    collection_name: str,
    schema: CollectionSchema,
    index_params: Any,
    load: bool = True,
) -> bool:
    """Создаёт коллекцию со схемой и индексом, если её ещё нет.

    Существующая коллекция не трогается (схема не сверяется).
    load=True: новая коллекция сразу загружается в память для поиска.
    Возвращает True, если коллекция была создана.
    """
    if client.has_collection(collection_name=collection_name):
        return False
    client.create_collection(
        collection_name=collection_name,
        schema=schema,
        index_params=index_params,
    )
    if load:
        client.load_collection(collection_name=collection_name)
    logger.info("collection created", collection=collection_name, loaded=load)
    return True


def search_one(
    client: MilvusClient,
    collection_name: str,
    vector: List[float],
    limit: int,
    output_fields: List[str],
) -> List[Dict[str, Any]]:
    """Поиск ближайших по одному вектору-запросу.

    Возвращает плоские словари: первичный ключ, distance и поля сущности.
    """
    result = client.search(
        collection_name=collection_name,
        data=[vector],
        limit=limit,
        output_fields=output_fields,
        search_params={"metric_type": "COSINE"},
    )
    if not result:
        return []
    return [
        {**{k: v for k, v in hit.items() if k != "entity"}, **hit.get("entity", {})}
        for hit in result[0]
    ]
