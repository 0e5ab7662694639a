#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from concurrent.futures import ThreadPoolExecutor
from typing import Any, List

import structlog
from llama_index.core.base.embeddings.base import BaseEmbedding
from openai import OpenAI

from .config import EmbeddingConfig

logger = structlog.get_logger(__name__)


class OpenAICompatEmbedding(BaseEmbedding):
    """Адаптер LlamaIndex BaseEmbedding для OpenAI-совместимого /embeddings.

    Размерность фиксируется параметром dimensions, чтобы совпадать со схемой
    коллекции Milvus. Используется и напрямую (загрузка книги/дневника),
    и как embed_model для VectorStoreIndex.
    """
    def __init__(
        self,
        base_url: str,
        api_key: str,
        model_name: str = "text-embedding-v3",
        dimensions: int = 1024,
        max_workers: int = 8,
        **kwargs: Any,
    ) -> None:
        super().__init__(model_name=model_name, **kwargs)
        self._client = OpenAI(base_url=base_url, api_key=api_key)
        self._dimensions = int(dimensions)
        self._max_workers = max(1, int(max_workers))

    @classmethod
    def from_config(cls, cfg: EmbeddingConfig) -> "OpenAICompatEmbedding":
        return cls(
            base_url=cfg.base_url,
            api_key=cfg.api_key,
            model_name=cfg.model_name,
            dimensions=cfg.dimensions,
            max_workers=cfg.max_workers,
        )

    @classmethod
    def class_name(cls) -> str:
        return "OpenAICompatEmbedding"

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def _embed(self, text: str) -> List[float]:
        resp = self._client.embeddings.create(
            model=self.model_name,
            input=text,
            dimensions=self._dimensions,
            encoding_format="float",
        )
        return list(resp.data[0].embedding)

    def _get_query_embedding(self, query: str) -> List[float]:
        return self._embed(query)

    def _get_text_embedding(self, text: str) -> List[float]:
        return self._embed(text)

    async def _aget_query_embedding(self, query: str) -> List[float]:
        return self._embed(query)

    def embed_concurrently(self, texts: List[str]) -> List[List[float]]:
        """Считает эмбеддинги для списка текстов параллельно.

        Порядок результата совпадает с порядком входа. Ошибка любого
        запроса пробрасывается наружу.
        """
        if not texts:
            return []
        workers = min(self._max_workers, len(texts))
        logger.debug("embedding batch", size=len(texts), workers=workers)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(self._embed, texts))
