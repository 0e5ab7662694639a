#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import json
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

import structlog
from pymilvus import DataType, MilvusClient

from .config import AppConfig, DiaryConfig
from .embeddings import OpenAICompatEmbedding
from .llm import OpenAIChatLLM
from .vectorstore import ensure_collection, make_milvus_client, search_one, vector_index_params

logger = structlog.get_logger(__name__)

DIARY_FIELDS = ["id", "content", "date", "mood", "tags"]
CONTEXT_SEPARATOR = "\n\n━━━━━\n\n"

DIARY_PROMPT = """你是一个温暖贴心的 AI 日记助手。基于用户的日记内容回答问题，用亲切自然的语言。

请根据以下日记内容回答问题：
{context}

用户问题: {query}

回答要求：
1. 如果日记中有相关信息，请结合日记内容给出详细、温暖的回答
2. 可以总结多篇日记的内容，找出共同点或趋势
3. 如果日记中没有相关信息，请温和地告知用户
4. 用第一人称"你"来称呼日记的作者
5. 回答要有同理心，让用户感到被理解和关心

AI 助手的回答:"""


@dataclass
class DiaryEntry:
    """Запись дневника."""
    id: str
    content: str
    date: str
    mood: str
    tags: List[str] = field(default_factory=list)


# Дневник Хуэй Тай Лана («Весёлый козлик и Большой серый волк»)
SAMPLE_ENTRIES: List[DiaryEntry] = [
    DiaryEntry(
        id="diary_001",
        content="今天发明了吸羊机，本来想一口气把羊村的羊全吸进狼堡，结果喜羊羊把管道调了方向，我和红太狼的平底锅一起被吸进去了。唉，我一定会回来的！",
        date="2026-01-10",
        mood="frustrated",
        tags=["发明", "抓羊", "喜羊羊"],
    ),
    DiaryEntry(
        id="diary_002",
        content="扮成羊混进羊村，以为这次稳了。没想到喜羊羊请我吃超级辣草，辣得现出原形，被捆起来扔出羊村。在空中飞的时候我又喊了那句：我一定会回来的！",
        date="2026-01-11",
        mood="angry",
        tags=["伪装", "羊村", "喜羊羊"],
    ),
    DiaryEntry(
        id="diary_003",
        content="红太狼又用平底锅敲我脑袋，骂我没用的东西。我也没办法啊，喜羊羊太聪明了。不过没关系，我灰太狼不会放弃的，明天再想新办法抓羊。",
        date="2026-01-12",
        mood="sad",
        tags=["红太狼", "平底锅", "抓羊"],
    ),
    DiaryEntry(
        id="diary_004",
        content="在狼堡里捣鼓新发明，想造一台自动抓羊机。要是能抓到羊，红太狼就不会老拿平底锅揍我了。小羊们等着，我灰太狼一定会回来的！",
        date="2026-01-12",
        mood="hopeful",
        tags=["发明", "狼堡", "抓羊"],
    ),
    DiaryEntry(
        id="diary_005",
        content="今天差点抓到懒羊羊，他在村外草地上睡着了。可惜喜羊羊又及时赶到，把懒羊羊救走了。这些羊怎么这么团结，气死我了。",
        date="2026-01-13",
        mood="frustrated",
        tags=["懒羊羊", "喜羊羊", "羊村"],
    ),
    DiaryEntry(
        id="diary_006",
        content="青青草原上日复一日和羊村斗智斗勇。虽然每次都说我一定会回来的，但小羊们团结在一起，从来没让我得逞。不过我是不会认输的！",
        date="2026-01-14",
        mood="determined",
        tags=["青青草原", "羊村", "斗智斗勇"],
    ),
]


def build_diary_schema(dim: int):
    """Схема коллекции дневника; dim должен совпадать с размерностью эмбеддингов."""
    schema = MilvusClient.create_schema(auto_id=False, enable_dynamic_field=False)
    schema.add_field(field_name="id", datatype=DataType.VARCHAR, is_primary=True, max_length=64, description="日记主键")
    schema.add_field(field_name="content", datatype=DataType.VARCHAR, max_length=4096, description="日记正文")
    schema.add_field(field_name="date", datatype=DataType.VARCHAR, max_length=32, description="日期")
    schema.add_field(field_name="mood", datatype=DataType.VARCHAR, max_length=64, description="心情")
    schema.add_field(field_name="tags", datatype=DataType.JSON, description="标签列表")
    schema.add_field(field_name="vector", datatype=DataType.FLOAT_VECTOR, dim=dim, description="content 的向量")
    return schema


def _format_tags(tags: Any) -> str:
    if isinstance(tags, str):
        try:
            tags = json.loads(tags)
        except json.JSONDecodeError:
            return tags
    if isinstance(tags, list):
        return ", ".join(str(t) for t in tags)
    return str(tags)


def format_diary_context(hits: List[Dict[str, Any]]) -> str:
    blocks = [
        f"[日记 {i}]\n日期: {hit.get('date')}\n心情: {hit.get('mood')}\n标签: {_format_tags(hit.get('tags'))}\n内容: {hit.get('content')}"
        for i, hit in enumerate(hits, start=1)
    ]
    return CONTEXT_SEPARATOR.join(blocks)


class DiaryStore:
    """Дневник в Milvus: запись, просмотр, семантический поиск и ответы."""

    def __init__(
        self,
        client: MilvusClient,
        embed_model: OpenAICompatEmbedding,
        llm: OpenAIChatLLM,
        cfg: DiaryConfig,
    ) -> None:
        self.client = client
        self.embed_model = embed_model
        self.llm = llm
        self.cfg = cfg

    def ensure_collection(self) -> bool:
        return ensure_collection(
            self.client,
            self.cfg.collection_name,
            build_diary_schema(self.embed_model.dimensions),
            vector_index_params(params={"M": self.cfg.hnsw_m, "efConstruction": self.cfg.hnsw_ef_construction}),
        )

    def add_entries(self, entries: List[DiaryEntry]) -> int:
        """Вставляет записи вместе с эмбеддингами content.

        tags передаются JSON-строкой. После успешной вставки коллекция
        сбрасывается на диск и перезагружается, чтобы записи сразу были видны поиску.
        """
        if not entries:
            return 0
        vectors = self.embed_model.embed_concurrently([e.content for e in entries])
        rows = [
            {**asdict(entry), "tags": json.dumps(entry.tags, ensure_ascii=False), "vector": vector}
            for entry, vector in zip(entries, vectors)
        ]
        res = self.client.insert(collection_name=self.cfg.collection_name, data=rows)
        inserted = int(res.get("insert_count", 0) or 0)
        if inserted != len(rows):
            logger.error("diary insert incomplete", expected=len(rows), inserted=inserted)
            return inserted

        try:
            self.client.flush(collection_name=self.cfg.collection_name)
            self.client.release_collection(collection_name=self.cfg.collection_name)
        except Exception as exc:
            logger.debug("flush/release failed", error=str(exc))
        self.client.load_collection(collection_name=self.cfg.collection_name)
        return inserted

    def list_all(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Все записи (скалярный запрос без фильтра, не больше limit)."""
        return self.client.query(
            collection_name=self.cfg.collection_name,
            filter="",
            output_fields=DIARY_FIELDS,
            limit=limit or self.cfg.list_limit,
        )

    def search(self, query: str, top_k: Optional[int] = None) -> List[Dict[str, Any]]:
        vector = self.embed_model.get_query_embedding(query)
        return search_one(
            self.client,
            self.cfg.collection_name,
            vector,
            limit=top_k or self.cfg.top_k,
            output_fields=DIARY_FIELDS,
        )

    def answer(self, query: str) -> Optional[str]:
        hits = self.search(query)
        if not hits:
            return None
        prompt = DIARY_PROMPT.format(context=format_diary_context(hits), query=query)
        return self.llm.complete(prompt).text


def run(cfg: AppConfig, query: str = "我想看看关于吃饭的日记") -> None:
    store = DiaryStore(
        client=make_milvus_client(cfg.milvus),
        embed_model=OpenAICompatEmbedding.from_config(cfg.embedding),
        llm=OpenAIChatLLM.from_config(cfg.qwen),
        cfg=cfg.diary,
    )
    store.ensure_collection()
    inserted = store.add_entries(SAMPLE_ENTRIES)
    print(f"✓ 已插入 {inserted} 条日记")

    response = store.answer(query)
    if response is not None:
        print("response", response)
