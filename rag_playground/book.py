#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import ebooklib
import structlog
from bs4 import BeautifulSoup
from ebooklib import epub
from llama_index.core.node_parser import SentenceSplitter
from pymilvus import DataType, MilvusClient

from .config import AppConfig, BookConfig
from .embeddings import OpenAICompatEmbedding
from .llm import OpenAIChatLLM
from .vectorstore import ensure_collection, make_milvus_client, search_one, vector_index_params

logger = structlog.get_logger(__name__)

CONTEXT_SEPARATOR = "\n\n━━━━━\n\n"
SEARCH_OUTPUT_FIELDS = ["id", "book_id", "book_name", "index", "chapter_num", "chapter_name", "chapter_content"]

BOOK_PROMPT = """你是一个温暖贴心的 AI 书本助手。基于用户的书本内容回答问题，用亲切自然的语言。

请根据以下书本内容回答问题：
{context}

用户问题: {query}

回答要求：
1. 如果片段中有相关信息，请结合小说内容给出详细、准确的回答
2. 可以综合多个片段的内容，提供完整的答案
3. 如果片段中没有相关信息，请如实告知用户
4. 回答要准确，符合小说的情节和人物设定
5. 可以引用原文内容来支持你的回答

AI 助手的回答:"""


@dataclass
class Chapter:
    """Глава книги: заголовок и очищенный от HTML текст."""
    title: str
    text: str


def build_book_schema(dim: int):
    """Схема коллекции фрагментов книги (размерность вектора = dim)."""
    schema = MilvusClient.create_schema(auto_id=False, enable_dynamic_field=False)
    schema.add_field(field_name="id", datatype=DataType.VARCHAR, is_primary=True, max_length=64, description="主键")
    schema.add_field(field_name="book_id", datatype=DataType.VARCHAR, max_length=64, description="书本主键")
    schema.add_field(field_name="book_name", datatype=DataType.VARCHAR, max_length=256, description="书本名称")
    schema.add_field(field_name="index", datatype=DataType.INT32, description="书本内容")
    schema.add_field(field_name="chapter_num", datatype=DataType.INT32, description="章节数")
    schema.add_field(field_name="chapter_name", datatype=DataType.VARCHAR, max_length=256, description="章节名称")
    schema.add_field(field_name="chapter_content", datatype=DataType.VARCHAR, max_length=10000, description="章节内容")
    schema.add_field(field_name="vector", datatype=DataType.FLOAT_VECTOR, dim=dim, description="章节内容的向量")
    return schema


def _html_to_chapter(html: bytes) -> Optional[Chapter]:
    """Текст документа без <head>; заголовок берётся из первого h1-h3."""
    soup = BeautifulSoup(html, "html.parser")
    root = soup.body or soup
    lines = [line.strip() for line in root.get_text("\n").splitlines()]
    text = "\n".join(line for line in lines if line)
    if not text:
        return None
    heading = root.find(["h1", "h2", "h3"])
    title = heading.get_text(strip=True) if heading else ""
    return Chapter(title=title, text=text)


def _toc_titles(toc: Any) -> Dict[str, str]:
    """Соответствие «файл главы → название» по оглавлению EPUB (включая вложенные разделы)."""
    titles: Dict[str, str] = {}
    for entry in toc:
        if isinstance(entry, (tuple, list)):
            section, children = entry
            for name, title in _toc_titles([section, *children]).items():
                titles.setdefault(name, title)
            continue
        href = getattr(entry, "href", None) or ""
        title = (getattr(entry, "title", None) or "").strip()
        name = href.split("#", 1)[0]
        if name and title:
            titles.setdefault(name, title)
    return titles


def load_epub_chapters(path: str) -> List[Chapter]:
    """Читает EPUB и возвращает главы в порядке spine.

    Название главы: запись оглавления, затем первый заголовок h1-h3,
    иначе «第N章». Страница навигации и пустые документы пропускаются.
    """
    book = epub.read_epub(path)
    toc_titles = _toc_titles(book.toc)
    chapters: List[Chapter] = []
    for item_id, _linear in book.spine:
        item = book.get_item_with_id(item_id)
        if item is None or item.get_type() != ebooklib.ITEM_DOCUMENT:
            continue
        if isinstance(item, epub.EpubNav) or not item.is_chapter():
            continue
        chapter = _html_to_chapter(item.get_content())
        if chapter is None:
            continue
        chapter.title = toc_titles.get(item.get_name()) or chapter.title or f"第{len(chapters) + 1}章"
        chapters.append(chapter)
    return chapters


def format_book_context(hits: List[Dict[str, Any]]) -> str:
    blocks = [
        f"[书本 {i}]\n书本名称: {hit.get('book_name')}\n章节名称: {hit.get('chapter_name')}\n章节内容: {hit.get('chapter_content')}"
        for i, hit in enumerate(hits, start=1)
    ]
    return CONTEXT_SEPARATOR.join(blocks)


class BookLoader:
    """Загрузка книги в Milvus и ответы на вопросы по ней.

    1) Проверяет, не загружена ли уже книга с этим book_id
    2) Делит главы на фрагменты по chunk_size символов
    3) Считает эмбеддинги фрагментов главы параллельно и вставляет их одной пачкой
    4) Отвечает на вопрос по top_k ближайшим фрагментам
    """
    def __init__(
        self,
        client: MilvusClient,
        embed_model: OpenAICompatEmbedding,
        llm: OpenAIChatLLM,
        cfg: BookConfig,
    ) -> None:
        self.client = client
        self.embed_model = embed_model
        self.llm = llm
        self.cfg = cfg
        # tokenizer=list: размер фрагмента считается в символах, а не в токенах
        self.splitter = SentenceSplitter(
            chunk_size=cfg.chunk_size,
            chunk_overlap=cfg.chunk_overlap,
            tokenizer=list,
        )

    def ensure_collection(self) -> bool:
        return ensure_collection(
            self.client,
            self.cfg.collection_name,
            build_book_schema(self.embed_model.dimensions),
            vector_index_params(),
        )

    def is_book_loaded(self, book_id: int) -> bool:
        """Есть ли в коллекции хотя бы одна запись с данным book_id.

        Любая ошибка запроса трактуется как «не загружена».
        """
        try:
            rows = self.client.query(
                collection_name=self.cfg.collection_name,
                filter=f'book_id == "{book_id}"',
                output_fields=["id"],
                limit=1,
            )
        except Exception as exc:
            logger.warning("book existence check failed", book_id=book_id, error=str(exc))
            return False
        return bool(rows)

    def insert_chapter(self, chunks: List[str], book_id: int, chapter_num: int, chapter_name: str) -> int:
        """Вставляет фрагменты одной главы; возвращает число вставленных записей."""
        vectors = self.embed_model.embed_concurrently(chunks)
        rows = [
            {
                "id": f"{book_id}-{chapter_num}-{i}",
                "book_id": str(book_id),
                "book_name": self.cfg.book_name,
                "index": chapter_num,
                "chapter_num": chapter_num,
                "chapter_name": f"{chapter_name} - 片段{i + 1}",
                "chapter_content": chunk,
                "vector": vector,
            }
            for i, (chunk, vector) in enumerate(zip(chunks, vectors))
        ]
        res = self.client.insert(collection_name=self.cfg.collection_name, data=rows)
        inserted = int(res.get("insert_count", 0) or 0)
        logger.info("chunks inserted", chapter=chapter_num, inserted=inserted)
        return inserted

    def load_book(self, book_id: int, chapters: Optional[List[Chapter]] = None) -> int:
        """Загружает все главы книги; возвращает общее число вставленных записей."""
        if chapters is None:
            chapters = load_epub_chapters(self.cfg.epub_path)
        logger.info("epub loaded", path=self.cfg.epub_path, chapters=len(chapters))

        total = 0
        for num, chapter in enumerate(chapters, start=1):
            logger.info("processing chapter", chapter=num, of=len(chapters), name=chapter.title)
            chunks = [c for c in self.splitter.split_text(chapter.text) if c.strip()]
            if not chunks:
                logger.info("empty chapter skipped", chapter=num)
                continue
            total += self.insert_chapter(chunks, book_id, num, chapter.title)
        return total

    def ensure_loaded(self, book_id: int) -> Optional[int]:
        """Загружает книгу, только если её ещё нет в коллекции.

        Возвращает число вставленных записей или None, если книга уже была загружена.
        """
        if self.is_book_loaded(book_id):
            logger.info("book already loaded, skipping", book_id=book_id)
            return None
        return self.load_book(book_id)

    def search(self, query: str, top_k: Optional[int] = None) -> List[Dict[str, Any]]:
        vector = self.embed_model.get_query_embedding(query)
        return search_one(
            self.client,
            self.cfg.collection_name,
            vector,
            limit=top_k or self.cfg.top_k,
            output_fields=SEARCH_OUTPUT_FIELDS,
        )

    def answer(self, query: str) -> Optional[str]:
        """Отвечает на вопрос по найденным фрагментам; None, если ничего не найдено."""
        hits = self.search(query)
        if not hits:
            return None
        prompt = BOOK_PROMPT.format(context=format_book_context(hits), query=query)
        return self.llm.complete(prompt).text


def run(cfg: AppConfig, query: str = "最厉害的武功是什么") -> None:
    client = make_milvus_client(cfg.milvus)
    loader = BookLoader(
        client=client,
        embed_model=OpenAICompatEmbedding.from_config(cfg.embedding),
        llm=OpenAIChatLLM.from_config(cfg.qwen),
        cfg=cfg.book,
    )
    loader.ensure_collection()
    inserted = loader.ensure_loaded(cfg.book.book_id)
    if inserted is None:
        print(f"书本 id={cfg.book.book_id} 已加载过，跳过本次加载。")
    else:
        print(f"✓ 共插入 {inserted} 条记录")

    response = loader.answer(query)
    if response is not None:
        print("response", response)
