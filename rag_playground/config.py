#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

VECTOR_DIMENSIONS = 1024

DASHSCOPE_BASE_URL = "https://dashscope.aliyuncs.com/compatible-mode/v1"
DEEPSEEK_BASE_URL = "https://api.deepseek.com"


def _env_flag(name: str) -> Optional[bool]:
    """Булев флаг из окружения; пустое или отсутствующее значение даёт None."""
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return None
    return raw in ("1", "true", "yes", "on")


@dataclass
class LLMConfig:
    """Параметры языковой модели (OpenAI-совместимый API).

    - base_url: базовый URL сервиса LLM
    - api_key: ключ доступа
    - model_name: имя модели
    - temperature, top_p, max_tokens: параметры генерации
    - system_prompt: системный промпт для роли system (используется в complete)
    - enable_thinking: спец.параметр enable_thinking (None: не передаётся совсем)
    """
    base_url: str = DASHSCOPE_BASE_URL
    api_key: str = ""
    model_name: str = "qwen-plus"
    temperature: float = 0.7
    top_p: float = 0.9
    max_tokens: int = 2048
    system_prompt: str = "你是一个乐于助人的助手。"
    enable_thinking: Optional[bool] = None

    @classmethod
    def qwen(cls) -> "LLMConfig":
        """Qwen через DashScope (ключ QIANWEN_API_KEY)."""
        load_dotenv()
        return cls(
            base_url=os.getenv("QIANWEN_BASE_URL", DASHSCOPE_BASE_URL),
            api_key=os.getenv("QIANWEN_API_KEY", ""),
            model_name=os.getenv("QIANWEN_MODEL", "qwen-plus"),
            enable_thinking=_env_flag("QIANWEN_ENABLE_THINKING"),
        )

    @classmethod
    def deepseek(cls) -> "LLMConfig":
        """DeepSeek (ключ DEEPSEEK_API_KEY)."""
        load_dotenv()
        return cls(
            base_url=os.getenv("DEEPSEEK_BASE_URL", DEEPSEEK_BASE_URL),
            api_key=os.getenv("DEEPSEEK_API_KEY", ""),
            model_name=os.getenv("DEEPSEEK_MODEL", "deepseek-chat"),
        )


@dataclass
class EmbeddingConfig:
    """Параметры модели эмбеддингов.

    - model_name: имя модели эмбеддингов на OpenAI-совместимом эндпоинте
    - dimensions: размерность вектора (должна совпадать со схемой коллекции)
    - max_workers: сколько запросов эмбеддингов выполнять параллельно
    """
    base_url: str = DASHSCOPE_BASE_URL
    api_key: str = ""
    model_name: str = "text-embedding-v3"
    dimensions: int = VECTOR_DIMENSIONS
    max_workers: int = 8

    @classmethod
    def from_env(cls) -> "EmbeddingConfig":
        load_dotenv()
        return cls(
            base_url=os.getenv("QIANWEN_BASE_URL", DASHSCOPE_BASE_URL),
            api_key=os.getenv("QIANWEN_API_KEY", ""),
            model_name=os.getenv("EMBEDDING_MODEL", "text-embedding-v3"),
            max_workers=int(os.getenv("EMBEDDING_MAX_WORKERS", "8")),
        )


@dataclass
class MilvusConfig:
    """Параметры подключения к Milvus / Zilliz Cloud."""
    uri: str = ""
    token: Optional[str] = None

    @classmethod
    def from_env(cls) -> "MilvusConfig":
        load_dotenv()
        return cls(
            uri=os.getenv("ZILLIZ_URI", ""),
            token=os.getenv("ZILLIZ_TOKEN") or None,
        )


@dataclass
class BookConfig:
    """Параметры загрузки книги (EPUB) в коллекцию.

    - chunk_size / chunk_overlap: размер фрагмента и перекрытие соседних фрагментов
    - top_k: сколько фрагментов подставлять в контекст ответа
    """
    epub_path: str = "./天龙八部.epub"
    collection_name: str = "book"
    chunk_size: int = 500
    chunk_overlap: int = 50
    book_id: int = 1
    top_k: int = 2

    @property
    def book_name(self) -> str:
        return Path(self.epub_path).stem


@dataclass
class DiaryConfig:
    collection_name: str = "diary"
    top_k: int = 2
    list_limit: int = 100
    hnsw_m: int = 8
    hnsw_ef_construction: int = 128


@dataclass
class ChatConfig:
    records_path: str = "qa-records.json"
    system_prompt: str = "你是一个助手，请用中文回答用户的问题。"


@dataclass
class AgentConfig:
    base_dir: str = field(default_factory=os.getcwd)
    max_tool_rounds: int = 10


@dataclass
class AppConfig:
    """Сводная конфигурация всех демо."""
    qwen: LLMConfig = field(default_factory=LLMConfig)
    deepseek: LLMConfig = field(
        default_factory=lambda: LLMConfig(base_url=DEEPSEEK_BASE_URL, model_name="deepseek-chat")
    )
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    milvus: MilvusConfig = field(default_factory=MilvusConfig)
    book: BookConfig = field(default_factory=BookConfig)
    diary: DiaryConfig = field(default_factory=DiaryConfig)
    chat: ChatConfig = field(default_factory=ChatConfig)
    agent: AgentConfig = field(default_factory=AgentConfig)

    @classmethod
    def from_env(cls) -> "AppConfig":
        load_dotenv()
        book = BookConfig(epub_path=os.getenv("BOOK_EPUB_PATH", BookConfig.epub_path))
        chat = ChatConfig(records_path=os.getenv("QA_RECORDS_PATH", ChatConfig.records_path))
        return cls(
            qwen=LLMConfig.qwen(),
            deepseek=LLMConfig.deepseek(),
            embedding=EmbeddingConfig.from_env(),
            milvus=MilvusConfig.from_env(),
            book=book,
            chat=chat,
        )
