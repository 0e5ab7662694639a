"""
Тесты загрузки конфигурации из окружения.

Запуск:
  pytest -q tests/test_config.py
"""

import pytest

import rag_playground.config as config_mod
from rag_playground.config import (
    DASHSCOPE_BASE_URL,
    DEEPSEEK_BASE_URL,
    AppConfig,
    BookConfig,
    LLMConfig,
)

_ENV_KEYS = [
    "QIANWEN_API_KEY", "QIANWEN_BASE_URL", "QIANWEN_MODEL", "QIANWEN_ENABLE_THINKING",
    "DEEPSEEK_API_KEY", "DEEPSEEK_BASE_URL", "DEEPSEEK_MODEL",
    "EMBEDDING_MODEL", "EMBEDDING_MAX_WORKERS",
    "ZILLIZ_URI", "ZILLIZ_TOKEN", "BOOK_EPUB_PATH", "QA_RECORDS_PATH",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    monkeypatch.setattr(config_mod, "load_dotenv", lambda *args, **kwargs: False)
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults_without_env() -> None:
    cfg = AppConfig.from_env()
    assert cfg.qwen.base_url == DASHSCOPE_BASE_URL
    assert cfg.qwen.model_name == "qwen-plus"
    assert cfg.qwen.temperature == 0.7
    assert cfg.deepseek.base_url == DEEPSEEK_BASE_URL
    assert cfg.deepseek.model_name == "deepseek-chat"
    assert cfg.embedding.model_name == "text-embedding-v3"
    assert cfg.embedding.dimensions == 1024
    assert cfg.milvus.uri == "" and cfg.milvus.token is None
    assert cfg.book.chunk_size == 500 and cfg.book.chunk_overlap == 50
    assert cfg.diary.hnsw_m == 8 and cfg.diary.hnsw_ef_construction == 128
    assert cfg.chat.records_path == "qa-records.json"
    assert cfg.agent.max_tool_rounds == 10


def test_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv("QIANWEN_API_KEY", "qk")
    monkeypatch.setenv("DEEPSEEK_API_KEY", "dk")
    monkeypatch.setenv("ZILLIZ_URI", "https://example.zilliz")
    monkeypatch.setenv("ZILLIZ_TOKEN", "tok")
    monkeypatch.setenv("EMBEDDING_MAX_WORKERS", "3")
    monkeypatch.setenv("BOOK_EPUB_PATH", "/books/射雕英雄传.epub")
    monkeypatch.setenv("QA_RECORDS_PATH", "/tmp/qa.json")

    cfg = AppConfig.from_env()
    assert cfg.qwen.api_key == "qk"
    assert cfg.embedding.api_key == "qk"
    assert cfg.embedding.max_workers == 3
    assert cfg.deepseek.api_key == "dk"
    assert cfg.milvus.uri == "https://example.zilliz"
    assert cfg.milvus.token == "tok"
    assert cfg.book.book_name == "射雕英雄传"
    assert cfg.chat.records_path == "/tmp/qa.json"


def test_llm_presets(monkeypatch) -> None:
    monkeypatch.setenv("DEEPSEEK_MODEL", "deepseek-reasoner")
    assert LLMConfig.deepseek().model_name == "deepseek-reasoner"
    assert LLMConfig.qwen().base_url == DASHSCOPE_BASE_URL


def test_book_name_from_path() -> None:
    assert BookConfig().book_name == "天龙八部"


@pytest.mark.parametrize("raw, expected", [("", None), ("1", True), ("true", True), ("false", False), ("0", False)])
def test_qwen_enable_thinking_from_env(monkeypatch, raw, expected) -> None:
    monkeypatch.setenv("QIANWEN_ENABLE_THINKING", raw)
    assert LLMConfig.qwen().enable_thinking is expected
    assert LLMConfig.deepseek().enable_thinking is None
