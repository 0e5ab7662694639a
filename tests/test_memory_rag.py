"""
Тесты RAG на in-memory индексе (MockEmbedding/MockLLM из LlamaIndex, без сети).

Запуск:
  pytest -q tests/test_memory_rag.py
"""

from llama_index.core import Document
from llama_index.core.embeddings import MockEmbedding
from llama_index.core.llms import MockLLM

from rag_playground.memory_rag import (
    STORY_DOCUMENTS,
    answer,
    build_story_index,
    format_scored_results,
    format_story_context,
    retrieve,
)


def _index():
    return build_story_index(MockEmbedding(embed_dim=8))


def test_each_document_is_one_node() -> None:
    index = _index()
    assert len(index.docstore.docs) == len(STORY_DOCUMENTS) == 7


def test_retrieve_top_k() -> None:
    nodes = retrieve(_index(), "灰太狼最爱说哪句话？", k=3)
    assert len(nodes) == 3
    assert all(n.node.metadata.get("chapter") for n in nodes)


def test_answer_prompt_contains_fragments_and_question() -> None:
    question = "喜羊羊是怎么对付吸羊机的？"
    # MockLLM без max_tokens возвращает сам промпт
    text = answer(MockLLM(), _index(), question, k=2)
    assert "[片段1]" in text and "[片段2]" in text
    assert "[片段3]" not in text
    assert f"问题: {question}" in text


def test_answer_reuses_given_nodes() -> None:
    index = _index()
    nodes = retrieve(index, "懒羊羊", k=1)
    text = answer(MockLLM(), index, "懒羊羊", nodes=nodes)
    assert nodes[0].node.get_content() in text


def test_formatting_helpers() -> None:
    index = build_story_index(
        MockEmbedding(embed_dim=4),
        [Document(text="甲", metadata={"chapter": 1, "character": "a", "type": "t", "mood": "m"})],
    )
    nodes = retrieve(index, "甲", k=1)
    assert format_story_context(nodes) == "[片段1]\n甲"
    report = format_scored_results(nodes)
    assert report.startswith("[文档 1] 相似度: ")
    assert "元数据: 章节=1, 角色=a, 类型=t, 心情=m" in report
