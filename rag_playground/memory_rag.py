#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""RAG в памяти: VectorStoreIndex (SimpleVectorStore) поверх семи фрагментов сказки."""

from typing import List, Optional

import structlog
from llama_index.core import Document, PromptTemplate, VectorStoreIndex
from llama_index.core.base.embeddings.base import BaseEmbedding
from llama_index.core.llms import LLM
from llama_index.core.schema import NodeWithScore

from .config import AppConfig
from .embeddings import OpenAICompatEmbedding
from .llm import OpenAIChatLLM

logger = structlog.get_logger(__name__)

CONTEXT_SEPARATOR = "\n\n━━━━━\n\n"

STORY_QA_PROMPT = PromptTemplate(
    "你是一个讲故事的老师。请根据下面给出的故事片段回答问题，用温暖、简洁的语言。"
    "如果片段里没有提到，就老实说\"故事里还没有提到这一点\"。\n\n"
    "故事片段:\n{context_str}\n\n"
    "问题: {query_str}\n\n"
    "老师的回答:"
)

# Сказка «Весёлый козлик и Большой серый волк»: состязание умов на Зелёной равнине
STORY_DOCUMENTS: List[Document] = [
    Document(
        text="在青青草原上有一个羊村，村里住着喜羊羊、懒羊羊、美羊羊、沸羊羊等小羊，村长是慢羊羊。喜羊羊是羊村里最聪明、跑得最快的小羊，他机智勇敢，每当灰太狼来抓羊，总是他想到办法带领大家化险为夷。",
        metadata={"chapter": 1, "character": "喜羊羊与羊村", "type": "角色介绍", "mood": "欢乐"},
    ),
    Document(
        text="灰太狼住在狼堡里，和老婆红太狼一起生活。灰太狼整天想着抓羊给红太狼吃，可每次都被喜羊羊他们整得灰头土脸。红太狼经常用平底锅敲灰太狼的头，骂他\"没用的东西\"，灰太狼总会说一句：\"我一定会回来的！\"",
        metadata={"chapter": 2, "character": "灰太狼与红太狼", "type": "角色介绍", "mood": "搞笑"},
    ),
    Document(
        text="有一天，灰太狼发明了一台\"吸羊机\"，想用机器把羊村里的羊一口气吸进狼堡。喜羊羊从望远镜里看到灰太狼在调试机器，赶紧叫上懒羊羊、沸羊羊一起商量。懒羊羊吓得想躲起来睡觉，喜羊羊说：\"别怕，我们只要让吸力反过来，灰太狼就会把自己吸进去。\"",
        metadata={"chapter": 3, "character": "喜羊羊、灰太狼", "type": "冲突", "mood": "紧张"},
    ),
    Document(
        text="喜羊羊带着大家把吸羊机的管道悄悄调了方向，出口对准了狼堡。灰太狼一按开关，不但没吸到羊，反而把狼堡里的家具、红太狼的平底锅全吸进了管道，最后灰太狼自己也被吸了进去，摔进了羊村的陷阱里。红太狼气得又拿起了备用平底锅。",
        metadata={"chapter": 4, "character": "喜羊羊、灰太狼、红太狼", "type": "智斗", "mood": "搞笑"},
    ),
    Document(
        text="还有一次，灰太狼扮成羊混进羊村，想从内部抓羊。喜羊羊发现这只\"羊\"的尾巴又长又灰，而且总盯着大家流口水，就故意请他去吃\"超级辣草\"，灰太狼辣得现出原形，被大家用绳子捆起来扔出了羊村。灰太狼在空中大喊：\"喜羊羊，我一定会回来的！\"",
        metadata={"chapter": 5, "character": "喜羊羊与灰太狼", "type": "智斗", "mood": "机智"},
    ),
    Document(
        text="懒羊羊最爱睡觉和吃青草蛋糕，经常在草地上睡着后被灰太狼盯上。每次都是喜羊羊及时赶到，用各种办法救回懒羊羊。懒羊羊醒来后总说：\"喜羊羊，你又救了我，下次我请你吃青草蛋糕！\"喜羊羊笑着说：\"你还是先别在村外睡觉啦。\"",
        metadata={"chapter": 6, "character": "喜羊羊与懒羊羊", "type": "友情", "mood": "温馨"},
    ),
    Document(
        text="羊村和狼堡就这样日复一日地斗智斗勇。灰太狼永远在发明新招数抓羊，喜羊羊永远能想到办法破解。虽然灰太狼总说\"我一定会回来的\"，但小羊们团结在一起，从来没有让灰太狼得逞。青青草原上每天都上演着这样有趣又热闹的故事。",
        metadata={"chapter": 7, "character": "羊村与灰太狼", "type": "结局", "mood": "欢乐"},
    ),
]


def build_story_index(embed_model: BaseEmbedding, documents: List[Document] = STORY_DOCUMENTS) -> VectorStoreIndex:
    """Векторизует документы в in-memory индекс (один документ = один узел)."""
    return VectorStoreIndex.from_documents(documents, embed_model=embed_model, transformations=[])


def retrieve(index: VectorStoreIndex, question: str, k: int = 3) -> List[NodeWithScore]:
    return index.as_retriever(similarity_top_k=k).retrieve(question)


def format_story_context(nodes: List[NodeWithScore]) -> str:
    return CONTEXT_SEPARATOR.join(
        f"[片段{i}]\n{n.node.get_content()}" for i, n in enumerate(nodes, start=1)
    )


def format_scored_results(nodes: List[NodeWithScore]) -> str:
    """Отчёт по найденным фрагментам: сходство, текст и метаданные."""
    lines = []
    for i, n in enumerate(nodes, start=1):
        meta = n.node.metadata or {}
        score = "N/A" if n.score is None else f"{n.score:.4f}"
        lines.append(f"[文档 {i}] 相似度: {score}")
        lines.append(f"内容: {n.node.get_content()}")
        lines.append(
            f"元数据: 章节={meta.get('chapter')}, 角色={meta.get('character')}, "
            f"类型={meta.get('type')}, 心情={meta.get('mood')}"
        )
    return "\n".join(lines)


def answer(
    llm: LLM,
    index: VectorStoreIndex,
    question: str,
    k: int = 3,
    nodes: Optional[List[NodeWithScore]] = None,
) -> str:
    if nodes is None:
        nodes = retrieve(index, question, k=k)
    logger.info("story fragments retrieved", count=len(nodes))
    prompt = STORY_QA_PROMPT.format(context_str=format_story_context(nodes), query_str=question)
    return llm.complete(prompt).text


def run(cfg: AppConfig, question: str = "喜羊羊是怎么对付灰太狼的吸羊机的？灰太狼最爱说哪句话？") -> None:
    print("开始RAG")
    index = build_story_index(OpenAICompatEmbedding.from_config(cfg.embedding))
    llm = OpenAIChatLLM.from_config(cfg.qwen)

    print("用检索器获取相关文档")
    nodes = retrieve(index, question)
    print(format_scored_results(nodes))

    print("\n【AI 回答】")
    print(answer(llm, index, question, nodes=nodes))
