#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Лаунчер демо пакета `rag_playground`.

Запуск:
  python run_demo.py book        # книга EPUB в Milvus + вопрос по ней
  python run_demo.py diary       # дневник в Milvus
  python run_demo.py memory-rag  # RAG на индексе в памяти
  python run_demo.py prompts | structured | graphs
  python run_demo.py chat        # диалог с историей в qa-records.json
  python run_demo.py agent       # агент с файловыми инструментами

Ключи и адреса берутся из окружения / .env (QIANWEN_API_KEY, DEEPSEEK_API_KEY,
ZILLIZ_URI, ZILLIZ_TOKEN).
"""

import argparse

from rag_playground import agent, book, chat, diary, graphs, memory_rag, prompts, structured_output
from rag_playground.config import AppConfig
from rag_playground.llm import OpenAIChatLLM
from rag_playground.log import setup_logging

DEMOS = {
    "book": lambda cfg: book.run(cfg),
    "diary": lambda cfg: diary.run(cfg),
    "memory-rag": lambda cfg: memory_rag.run(cfg),
    "prompts": lambda cfg: prompts.run_examples(OpenAIChatLLM.from_config(cfg.qwen)),
    "structured": lambda cfg: structured_output.run(OpenAIChatLLM.from_config(cfg.qwen)),
    "graphs": lambda cfg: graphs.run_examples(OpenAIChatLLM.from_config(cfg.qwen)),
    "chat": lambda cfg: chat.run(cfg),
    "agent": lambda cfg: agent.run(cfg),
}


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run one of the rag_playground demos.")
    parser.add_argument("demo", choices=sorted(DEMOS), help="Which demo to run.")
    parser.add_argument("--log-level", default=None, help="Overrides LOG_LEVEL.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    setup_logging(log_level=args.log_level)
    DEMOS[args.demo](AppConfig.from_env())


if __name__ == "__main__":
    main()
