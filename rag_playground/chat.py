#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from pathlib import Path
from typing import Callable, List, Optional, Union

import structlog

from .config import AppConfig
from .history import QARecord, build_messages, load_records, save_records
from .llm import OpenAIChatLLM

logger = structlog.get_logger(__name__)

EXIT_COMMANDS = {"exit", "quit", "q"}


def is_exit_command(text: str) -> bool:
    text = text.strip()
    return not text or text.lower() in EXIT_COMMANDS


class ChatSession:
    """Терминальный диалог, который помнит все прошлые вопросы и ответы.

    История передаётся модели целиком и сохраняется в файл после каждого ответа.
    """
    def __init__(
        self,
        llm: OpenAIChatLLM,
        records: Optional[List[QARecord]] = None,
        records_path: Union[str, Path] = "qa-records.json",
        system_prompt: str = "你是一个助手，请用中文回答用户的问题。",
    ) -> None:
        self.llm = llm
        self.records = records if records is not None else []
        self.records_path = records_path
        self.system_prompt = system_prompt

    is_exit_command = staticmethod(is_exit_command)

    def ask(self, question: str) -> str:
        messages = build_messages(self.records, question, self.system_prompt)
        reply = self.llm.chat_completion(messages)
        answer = reply.content or ""
        self.records.append(QARecord(question=question, answer=answer))
        save_records(self.records_path, self.records)
        logger.info("qa record saved", total=len(self.records))
        return answer

    def run(self, input_fn: Callable[[str], str] = input) -> None:
        while True:
            question = input_fn("请输入你的问题: ").strip()
            if self.is_exit_command(question):
                print(f"再见，当前共 {len(self.records)} 条问答记录已保存。")
                break
            print(self.ask(question))
            print(f"--- 当前共 {len(self.records)} 条记录 ---\n")


def run(cfg: AppConfig) -> None:
    session = ChatSession(
        llm=OpenAIChatLLM.from_config(cfg.deepseek),
        records=load_records(cfg.chat.records_path),
        records_path=cfg.chat.records_path,
        system_prompt=cfg.chat.system_prompt,
    )
    session.run()
