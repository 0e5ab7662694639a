#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from typing import Any, Callable, Dict, List

import structlog

from .chat import is_exit_command
from .config import AppConfig
from .llm import OpenAIChatLLM
from .tools import TOOL_SCHEMAS, FileTools

logger = structlog.get_logger(__name__)

NO_REPLY = "(无回复)"

AGENT_SYSTEM_PROMPT = """你是助手，可用工具：
create_directory 创建目录；
read_file 读文件；
write_file 写文件（可生成新文件）；
list_directory 列目录。路径都相对于当前工作目录。
根据用户意图选工具，用中文总结。"""


def _assistant_message(reply: Any) -> Dict[str, Any]:
    """Сообщение ассистента с tool_calls в виде, который примет Chat API на следующем шаге."""
    return {
        "role": "assistant",
        "content": reply.content or "",
        "tool_calls": [
            {
                "id": tc.id,
                "type": "function",
                "function": {"name": tc.function.name, "arguments": tc.function.arguments},
            }
            for tc in reply.tool_calls
        ],
    }


class FileAgent:
    """Агент с файловыми инструментами.

    На каждый вопрос: модель → (инструменты → модель)*, не больше max_tool_rounds кругов.
    """
    def __init__(self, llm: OpenAIChatLLM, tools: FileTools, max_tool_rounds: int = 10) -> None:
        self.llm = llm
        self.tools = tools
        self.max_tool_rounds = max_tool_rounds

    def handle(self, question: str) -> str:
        messages: List[Dict[str, Any]] = [
            {"role": "system", "content": AGENT_SYSTEM_PROMPT},
            {"role": "user", "content": question},
        ]
        reply = self.llm.chat_completion(messages, tools=TOOL_SCHEMAS)

        rounds = 0
        while reply.tool_calls and rounds < self.max_tool_rounds:
            logger.info("tool round started", round=rounds, calls=len(reply.tool_calls))
            rounds += 1
            tool_messages = self.tools.run_tool_calls(reply.tool_calls)
            messages.append(_assistant_message(reply))
            messages.extend(tool_messages)
            reply = self.llm.chat_completion(messages, tools=TOOL_SCHEMAS)

        if reply.tool_calls:
            logger.warning("tool round limit reached", limit=self.max_tool_rounds)
        return reply.content or NO_REPLY

    def run(self, input_fn: Callable[[str], str] = input) -> None:
        print("工作目录:", self.tools.base_dir)
        print("支持: 创建目录、读文件、写文件、列目录。输入 exit/quit/q 退出。\n")
        while True:
            question = input_fn("你说: ").strip()
            if is_exit_command(question):
                print("再见。")
                break
            print("AI 正在思考。。。")
            print(self.handle(question))


def run(cfg: AppConfig) -> None:
    agent = FileAgent(
        llm=OpenAIChatLLM.from_config(cfg.deepseek),
        tools=FileTools(cfg.agent.base_dir),
        max_tool_rounds=cfg.agent.max_tool_rounds,
    )
    agent.run()
