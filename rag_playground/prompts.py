#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Шаблоны промптов на классах LlamaIndex.

- PromptTemplate: одна строка с {переменными}
- ChatPromptTemplate: сообщения system / user
- слот истории: прошлые ChatMessage вставляются между system и текущим вопросом
- partial_format: часть переменных фиксируется заранее
- few-shot: префикс, примеры «вход → выход» и суффикс с текущим словом
"""

from typing import Dict, List, Optional, Sequence

from llama_index.core import ChatPromptTemplate, PromptTemplate
from llama_index.core.llms import ChatMessage, MessageRole

from .llm import OpenAIChatLLM, to_openai_messages

REPLY_PREVIEW_CHARS = 120

greet_template = PromptTemplate(
    "你好，{name}！你正在以{role}的身份与 AI 对话。请简要介绍一下你自己。"
)

chat_template = ChatPromptTemplate(
    message_templates=[
        ChatMessage(role=MessageRole.SYSTEM, content="你是一个{style}的助手。回答时要{constraint}。"),
        ChatMessage(role=MessageRole.USER, content="{question}"),
    ]
)

chat_with_history_template = ChatPromptTemplate(
    message_templates=[
        ChatMessage(role=MessageRole.SYSTEM, content="你是客服助手。根据对话历史回答用户，保持礼貌简洁。"),
        ChatMessage(role=MessageRole.USER, content="{input}"),
    ]
)

chat_with_optional_history_template = ChatPromptTemplate(
    message_templates=[
        ChatMessage(role=MessageRole.SYSTEM, content="你是助手。{instruction}"),
        ChatMessage(role=MessageRole.USER, content="{input}"),
    ]
)

ORDER_HISTORY: List[ChatMessage] = [
    ChatMessage(role=MessageRole.USER, content="我想查订单 12345 的物流"),
    ChatMessage(
        role=MessageRole.ASSISTANT,
        content="好的，正在为您查询订单 12345 的物流信息,大概需要3天左右到货",
    ),
]

ANTONYM_EXAMPLES: List[Dict[str, str]] = [
    {"input": "大", "output": "小"},
    {"input": "快", "output": "慢"},
    {"input": "热", "output": "冷"},
]
ANTONYM_EXAMPLE_TEMPLATE = PromptTemplate("输入: {input}\n输出: {output}")
ANTONYM_PREFIX = "请给出下列词语的反义词，只输出一个词。"
ANTONYM_SUFFIX = PromptTemplate("输入: {word}\n输出:")


def format_with_history(
    template: ChatPromptTemplate,
    history: Optional[Sequence[ChatMessage]] = None,
    **kwargs: str,
) -> List[ChatMessage]:
    """Форматирует шаблон и вставляет историю сразу после system-сообщений.

    Пустая история (первый ход диалога) допустима.
    """
    messages = template.format_messages(**kwargs)
    pos = 0
    while pos < len(messages) and messages[pos].role == MessageRole.SYSTEM:
        pos += 1
    return messages[:pos] + list(history or []) + messages[pos:]


def partial_format(template: ChatPromptTemplate, **kwargs: str) -> ChatPromptTemplate:
    return template.partial_format(**kwargs)


def build_few_shot_prompt(
    word: str,
    examples: Sequence[Dict[str, str]] = ANTONYM_EXAMPLES,
    prefix: str = ANTONYM_PREFIX,
    example_template: PromptTemplate = ANTONYM_EXAMPLE_TEMPLATE,
    suffix: PromptTemplate = ANTONYM_SUFFIX,
    separator: str = "\n\n",
) -> str:
    parts = [prefix]
    parts.extend(example_template.format(**ex) for ex in examples)
    parts.append(suffix.format(word=word))
    return separator.join(parts)


def ask_messages(llm: OpenAIChatLLM, messages: Sequence[ChatMessage]) -> str:
    """Отправляет готовый список сообщений в модель и возвращает текст ответа."""
    reply = llm.chat_completion(to_openai_messages(messages))
    return reply.content or ""


def run_chain(
    llm: OpenAIChatLLM,
    question: str,
    style: str = "简洁",
    constraint: str = "一句话",
) -> str:
    """Шаблон с зафиксированными style/constraint, затем вызов модели."""
    chain_template = partial_format(chat_template, style=style, constraint=constraint)
    return ask_messages(llm, chain_template.format_messages(question=question))


def _preview(text: str, limit: int = REPLY_PREVIEW_CHARS) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def run_examples(llm: OpenAIChatLLM) -> None:
    print("========== 模板化 Prompt 示例 ==========\n")

    greeting = greet_template.format(name="小明", role="产品经理")
    print("1. PromptTemplate 填充结果:" + greeting)
    print("1. 模型回复摘要:" + _preview(llm.complete(greeting).text))

    messages = chat_template.format_messages(style="简洁专业", constraint="控制在三句话以内", question="什么是 RAG？")
    print("\n2. ChatPromptTemplate 回复:" + _preview(ask_messages(llm, messages)))

    messages = format_with_history(chat_with_history_template, ORDER_HISTORY, input="大概什么时候能到？")
    print("\n3. 带历史消息的回复:" + _preview(ask_messages(llm, messages)))
    messages = format_with_history(
        chat_with_optional_history_template, [], instruction="简洁回答。", input="你好，请问 RAG 是什么？"
    )
    print("3b. 首轮(history=[]):" + _preview(ask_messages(llm, messages)))

    warm = partial_format(chat_template, style="温暖贴心", constraint="用一两句话说明白")
    messages = warm.format_messages(question="你好，请问 RAG 是什么？")
    print("\n4. partial 固定风格后的回复:" + _preview(ask_messages(llm, messages)))

    print("\n5. 链式调用结果:" + _preview(run_chain(llm, "用一句话解释 API 是什么。")))

    prompt_text = build_few_shot_prompt("难")
    print("\n6. Few-shot 拼出的 prompt 片段:\n" + prompt_text[-80:])
    reply = ask_messages(llm, [ChatMessage(role=MessageRole.USER, content=prompt_text)])
    print("6. 模型补出的反义词:" + reply)

    print("\n========== 结束 ==========")
