"""
Тесты шаблонов промптов и разбора структурированного ответа.

Запуск:
  pytest -q tests/test_prompts.py
"""

from types import SimpleNamespace

import pytest
from llama_index.core.llms import ChatMessage, MessageRole

from rag_playground.prompts import (
    ORDER_HISTORY,
    build_few_shot_prompt,
    chat_template,
    chat_with_history_template,
    chat_with_optional_history_template,
    format_with_history,
    greet_template,
    partial_format,
    run_chain,
)
from rag_playground.structured_output import OutputParserError, Scientist, describe_scientist, parse_json_output


class _DummyLLM:
    def __init__(self, text: str = "") -> None:
        self.text = text
        self.messages = []
        self.prompts = []

    def chat_completion(self, messages, tools=None):
        self.messages.append(messages)
        return SimpleNamespace(content="API 是程序之间约定好的接口。", tool_calls=None)

    def complete(self, prompt: str):
        self.prompts.append(prompt)
        return SimpleNamespace(text=self.text)


def test_greet_template() -> None:
    assert greet_template.format(name="小明", role="产品经理") == (
        "你好，小明！你正在以产品经理的身份与 AI 对话。请简要介绍一下你自己。"
    )


def test_chat_template_roles() -> None:
    msgs = chat_template.format_messages(style="简洁专业", constraint="控制在三句话以内", question="什么是 RAG？")
    assert [m.role for m in msgs] == [MessageRole.SYSTEM, MessageRole.USER]
    assert msgs[0].content == "你是一个简洁专业的助手。回答时要控制在三句话以内。"
    assert msgs[1].content == "什么是 RAG？"


def test_history_inserted_after_system() -> None:
    msgs = format_with_history(chat_with_history_template, ORDER_HISTORY, input="大概什么时候能到？")
    assert [m.role for m in msgs] == [
        MessageRole.SYSTEM, MessageRole.USER, MessageRole.ASSISTANT, MessageRole.USER,
    ]
    assert "12345" in msgs[1].content
    assert msgs[-1].content == "大概什么时候能到？"


def test_empty_history_first_turn() -> None:
    msgs = format_with_history(
        chat_with_optional_history_template, [], instruction="简洁回答。", input="你好，请问 RAG 是什么？"
    )
    assert [m.content for m in msgs] == ["你是助手。简洁回答。", "你好，请问 RAG 是什么？"]


def test_partial_format_fixes_style() -> None:
    warm = partial_format(chat_template, style="温暖贴心", constraint="用一两句话说明白")
    msgs = warm.format_messages(question="你好")
    assert msgs[0].content == "你是一个温暖贴心的助手。回答时要用一两句话说明白。"
    # исходный шаблон не меняется
    assert "{style}" in chat_template.message_templates[0].content


def test_run_chain_sends_formatted_messages() -> None:
    llm = _DummyLLM()
    assert run_chain(llm, "用一句话解释 API 是什么。") == "API 是程序之间约定好的接口。"
    sent = llm.messages[0]
    assert sent[0] == {"role": "system", "content": "你是一个简洁的助手。回答时要一句话。"}
    assert sent[1] == {"role": "user", "content": "用一句话解释 API 是什么。"}


def test_few_shot_prompt() -> None:
    assert build_few_shot_prompt("难") == (
        "请给出下列词语的反义词，只输出一个词。\n\n"
        "输入: 大\n输出: 小\n\n"
        "输入: 快\n输出: 慢\n\n"
        "输入: 热\n输出: 冷\n\n"
        "输入: 难\n输出:"
    )


def test_few_shot_custom_examples() -> None:
    text = build_few_shot_prompt("高", examples=[{"input": "上", "output": "下"}], prefix="反义词：")
    assert text == "反义词：\n\n输入: 上\n输出: 下\n\n输入: 高\n输出:"


_EINSTEIN = '{"name": "阿尔伯特·爱因斯坦", "birth_year": 1879, "nationality": "德国", "fields": ["物理学"]}'


@pytest.mark.parametrize(
    "text",
    [
        _EINSTEIN,
        f"```json\n{_EINSTEIN}\n```",
        f"好的，下面是结果：\n{_EINSTEIN}\n希望有帮助。",
    ],
)
def test_parse_json_output_variants(text: str) -> None:
    assert parse_json_output(text)["birth_year"] == 1879


@pytest.mark.parametrize("text", ["没有 JSON", "[1, 2, 3]", "{broken"])
def test_parse_json_output_failures(text: str) -> None:
    with pytest.raises(OutputParserError):
        parse_json_output(text)


def test_describe_scientist() -> None:
    llm = _DummyLLM(text=f"```json\n{_EINSTEIN}\n```")
    scientist = describe_scientist(llm, "爱因斯坦")
    assert isinstance(scientist, Scientist)
    assert scientist.nationality == "德国"
    assert scientist.fields == ["物理学"]
    assert llm.prompts[0] == "介绍一下爱因斯坦，用 JSON 返回：name、birth_year、nationality、fields"


def test_describe_scientist_invalid_shape() -> None:
    llm = _DummyLLM(text='{"name": "某人"}')
    with pytest.raises(OutputParserError):
        describe_scientist(llm, "某人")
